from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.product import BUSINESS_ID_MAX, BUSINESS_ID_MIN


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1)
    id: int = Field(..., ge=BUSINESS_ID_MIN, le=BUSINESS_ID_MAX)
    description: str = Field(..., min_length=1)
    price: float = Field(..., allow_inf_nan=False)
    category: str = Field(..., min_length=1)
    instock: bool


class ProductUpdate(BaseModel):
    """Any subset of the product fields. Unknown keys (e.g. `_id`) are ignored."""
    name: Optional[str] = Field(None, min_length=1)
    id: Optional[int] = Field(None, ge=BUSINESS_ID_MIN, le=BUSINESS_ID_MAX)
    description: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, allow_inf_nan=False)
    category: Optional[str] = Field(None, min_length=1)
    instock: Optional[bool] = None

    # defaults are not validated, so this only fires on an explicit null
    @field_validator("*", mode="before")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("may not be null")
        return v


class ProductOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    internal_id: str = Field(..., alias="_id")
    name: str
    id: int
    description: str
    price: float
    category: str
    instock: bool
    created_at: Optional[str] = Field(None, alias="createdAt")
    updated_at: Optional[str] = Field(None, alias="updatedAt")
