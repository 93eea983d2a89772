# app/models/product.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Dict, Any

# business fields a stored product must carry
REQUIRED_FIELDS = ("name", "id", "description", "price", "category", "instock")

# business ids are stored as 64-bit integers
BUSINESS_ID_MIN = -(2 ** 63)
BUSINESS_ID_MAX = 2 ** 63 - 1


@dataclass
class Product:
    """
    A product as held by the store. `internal_id` is the store-assigned `_id`;
    `id` is the caller-supplied business id. Timestamps are ISO-8601 strings (UTC).
    """
    internal_id: str
    name: str
    id: int
    description: str
    price: float
    category: str
    instock: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Product":
        if d is None:
            raise ValueError("Cannot construct Product from None")
        missing = [f for f in ("_id",) + REQUIRED_FIELDS if f not in d]
        if missing:
            raise ValueError(f"Stored product is missing fields: {', '.join(missing)}")
        return cls(
            internal_id=str(d["_id"]),
            name=str(d["name"]),
            id=int(d["id"]),
            description=str(d["description"]),
            price=float(d["price"]),
            category=str(d["category"]),
            instock=bool(d["instock"]),
            created_at=d.get("createdAt"),
            updated_at=d.get("updatedAt"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Wire/document shape, using the stored key names."""
        return {
            "_id": self.internal_id,
            "name": self.name,
            "id": self.id,
            "description": self.description,
            "price": self.price,
            "category": self.category,
            "instock": self.instock,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
