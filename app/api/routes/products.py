# app/api/routes/products.py
import logging
from typing import List

from fastapi import APIRouter, Depends, status

from app.api.deps import get_product_store
from app.api.schemas.product import ProductCreate, ProductOut, ProductUpdate
from app.exceptions import NotFoundError, StoreError, ValidationError
from app.models.product import Product
from app.services.product_store import ProductStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


def _product_out(product: Product) -> ProductOut:
    return ProductOut.model_validate(product.to_dict())


@router.get("/", response_model=List[ProductOut])
def list_products(store: ProductStore = Depends(get_product_store)):
    """
    List all products in store order. A store failure becomes a 500 carrying its message.
    """
    return [_product_out(p) for p in store.find_all()]


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: str, store: ProductStore = Depends(get_product_store)):
    """
    Fetch one product by its business `id` (not by `_id`).
    """
    product = store.find_by_business_id(product_id)
    if product is None:
        raise NotFoundError()
    return _product_out(product)


@router.post("/", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(payload: ProductCreate, store: ProductStore = Depends(get_product_store)):
    try:
        product = store.insert(payload.model_dump())
    except StoreError as exc:
        # any failure while saving is reported as a bad request
        raise ValidationError(exc.message) from exc
    return _product_out(product)


@router.put("/{product_id}", response_model=ProductOut)
def update_product(product_id: str, payload: ProductUpdate, store: ProductStore = Depends(get_product_store)):
    """
    Merge the supplied fields into the product with internal id `_id` == product_id.
    """
    updates = payload.model_dump(exclude_unset=True)
    try:
        product = store.update_by_internal_id(product_id, updates)
    except StoreError as exc:
        raise ValidationError(exc.message) from exc
    if product is None:
        raise NotFoundError()
    return _product_out(product)


@router.delete("/{product_id}")
def delete_product(product_id: str, store: ProductStore = Depends(get_product_store)):
    """
    Delete by internal id. Deleting something that is not there still succeeds.
    """
    removed = store.delete_by_internal_id(product_id)
    if not removed:
        logger.debug("Delete of unknown product _id=%s", product_id)
    return {"message": "Product deleted"}
