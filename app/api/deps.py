# app/api/deps.py
from app.services.product_store import ProductStore, product_store


def get_product_store() -> ProductStore:
    """
    Dependency that returns the product store bound to the shared document store.
    Usage:
        store: ProductStore = Depends(get_product_store)
    """
    return product_store
