# app/services/product_store.py
"""
Product persistence on top of the document store.

Lookups come in two flavours: by business `id` (the integer supplied by the
caller on create) and by internal `_id` (assigned by the store). The HTTP
layer reads single products by business id but updates and deletes by
internal id.
"""
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from app.database import DocumentStore, db
from app.exceptions import StoreError, ValidationError
from app.models.product import BUSINESS_ID_MAX, BUSINESS_ID_MIN, Product, REQUIRED_FIELDS

logger = logging.getLogger(__name__)

COLLECTION = "products"


def _utcnow() -> datetime:
    now = datetime.now(timezone.utc)
    # stored timestamps carry milliseconds only
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def _format_ts(ts: datetime) -> str:
    return ts.isoformat(timespec="milliseconds")


def next_timestamp(previous: Optional[str] = None) -> str:
    """Current UTC time, pushed past `previous` so updatedAt always moves forward."""
    now = _utcnow()
    if previous:
        try:
            prev = datetime.fromisoformat(previous)
        except (TypeError, ValueError):
            prev = None
        if prev is not None and prev.tzinfo is not None and now <= prev:
            now = prev + timedelta(milliseconds=1)
    return _format_ts(now)


def parse_business_id(value: Any) -> Optional[int]:
    """Business ids are integers; anything that isn't one can't match a product."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


class ProductStore:
    def __init__(self, store: DocumentStore = db):
        self.store = store

    def _to_product(self, doc: Dict[str, Any]) -> Product:
        try:
            return Product.from_dict(doc)
        except (TypeError, ValueError) as exc:
            raise StoreError(f"Corrupt product document {doc.get('_id')}: {exc}") from exc

    def find_all(self) -> List[Product]:
        return [self._to_product(d) for d in self.store.list_documents(COLLECTION)]

    def find_by_business_id(self, business_id: Any) -> Optional[Product]:
        parsed = parse_business_id(business_id)
        if parsed is None:
            return None
        doc = self.store.find_one(COLLECTION, "id", parsed)
        return self._to_product(doc) if doc else None

    def find_by_internal_id(self, internal_id: str) -> Optional[Product]:
        doc = self.store.find_one(COLLECTION, "_id", internal_id)
        return self._to_product(doc) if doc else None

    @staticmethod
    def _check_values(fields: Dict[str, Any]) -> None:
        """Reject values the document store can't write and read back."""
        price = fields.get("price")
        if isinstance(price, float) and not math.isfinite(price):
            raise ValidationError("Product validation failed: price must be a finite number")
        business_id = fields.get("id")
        if isinstance(business_id, int) and not BUSINESS_ID_MIN <= business_id <= BUSINESS_ID_MAX:
            raise ValidationError(
                f"Product validation failed: id must be between {BUSINESS_ID_MIN} and {BUSINESS_ID_MAX}"
            )

    def insert(self, fields: Dict[str, Any]) -> Product:
        """
        Persist a new product. Raises ValidationError when a required field is
        missing or invalid, or the business id is already used.
        """
        missing = [f for f in REQUIRED_FIELDS if fields.get(f) is None]
        if missing:
            raise ValidationError(f"Product validation failed: missing required fields: {', '.join(missing)}")
        self._check_values(fields)
        doc = {f: fields[f] for f in REQUIRED_FIELDS}
        now = next_timestamp()
        doc["createdAt"] = now
        doc["updatedAt"] = now
        saved = self.store.insert_document(COLLECTION, doc, unique=("id",))
        logger.info("Created product id=%s _id=%s", saved["id"], saved["_id"])
        return self._to_product(saved)

    def update_by_internal_id(self, internal_id: str, fields: Dict[str, Any]) -> Optional[Product]:
        """
        Merge the given fields into the product with this `_id`. Returns None
        when there is no such product. `updatedAt` is derived from the stored
        value while the collection is locked, so concurrent updates never share one.
        """
        updates = {k: v for k, v in fields.items() if k in REQUIRED_FIELDS}
        nulls = [k for k, v in updates.items() if v is None]
        if nulls:
            raise ValidationError(f"Product validation failed: fields may not be null: {', '.join(nulls)}")
        self._check_values(updates)
        saved = self.store.update_document(
            COLLECTION,
            "_id",
            internal_id,
            updates,
            unique=("id",),
            on_update=lambda current: {"updatedAt": next_timestamp(current.get("updatedAt"))},
        )
        if saved is None:
            return None
        logger.info("Updated product _id=%s fields=%s", internal_id, sorted(fields))
        return self._to_product(saved)

    def delete_by_internal_id(self, internal_id: str) -> bool:
        removed = self.store.delete_document(COLLECTION, "_id", internal_id)
        if removed:
            logger.info("Deleted product _id=%s", internal_id)
        return removed


product_store = ProductStore()
