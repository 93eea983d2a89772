# app/database.py
"""
File-backed document store. Each collection is a JSON-lines file inside
DATA_DIR, one self-describing document per line. Documents keep their JSON
types (integers, floats, booleans, strings) across a write/read cycle.
Every operation on a collection holds that collection's file lock, so
read-check-write sequences (e.g. unique key checks) are not interleaved.

Usage:
    from app.database import db
    db.connect()
    db.list_documents("products")
    db.find_one("products", "id", 1)
    db.insert_document("products", {"name": "Pen", "id": 1}, unique=("id",))
"""

import json
import logging
import math
import os
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

import numpy as np
import pandas as pd
from filelock import FileLock, Timeout

from app.config import settings
from app.exceptions import StoreError, ValidationError

logger = logging.getLogger(__name__)

ID_FIELD = "_id"


def new_internal_id() -> str:
    return uuid.uuid4().hex


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _plain(value: Any) -> Any:
    # numpy scalars -> int / float / bool
    return value.item() if isinstance(value, np.generic) else value


class DocumentStore:
    """
    Manages JSON-lines collection files inside data_dir.
    Collection name maps to a file name from settings, else <collection>.jsonl.
    """

    def __init__(self, data_dir: Path = settings.DATA_DIR, lock_timeout: float = settings.LOCK_TIMEOUT):
        self.data_dir = Path(data_dir)
        self.lock_timeout = lock_timeout

    def connect(self) -> None:
        """
        Make sure the data directory exists and is writable. Called once at
        startup; a failure here should stop the process.
        """
        path = Path(self.data_dir)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreError(f"Cannot create data directory {path}: {exc}") from exc
        if not os.access(path, os.W_OK):
            raise StoreError(f"Data directory {path} is not writable")
        logger.info("Document store ready at %s", path.resolve())

    def _file_path(self, collection: str) -> Path:
        mapping = {
            "products": settings.PRODUCTS_FILE,
        }
        filename = mapping.get(collection, f"{collection}.jsonl")
        return Path(self.data_dir) / filename

    def _lock_for(self, path: Path) -> FileLock:
        return FileLock(str(path) + ".lock", timeout=self.lock_timeout)

    @contextmanager
    def _locked(self, collection: str, action: str) -> Iterator[Path]:
        """Hold the collection lock and translate I/O and parse failures to StoreError."""
        path = self._file_path(collection)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with self._lock_for(path):
                yield path
        except Timeout as exc:
            raise StoreError(f"Timed out waiting for lock on collection '{collection}'") from exc
        except (OSError, ValueError) as exc:
            logger.warning("Could not %s collection %s: %s", action, collection, exc)
            raise StoreError(f"Could not {action} collection '{collection}': {exc}") from exc

    def _read_df_nolock(self, path: Path) -> pd.DataFrame:
        if not path.exists() or path.stat().st_size == 0:
            return pd.DataFrame()
        # dtype/date inference off: what was written as a string stays a string
        return pd.read_json(
            path,
            orient="records",
            lines=True,
            dtype=False,
            convert_dates=False,
            keep_default_dates=False,
            precise_float=True,
        )

    def _write_df_nolock(self, path: Path, df: pd.DataFrame) -> None:
        """
        Write DataFrame to `path` WITHOUT acquiring the file lock.
        Use this only when the caller already holds the lock.
        """
        # json.dumps writes floats with repr, so they read back bit-for-bit.
        # NaN cells count as missing; an infinity raises rather than becoming null
        lines = [
            json.dumps(rec, ensure_ascii=False, allow_nan=False) + "\n"
            for rec in self._records(df)
        ]
        path.write_text("".join(lines), encoding="utf-8")

    @staticmethod
    def _records(df: pd.DataFrame) -> List[Dict[str, Any]]:
        """Rows as plain-Python dicts; missing cells are left out of the document."""
        if df.empty:
            return []
        return [
            {k: _plain(v) for k, v in row.items() if not _is_missing(v)}
            for row in df.to_dict(orient="records")
        ]

    def _reread_nolock(self, path: Path, internal_id: Any) -> Dict[str, Any]:
        """The document as it now sits on disk."""
        df = self._read_df_nolock(path)
        mask = self._mask(df, ID_FIELD, internal_id)
        if not mask.any():
            raise StoreError(f"Document {internal_id} missing after write to {path.name}")
        return self._records(df[mask].head(1))[0]

    @staticmethod
    def _mask(df: pd.DataFrame, key: str, value: Any) -> pd.Series:
        if df.empty or key not in df.columns:
            return pd.Series(False, index=df.index)
        # compare as strings so 1 == "1" and ids of any type match
        return df[key].astype(str) == str(value)

    @classmethod
    def _check_unique(
        cls,
        df: pd.DataFrame,
        values: Dict[str, Any],
        unique: Iterable[str],
        exclude: Optional[pd.Series] = None,
    ) -> None:
        for key in unique:
            if key not in values:
                continue
            clash = cls._mask(df, key, values[key])
            if exclude is not None:
                clash = clash & ~exclude
            if clash.any():
                raise ValidationError(f"Duplicate value for unique field '{key}': {values[key]}")

    # --- high-level document primitives ---

    def list_documents(self, collection: str) -> List[Dict[str, Any]]:
        with self._locked(collection, "read") as path:
            df = self._read_df_nolock(path)
        return self._records(df)

    def find_one(self, collection: str, key: str, value: Any) -> Optional[Dict[str, Any]]:
        with self._locked(collection, "read") as path:
            df = self._read_df_nolock(path)
        mask = self._mask(df, key, value)
        if not mask.any():
            return None
        return self._records(df[mask].head(1))[0]

    def insert_document(
        self, collection: str, document: Dict[str, Any], unique: Iterable[str] = ()
    ) -> Dict[str, Any]:
        """
        Insert a document and return it, with its generated `_id`, as read back
        from disk. Raises ValidationError if a value of a `unique` field is already taken.
        """
        doc = dict(document)
        doc[ID_FIELD] = new_internal_id()
        with self._locked(collection, "write") as path:
            df = self._read_df_nolock(path)
            self._check_unique(df, doc, unique)
            new_row = pd.DataFrame([doc])
            df = new_row if df.empty else pd.concat([df, new_row], ignore_index=True, sort=False)
            self._write_df_nolock(path, df)
            saved = self._reread_nolock(path, doc[ID_FIELD])
        logger.debug("Inserted %s into %s", doc[ID_FIELD], collection)
        return saved

    def update_document(
        self,
        collection: str,
        key: str,
        value: Any,
        updates: Dict[str, Any],
        unique: Iterable[str] = (),
        on_update: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Merge `updates` into the first document where document[key] == value.
        `on_update(current)` runs under the lock with the stored document and
        returns extra fields to merge (e.g. a refreshed timestamp).
        Returns the updated document as read back from disk, or None if nothing matched.
        """
        with self._locked(collection, "write") as path:
            df = self._read_df_nolock(path)
            mask = self._mask(df, key, value)
            if not mask.any():
                return None
            # only touch the first match
            target = mask & (mask.cumsum() == 1)
            current = self._records(df[target])[0]
            changes = dict(updates)
            if on_update is not None:
                changes.update(on_update(current))
            self._check_unique(df, changes, unique, exclude=target)
            # object dtype so a value of another type never gets coerced
            df = df.astype(object)
            for k, v in changes.items():
                if k == ID_FIELD:
                    continue
                if k not in df.columns:
                    df[k] = None
                df.loc[target, k] = v
            self._write_df_nolock(path, df)
            return self._reread_nolock(path, current[ID_FIELD])

    def delete_document(self, collection: str, key: str, value: Any) -> bool:
        """
        Delete all documents where document[key] == value. Returns True if any were removed.
        """
        with self._locked(collection, "write") as path:
            df = self._read_df_nolock(path)
            mask = self._mask(df, key, value)
            if not mask.any():
                return False
            self._write_df_nolock(path, df[~mask])
            return True


# module-level singleton, connected at application startup
db = DocumentStore()
