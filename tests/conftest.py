# tests/conftest.py
import os
import sys

import pytest
from fastapi.testclient import TestClient

# ensure project root is importable
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from app import database as app_database  # noqa: E402
from app.config import settings  # noqa: E402
from app.main import app  # noqa: E402
from app.services.product_store import ProductStore  # noqa: E402


@pytest.fixture(autouse=True)
def temp_data_dir(tmp_path, monkeypatch):
    """
    Point the document store singleton at an isolated temp directory for every test.
    """
    data_dir = tmp_path / "data"
    monkeypatch.setattr(app_database.db, "data_dir", data_dir)
    yield data_dir


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def store():
    return ProductStore(app_database.db)


@pytest.fixture
def product_payload():
    """
    Return a callable building a valid create body.
    Usage: body = product_payload(id=2, name="Pencil")
    """
    def _fn(**overrides):
        body = {
            "name": "Pen",
            "id": 1,
            "description": "Blue pen",
            "price": 1.5,
            "category": "stationery",
            "instock": True,
        }
        body.update(overrides)
        return body
    return _fn


@pytest.fixture
def products_file(temp_data_dir):
    """Path of the products collection file inside the temp data dir."""
    return temp_data_dir / settings.PRODUCTS_FILE
