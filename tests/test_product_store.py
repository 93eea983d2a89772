# tests/test_product_store.py
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import pytest

from app.exceptions import StoreError, ValidationError
from app.services.product_store import next_timestamp, parse_business_id


def test_insert_then_find_by_business_id(store, product_payload):
    created = store.insert(product_payload())
    found = store.find_by_business_id(1)

    assert found == created
    assert found.internal_id
    assert found.name == "Pen"
    assert found.price == pytest.approx(1.5)
    assert found.instock is True
    assert found.created_at and found.updated_at
    assert found.created_at == found.updated_at


def test_find_by_business_id_accepts_path_strings(store, product_payload):
    store.insert(product_payload(id=42))
    assert store.find_by_business_id("42").id == 42
    assert store.find_by_business_id("abc") is None
    assert store.find_by_business_id("4.2") is None


def test_find_by_internal_id(store, product_payload):
    created = store.insert(product_payload())
    assert store.find_by_internal_id(created.internal_id) == created
    assert store.find_by_internal_id("missing") is None


def test_insert_missing_field_is_validation_error(store, product_payload):
    body = product_payload()
    del body["price"]
    with pytest.raises(ValidationError) as exc:
        store.insert(body)
    assert "price" in exc.value.message
    assert store.find_all() == []


def test_duplicate_business_id_rejected(store, product_payload):
    store.insert(product_payload())
    with pytest.raises(ValidationError):
        store.insert(product_payload(name="Other pen"))
    assert [p.name for p in store.find_all()] == ["Pen"]


def test_concurrent_duplicate_inserts_one_wins(store, product_payload):
    def attempt(name):
        try:
            return store.insert(product_payload(name=name))
        except ValidationError as exc:
            return exc

    with ThreadPoolExecutor(max_workers=2) as pool:
        results = list(pool.map(attempt, ["first", "second"]))

    wins = [r for r in results if not isinstance(r, ValidationError)]
    losses = [r for r in results if isinstance(r, ValidationError)]
    assert len(wins) == 1
    assert len(losses) == 1
    assert len(store.find_all()) == 1


def test_update_changes_only_supplied_fields(store, product_payload):
    created = store.insert(product_payload())
    updated = store.update_by_internal_id(created.internal_id, {"price": 2.0})

    assert updated.price == pytest.approx(2.0)
    assert updated.name == created.name
    assert updated.id == created.id
    assert updated.description == created.description
    assert updated.category == created.category
    assert updated.instock == created.instock
    assert updated.created_at == created.created_at
    assert datetime.fromisoformat(updated.updated_at) > datetime.fromisoformat(created.updated_at)


def test_updated_at_strictly_increases_on_back_to_back_updates(store, product_payload):
    created = store.insert(product_payload())
    stamps = [created.updated_at]
    for price in (2.0, 3.0, 4.0):
        stamps.append(store.update_by_internal_id(created.internal_id, {"price": price}).updated_at)
    parsed = [datetime.fromisoformat(s) for s in stamps]
    assert parsed == sorted(parsed)
    assert len(set(parsed)) == len(parsed)


def test_update_missing_product_returns_none(store):
    assert store.update_by_internal_id("missing", {"price": 2.0}) is None


def test_update_to_taken_business_id_is_rejected(store, product_payload):
    store.insert(product_payload(id=1))
    second = store.insert(product_payload(id=2, name="Pencil"))
    with pytest.raises(ValidationError):
        store.update_by_internal_id(second.internal_id, {"id": 1})
    assert store.find_by_business_id(2).name == "Pencil"


def test_update_rejects_null_values(store, product_payload):
    created = store.insert(product_payload())
    with pytest.raises(ValidationError):
        store.update_by_internal_id(created.internal_id, {"name": None})


def test_update_ignores_unknown_fields(store, product_payload):
    created = store.insert(product_payload())
    updated = store.update_by_internal_id(created.internal_id, {"colour": "blue", "createdAt": "x"})
    assert updated.created_at == created.created_at
    assert "colour" not in store.store.find_one("products", "_id", created.internal_id)


def test_delete_is_idempotent(store, product_payload):
    created = store.insert(product_payload())
    assert store.delete_by_internal_id(created.internal_id) is True
    assert store.delete_by_internal_id(created.internal_id) is False
    assert store.find_by_business_id(1) is None


def test_corrupt_document_is_store_error(store, products_file):
    products_file.parent.mkdir(parents=True, exist_ok=True)
    products_file.write_text('{"_id": "abc", "name": "Half a product"}\n', encoding="utf-8")
    with pytest.raises(StoreError):
        store.find_all()


def test_parse_business_id():
    assert parse_business_id("7") == 7
    assert parse_business_id(" 7 ") == 7
    assert parse_business_id(7) == 7
    assert parse_business_id(True) is None
    assert parse_business_id("seven") is None


def test_next_timestamp_moves_past_previous():
    future = "2999-01-01T00:00:00.000+00:00"
    assert next_timestamp(future) == "2999-01-01T00:00:00.001+00:00"
    assert next_timestamp("not a timestamp")


def test_concurrent_updates_get_distinct_timestamps(store, product_payload):
    created = store.insert(product_payload())

    def attempt(price):
        return store.update_by_internal_id(created.internal_id, {"price": price}).updated_at

    with ThreadPoolExecutor(max_workers=4) as pool:
        stamps = list(pool.map(attempt, [2.0, 3.0, 4.0, 5.0, 6.0, 7.0]))

    parsed = [datetime.fromisoformat(s) for s in stamps]
    assert len(set(parsed)) == len(parsed)
    assert min(parsed) > datetime.fromisoformat(created.updated_at)
    final = store.find_by_internal_id(created.internal_id)
    assert datetime.fromisoformat(final.updated_at) == max(parsed)


@pytest.mark.parametrize("price", [float("inf"), float("-inf"), float("nan")])
def test_non_finite_price_rejected(store, product_payload, price):
    with pytest.raises(ValidationError):
        store.insert(product_payload(price=price))
    created = store.insert(product_payload())
    with pytest.raises(ValidationError):
        store.update_by_internal_id(created.internal_id, {"price": price})
    assert store.find_all()[0].price == pytest.approx(1.5)


def test_business_id_outside_int64_rejected(store, product_payload):
    with pytest.raises(ValidationError):
        store.insert(product_payload(id=2 ** 63))
    created = store.insert(product_payload())
    with pytest.raises(ValidationError):
        store.update_by_internal_id(created.internal_id, {"id": -(2 ** 63) - 1})
    assert [p.id for p in store.find_all()] == [1]


def test_insert_returns_what_was_stored(store, product_payload):
    created = store.insert(product_payload(price=0.1 + 0.2))
    assert store.find_by_internal_id(created.internal_id) == created
