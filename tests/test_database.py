"""Key-value store tests: snapshots, overwrite and corruption fallback."""

from database import Database, PRODUCTS_KEY, CART_KEY, SETTINGS_KEY


def test_missing_key_returns_fallback(db):
    assert db.load(CART_KEY, []) == []
    assert db.load(SETTINGS_KEY, None) is None


def test_save_then_load_returns_same_structure(db):
    records = [{"id": "a", "barcode": "1", "name": "Tea", "price": 3.5}]
    db.save(PRODUCTS_KEY, records)
    assert db.load(PRODUCTS_KEY, None) == records


def test_save_replaces_previous_snapshot(db):
    db.save(CART_KEY, [{"productId": "a", "qty": 1}])
    db.save(CART_KEY, [])
    assert db.load(CART_KEY, "fallback") == []


def test_corrupt_blob_returns_fallback(db):
    db.save_raw(SETTINGS_KEY, "{not json")
    assert db.load(SETTINGS_KEY, {"discountPct": 0}) == {"discountPct": 0}


def test_empty_and_null_blobs_return_fallback(db):
    db.save_raw(CART_KEY, "")
    assert db.load(CART_KEY, []) == []
    db.save_raw(CART_KEY, "null")
    assert db.load(CART_KEY, []) == []


def test_delete_removes_key(db):
    db.save(CART_KEY, [])
    assert db.delete(CART_KEY) is True
    assert db.delete(CART_KEY) is False
    assert db.load(CART_KEY, "gone") == "gone"


def test_data_survives_reopen(tmp_path):
    path = str(tmp_path / "pos.db")
    first = Database(path)
    first.save(SETTINGS_KEY, {"discountPct": 5, "taxPct": 7.5})
    first.close()

    second = Database(path)
    assert second.load(SETTINGS_KEY, None) == {"discountPct": 5, "taxPct": 7.5}
    second.close()
