"""Catalog tests: seeding, validation, rounding, prepend order and search."""

import pytest

from models import Catalog, Product, ValidationError, DEFAULT_PRODUCTS


def _ids():
    n = iter(range(1, 100))
    return lambda: f"id{next(n)}"


def test_seed_installs_sample_products_with_fresh_ids():
    catalog = Catalog(id_factory=_ids())
    products = catalog.seed()
    assert [p.name for p in products] == [name for _, name, _ in DEFAULT_PRODUCTS]
    assert [p.id for p in products] == [f"id{i}" for i in range(1, 7)]
    assert products[0].barcode == "701228"
    assert products[0].price == 23.0


def test_seed_leaves_existing_catalog_alone():
    existing = [Product("x", "1", "Tea", 3.0)]
    catalog = Catalog(existing, id_factory=_ids())
    assert catalog.seed() == existing


def test_add_prepends_and_rounds_price():
    catalog = Catalog([Product("x", "1", "Tea", 3.0)], id_factory=_ids())
    prod = catalog.add(" 42 ", "  Bagel ", "2.499")
    assert catalog.products[0] is prod
    assert (prod.id, prod.barcode, prod.name, prod.price) == ("id1", "42", "Bagel", 2.5)


def test_add_rounds_like_cents_round():
    catalog = Catalog(id_factory=_ids())
    assert catalog.add("999", "Gum", 1.005).price == 1.0
    assert catalog.add("998", "Mint", 0.125).price == 0.13


@pytest.mark.parametrize("name, price", [
    ("", -1),
    ("   ", 5),
    ("Gum", -0.01),
    ("Gum", "abc"),
    ("Gum", None),
    ("Gum", float("inf")),
    ("Gum", "1e400"),
    ("Gum", "1_000"),
])
def test_add_rejects_invalid_input(name, price):
    catalog = Catalog([Product("x", "1", "Tea", 3.0)], id_factory=_ids())
    with pytest.raises(ValidationError):
        catalog.add("", name, price)
    assert [p.id for p in catalog.products] == ["x"]


def test_search_is_case_insensitive_substring():
    catalog = Catalog(id_factory=_ids())
    catalog.seed()
    assert [p.name for p in catalog.search("cola")] == ["Coca Cola"]
    assert [p.name for p in catalog.search("  COFF ")] == ["Coffee"]


def test_search_matches_barcode():
    catalog = Catalog(id_factory=_ids())
    catalog.seed()
    assert [p.name for p in catalog.search("2002")] == ["Milk 1L"]


def test_blank_search_returns_everything_in_order():
    catalog = Catalog(id_factory=_ids())
    catalog.seed()
    assert catalog.search("   ") == catalog.products
    assert catalog.search(None) == catalog.products


def test_find_by_id():
    catalog = Catalog([Product("x", "1", "Tea", 3.0)])
    assert catalog.find_by_id("x").name == "Tea"
    assert catalog.find_by_id("nope") is None


def test_from_records_drops_malformed_entries():
    records = [
        {"id": "a", "barcode": "1", "name": "Tea", "price": 3},
        {"id": "b", "name": "", "price": 1},
        {"id": "c", "name": "Free", "price": "1"},
        "junk",
        {"id": "d", "barcode": None, "name": "Water", "price": 0.5},
    ]
    catalog = Catalog.from_records(records)
    assert [p.id for p in catalog.products] == ["a", "d"]
    assert catalog.products[1].barcode == ""


def test_from_records_ignores_non_list():
    assert len(Catalog.from_records({"id": "a"})) == 0


def test_add_accepts_very_large_prices():
    catalog = Catalog(id_factory=_ids())
    assert catalog.add("", "Yacht", 1e307).price == 1e307
    assert catalog.add("", "Jet", "1e30").price == pytest.approx(1e30, rel=1e-12)
    assert [p.name for p in catalog.products] == ["Jet", "Yacht"]
