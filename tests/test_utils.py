"""Receipt formatting, receipt files and catalog CSV import/export."""

import datetime

import pandas as pd
import pytest

from models import Cart, CartLine, Catalog, Product
from pricing import compute_totals
from utils import (build_receipt, export_catalog_csv, format_item_count, format_percent,
                   generate_pdf_receipt, generate_txt_receipt, import_catalog_csv, money)

NOW = datetime.datetime(2024, 5, 1, 9, 5, 7)


def _sale(discount=0, tax=0):
    catalog = Catalog([Product("a", "1", "Tea", 3.0), Product("b", "2", "Bun", 1.25)])
    cart = Cart([CartLine("b", 2), CartLine("a", 1)])
    return cart, catalog, compute_totals(cart, catalog, discount, tax)


@pytest.mark.parametrize("value, expected", [
    (2.5, "$2.50"),
    (0.585, "$0.59"),
    (1234.5678, "$1234.57"),
    (-1.5, "$-1.50"),
    (-0.0, "$0.00"),
    (float("nan"), "$0.00"),
    (float("inf"), "$0.00"),
    (None, "$0.00"),
    (1e30, "$1" + "0" * 30 + ".00"),
    (-2.5e28, "$-25" + "0" * 27 + ".00"),
    (1e307, "$1" + "0" * 307 + ".00"),
    (10 ** 400, "$0.00"),
])
def test_money(value, expected):
    assert money(value) == expected


def test_format_percent_drops_trailing_zeros():
    assert format_percent(10.0) == "10"
    assert format_percent(12.5) == "12.5"


def test_format_item_count():
    assert format_item_count(0) == "0 items"
    assert format_item_count(1) == "1 item"
    assert format_item_count(3) == "3 items"


def test_receipt_layout_without_cash():
    cart, catalog, totals = _sale()
    assert build_receipt(cart, catalog, totals, "", NOW).splitlines() == [
        "=== SIMPLE POS RECEIPT ===",
        "Date: 2024-05-01 09:05:07",
        "--------------------------",
        "Bun x2  $2.50",
        "Tea x1  $3.00",
        "--------------------------",
        "Subtotal:   $5.50",
        "Discount:  -$0.00 (0%)",
        "Tax:        $0.00 (0%)",
        "TOTAL:      $5.50",
        "--------------------------",
        "Thank you!",
    ]


def test_receipt_includes_cash_and_change_for_positive_cash():
    cart, catalog, totals = _sale(discount=50, tax=20)
    lines = build_receipt(cart, catalog, totals, 20, NOW).splitlines()
    assert "Discount:  -$2.75 (50%)" in lines
    assert "Tax:        $0.55 (20%)" in lines
    assert "TOTAL:      $3.30" in lines
    assert "Cash:       $20.00" in lines
    assert "Change:     $16.70" in lines
    assert lines[-2:] == ["--------------------------", "Thank you!"]


@pytest.mark.parametrize("cash", [0, "0", "-5", "abc", None])
def test_receipt_omits_cash_lines_for_non_positive_cash(cash):
    cart, catalog, totals = _sale()
    text = build_receipt(cart, catalog, totals, cash, NOW)
    assert "Cash:" not in text
    assert "Change:" not in text


def test_receipt_skips_missing_products():
    cart, catalog, totals = _sale()
    cart.lines.append(CartLine("ghost", 4))
    text = build_receipt(cart, catalog, totals, "", NOW)
    assert "x4" not in text


def test_generate_txt_receipt(tmp_path):
    path = generate_txt_receipt("line one\nline two", str(tmp_path / "r.txt"))
    with open(path, encoding="utf-8") as f:
        assert f.read() == "line one\nline two\n"


def test_generate_pdf_receipt(tmp_path):
    cart, catalog, totals = _sale()
    path = generate_pdf_receipt(build_receipt(cart, catalog, totals, 10, NOW), str(tmp_path / "r.pdf"))
    with open(path, "rb") as f:
        assert f.read(4) == b"%PDF"


def test_export_catalog_csv(tmp_path):
    _, catalog, _ = _sale()
    path = export_catalog_csv(catalog, str(tmp_path / "catalog.csv"))
    df = pd.read_csv(path, dtype={"barcode": str})
    assert list(df.columns) == ["id", "barcode", "name", "price"]
    assert df["name"].tolist() == ["Tea", "Bun"]
    assert df["price"].tolist() == [3.0, 1.25]


def test_import_catalog_csv_adds_valid_rows_in_file_order(system, tmp_path):
    path = tmp_path / "import.csv"
    path.write_text(
        "barcode,name,price\n"
        "111,Apple,1.25\n"
        ",Pear,0.5\n"
        "222,,3\n"
        "333,Bad,-1\n"
        "444,Blank,\n"
    )
    added, skipped = import_catalog_csv(system, str(path))
    assert (added, skipped) == (2, 3)
    top = system.catalog.products[:2]
    assert [(p.barcode, p.name, p.price) for p in top] == [("111", "Apple", 1.25), ("", "Pear", 0.5)]
    assert len(system.catalog) == 8


def test_import_catalog_csv_accepts_huge_prices(system, tmp_path):
    path = tmp_path / "import.csv"
    path.write_text("barcode,name,price\n1,Yacht,1e307\n2,Island,1e400\n3,Gum,0.5\n")
    assert import_catalog_csv(system, str(path)) == (2, 1)
    assert [(p.name, p.price) for p in system.catalog.products[:2]] == [("Yacht", 1e307), ("Gum", 0.5)]


def test_import_catalog_csv_requires_name_and_price(system, tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("barcode,title\n1,Tea\n")
    with pytest.raises(ValueError, match="name, price"):
        import_catalog_csv(system, str(path))


def test_receipt_with_huge_amounts_still_renders():
    catalog = Catalog([Product("a", "1", "Yacht", 1e30)])
    cart = Cart([CartLine("a", 10 ** 26)])
    totals = compute_totals(cart, catalog, 0, 10)
    lines = build_receipt(cart, catalog, totals, 5, NOW).splitlines()
    assert lines[3].startswith("Yacht x" + str(10 ** 26) + "  $1")
    assert any(line.startswith("TOTAL:      $") for line in lines)
