# utils.py
import math
from decimal import Decimal, ROUND_HALF_UP, localcontext

import pandas as pd
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import SimpleDocTemplate, Preformatted

CURRENCY = "$"
SEPARATOR = "-" * 26
CATALOG_COLUMNS = ['id', 'barcode', 'name', 'price']


def money(n) -> str:
    """
    Format an amount with the currency prefix and two decimals.
    Non-finite or non-numeric values render as zero.
    """
    try:
        v = float(n)
    except (TypeError, ValueError, OverflowError):
        v = 0.0
    if not math.isfinite(v):
        v = 0.0
    # round on the shortest repr so 0.585 shows as 0.59
    d = Decimal(repr(v))
    with localcontext() as ctx:
        # enough digits for every integer place plus the cents
        ctx.prec = max(28, d.adjusted() + 4)
        d = d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    if d == 0:
        d = d.copy_abs()
    return f"{CURRENCY}{d}"


def format_percent(v) -> str:
    v = float(v)
    return str(int(v)) if v.is_integer() else repr(v)


def format_item_count(count: int) -> str:
    return f"{count} item{'' if count == 1 else 's'}"


def build_receipt(cart, catalog, totals, cash_tendered, now) -> str:
    """
    Build the fixed-layout text receipt for the current cart.
    Cash and change lines appear only when a positive cash amount was given.
    """
    lines = [
        "=== SIMPLE POS RECEIPT ===",
        f"Date: {now.strftime('%Y-%m-%d %H:%M:%S')}",
        SEPARATOR,
    ]

    for line in cart.lines:
        prod = catalog.find_by_id(line.product_id)
        if prod is None:
            continue
        lines.append(f"{prod.name} x{line.qty}  {money(prod.price * line.qty)}")

    lines.append(SEPARATOR)
    lines.append(f"Subtotal:   {money(totals.subtotal)}")
    lines.append(f"Discount:  -{money(totals.discount_amt)} ({format_percent(totals.discount_pct)}%)")
    lines.append(f"Tax:        {money(totals.tax_amt)} ({format_percent(totals.tax_pct)}%)")
    lines.append(f"TOTAL:      {money(totals.total)}")

    try:
        cash = float(cash_tendered)
    except (TypeError, ValueError):
        cash = math.nan
    if math.isfinite(cash) and cash > 0:
        lines.append(f"Cash:       {money(cash)}")
        lines.append(f"Change:     {money(cash - totals.total)}")

    lines.append(SEPARATOR)
    lines.append("Thank you!")
    return "\n".join(lines)


def generate_txt_receipt(receipt_text: str, file_path: str):
    """Write the receipt text to a file."""
    with open(file_path, 'w', encoding='utf-8') as f:
        f.write(receipt_text)
        f.write("\n")
    return file_path


def generate_pdf_receipt(receipt_text: str, file_path: str):
    """Render the receipt text into a monospace PDF using ReportLab."""
    doc = SimpleDocTemplate(file_path, pagesize=letter, title="Receipt")
    styles = getSampleStyleSheet()
    doc.build([Preformatted(receipt_text, styles['Code'])])
    return file_path


def export_catalog_csv(catalog, file_path: str):
    """Dump the catalog to CSV in display order."""
    df = pd.DataFrame(catalog.to_records(), columns=CATALOG_COLUMNS)
    df.to_csv(file_path, index=False)
    return file_path


def _cell(value) -> str:
    return "" if pd.isna(value) else str(value)


def import_catalog_csv(system, file_path: str):
    """
    Read CSV with columns barcode,name,price and add each row as a product.
    Rows are added bottom-up so the file's order shows at the top of the
    catalog. Invalid rows are skipped. Returns (added, skipped).
    """
    df = pd.read_csv(file_path, dtype=str)
    missing = [c for c in ('name', 'price') if c not in df.columns]
    if missing:
        raise ValueError(f"CSV is missing columns: {', '.join(missing)}")

    added = skipped = 0
    for _, row in df.iloc[::-1].iterrows():
        barcode = _cell(row['barcode']) if 'barcode' in df.columns else ""
        # a blank price is missing, not zero
        price = _cell(row['price']).strip() or None
        try:
            system.add_product(barcode, _cell(row['name']), price)
            added += 1
        except ValueError:
            skipped += 1
    return added, skipped
