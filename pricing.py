# pricing.py
"""
Totals computation for the current sale.

Everything here is pure: no storage, no logging, no UI. Raw values coming
from input fields are untrusted and go through to_number() first.
"""
import math


class TotalsBreakdown:
    """Subtotal, discount, tax and total for one cart snapshot."""
    def __init__(self, subtotal, discount_pct, discount_amt, tax_pct, tax_amt, total):
        self.subtotal = subtotal
        self.discount_pct = discount_pct
        self.discount_amt = discount_amt
        self.tax_pct = tax_pct
        self.tax_amt = tax_amt
        self.total = total

    def as_dict(self):
        return {
            'subtotal': self.subtotal,
            'discount_pct': self.discount_pct,
            'discount_amt': self.discount_amt,
            'tax_pct': self.tax_pct,
            'tax_amt': self.tax_amt,
            'total': self.total,
        }

    def __repr__(self):
        return f"TotalsBreakdown({self.as_dict()!r})"


def to_number(raw) -> float:
    """
    Coerce an input value the way a browser number field would.
    Blank strings are 0, None and garbage are NaN.
    """
    if raw is None:
        return math.nan
    if isinstance(raw, bool):
        return float(raw)
    if isinstance(raw, (int, float)):
        return float(raw)
    text = str(raw).strip()
    if not text:
        return 0.0
    # digit separators are not valid in number fields
    if "_" in text:
        return math.nan
    try:
        return float(text)
    except ValueError:
        return math.nan


def is_finite(value) -> bool:
    return math.isfinite(to_number(value))


def clamp_percent(value) -> float:
    """Clamp to [0, 100]; anything non-finite becomes 0."""
    v = to_number(value)
    if not math.isfinite(v):
        return 0.0
    return min(100.0, max(0.0, v))


def compute_subtotal(cart, catalog) -> float:
    """Sum price * qty over cart lines, skipping lines whose product is gone."""
    subtotal = 0.0
    for line in cart.lines:
        product = catalog.find_by_id(line.product_id)
        if product is None:
            continue
        subtotal += product.price * line.qty
    return subtotal


def compute_totals(cart, catalog, raw_discount_pct=0, raw_tax_pct=0) -> TotalsBreakdown:
    subtotal = compute_subtotal(cart, catalog)

    discount_pct = clamp_percent(raw_discount_pct)
    tax_pct = clamp_percent(raw_tax_pct)

    discount_amt = subtotal * (discount_pct / 100)
    # taxable base never goes negative
    taxable = max(0.0, subtotal - discount_amt)
    tax_amt = taxable * (tax_pct / 100)
    total = taxable + tax_amt

    return TotalsBreakdown(subtotal, discount_pct, discount_amt, tax_pct, tax_amt, total)


def compute_change(total, cash_tendered) -> float:
    """
    Cash minus total. Not floored: a negative result means not enough cash.
    Returns 0 when the tendered amount is not a finite number.
    """
    cash = to_number(cash_tendered)
    if not math.isfinite(cash):
        return 0.0
    return cash - total
