# models.py
import datetime
import logging
import math
import uuid

from database import Database, PRODUCTS_KEY, CART_KEY, SETTINGS_KEY
from pricing import clamp_percent, compute_totals, compute_change, is_finite, to_number
from utils import build_receipt

logger = logging.getLogger("pos_system.models")


class POSError(Exception):
    """Base for errors the cashier should see as a message."""
    message = "Operation failed."

    def __init__(self, message=None):
        super().__init__(message or self.message)


class ValidationError(POSError, ValueError):
    message = "Please enter a valid Name and Price."


class EmptyCartError(POSError):
    message = "Cart is empty."


class InsufficientCashError(POSError):
    message = "Not enough cash received."


def new_id() -> str:
    return str(uuid.uuid4())


def round_price(price: float) -> float:
    """Round to cents, halves going up (1.005 stays 1.00 due to float error)."""
    scaled = price * 100 + 0.5
    if not math.isfinite(scaled):
        # too large to carry cents
        return price
    return math.floor(scaled) / 100


class Product:
    """A catalog entry. Never changed once created."""
    def __init__(self, id: str, barcode: str, name: str, price: float):
        self.id = id
        self.barcode = barcode
        self.name = name
        self.price = price

    def to_dict(self):
        return {'id': self.id, 'barcode': self.barcode, 'name': self.name, 'price': self.price}

    @classmethod
    def from_dict(cls, data):
        """Build from a stored record; returns None if the record is unusable."""
        if not isinstance(data, dict):
            return None
        pid, name, price = data.get('id'), data.get('name'), data.get('price')
        if pid is None or not isinstance(name, str) or not name.strip():
            return None
        if isinstance(price, bool) or not isinstance(price, (int, float)):
            return None
        if not math.isfinite(price) or price < 0:
            return None
        barcode = data.get('barcode')
        return cls(str(pid), "" if barcode is None else str(barcode), name, float(price))

    def __repr__(self):
        return f"Product(id={self.id!r}, barcode={self.barcode!r}, name={self.name!r}, price={self.price!r})"


class CartLine:
    """One line in the current cart."""
    def __init__(self, product_id: str, qty: int):
        self.product_id = product_id
        self.qty = qty

    def to_dict(self):
        return {'productId': self.product_id, 'qty': self.qty}

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            return None
        pid, qty = data.get('productId'), data.get('qty')
        if pid is None or isinstance(qty, bool) or not isinstance(qty, int) or qty < 1:
            return None
        return cls(str(pid), qty)


DEFAULT_PRODUCTS = [
    ("701228", "Coca Cola", 23.00),
    ("100101", "Polo Shirt", 35.00),
    ("200202", "Milk 1L", 18.50),
    ("300303", "Instant Noodles", 2.20),
    ("400404", "Chocolate", 4.90),
    ("500505", "Coffee", 6.50),
]


class Catalog:
    """Products available for sale, most recently added first."""
    def __init__(self, products=None, id_factory=new_id):
        self.products = list(products or [])
        self.id_factory = id_factory

    @classmethod
    def from_records(cls, records, id_factory=new_id):
        if not isinstance(records, list):
            return cls(id_factory=id_factory)
        products = []
        for rec in records:
            prod = Product.from_dict(rec)
            if prod is None:
                logger.warning(f"Dropping malformed product record: {rec!r}")
                continue
            products.append(prod)
        return cls(products, id_factory)

    def to_records(self):
        return [p.to_dict() for p in self.products]

    def seed(self):
        """Install the sample products if the catalog is empty."""
        if not self.products:
            self.products = [Product(self.id_factory(), bc, name, price)
                             for bc, name, price in DEFAULT_PRODUCTS]
            logger.info(f"Seeded catalog with {len(self.products)} sample products")
        return self.products

    def add(self, barcode, name, price) -> Product:
        """
        Validate and prepend a new product.
        Raises ValidationError on blank name or bad price; nothing changes then.
        """
        name = (name or "").strip()
        barcode = (barcode or "").strip()
        price = to_number(price)
        if not name or not is_finite(price) or price < 0:
            raise ValidationError()
        prod = Product(self.id_factory(), barcode, name, round_price(price))
        self.products.insert(0, prod)
        return prod

    def search(self, query):
        """Case-insensitive substring match on name or barcode."""
        q = (query or "").strip().lower()
        if not q:
            return list(self.products)
        return [p for p in self.products
                if q in p.name.lower() or q in str(p.barcode).lower()]

    def find_by_id(self, product_id):
        for p in self.products:
            if p.id == product_id:
                return p
        return None

    def __len__(self):
        return len(self.products)


class Cart:
    """Line items of the sale in progress, one per product."""
    def __init__(self, lines=None):
        self.lines = list(lines or [])

    @classmethod
    def from_records(cls, records):
        if not isinstance(records, list):
            return cls()
        lines, seen = [], set()
        for rec in records:
            line = CartLine.from_dict(rec)
            if line is None or line.product_id in seen:
                logger.warning(f"Dropping malformed cart record: {rec!r}")
                continue
            seen.add(line.product_id)
            lines.append(line)
        return cls(lines)

    def to_records(self):
        return [line.to_dict() for line in self.lines]

    def find(self, product_id):
        for line in self.lines:
            if line.product_id == product_id:
                return line
        return None

    def add_or_increment(self, product_id, catalog: Catalog) -> bool:
        """Returns True if the cart changed."""
        line = self.find(product_id)
        if line:
            line.qty += 1
            return True
        if catalog.find_by_id(product_id) is None:
            return False
        self.lines.append(CartLine(product_id, 1))
        return True

    def set_qty(self, product_id, qty) -> bool:
        line = self.find(product_id)
        if not line:
            return False
        q = to_number(qty)
        # non-numeric input leaves the line at the minimum
        line.qty = max(1, math.floor(q)) if math.isfinite(q) else 1
        return True

    def decrement(self, product_id) -> bool:
        line = self.find(product_id)
        if not line:
            return False
        line.qty -= 1
        if line.qty <= 0:
            self.remove(product_id)
        return True

    def remove(self, product_id) -> bool:
        before = len(self.lines)
        self.lines = [line for line in self.lines if line.product_id != product_id]
        return len(self.lines) != before

    def clear(self):
        self.lines = []

    def line_count(self) -> int:
        return sum(line.qty for line in self.lines)

    def is_empty(self) -> bool:
        return not self.lines


class Settings:
    """Last clamped discount/tax percentages."""
    def __init__(self, discount_pct: float = 0, tax_pct: float = 0):
        self.discount_pct = discount_pct
        self.tax_pct = tax_pct

    def to_dict(self):
        return {'discountPct': self.discount_pct, 'taxPct': self.tax_pct}

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            return cls()
        return cls(clamp_percent(data.get('discountPct')), clamp_percent(data.get('taxPct')))


class CashierSystem:
    """
    Owns catalog, cart and settings for one register.
    Every mutation is written back to the store before returning.
    """
    def __init__(self, db: Database, id_factory=new_id):
        self.db = db
        self.catalog = Catalog.from_records(db.load(PRODUCTS_KEY, None), id_factory)
        if not len(self.catalog):
            self.catalog.seed()
            self._save_catalog()
        self.cart = Cart.from_records(db.load(CART_KEY, []))
        self.settings = Settings.from_dict(db.load(SETTINGS_KEY, None))

        # raw input field values, untrusted
        self.discount_input = self.settings.discount_pct
        self.tax_input = self.settings.tax_pct
        self.cash_input = ""

    def _save_catalog(self):
        self.db.save(PRODUCTS_KEY, self.catalog.to_records())

    def _save_cart(self):
        self.db.save(CART_KEY, self.cart.to_records())

    def _save_settings(self):
        self.db.save(SETTINGS_KEY, self.settings.to_dict())

    # Catalog operations
    def add_product(self, barcode, name, price) -> Product:
        try:
            prod = self.catalog.add(barcode, name, price)
        except ValidationError:
            logger.info(f"Rejected product: name={name!r} price={price!r}")
            raise
        self._save_catalog()
        logger.info(f"Added product {prod.name} ({prod.id})")
        return prod

    def search(self, query):
        return self.catalog.search(query)

    # Cart operations
    def add_to_cart(self, product_id):
        if self.cart.add_or_increment(product_id, self.catalog):
            self._save_cart()

    def set_qty(self, product_id, qty):
        if self.cart.set_qty(product_id, qty):
            self._save_cart()

    def decrement(self, product_id):
        if self.cart.decrement(product_id):
            self._save_cart()

    def remove_item(self, product_id):
        self.cart.remove(product_id)
        self._save_cart()

    def new_sale(self):
        self.cart.clear()
        self.cash_input = ""
        self._save_cart()

    def cart_lines(self):
        """(product, qty, line_total) for each line whose product still exists."""
        rows = []
        for line in self.cart.lines:
            prod = self.catalog.find_by_id(line.product_id)
            if prod is None:
                continue
            rows.append((prod, line.qty, prod.price * line.qty))
        return rows

    # Totals
    def recalculate(self):
        """Compute totals from the current inputs and remember the clamped rates."""
        totals = compute_totals(self.cart, self.catalog, self.discount_input, self.tax_input)
        self.settings.discount_pct = totals.discount_pct
        self.settings.tax_pct = totals.tax_pct
        self._save_settings()
        return totals

    def change(self, totals=None):
        totals = totals or self.recalculate()
        return compute_change(totals.total, self.cash_input)

    def receipt(self, now=None):
        totals = self.recalculate()
        return build_receipt(self.cart, self.catalog, totals, self.cash_input,
                             now or datetime.datetime.now())

    def complete_sale(self, now=None):
        """
        Finalize the sale: build the receipt, then clear the cart and cash field.
        Raises EmptyCartError or InsufficientCashError and leaves state untouched.
        """
        if self.cart.is_empty():
            raise EmptyCartError()

        totals = self.recalculate()
        cash = to_number(self.cash_input)
        if not is_finite(cash) or cash < totals.total:
            raise InsufficientCashError()

        now = now or datetime.datetime.now()
        receipt = build_receipt(self.cart, self.catalog, totals, cash, now)
        result = {
            'receipt': receipt,
            'totals': totals,
            'cash': cash,
            'change': compute_change(totals.total, cash),
            'timestamp': now.isoformat(timespec='seconds'),
        }

        self.cart.clear()
        self.cash_input = ""
        self._save_cart()
        logger.info(f"Sale completed: total={totals.total:.2f} cash={cash:.2f}")
        return result
