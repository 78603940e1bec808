# database.py
import json
import logging
import sqlite3

logger = logging.getLogger("pos_system.database")

# Namespaced keys for the three persisted records. A schema change needs a
# new suffix; data under the old key is left behind, not migrated.
PRODUCTS_KEY = "pos_products_v1"
CART_KEY = "pos_cart_v1"
SETTINGS_KEY = "pos_settings_v1"


class Database:
    """
    Local key-value store backed by a single SQLite table.
    Each key holds one JSON snapshot that is replaced on every write.
    """
    def __init__(self, db_name: str = "pos.db"):
        self.conn = sqlite3.connect(db_name)
        self.conn.row_factory = sqlite3.Row
        self._create_tables()

    def _create_tables(self):
        cur = self.conn.cursor()
        cur.execute("""
        CREATE TABLE IF NOT EXISTS kv_store (
            key TEXT PRIMARY KEY,
            value TEXT
        )
        """)
        self.conn.commit()

    def _read_raw(self, key: str):
        cur = self.conn.cursor()
        cur.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
        row = cur.fetchone()
        return row['value'] if row else None

    @staticmethod
    def _decode(raw):
        """Return the decoded blob, or None when it is empty or unparseable."""
        if not raw:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding unreadable stored value")
            return None

    def load(self, key: str, fallback=None):
        """
        Return the stored value for key.
        Missing keys and corrupt content give back fallback.
        """
        value = self._decode(self._read_raw(key))
        return fallback if value is None else value

    def save(self, key: str, value):
        """Serialize value and overwrite whatever is stored under key."""
        self.save_raw(key, json.dumps(value))
        logger.debug(f"Saved {key}")

    def save_raw(self, key: str, raw: str):
        """Store a raw string as-is, without JSON encoding."""
        cur = self.conn.cursor()
        cur.execute("""
        INSERT INTO kv_store (key, value) VALUES (?, ?)
        ON CONFLICT(key) DO UPDATE SET value = excluded.value
        """, (key, raw))
        self.conn.commit()

    def delete(self, key: str):
        cur = self.conn.cursor()
        cur.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        self.conn.commit()
        return cur.rowcount > 0

    def close(self):
        self.conn.close()
