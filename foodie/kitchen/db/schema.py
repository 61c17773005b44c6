"""Database schema definitions and migration helpers."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path

from ..errors import DatabaseError, DuplicatedError, PersistenceError

# Each entry upgrades the schema by one version; index 0 is version 1.
_MIGRATIONS: list[str] = [
    """
    CREATE TABLE products (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'new',
        location TEXT,
        quantity TEXT,
        expiry_date TEXT,
        estimated_expiry_date TEXT,
        outcome TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    CREATE INDEX idx_products_user_id ON products(user_id);
    CREATE INDEX idx_products_status ON products(status);
    CREATE INDEX idx_products_created_at ON products(created_at);
    """,
    """
    CREATE TABLE shopping_items (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        product_id TEXT REFERENCES products(id) ON DELETE SET NULL,
        is_bought INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    CREATE INDEX idx_shopping_items_user_id ON shopping_items(user_id);
    CREATE INDEX idx_shopping_items_product_id ON shopping_items(product_id);
    CREATE INDEX idx_shopping_items_is_bought ON shopping_items(is_bought);
    """,
]

SCHEMA_VERSION = len(_MIGRATIONS)


def _current_version(conn: sqlite3.Connection) -> int:
    conn.execute("CREATE TABLE IF NOT EXISTS schema_version (version INTEGER NOT NULL)")
    row = conn.execute("SELECT MAX(version) AS version FROM schema_version").fetchone()
    return row["version"] or 0


def ensure_schema(db_path: str | Path) -> sqlite3.Connection:
    """Open the kitchen database, applying any migrations it has not seen yet.

    Pending migrations run in order and the recorded version is bumped after
    each one, so a database left at an older version resumes where it stopped.
    """
    db_path = Path(db_path).expanduser()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")

    version = _current_version(conn)
    for target, script in enumerate(_MIGRATIONS[version:], start=version + 1):
        conn.executescript(script)
        conn.execute("DELETE FROM schema_version")
        conn.execute("INSERT INTO schema_version (version) VALUES (?)", (target,))
        conn.commit()

    return conn


def to_db_datetime(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def from_db_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLiteStore:
    """Lazily connected SQLite table wrapper shared by the stores."""

    def __init__(self, db_path: str | Path = "~/.config/foodie/kitchen.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            try:
                self._conn = ensure_schema(self._db_path)
            except sqlite3.Error as e:
                raise DatabaseError(str(e)) from e
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        conn = self._get_conn()
        try:
            return conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise DatabaseError(str(e)) from e

    def _write(self, sql: str, params: tuple = ()) -> int:
        """Execute a write statement, commit, and return the affected row count."""
        conn = self._get_conn()
        try:
            cur = conn.execute(sql, params)
            conn.commit()
        except sqlite3.IntegrityError as e:
            conn.rollback()
            if "FOREIGN KEY" in str(e).upper():
                raise PersistenceError(str(e)) from e
            raise DuplicatedError(str(e)) from e
        except sqlite3.Error as e:
            conn.rollback()
            raise DatabaseError(str(e)) from e
        return cur.rowcount
