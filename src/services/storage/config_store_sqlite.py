"""
SQLite-backed configuration store.

Shares the database file with the invoice repository; each call opens its
own connection, so concurrent token refreshes simply race and the last
writer wins.
"""

import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional
from .config_store_base import ConfigStoreBase
from ...core.errors import PersistenceError
from ...models.invoice import utc_now


class SQLiteConfigStore(ConfigStoreBase):
    def __init__(self, db_path: str = "invoices.db"):
        self.db_path = db_path
        self._init_database()

    def _init_database(self):
        """Create configs table if it doesn't exist"""
        with self._connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS configs (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    description TEXT,
                    updated_at TEXT NOT NULL
                )
            """)

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success, and map sqlite errors to PersistenceError"""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open config database: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceError(f"Config store error: {e}") from e
        finally:
            conn.close()

    def get(self, key: str) -> Optional[str]:
        with self._connection() as conn:
            row = conn.execute("SELECT value FROM configs WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str, description: Optional[str] = None) -> None:
        with self._connection() as conn:
            conn.execute("""
                INSERT INTO configs (key, value, description, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    description = COALESCE(excluded.description, configs.description),
                    updated_at = excluded.updated_at
            """, (key, value, description, utc_now()))

    def delete(self, key: str) -> bool:
        with self._connection() as conn:
            cursor = conn.execute("DELETE FROM configs WHERE key = ?", (key,))
            return cursor.rowcount > 0

    def list_all(self) -> list:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT key, value, description, updated_at FROM configs ORDER BY key"
            ).fetchall()
        return [dict(row) for row in rows]
