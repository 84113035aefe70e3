"""
SQLite-based invoice repository.

Stores canonical invoices in a single `invoices` table with indexes on the
columns the list view filters by.
"""

import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional
from loguru import logger
from .invoice_repository_base import InvoiceRepositoryBase
from ...core.errors import PersistenceError
from ...models.invoice import CanonicalInvoice, InvoiceFilter, PagedResult, Pagination, utc_now

COLUMNS = (
    "id", "invoice_type", "invoice_code", "invoice_number", "invoice_date",
    "amount_without_tax", "tax_amount", "total_amount",
    "buyer_name", "buyer_tax_number", "seller_name", "seller_tax_number",
    "commodity_name", "commodity_detail", "check_code", "machine_code",
    "original_file_path", "file_type", "ocr_raw_response", "ocr_confidence",
    "category", "remark", "is_verified", "created_at", "updated_at",
)

# Source-file metadata, the raw response and created_at never change after insert
UPDATABLE_COLUMNS = tuple(
    c for c in COLUMNS
    if c not in ("id", "original_file_path", "file_type", "ocr_raw_response", "ocr_confidence", "created_at")
)


def _casefold(value: str | None) -> str | None:
    return value.casefold() if value is not None else None


def build_where_clause(invoice_filter: InvoiceFilter) -> tuple[str, list]:
    """Translate a filter into a WHERE clause and its positional parameters"""
    conditions = []
    params: list = []
    f = invoice_filter

    if f.invoice_type is not None:
        conditions.append("invoice_type = ?")
        params.append(f.invoice_type.value)
    if f.date_from is not None:
        conditions.append("invoice_date >= ?")
        params.append(f.date_from)
    if f.date_to is not None:
        conditions.append("invoice_date <= ?")
        params.append(f.date_to)
    if f.amount_min is not None:
        conditions.append("total_amount >= ?")
        params.append(f.amount_min)
    if f.amount_max is not None:
        conditions.append("total_amount <= ?")
        params.append(f.amount_max)
    if f.keyword:
        # Literal, case-insensitive substring match (no wildcards)
        conditions.append(
            "(instr(casefold(commodity_name), ?) > 0"
            " OR instr(casefold(seller_name), ?) > 0"
            " OR instr(casefold(remark), ?) > 0)"
        )
        needle = f.keyword.casefold()
        params.extend([needle, needle, needle])
    if f.category is not None:
        conditions.append("category = ?")
        params.append(f.category)

    where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    return where_clause, params


class SQLiteInvoiceRepository(InvoiceRepositoryBase):
    """
    SQLite-backed invoice repository with persistent storage.

    Features:
    - Persistent storage across application restarts
    - Filtered, paginated listing (newest first)
    - Batch delete and id-list lookups
    """

    def __init__(self, db_path: str = "invoices.db"):
        """
        Initialize repository with database path.

        Args:
            db_path: Path to SQLite database file (default: invoices.db)
        """
        self.db_path = db_path
        self._init_database()

    def _init_database(self):
        """Create invoices table and indexes if they don't exist"""
        with self._connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS invoices (
                    id TEXT PRIMARY KEY,
                    invoice_type TEXT NOT NULL,
                    invoice_code TEXT,
                    invoice_number TEXT,
                    invoice_date TEXT,
                    amount_without_tax REAL,
                    tax_amount REAL,
                    total_amount REAL NOT NULL,
                    buyer_name TEXT,
                    buyer_tax_number TEXT,
                    seller_name TEXT,
                    seller_tax_number TEXT,
                    commodity_name TEXT,
                    commodity_detail TEXT,
                    check_code TEXT,
                    machine_code TEXT,
                    original_file_path TEXT,
                    file_type TEXT,
                    ocr_raw_response TEXT,
                    ocr_confidence REAL,
                    category TEXT,
                    remark TEXT,
                    is_verified INTEGER DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            # Indexes for the list view filters
            conn.execute("CREATE INDEX IF NOT EXISTS idx_invoices_date ON invoices(invoice_date)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_invoices_type ON invoices(invoice_type)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_invoices_amount ON invoices(total_amount)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_invoices_seller ON invoices(seller_name)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_invoices_category ON invoices(category)")

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Get database connection with row factory; sqlite errors become PersistenceError"""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open invoice database: {e}") from e
        conn.row_factory = sqlite3.Row
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Invoice repository error", db_path=self.db_path, error=str(e))
            raise PersistenceError(f"Invoice store error: {e}") from e
        finally:
            conn.close()

    @staticmethod
    def _row_to_invoice(row: sqlite3.Row) -> CanonicalInvoice:
        data = dict(row)
        data["is_verified"] = bool(data["is_verified"])
        return CanonicalInvoice.model_validate(data)

    def insert(self, invoice: CanonicalInvoice) -> None:
        record = invoice.model_dump(mode="json")
        placeholders = ", ".join("?" for _ in COLUMNS)
        with self._connection() as conn:
            conn.execute(
                f"INSERT INTO invoices ({', '.join(COLUMNS)}) VALUES ({placeholders})",
                tuple(record[c] for c in COLUMNS),
            )

    def find_by_id(self, invoice_id: str) -> Optional[CanonicalInvoice]:
        with self._connection() as conn:
            row = conn.execute("SELECT * FROM invoices WHERE id = ?", (invoice_id,)).fetchone()
        return self._row_to_invoice(row) if row else None

    def find_all(self, invoice_filter: InvoiceFilter, pagination: Pagination) -> PagedResult:
        where_clause, params = build_where_clause(invoice_filter)
        with self._connection() as conn:
            total = conn.execute(f"SELECT COUNT(*) FROM invoices {where_clause}", params).fetchone()[0]
            rows = conn.execute(
                f"SELECT * FROM invoices {where_clause} ORDER BY created_at DESC LIMIT ? OFFSET ?",
                [*params, pagination.page_size, pagination.offset],
            ).fetchall()
        return PagedResult.build([self._row_to_invoice(r) for r in rows], total, pagination)

    def update(self, invoice: CanonicalInvoice) -> bool:
        record = invoice.model_dump(mode="json")
        record["updated_at"] = utc_now()
        assignments = ", ".join(f"{c} = ?" for c in UPDATABLE_COLUMNS)
        with self._connection() as conn:
            cursor = conn.execute(
                f"UPDATE invoices SET {assignments} WHERE id = ?",
                (*(record[c] for c in UPDATABLE_COLUMNS), invoice.id),
            )
            return cursor.rowcount > 0

    def delete(self, invoice_id: str) -> bool:
        with self._connection() as conn:
            cursor = conn.execute("DELETE FROM invoices WHERE id = ?", (invoice_id,))
            return cursor.rowcount > 0

    def delete_batch(self, invoice_ids: list[str]) -> int:
        if not invoice_ids:
            return 0
        placeholders = ", ".join("?" for _ in invoice_ids)
        with self._connection() as conn:
            cursor = conn.execute(f"DELETE FROM invoices WHERE id IN ({placeholders})", invoice_ids)
            return cursor.rowcount

    def find_by_ids(self, invoice_ids: list[str]) -> list[CanonicalInvoice]:
        if not invoice_ids:
            return []
        placeholders = ", ".join("?" for _ in invoice_ids)
        with self._connection() as conn:
            rows = conn.execute(
                f"SELECT * FROM invoices WHERE id IN ({placeholders}) ORDER BY created_at DESC",
                invoice_ids,
            ).fetchall()
        return [self._row_to_invoice(r) for r in rows]

    def find_all_for_export(self, invoice_filter: InvoiceFilter) -> list[CanonicalInvoice]:
        where_clause, params = build_where_clause(invoice_filter)
        with self._connection() as conn:
            rows = conn.execute(
                f"SELECT * FROM invoices {where_clause} ORDER BY created_at DESC", params
            ).fetchall()
        return [self._row_to_invoice(r) for r in rows]
