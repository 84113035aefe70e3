"""
In-memory invoice repository (for tests and demos).
"""
from typing import Dict, Optional
from .invoice_repository_base import InvoiceRepositoryBase
from ...core.errors import PersistenceError
from ...models.invoice import CanonicalInvoice, InvoiceFilter, PagedResult, Pagination, utc_now


def matches_filter(invoice: CanonicalInvoice, invoice_filter: InvoiceFilter) -> bool:
    """Python rendition of the SQL WHERE clause used by the SQLite repository"""
    f = invoice_filter
    if f.invoice_type is not None and invoice.invoice_type != f.invoice_type:
        return False
    if f.date_from is not None and (invoice.invoice_date is None or invoice.invoice_date < f.date_from):
        return False
    if f.date_to is not None and (invoice.invoice_date is None or invoice.invoice_date > f.date_to):
        return False
    if f.amount_min is not None and invoice.total_amount < f.amount_min:
        return False
    if f.amount_max is not None and invoice.total_amount > f.amount_max:
        return False
    if f.category is not None and invoice.category != f.category:
        return False
    if f.keyword:
        needle = f.keyword.casefold()
        haystacks = [invoice.commodity_name, invoice.seller_name, invoice.remark]
        if not any(h and needle in h.casefold() for h in haystacks):
            return False
    return True


class InMemoryInvoiceRepository(InvoiceRepositoryBase):
    def __init__(self):
        self._invoices: Dict[str, CanonicalInvoice] = {}

    def _newest_first(self, invoices) -> list[CanonicalInvoice]:
        return sorted(invoices, key=lambda inv: inv.created_at, reverse=True)

    def insert(self, invoice: CanonicalInvoice) -> None:
        if invoice.id in self._invoices:
            raise PersistenceError(f"Invoice {invoice.id} already exists")
        self._invoices[invoice.id] = invoice

    def find_by_id(self, invoice_id: str) -> Optional[CanonicalInvoice]:
        return self._invoices.get(invoice_id)

    def find_all(self, invoice_filter: InvoiceFilter, pagination: Pagination) -> PagedResult:
        matching = self.find_all_for_export(invoice_filter)
        page = matching[pagination.offset:pagination.offset + pagination.page_size]
        return PagedResult.build(page, len(matching), pagination)

    def update(self, invoice: CanonicalInvoice) -> bool:
        existing = self._invoices.get(invoice.id)
        if existing is None:
            return False
        self._invoices[invoice.id] = invoice.model_copy(update={
            "original_file_path": existing.original_file_path,
            "file_type": existing.file_type,
            "ocr_raw_response": existing.ocr_raw_response,
            "ocr_confidence": existing.ocr_confidence,
            "created_at": existing.created_at,
            "updated_at": utc_now(),
        })
        return True

    def delete(self, invoice_id: str) -> bool:
        return self._invoices.pop(invoice_id, None) is not None

    def delete_batch(self, invoice_ids: list[str]) -> int:
        return sum(1 for invoice_id in set(invoice_ids) if self.delete(invoice_id))

    def find_by_ids(self, invoice_ids: list[str]) -> list[CanonicalInvoice]:
        wanted = set(invoice_ids)
        return self._newest_first(inv for inv in self._invoices.values() if inv.id in wanted)

    def find_all_for_export(self, invoice_filter: InvoiceFilter) -> list[CanonicalInvoice]:
        return self._newest_first(
            inv for inv in self._invoices.values() if matches_filter(inv, invoice_filter)
        )
