"""
Abstract base class for canonical invoice persistence.

Defines the interface the recognizer and the HTTP layer rely on, so the
storage backend can be swapped without touching the pipeline.
"""

from abc import ABC, abstractmethod
from typing import Optional
from ...models.invoice import CanonicalInvoice, InvoiceFilter, PagedResult, Pagination


class InvoiceRepositoryBase(ABC):
    """
    Abstract base class for invoice storage.

    Write failures must surface as PersistenceError.
    """

    @abstractmethod
    def insert(self, invoice: CanonicalInvoice) -> None:
        """
        Persist a new invoice record.

        Args:
            invoice: Record to store (its id must not exist yet)
        """
        pass

    @abstractmethod
    def find_by_id(self, invoice_id: str) -> Optional[CanonicalInvoice]:
        """Return the invoice with this id, or None"""
        pass

    @abstractmethod
    def find_all(self, invoice_filter: InvoiceFilter, pagination: Pagination) -> PagedResult:
        """
        Query invoices matching a filter, newest first.

        Args:
            invoice_filter: Field filters (all optional, combined with AND)
            pagination: 1-based page and page size

        Returns:
            PagedResult with the requested page and the total match count
        """
        pass

    @abstractmethod
    def update(self, invoice: CanonicalInvoice) -> bool:
        """
        Overwrite the editable fields of an existing invoice and refresh updated_at.

        Returns:
            True if the invoice existed, False otherwise
        """
        pass

    @abstractmethod
    def delete(self, invoice_id: str) -> bool:
        """Delete one invoice; False if it did not exist"""
        pass

    @abstractmethod
    def delete_batch(self, invoice_ids: list[str]) -> int:
        """Delete several invoices and return how many were removed"""
        pass

    @abstractmethod
    def find_by_ids(self, invoice_ids: list[str]) -> list[CanonicalInvoice]:
        """Return the invoices with these ids, newest first"""
        pass

    @abstractmethod
    def find_all_for_export(self, invoice_filter: InvoiceFilter) -> list[CanonicalInvoice]:
        """Return every invoice matching the filter, newest first, unpaginated"""
        pass
