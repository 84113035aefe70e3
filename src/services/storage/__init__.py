from .config_store_base import ConfigKeys, ConfigStoreBase
from .config_store import InMemoryConfigStore
from .config_store_sqlite import SQLiteConfigStore
from .invoice_repository_base import InvoiceRepositoryBase
from .invoices import InMemoryInvoiceRepository
from .invoices_sqlite import SQLiteInvoiceRepository

__all__ = [
    "ConfigKeys",
    "ConfigStoreBase",
    "InMemoryConfigStore",
    "SQLiteConfigStore",
    "InvoiceRepositoryBase",
    "InMemoryInvoiceRepository",
    "SQLiteInvoiceRepository",
]
