from functools import lru_cache
from fastapi import Depends
from ..core.config import settings
from ..services.recognizer import InvoiceRecognizer
from ..services.storage import (
    ConfigStoreBase,
    InvoiceRepositoryBase,
    SQLiteConfigStore,
    SQLiteInvoiceRepository,
)


# Tests swap these out through app.dependency_overrides
@lru_cache
def get_config_store() -> ConfigStoreBase:
    return SQLiteConfigStore(settings.database_path)


@lru_cache
def get_invoice_repository() -> InvoiceRepositoryBase:
    return SQLiteInvoiceRepository(settings.database_path)


def get_recognizer(
    config_store: ConfigStoreBase = Depends(get_config_store),
    invoice_repository: InvoiceRepositoryBase = Depends(get_invoice_repository),
) -> InvoiceRecognizer:
    return InvoiceRecognizer(config_store, invoice_repository, settings)
