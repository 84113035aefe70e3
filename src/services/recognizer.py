"""
Recognition orchestration.

Per document the pipeline is

    validate & encode -> credentials -> token -> provider call -> normalize -> (persist)

and stops at the first failure. Only recognize_batch contains failures: each
path yields exactly one RecognizeOutcome, in input order.
"""

import asyncio
from pathlib import Path
from loguru import logger
from .document import DocumentPreparer
from .normalizer import normalize
from .provider_gateway import ProviderGateway
from .storage import ConfigKeys, ConfigStoreBase, InvoiceRepositoryBase
from .token_manager import TokenManager
from ..core.config import Settings, settings as default_settings
from ..core.errors import ConfigMissingError, OcrError, PersistenceError
from ..models.invoice import CanonicalInvoice, InvoiceType, RecognizeOutcome

DEFAULT_INVOICE_TYPE = InvoiceType.VAT_COMMON_INVOICE


class InvoiceRecognizer:
    """
    Drives the recognition pipeline for single documents and batches.

    All collaborators are injected; the ones not supplied are built from
    settings around the given config store.
    """

    def __init__(
        self,
        config_store: ConfigStoreBase,
        invoice_repository: InvoiceRepositoryBase,
        cfg: Settings | None = None,
        preparer: DocumentPreparer | None = None,
        token_manager: TokenManager | None = None,
        gateway: ProviderGateway | None = None,
    ):
        self.settings = cfg or default_settings
        self.config_store = config_store
        self.invoice_repository = invoice_repository
        self.preparer = preparer or DocumentPreparer(self.settings.max_image_bytes)
        self.token_manager = token_manager or TokenManager(config_store, self.settings)
        self.gateway = gateway or ProviderGateway(self.settings)

    def get_api_credentials(self) -> tuple[str, str]:
        api_key = self.config_store.get(ConfigKeys.BAIDU_OCR_API_KEY)
        if not api_key:
            raise ConfigMissingError("Baidu OCR API key is not configured")
        secret_key = self.config_store.get(ConfigKeys.BAIDU_OCR_SECRET_KEY)
        if not secret_key:
            raise ConfigMissingError("Baidu OCR secret key is not configured")
        return api_key, secret_key

    async def recognize(
        self,
        file_path: str | Path,
        invoice_type: InvoiceType | None = None,
    ) -> CanonicalInvoice:
        """
        Recognize one document without persisting it.

        Args:
            file_path: Local image or PDF
            invoice_type: Selects the provider endpoint (default: VAT common)

        Returns:
            The normalized invoice

        Raises:
            OcrError: The first failure in the pipeline; no partial record is returned
        """
        inv_type = invoice_type or DEFAULT_INVOICE_TYPE
        # Blocking file I/O and Pillow work
        document = await asyncio.to_thread(self.preparer.prepare, file_path)

        api_key, secret_key = self.get_api_credentials()
        token = await self.token_manager.get_access_token(api_key, secret_key)

        endpoint = self.gateway.endpoint_for(inv_type)
        logger.info(
            "Recognizing document",
            path=document.path,
            file_type=document.file_type,
            size_bytes=document.size,
            invoice_type=inv_type.value,
        )
        response, raw_body = await self.gateway.call(endpoint, token, document.payload, document.kind)

        invoice = normalize(response, document.path, document.file_type, raw_body)
        logger.info(
            "Document recognized",
            path=document.path,
            invoice_id=invoice.id,
            invoice_type=invoice.invoice_type.value,
            total_amount=invoice.total_amount,
        )
        return invoice

    async def recognize_and_save(
        self,
        file_path: str | Path,
        invoice_type: InvoiceType | None = None,
    ) -> CanonicalInvoice:
        """Recognize then insert; all-or-nothing from the caller's point of view"""
        invoice = await self.recognize(file_path, invoice_type)
        try:
            self.invoice_repository.insert(invoice)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to save invoice: {e}") from e
        logger.info("Invoice saved", invoice_id=invoice.id, path=invoice.original_file_path)
        return invoice

    async def _recognize_outcome(self, file_path: str, invoice_type: InvoiceType | None) -> RecognizeOutcome:
        try:
            invoice = await self.recognize_and_save(file_path, invoice_type)
        except OcrError as e:
            logger.warning("Batch item failed", path=file_path, error_type=e.kind, error=e.message)
            return RecognizeOutcome.failed(file_path, str(e))
        except Exception as e:
            logger.exception("Unexpected error in batch item", path=file_path)
            return RecognizeOutcome.failed(file_path, str(e) or type(e).__name__)
        return RecognizeOutcome.succeeded(file_path, invoice)

    async def recognize_batch(
        self,
        file_paths: list[str],
        invoice_type: InvoiceType | None = None,
    ) -> list[RecognizeOutcome]:
        """
        Recognize and save every path, isolating failures per item.

        Items run sequentially unless batch_concurrency > 1, in which case at
        most that many run at once. Either way the result has one outcome per
        input path, in input order.
        """
        concurrency = self.settings.batch_concurrency
        logger.info("Starting batch recognition", count=len(file_paths), concurrency=concurrency)

        if concurrency <= 1:
            outcomes = [await self._recognize_outcome(path, invoice_type) for path in file_paths]
        else:
            semaphore = asyncio.Semaphore(concurrency)

            async def bounded(path: str) -> RecognizeOutcome:
                async with semaphore:
                    return await self._recognize_outcome(path, invoice_type)

            outcomes = list(await asyncio.gather(*(bounded(path) for path in file_paths)))

        succeeded = sum(1 for o in outcomes if o.success)
        logger.info("Batch recognition finished", succeeded=succeeded, failed=len(outcomes) - succeeded)
        return outcomes

    async def test_connection(self, api_key: str, secret_key: str) -> bool:
        """Force a token refresh to validate credentials; errors become False"""
        try:
            await self.token_manager.refresh_token(api_key, secret_key)
        except OcrError as e:
            logger.warning("OCR connection test failed", error_type=e.kind, error=e.message)
            return False
        return True
