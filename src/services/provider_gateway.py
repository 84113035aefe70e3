from dataclasses import dataclass
from enum import Enum
from typing import Callable
import httpx
from loguru import logger
from pydantic import ValidationError
from ..core.config import Settings, settings as default_settings
from ..core.errors import NetworkError, ParseFailureError, ProviderRejectedError
from ..models.invoice import InvoiceType
from ..models.ocr_response import (
    GenericInvoiceResponse,
    ProviderErrorEnvelope,
    ProviderResponse,
    VatInvoiceResponse,
)


class InvoiceCategory(str, Enum):
    VAT = "vat"
    GENERIC = "generic"


def category_for(invoice_type: InvoiceType) -> InvoiceCategory:
    return InvoiceCategory.VAT if invoice_type.is_vat else InvoiceCategory.GENERIC


@dataclass(frozen=True)
class EndpointSpec:
    url: str
    parser: Callable[[str], ProviderResponse]


def build_endpoints(cfg: Settings) -> dict[InvoiceCategory, EndpointSpec]:
    """Dispatch table from invoice category to provider endpoint and response parser"""
    return {
        InvoiceCategory.VAT: EndpointSpec(cfg.baidu_vat_invoice_url, VatInvoiceResponse.from_body),
        InvoiceCategory.GENERIC: EndpointSpec(cfg.baidu_invoice_url, GenericInvoiceResponse.from_body),
    }


def rejection_from_body(body: str) -> ProviderRejectedError:
    """Build the most specific error the provider's envelope allows (raw body as last resort)"""
    envelope = ProviderErrorEnvelope.try_parse(body)
    if envelope is not None:
        return ProviderRejectedError(
            envelope.best_message(fallback=f"API error: {body}"),
            error_code=envelope.error_code,
        )
    return ProviderRejectedError(f"API error: {body}")


class ProviderGateway:
    """
    Issues OCR requests against the provider's endpoints.

    One attempt per call: transport failures, timeouts and provider errors
    are raised immediately; retry policy belongs to the caller.
    """

    def __init__(self, cfg: Settings | None = None):
        self.settings = cfg or default_settings
        self.endpoints = build_endpoints(self.settings)

    def endpoint_for(self, invoice_type: InvoiceType) -> EndpointSpec:
        return self.endpoints[category_for(invoice_type)]

    async def call(
        self,
        endpoint: EndpointSpec,
        token: str,
        payload: str,
        payload_kind: str,
    ) -> tuple[ProviderResponse, str]:
        """
        Submit a base64 document to one endpoint.

        Args:
            endpoint: Entry from the dispatch table
            token: Bearer token, sent as the access_token query parameter
            payload: Base64-encoded document content
            payload_kind: "pdf" sends the pdf_file field, anything else sends image

        Returns:
            (parsed response, raw response body)
        """
        field = "pdf_file" if payload_kind == "pdf" else "image"

        try:
            async with httpx.AsyncClient(timeout=self.settings.request_timeout_seconds) as client:
                r = await client.post(
                    endpoint.url,
                    params={"access_token": token},
                    data={field: payload},
                )
        except httpx.TimeoutException as e:
            logger.error("OCR request timed out", url=endpoint.url)
            raise NetworkError(f"OCR request timed out: {e}") from e
        except httpx.HTTPError as e:
            logger.error("OCR request failed", url=endpoint.url, error=str(e))
            raise NetworkError(f"OCR request failed: {e}") from e

        body = r.text
        if not r.is_success:
            logger.warning("OCR endpoint returned error status", url=endpoint.url, http_status=r.status_code)
            raise rejection_from_body(body)

        # Errors are also reported with a 200 status
        envelope = ProviderErrorEnvelope.try_parse(body)
        if envelope is not None and envelope.is_error:
            logger.warning("OCR endpoint returned error envelope", url=endpoint.url, error_code=envelope.error_code)
            raise rejection_from_body(body)

        try:
            response = endpoint.parser(body)
        except (ValidationError, ValueError) as e:
            raise ParseFailureError(f"Cannot parse OCR response: {e}") from e

        return response, body
