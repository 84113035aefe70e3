"""
Tests for the provider gateway: request shape, endpoint dispatch, and how
success, error envelopes and malformed bodies are told apart.
"""

import asyncio
from urllib.parse import parse_qs
import httpx
import pytest
import respx
from src.core.config import settings
from src.core.errors import NetworkError, ParseFailureError, ProviderRejectedError
from src.models.invoice import InvoiceType
from src.models.ocr_response import GenericInvoiceResponse, VatInvoiceResponse
from src.services.provider_gateway import InvoiceCategory, ProviderGateway, category_for

VAT_URL = settings.baidu_vat_invoice_url
GENERIC_URL = settings.baidu_invoice_url


@pytest.fixture
def gateway():
    return ProviderGateway(settings)


def _call(gateway, invoice_type, payload="QUJD", kind="image"):
    endpoint = gateway.endpoint_for(invoice_type)
    return asyncio.run(gateway.call(endpoint, "tok-123", payload, kind))


@pytest.mark.parametrize("invoice_type", [
    InvoiceType.VAT_INVOICE,
    InvoiceType.VAT_COMMON_INVOICE,
    InvoiceType.VAT_ELECTRONIC_INVOICE,
    InvoiceType.VAT_ROLL_INVOICE,
])
def test_vat_family_routes_to_vat_endpoint(gateway, invoice_type):
    assert category_for(invoice_type) == InvoiceCategory.VAT
    assert gateway.endpoint_for(invoice_type).url == VAT_URL


@pytest.mark.parametrize("invoice_type", [
    InvoiceType.TRAIN_TICKET,
    InvoiceType.TAXI_TICKET,
    InvoiceType.FLIGHT_ITINERARY,
    InvoiceType.TOLL_INVOICE,
    InvoiceType.QUOTA_INVOICE,
    InvoiceType.OTHER,
])
def test_other_types_route_to_generic_endpoint(gateway, invoice_type):
    assert category_for(invoice_type) == InvoiceCategory.GENERIC
    assert gateway.endpoint_for(invoice_type).url == GENERIC_URL


def test_image_payload_sent_as_image_field_with_token_param(gateway, vat_body, vat_words):
    body = vat_body(vat_words)
    with respx.mock:
        route = respx.post(VAT_URL).mock(return_value=httpx.Response(200, text=body))
        response, raw = _call(gateway, InvoiceType.VAT_COMMON_INVOICE, payload="aW1hZ2U=")

    request = route.calls.last.request
    assert request.url.params["access_token"] == "tok-123"
    assert request.headers["content-type"].startswith("application/x-www-form-urlencoded")
    form = parse_qs(request.content.decode())
    assert form == {"image": ["aW1hZ2U="]}

    assert isinstance(response, VatInvoiceResponse)
    assert response.words_result.invoice_num == "12345678"
    assert raw == body


def test_pdf_payload_sent_as_pdf_file_field(gateway, vat_body, vat_words):
    with respx.mock:
        route = respx.post(VAT_URL).mock(return_value=httpx.Response(200, text=vat_body(vat_words)))
        _call(gateway, InvoiceType.VAT_INVOICE, payload="cGRm", kind="pdf")

    form = parse_qs(route.calls.last.request.content.decode())
    assert form == {"pdf_file": ["cGRm"]}


def test_generic_endpoint_returns_untyped_document(gateway):
    with respx.mock:
        respx.post(GENERIC_URL).mock(return_value=httpx.Response(
            200, json={"words_result": [{"type": "train_ticket", "result": {}}], "log_id": 1}
        ))
        response, _ = _call(gateway, InvoiceType.TRAIN_TICKET)

    assert isinstance(response, GenericInvoiceResponse)
    assert response.data["log_id"] == 1


def test_error_envelope_with_200_status_is_rejected(gateway):
    with respx.mock:
        respx.post(VAT_URL).mock(return_value=httpx.Response(
            200, json={"error_code": 216201, "error_msg": "image format error"}
        ))
        with pytest.raises(ProviderRejectedError) as exc_info:
            _call(gateway, InvoiceType.VAT_COMMON_INVOICE)

    assert exc_info.value.message == "image format error"
    assert exc_info.value.error_code == 216201


def test_error_status_is_rejected(gateway):
    with respx.mock:
        respx.post(VAT_URL).mock(return_value=httpx.Response(
            500, json={"error_code": 282000, "error_msg": "internal error"}
        ))
        with pytest.raises(ProviderRejectedError, match="internal error"):
            _call(gateway, InvoiceType.VAT_COMMON_INVOICE)


def test_invalid_json_is_parse_failure(gateway):
    with respx.mock:
        respx.post(VAT_URL).mock(return_value=httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(ParseFailureError):
            _call(gateway, InvoiceType.VAT_COMMON_INVOICE)


def test_vat_body_without_words_result_is_parse_failure(gateway):
    """Well-formed JSON that is neither an error nor the VAT schema"""
    with respx.mock:
        respx.post(VAT_URL).mock(return_value=httpx.Response(200, json={"log_id": 42}))
        with pytest.raises(ParseFailureError):
            _call(gateway, InvoiceType.VAT_COMMON_INVOICE)


def test_timeout_is_network_error_without_retry(gateway):
    with respx.mock:
        route = respx.post(VAT_URL).mock(side_effect=httpx.ReadTimeout("slow"))
        with pytest.raises(NetworkError):
            _call(gateway, InvoiceType.VAT_COMMON_INVOICE)

    assert route.call_count == 1


def test_connection_error_is_network_error(gateway):
    with respx.mock:
        respx.post(GENERIC_URL).mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(NetworkError):
            _call(gateway, InvoiceType.OTHER)
