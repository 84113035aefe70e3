"""
Integration tests against the real Baidu OCR API.

These tests require credentials and a sample invoice:
- Set BAIDU_OCR_API_KEY and BAIDU_OCR_SECRET_KEY in the environment
- Set SAMPLE_INVOICE to a local VAT invoice image or PDF

Run with: pytest --run-integration
"""

import asyncio
import os
import pytest
from src.core.config import settings
from src.services.recognizer import InvoiceRecognizer
from src.services.storage import ConfigKeys, InMemoryConfigStore, InMemoryInvoiceRepository

API_KEY = os.getenv("BAIDU_OCR_API_KEY")
SECRET_KEY = os.getenv("BAIDU_OCR_SECRET_KEY")
SAMPLE_INVOICE = os.getenv("SAMPLE_INVOICE")

skip_if_no_credentials = pytest.mark.skipif(
    not (API_KEY and SECRET_KEY),
    reason="Baidu OCR not configured (set BAIDU_OCR_API_KEY and BAIDU_OCR_SECRET_KEY)",
)


@pytest.fixture
def live_recognizer():
    store = InMemoryConfigStore({
        ConfigKeys.BAIDU_OCR_API_KEY: API_KEY,
        ConfigKeys.BAIDU_OCR_SECRET_KEY: SECRET_KEY,
    })
    return InvoiceRecognizer(store, InMemoryInvoiceRepository(), settings)


@skip_if_no_credentials
@pytest.mark.integration
def test_real_credentials_pass_connection_test(live_recognizer):
    assert asyncio.run(live_recognizer.test_connection(API_KEY, SECRET_KEY)) is True


@skip_if_no_credentials
@pytest.mark.integration
@pytest.mark.skipif(not SAMPLE_INVOICE, reason="set SAMPLE_INVOICE to a local invoice file")
def test_real_invoice_is_recognized(live_recognizer):
    invoice = asyncio.run(live_recognizer.recognize(SAMPLE_INVOICE))

    assert invoice.invoice_type.is_vat
    assert invoice.total_amount > 0
    assert invoice.ocr_raw_response
    print(f"\n{invoice.invoice_number}: {invoice.seller_name} {invoice.total_amount}")
