"""
Pytest configuration and shared fixtures.

Registers the integration marker (skipped unless --run-integration is given)
and provides in-memory stores, a cached token and provider response bodies.
"""

import json
import time
import pytest
from src.core.config import settings
from src.services.recognizer import InvoiceRecognizer
from src.services.storage import ConfigKeys, InMemoryConfigStore, InMemoryInvoiceRepository


def pytest_addoption(parser):
    """Add custom command-line options"""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests against the real Baidu OCR API"
    )


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test requiring real Baidu OCR credentials"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --run-integration is specified"""
    if config.getoption("--run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="need --run-integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture
def config_store():
    """Config store holding OCR credentials but no cached token"""
    return InMemoryConfigStore({
        ConfigKeys.BAIDU_OCR_API_KEY: "test-api-key",
        ConfigKeys.BAIDU_OCR_SECRET_KEY: "test-secret-key",
    })


@pytest.fixture
def cached_token(config_store):
    """A cached token that is valid for another two hours"""
    config_store.set(ConfigKeys.BAIDU_OCR_ACCESS_TOKEN, "cached-token")
    config_store.set(ConfigKeys.BAIDU_OCR_TOKEN_EXPIRES, str(int(time.time()) + 7200))
    return "cached-token"


@pytest.fixture
def invoice_repository():
    return InMemoryInvoiceRepository()


@pytest.fixture
def recognizer(config_store, invoice_repository):
    return InvoiceRecognizer(config_store, invoice_repository, settings)


@pytest.fixture
def vat_words():
    """words_result of a typical VAT electronic invoice response"""
    return {
        "InvoiceCode": "044031900111",
        "InvoiceNum": "12345678",
        "InvoiceDate": "2024年03月05日",
        "InvoiceType": "增值税电子普通发票",
        "CommodityName": [
            {"row": "1", "word": "办公用品"},
            {"row": "2", "word": "打印纸"},
        ],
        "TotalAmount": "502.65",
        "TotalTax": "65.35",
        "AmountInFiguers": "¥568.00",
        "SellerName": "深圳市某某科技有限公司",
        "SellerRegisterNum": "91440300MA5XXXXXX1",
        "PurchaserName": "北京某某有限公司",
        "PurchaserRegisterNum": "91110000MA0XXXXXX2",
        "CheckCode": "12345678901234567890",
        "MachineCode": "661234567890",
        "Remarks": "测试备注",
    }


@pytest.fixture
def vat_body():
    """Factory for a VAT endpoint response body from a words_result dict"""
    def build(words: dict) -> str:
        return json.dumps(
            {"words_result": words, "words_result_num": len(words), "log_id": 1234567890},
            ensure_ascii=False,
        )
    return build


@pytest.fixture
def jpeg_file(tmp_path):
    """A small file with a .jpg extension (its bytes are sent as-is)"""
    path = tmp_path / "invoice.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0" + b"fake jpeg body")
    return path


@pytest.fixture
def pdf_file(tmp_path):
    path = tmp_path / "invoice.pdf"
    path.write_bytes(b"%PDF-1.4 minimal")
    return path
