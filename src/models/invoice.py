import math
import uuid
from datetime import datetime, UTC
from enum import Enum
from typing import Any
from pydantic import BaseModel, ConfigDict, Field, model_validator


def utc_now() -> str:
    return datetime.now(UTC).isoformat()


class InvoiceType(str, Enum):
    VAT_INVOICE = "vat_invoice"  # VAT special
    VAT_COMMON_INVOICE = "vat_common_invoice"
    VAT_ELECTRONIC_INVOICE = "vat_electronic_invoice"
    VAT_ROLL_INVOICE = "vat_roll_invoice"
    TRAIN_TICKET = "train_ticket"
    TAXI_TICKET = "taxi_ticket"
    FLIGHT_ITINERARY = "flight_itinerary"
    TOLL_INVOICE = "toll_invoice"
    QUOTA_INVOICE = "quota_invoice"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str | None) -> "InvoiceType":
        """Case-insensitive lookup; anything unknown is OTHER."""
        if not value:
            return cls.OTHER
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.OTHER

    @property
    def is_vat(self) -> bool:
        return self in _VAT_TYPES

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_VAT_TYPES = frozenset({
    InvoiceType.VAT_INVOICE,
    InvoiceType.VAT_COMMON_INVOICE,
    InvoiceType.VAT_ELECTRONIC_INVOICE,
    InvoiceType.VAT_ROLL_INVOICE,
})

_DISPLAY_NAMES = {
    InvoiceType.VAT_INVOICE: "增值税专用发票",
    InvoiceType.VAT_COMMON_INVOICE: "增值税普通发票",
    InvoiceType.VAT_ELECTRONIC_INVOICE: "增值税电子普通发票",
    InvoiceType.VAT_ROLL_INVOICE: "增值税卷式发票",
    InvoiceType.TRAIN_TICKET: "火车票",
    InvoiceType.TAXI_TICKET: "出租车票",
    InvoiceType.FLIGHT_ITINERARY: "机票行程单",
    InvoiceType.TOLL_INVOICE: "过路费发票",
    InvoiceType.QUOTA_INVOICE: "定额发票",
    InvoiceType.OTHER: "其他",
}


class CanonicalInvoice(BaseModel):
    """
    Normalized invoice record, independent of any provider's response shape.

    A record built without an id gets a fresh UUID4 and identical
    created_at/updated_at timestamps (ISO-8601 UTC).
    """
    id: str
    invoice_type: InvoiceType
    invoice_code: str | None = None
    invoice_number: str | None = None
    invoice_date: str | None = None  # best-effort YYYY-MM-DD, never validated
    amount_without_tax: float | None = None
    tax_amount: float | None = None
    total_amount: float
    buyer_name: str | None = None
    buyer_tax_number: str | None = None
    seller_name: str | None = None
    seller_tax_number: str | None = None
    commodity_name: str | None = None  # item names joined with "; "
    commodity_detail: str | None = None  # JSON list of line items
    check_code: str | None = None
    machine_code: str | None = None
    original_file_path: str | None = None
    file_type: str | None = None
    ocr_raw_response: str | None = None  # verbatim provider body
    ocr_confidence: float | None = None
    category: str | None = None
    remark: str | None = None
    is_verified: bool = False
    created_at: str
    updated_at: str

    @model_validator(mode="before")
    @classmethod
    def _stamp_new_record(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            if data.get("id") is None:
                data["id"] = str(uuid.uuid4())
            if data.get("created_at") is None:
                data["created_at"] = utc_now()
            if data.get("updated_at") is None:
                data["updated_at"] = data["created_at"]
        return data


class RecognizeOutcome(BaseModel):
    """Result for one document of a batch. Immutable once built."""
    model_config = ConfigDict(frozen=True)

    file_path: str
    success: bool
    invoice: CanonicalInvoice | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _check_consistency(self) -> "RecognizeOutcome":
        if self.success and (self.invoice is None or self.error is not None):
            raise ValueError("a successful outcome carries an invoice and no error")
        if not self.success and (self.invoice is not None or self.error is None):
            raise ValueError("a failed outcome carries an error and no invoice")
        return self

    @classmethod
    def succeeded(cls, file_path: str, invoice: CanonicalInvoice) -> "RecognizeOutcome":
        return cls(file_path=file_path, success=True, invoice=invoice)

    @classmethod
    def failed(cls, file_path: str, error: str) -> "RecognizeOutcome":
        return cls(file_path=file_path, success=False, error=error)


class InvoiceFilter(BaseModel):
    invoice_type: InvoiceType | None = None
    date_from: str | None = None
    date_to: str | None = None
    amount_min: float | None = None
    amount_max: float | None = None
    keyword: str | None = None  # matches commodity name, seller name or remark
    category: str | None = None


class Pagination(BaseModel):
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class PagedResult(BaseModel):
    items: list[CanonicalInvoice]
    total: int
    page: int
    page_size: int
    total_pages: int

    @classmethod
    def build(cls, items: list[CanonicalInvoice], total: int, pagination: Pagination) -> "PagedResult":
        total_pages = math.ceil(total / pagination.page_size) if total else 0
        return cls(
            items=items,
            total=total,
            page=pagination.page,
            page_size=pagination.page_size,
            total_pages=total_pages,
        )
