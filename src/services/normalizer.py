"""
Response normalization: provider response shapes -> CanonicalInvoice.

Everything here is a pure function of its inputs (apart from the fresh id
and timestamps every new CanonicalInvoice receives). A field absent in the
source stays None; nothing is invented.
"""

import json
import re
from loguru import logger
from ..models.invoice import CanonicalInvoice, InvoiceType
from ..models.ocr_response import (
    CommodityItem,
    GenericInvoiceResponse,
    ProviderResponse,
    VatInvoiceResponse,
    VatInvoiceWordsResult,
)

_NON_AMOUNT_CHARS = re.compile(r"[^0-9.\-]")

# First match wins; order matters for labels like "增值税电子专用发票"
_TYPE_LABEL_RULES = (
    (("专用", "special"), InvoiceType.VAT_INVOICE),
    (("电子", "electronic"), InvoiceType.VAT_ELECTRONIC_INVOICE),
    (("卷", "roll"), InvoiceType.VAT_ROLL_INVOICE),
)


def parse_amount(text: str | None) -> float | None:
    """
    Parse a money string by keeping only digits, '.' and '-'.

    Examples: "¥1,234.56" -> 1234.56, "无" -> None, None -> None
    """
    if text is None:
        return None
    cleaned = _NON_AMOUNT_CHARS.sub("", text)
    try:
        return float(cleaned)
    except ValueError:
        return None


def parse_date(text: str | None) -> str | None:
    """
    "2024年03月05日" -> "2024-03-05".

    Best effort only: the result is not checked to be a real calendar date.
    """
    if text is None:
        return None
    return text.replace("年", "-").replace("月", "-").replace("日", "").strip()


def infer_invoice_type(label: str | None) -> InvoiceType:
    """Map the provider's free-text type label to a VAT subtype (VAT-common when unclear)"""
    if label:
        lowered = label.lower()
        for needles, invoice_type in _TYPE_LABEL_RULES:
            if any(n in lowered for n in needles):
                return invoice_type
    return InvoiceType.VAT_COMMON_INVOICE


def join_commodity_names(items: list[CommodityItem] | None) -> str | None:
    if items is None:
        return None
    return "; ".join(item.word for item in items)


def commodity_to_json(items: list[CommodityItem] | None) -> str | None:
    if items is None:
        return None
    return json.dumps([item.model_dump() for item in items], ensure_ascii=False)


def resolve_total_amount(words: VatInvoiceWordsResult) -> tuple[float, bool]:
    """
    Total in figures, else TotalAmount, else 0.0.

    Returns:
        (total, used_fallback) where used_fallback is True when the figures
        field could not be used.
    """
    total = parse_amount(words.amount_in_figures)
    if total is not None:
        return total, False

    fallback = parse_amount(words.total_amount)
    if fallback is not None:
        return fallback, True

    # Zero total is kept as-is; the warning is the only signal
    logger.warning(
        "No parsable total amount in OCR response, defaulting to 0.0",
        amount_in_figures=words.amount_in_figures,
        total_amount=words.total_amount,
    )
    return 0.0, True


def normalize_vat(
    response: VatInvoiceResponse,
    source_path: str | None,
    source_type: str | None,
    raw_body: str,
) -> CanonicalInvoice:
    wr = response.words_result
    total, used_fallback = resolve_total_amount(wr)

    return CanonicalInvoice(
        invoice_type=infer_invoice_type(wr.invoice_type),
        total_amount=total,
        invoice_code=wr.invoice_code,
        invoice_number=wr.invoice_num,
        invoice_date=parse_date(wr.invoice_date),
        # TotalAmount is the pre-tax figure only when it did not stand in for the total
        amount_without_tax=None if used_fallback else parse_amount(wr.total_amount),
        tax_amount=parse_amount(wr.total_tax),
        buyer_name=wr.purchaser_name,
        buyer_tax_number=wr.purchaser_register_num,
        seller_name=wr.seller_name,
        seller_tax_number=wr.seller_register_num,
        commodity_name=join_commodity_names(wr.commodity_name),
        commodity_detail=commodity_to_json(wr.commodity_name),
        check_code=wr.check_code,
        machine_code=wr.machine_code,
        original_file_path=source_path,
        file_type=source_type,
        ocr_raw_response=raw_body,
        remark=wr.remarks,
    )


def normalize_generic(
    response: GenericInvoiceResponse,
    source_path: str | None,
    source_type: str | None,
    raw_body: str,
) -> CanonicalInvoice:
    # The generic endpoint's schema is not stable enough to extract fields from
    return CanonicalInvoice(
        invoice_type=InvoiceType.OTHER,
        total_amount=0.0,
        original_file_path=source_path,
        file_type=source_type,
        ocr_raw_response=raw_body,
    )


def normalize(
    response: ProviderResponse,
    source_path: str | None,
    source_type: str | None,
    raw_body: str,
) -> CanonicalInvoice:
    """Single entry point over both provider response variants"""
    if isinstance(response, VatInvoiceResponse):
        return normalize_vat(response, source_path, source_type, raw_body)
    if isinstance(response, GenericInvoiceResponse):
        return normalize_generic(response, source_path, source_type, raw_body)
    raise TypeError(f"Unsupported provider response: {type(response).__name__}")
