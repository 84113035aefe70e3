"""
Wire shapes of the Baidu OCR API.

Two response variants sit behind one normalization entry point: the VAT
endpoint returns a fixed schema (VatInvoiceResponse), the generic invoice
endpoint returns an untyped document (GenericInvoiceResponse).
"""

import json
from typing import Any, Union
from pydantic import BaseModel, ConfigDict, Field, ValidationError


class TokenResponse(BaseModel):
    access_token: str
    expires_in: int


class ProviderErrorEnvelope(BaseModel):
    error: str | None = None
    error_description: str | None = None
    error_code: int | None = None
    error_msg: str | None = None

    @property
    def is_error(self) -> bool:
        return self.error_code is not None or self.error is not None

    def best_message(self, fallback: str = "unknown provider error") -> str:
        return self.error_msg or self.error_description or self.error or fallback

    @classmethod
    def try_parse(cls, body: str) -> "ProviderErrorEnvelope | None":
        """Return the envelope when body is a JSON object, else None."""
        try:
            data = json.loads(body)
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        try:
            return cls.model_validate(data)
        except ValidationError:
            return None


class CommodityItem(BaseModel):
    word: str
    row: str | None = None


class VatInvoiceWordsResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    invoice_code: str | None = Field(default=None, alias="InvoiceCode")
    invoice_num: str | None = Field(default=None, alias="InvoiceNum")
    invoice_date: str | None = Field(default=None, alias="InvoiceDate")
    invoice_type: str | None = Field(default=None, alias="InvoiceType")
    commodity_name: list[CommodityItem] | None = Field(default=None, alias="CommodityName")
    commodity_amount: list[CommodityItem] | None = Field(default=None, alias="CommodityAmount")
    total_amount: str | None = Field(default=None, alias="TotalAmount")
    total_tax: str | None = Field(default=None, alias="TotalTax")
    # Provider spelling
    amount_in_figures: str | None = Field(default=None, alias="AmountInFiguers")
    seller_name: str | None = Field(default=None, alias="SellerName")
    seller_register_num: str | None = Field(default=None, alias="SellerRegisterNum")
    seller_address: str | None = Field(default=None, alias="SellerAddress")
    seller_bank: str | None = Field(default=None, alias="SellerBank")
    purchaser_name: str | None = Field(default=None, alias="PurchaserName")
    purchaser_register_num: str | None = Field(default=None, alias="PurchaserRegisterNum")
    purchaser_address: str | None = Field(default=None, alias="PurchaserAddress")
    purchaser_bank: str | None = Field(default=None, alias="PurchaserBank")
    check_code: str | None = Field(default=None, alias="CheckCode")
    machine_code: str | None = Field(default=None, alias="MachineCode")
    remarks: str | None = Field(default=None, alias="Remarks")


class VatInvoiceResponse(BaseModel):
    words_result: VatInvoiceWordsResult
    words_result_num: int | None = None
    log_id: int | None = None

    @classmethod
    def from_body(cls, body: str) -> "VatInvoiceResponse":
        return cls.model_validate_json(body)


class GenericInvoiceResponse(BaseModel):
    data: dict[str, Any]

    @classmethod
    def from_body(cls, body: str) -> "GenericInvoiceResponse":
        data = json.loads(body)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        return cls(data=data)


ProviderResponse = Union[VatInvoiceResponse, GenericInvoiceResponse]
