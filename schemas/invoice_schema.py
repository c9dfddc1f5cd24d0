from __future__ import annotations

from decimal import Decimal
from typing import Any, Literal, Mapping

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from gst_billing.cart import pick_line_fields
from gst_billing.coercion import ZERO, clamp_percent, non_negative, parse_number_or_zero
from gst_billing.discounts import DiscountMode
from gst_billing.line_items import UNCLASSIFIED_HSN, LineItem, PriceType
from gst_billing.totals import InvoiceTotals, TaxSummaryRow


class CustomerInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(default="", validation_alias=AliasChoices("name", "firmName", "firm_name"))
    state: str = ""
    gstin: str | None = Field(default=None, validation_alias=AliasChoices("gstin", "gstNo", "gst_no"))
    customer_type: Literal["B2B", "B2C"] = "B2C"

    @field_validator("customer_type", mode="before")
    @classmethod
    def _upper_customer_type(cls, value: Any) -> Any:
        if value is None or value == "":
            return "B2C"
        return str(value).strip().upper()

    @field_validator("gstin", mode="before")
    @classmethod
    def _strip_gstin(cls, value: Any) -> Any:
        if value is None:
            return None
        text = str(value).replace(" ", "").upper()
        return text or None


class CartLine(BaseModel):
    rate: Decimal = ZERO
    quantity: Decimal = ZERO
    tax_rate: Decimal = ZERO
    discount_percent: Decimal = ZERO
    price_type: PriceType = PriceType.EXCLUSIVE
    hsn_code: str = UNCLASSIFIED_HSN
    name: str = ""

    @model_validator(mode="before")
    @classmethod
    def _resolve_aliases(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        return pick_line_fields(data)

    @field_validator("rate", "quantity", "tax_rate", mode="before")
    @classmethod
    def _coerce_amount(cls, value: Any) -> Decimal:
        return non_negative(value)

    @field_validator("discount_percent", mode="before")
    @classmethod
    def _coerce_percent(cls, value: Any) -> Decimal:
        return clamp_percent(value)

    @field_validator("price_type", mode="before")
    @classmethod
    def _coerce_price_type(cls, value: Any) -> PriceType:
        return PriceType.parse(value)

    @field_validator("hsn_code", "name", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    def to_line_item(self) -> LineItem:
        return LineItem(
            rate=self.rate,
            quantity=self.quantity,
            tax_rate=self.tax_rate,
            discount_percent=self.discount_percent,
            price_type=self.price_type,
            hsn_code=self.hsn_code or UNCLASSIFIED_HSN,
            name=self.name,
        )


class InvoicePayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    customer: CustomerInfo = Field(default_factory=CustomerInfo)
    items: list[CartLine] = Field(default_factory=list)
    # Order-level discount amount; only used when discount_mode is "header".
    discount: Decimal = ZERO
    discount_mode: DiscountMode | None = None
    shipping_charges: Decimal = ZERO
    paid_amount: Decimal = ZERO
    payment_method: str = ""
    billing_type: str = ""
    seller_state: str | None = None

    @field_validator("customer", mode="before")
    @classmethod
    def _customer_reference(cls, value: Any) -> Any:
        # A bare id refers to a stored customer this engine cannot look up.
        if value is None or isinstance(value, str):
            return {}
        return value

    @field_validator("items", mode="before")
    @classmethod
    def _items_list(cls, value: Any) -> Any:
        if value is None:
            return []
        return value

    @field_validator("discount", "shipping_charges", mode="before")
    @classmethod
    def _coerce_non_negative(cls, value: Any) -> Decimal:
        return non_negative(value)

    @field_validator("paid_amount", mode="before")
    @classmethod
    def _coerce_paid(cls, value: Any) -> Decimal:
        return parse_number_or_zero(value)

    @field_validator("discount_mode", mode="before")
    @classmethod
    def _coerce_mode(cls, value: Any) -> DiscountMode | None:
        if value is None or value == "":
            return None
        return DiscountMode.parse(value)

    def line_items(self) -> list[LineItem]:
        return [line.to_line_item() for line in self.items]


class TaxSummaryRowOut(BaseModel):
    hsn_code: str
    quantity: float
    tax_rate: float
    taxable_amount: float
    cgst_amount: float
    sgst_amount: float
    igst_amount: float
    total_tax: float

    @classmethod
    def from_row(cls, row: TaxSummaryRow) -> "TaxSummaryRowOut":
        rounded = row.rounded()
        return cls(
            hsn_code=rounded.hsn_code,
            quantity=float(rounded.quantity),
            tax_rate=float(rounded.tax_rate),
            taxable_amount=float(rounded.taxable_amount),
            cgst_amount=float(rounded.cgst_amount),
            sgst_amount=float(rounded.sgst_amount),
            igst_amount=float(rounded.igst_amount),
            total_tax=float(rounded.total_tax),
        )


class InvoiceTotalsOut(BaseModel):
    sub_total: float
    total_tax: float
    cgst: float
    sgst: float
    igst: float
    shipping_charges: float
    grand_total: float
    paid_amount: float
    balance: float
    discount_amount: float
    tax_summary_rows: list[TaxSummaryRowOut] = Field(default_factory=list)
    tax_summary_total: TaxSummaryRowOut

    @classmethod
    def from_totals(cls, totals: InvoiceTotals) -> "InvoiceTotalsOut":
        rounded = totals.rounded()
        return cls(
            sub_total=float(rounded.sub_total),
            total_tax=float(rounded.total_tax),
            cgst=float(rounded.cgst),
            sgst=float(rounded.sgst),
            igst=float(rounded.igst),
            shipping_charges=float(rounded.shipping_charges),
            grand_total=float(rounded.grand_total),
            paid_amount=float(rounded.paid_amount),
            balance=float(rounded.balance),
            discount_amount=float(rounded.discount_amount),
            tax_summary_rows=[TaxSummaryRowOut.from_row(row) for row in totals.tax_summary_rows],
            tax_summary_total=TaxSummaryRowOut.from_row(totals.tax_summary_total),
        )


class TaxTypeRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    buyer_state: str | None = None
    seller_state: str | None = None


class StoredInvoicePayload(InvoicePayload):
    invoice_number: str = ""
    # ISO date; a full timestamp keeps only its date part
    invoice_date: str = ""

    @field_validator("invoice_number", mode="before")
    @classmethod
    def _coerce_number(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @field_validator("invoice_date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> str:
        return "" if value is None else str(value).strip().split("T")[0]


class GstReturnRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    invoices: list[StoredInvoicePayload] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _bare_list(cls, data: Any) -> Any:
        if isinstance(data, list):
            return {"invoices": data}
        return data
