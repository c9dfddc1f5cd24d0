from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import Any

from gst_billing.coercion import HUNDRED, ZERO, clamp_percent, non_negative

UNCLASSIFIED_HSN = "NA"


class PriceType(str, Enum):
    EXCLUSIVE = "Exclusive"
    INCLUSIVE = "Inclusive"

    @classmethod
    def parse(cls, value: Any) -> "PriceType":
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        if text == "inclusive":
            return cls.INCLUSIVE
        return cls.EXCLUSIVE


@dataclass(frozen=True)
class LineItem:
    rate: Decimal
    quantity: Decimal
    tax_rate: Decimal = ZERO
    discount_percent: Decimal = ZERO
    price_type: PriceType = PriceType.EXCLUSIVE
    hsn_code: str = UNCLASSIFIED_HSN
    name: str = ""

    @classmethod
    def build(
        cls,
        *,
        rate: Any = None,
        quantity: Any = None,
        tax_rate: Any = None,
        discount_percent: Any = None,
        price_type: Any = None,
        hsn_code: Any = None,
        name: Any = None,
    ) -> "LineItem":
        hsn = str(hsn_code).strip() if hsn_code is not None else ""
        return cls(
            rate=non_negative(rate),
            quantity=non_negative(quantity),
            tax_rate=non_negative(tax_rate),
            discount_percent=clamp_percent(discount_percent),
            price_type=PriceType.parse(price_type),
            hsn_code=hsn or UNCLASSIFIED_HSN,
            name=str(name or "").strip(),
        )


@dataclass(frozen=True)
class ResolvedLine:
    hsn_code: str
    quantity: Decimal
    tax_rate: Decimal
    price_type: PriceType
    rate: Decimal
    unit_taxable: Decimal
    item_total: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal
    line_total: Decimal
    name: str = ""

    def with_gross(self, gross: Decimal, discount_amount: Decimal) -> "ResolvedLine":
        """Rebuild the amounts from a post-discount gross (rate * quantity basis)."""
        gross = max(gross, ZERO)
        if self.price_type is PriceType.INCLUSIVE and self.tax_rate > 0:
            taxable = gross / (1 + self.tax_rate / HUNDRED)
            tax = taxable * self.tax_rate / HUNDRED
            line_total = gross
        else:
            taxable = gross
            tax = taxable * self.tax_rate / HUNDRED
            line_total = taxable + tax
        return replace(
            self,
            discount_amount=discount_amount,
            taxable_amount=taxable,
            tax_amount=tax,
            line_total=line_total,
        )


def resolve_line(item: LineItem) -> ResolvedLine:
    rate = non_negative(item.rate)
    quantity = non_negative(item.quantity)
    tax_rate = non_negative(item.tax_rate)
    keep = 1 - clamp_percent(item.discount_percent) / HUNDRED
    price_type = PriceType.parse(item.price_type)

    if price_type is PriceType.INCLUSIVE and tax_rate > 0:
        unit_taxable = rate / (1 + tax_rate / HUNDRED)
    else:
        unit_taxable = rate

    item_total = rate * quantity
    taxable_amount = unit_taxable * keep * quantity
    tax_amount = taxable_amount * tax_rate / HUNDRED
    if price_type is PriceType.INCLUSIVE:
        line_total = item_total * keep
    else:
        line_total = taxable_amount + tax_amount

    return ResolvedLine(
        hsn_code=item.hsn_code or UNCLASSIFIED_HSN,
        quantity=quantity,
        tax_rate=tax_rate,
        price_type=price_type,
        rate=rate,
        unit_taxable=unit_taxable,
        item_total=item_total,
        discount_amount=item_total - item_total * keep,
        taxable_amount=taxable_amount,
        tax_amount=tax_amount,
        line_total=line_total,
        name=item.name,
    )
