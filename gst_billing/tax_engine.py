from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from gst_billing.coercion import HUNDRED, ZERO, non_negative
from gst_billing.states import extract_state_code


class TaxType(str, Enum):
    IGST = "IGST"
    CGST_SGST = "CGST_SGST"


@dataclass(frozen=True)
class TaxSplit:
    igst: Decimal
    cgst: Decimal
    sgst: Decimal
    total: Decimal

    @property
    def is_inter_state(self) -> bool:
        return self.igst > 0


def classify_tax_type(seller_state: str | None, buyer_state: str | None) -> TaxType:
    """Decide between IGST and CGST+SGST by comparing GST state codes.

    A missing code on either side falls back to CGST+SGST.
    """
    seller_code = extract_state_code(seller_state)
    buyer_code = extract_state_code(buyer_state)
    if not seller_code or not buyer_code:
        return TaxType.CGST_SGST
    if seller_code != buyer_code:
        return TaxType.IGST
    return TaxType.CGST_SGST


def compute_tax(taxable_amount: Any, tax_rate_percent: Any, is_inter_state: bool) -> TaxSplit:
    tax = non_negative(taxable_amount) * non_negative(tax_rate_percent) / HUNDRED
    if is_inter_state:
        return TaxSplit(igst=tax, cgst=ZERO, sgst=ZERO, total=tax)
    half = tax / 2
    return TaxSplit(igst=ZERO, cgst=half, sgst=half, total=half + half)
