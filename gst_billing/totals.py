from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from decimal import Decimal
from typing import Any, Sequence

from gst_billing.coercion import ZERO, money, parse_number_or_zero
from gst_billing.line_items import ResolvedLine
from gst_billing.tax_engine import TaxSplit

GRAND_TOTAL_ROW = "TOTAL"


@dataclass(frozen=True)
class TaxSummaryRow:
    hsn_code: str
    quantity: Decimal = ZERO
    tax_rate: Decimal = ZERO
    taxable_amount: Decimal = ZERO
    cgst_amount: Decimal = ZERO
    sgst_amount: Decimal = ZERO
    igst_amount: Decimal = ZERO
    total_tax: Decimal = ZERO

    def add(self, other: "TaxSummaryRow") -> "TaxSummaryRow":
        return replace(
            self,
            quantity=self.quantity + other.quantity,
            tax_rate=max(self.tax_rate, other.tax_rate),
            taxable_amount=self.taxable_amount + other.taxable_amount,
            cgst_amount=self.cgst_amount + other.cgst_amount,
            sgst_amount=self.sgst_amount + other.sgst_amount,
            igst_amount=self.igst_amount + other.igst_amount,
            total_tax=self.total_tax + other.total_tax,
        )

    def rounded(self) -> "TaxSummaryRow":
        cgst = money(self.cgst_amount)
        igst = money(self.igst_amount)
        return replace(
            self,
            quantity=money(self.quantity),
            tax_rate=money(self.tax_rate),
            taxable_amount=money(self.taxable_amount),
            cgst_amount=cgst,
            sgst_amount=cgst,
            igst_amount=igst,
            total_tax=cgst + cgst + igst,
        )


@dataclass(frozen=True)
class InvoiceTotals:
    sub_total: Decimal = ZERO
    total_tax: Decimal = ZERO
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    igst: Decimal = ZERO
    shipping_charges: Decimal = ZERO
    grand_total: Decimal = ZERO
    paid_amount: Decimal = ZERO
    balance: Decimal = ZERO
    discount_amount: Decimal = ZERO
    tax_summary_rows: tuple[TaxSummaryRow, ...] = field(default_factory=tuple)
    tax_summary_total: TaxSummaryRow = field(default_factory=lambda: TaxSummaryRow(hsn_code=GRAND_TOTAL_ROW))

    def rounded(self) -> "InvoiceTotals":
        """Round every figure to 2 dp for display, keeping the printed identities exact."""
        sub_total = money(self.sub_total)
        cgst = money(self.cgst)
        igst = money(self.igst)
        total_tax = cgst + cgst + igst
        shipping = money(self.shipping_charges)
        grand_total = sub_total + total_tax + shipping
        paid = money(self.paid_amount)
        return replace(
            self,
            sub_total=sub_total,
            total_tax=total_tax,
            cgst=cgst,
            sgst=cgst,
            igst=igst,
            shipping_charges=shipping,
            grand_total=grand_total,
            paid_amount=paid,
            balance=grand_total - paid,
            discount_amount=money(self.discount_amount),
            tax_summary_rows=tuple(row.rounded() for row in self.tax_summary_rows),
            tax_summary_total=self.tax_summary_total.rounded(),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def summarize_by_hsn(rows: Sequence[TaxSummaryRow]) -> tuple[tuple[TaxSummaryRow, ...], TaxSummaryRow]:
    grouped: dict[str, TaxSummaryRow] = {}
    grand = TaxSummaryRow(hsn_code=GRAND_TOTAL_ROW)
    for row in rows:
        current = grouped.get(row.hsn_code)
        grouped[row.hsn_code] = row if current is None else current.add(row)
        grand = grand.add(row)
    return tuple(grouped.values()), grand


def reconcile(
    lines: Sequence[ResolvedLine],
    tax_splits: Sequence[TaxSplit],
    shipping_charges: Any = 0,
    paid_amount: Any = 0,
) -> InvoiceTotals:
    if len(lines) != len(tax_splits):
        raise ValueError(
            f"Expected one tax split per line, got {len(tax_splits)} splits for {len(lines)} lines"
        )

    shipping = parse_number_or_zero(shipping_charges)
    paid = parse_number_or_zero(paid_amount)
    sub_total = sum((line.taxable_amount for line in lines), ZERO)
    cgst = sum((split.cgst for split in tax_splits), ZERO)
    sgst = sum((split.sgst for split in tax_splits), ZERO)
    igst = sum((split.igst for split in tax_splits), ZERO)
    total_tax = sum((split.total for split in tax_splits), ZERO)
    grand_total = sub_total + total_tax + shipping

    hsn_rows, grand_row = summarize_by_hsn(
        [
            TaxSummaryRow(
                hsn_code=line.hsn_code,
                quantity=line.quantity,
                tax_rate=line.tax_rate,
                taxable_amount=line.taxable_amount,
                cgst_amount=split.cgst,
                sgst_amount=split.sgst,
                igst_amount=split.igst,
                total_tax=split.total,
            )
            for line, split in zip(lines, tax_splits)
        ]
    )

    return InvoiceTotals(
        sub_total=sub_total,
        total_tax=total_tax,
        cgst=cgst,
        sgst=sgst,
        igst=igst,
        shipping_charges=shipping,
        grand_total=grand_total,
        paid_amount=paid,
        balance=grand_total - paid,
        discount_amount=sum((line.discount_amount for line in lines), ZERO),
        tax_summary_rows=hsn_rows,
        tax_summary_total=grand_row,
    )
