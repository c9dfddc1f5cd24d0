from __future__ import annotations

from dataclasses import dataclass, fields, is_dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Sequence

from gst_billing.billing import InvoiceComputation
from gst_billing.coercion import ZERO, money
from gst_billing.config import Settings
from gst_billing.states import extract_state_code
from gst_billing.totals import InvoiceTotals, TaxSummaryRow, summarize_by_hsn
from gst_billing.validation import validate_and_compute
from schemas.invoice_schema import StoredInvoicePayload

# Unregistered buyers above this invoice value are reported invoice-wise (B2CL).
B2CL_THRESHOLD = Decimal("250000")

_AMOUNT_KEYS = ("txval", "iamt", "camt", "samt")


@dataclass(frozen=True)
class ReturnInvoice:
    """One issued invoice as it enters a GST return."""

    invoice_number: str
    invoice_date: str
    customer_gstin: str | None
    place_of_supply: str
    computation: InvoiceComputation


def _rate_buckets(computation: InvoiceComputation) -> dict[Decimal, dict[str, Decimal]]:
    buckets: dict[Decimal, dict[str, Decimal]] = {}
    for line, split in zip(computation.lines, computation.tax_splits):
        bucket = buckets.setdefault(line.tax_rate, {key: ZERO for key in _AMOUNT_KEYS})
        bucket["txval"] += line.taxable_amount
        bucket["iamt"] += split.igst
        bucket["camt"] += split.cgst
        bucket["samt"] += split.sgst
    return buckets


def _rounded_amounts(amounts: dict[str, Decimal]) -> dict[str, Decimal]:
    return {key: money(amounts[key]) for key in _AMOUNT_KEYS}


def _invoice_entry(invoice: ReturnInvoice) -> dict[str, Any]:
    buckets = _rate_buckets(invoice.computation)
    return {
        "inum": invoice.invoice_number,
        "idt": invoice.invoice_date,
        "val": money(invoice.computation.totals.grand_total),
        "pos": invoice.place_of_supply,
        "itms": [{"rt": rate, **_rounded_amounts(buckets[rate])} for rate in sorted(buckets)],
    }


def gstr1_summary(invoices: Iterable[ReturnInvoice]) -> dict[str, Any]:
    """Sort invoices into the GSTR-1 B2B, B2CL and B2CS sections.

    Registered buyers go to B2B grouped by GSTIN. Unregistered buyers go to
    B2CL (grouped by place of supply) when the invoice value exceeds
    ``B2CL_THRESHOLD``, otherwise into B2CS rows summed per place of supply,
    rate and supply type.
    """
    b2b: dict[str, list[dict[str, Any]]] = {}
    b2cl: dict[str, list[dict[str, Any]]] = {}
    b2cs: dict[tuple[str, Decimal, str], dict[str, Decimal]] = {}
    gross = ZERO

    for invoice in invoices:
        value = invoice.computation.totals.grand_total
        gross += value
        if invoice.customer_gstin:
            b2b.setdefault(invoice.customer_gstin, []).append(_invoice_entry(invoice))
        elif value > B2CL_THRESHOLD:
            b2cl.setdefault(invoice.place_of_supply, []).append(_invoice_entry(invoice))
        else:
            supply_type = "INTER" if invoice.computation.is_inter_state else "INTRA"
            for rate, amounts in _rate_buckets(invoice.computation).items():
                row = b2cs.setdefault(
                    (invoice.place_of_supply, rate, supply_type),
                    {key: ZERO for key in _AMOUNT_KEYS},
                )
                for key in _AMOUNT_KEYS:
                    row[key] += amounts[key]

    return {
        "gt": money(gross),
        "b2b": [{"ctin": ctin, "inv": entries} for ctin, entries in b2b.items()],
        "b2cl": [{"pos": pos, "inv": entries} for pos, entries in b2cl.items()],
        "b2cs": [
            {"sply_ty": supply_type, "pos": pos, "rt": rate, **_rounded_amounts(b2cs[(pos, rate, supply_type)])}
            for pos, rate, supply_type in sorted(b2cs)
        ],
        "counts": {
            "b2b": sum(len(entries) for entries in b2b.values()),
            "b2cl": sum(len(entries) for entries in b2cl.values()),
            # rate-wise rows, not invoices
            "b2cs": len(b2cs),
        },
    }


def gstr3b_summary(invoices: Iterable[InvoiceTotals]) -> dict[str, Any]:
    """Outward supply totals for a GSTR-3B return over stored invoice totals."""
    taxable = igst = cgst = sgst = ZERO
    count = 0
    for totals in invoices:
        taxable += totals.sub_total
        igst += totals.igst
        cgst += totals.cgst
        sgst += totals.sgst
        count += 1
    return {
        "invoice_count": count,
        "outward_taxable_supplies": money(taxable),
        "igst": money(igst),
        "cgst": money(cgst),
        "sgst": money(sgst),
        "exempt_nil": Decimal("0.00"),
    }


def merge_hsn_summaries(invoices: Iterable[InvoiceTotals]) -> dict[str, Any]:
    rows: list[TaxSummaryRow] = []
    for totals in invoices:
        rows.extend(totals.tax_summary_rows)
    merged, grand = summarize_by_hsn(rows)
    return {
        "count": len(merged),
        "rows": [row.rounded() for row in sorted(merged, key=lambda r: r.hsn_code)],
        "total": grand.rounded(),
    }


def return_invoices(payloads: Iterable[StoredInvoicePayload], settings: Settings) -> list[ReturnInvoice]:
    """Recompute stored invoices so every return figure comes from the same pipeline."""
    invoices: list[ReturnInvoice] = []
    for payload in payloads:
        computation = validate_and_compute(payload, settings)["computation"]
        invoices.append(
            ReturnInvoice(
                invoice_number=payload.invoice_number,
                invoice_date=payload.invoice_date,
                customer_gstin=payload.customer.gstin,
                place_of_supply=extract_state_code(payload.customer.state) or settings.company_state_code,
                computation=computation,
            )
        )
    return invoices


def gst_returns(invoices: Sequence[ReturnInvoice], *, gstin: str) -> dict[str, Any]:
    totals = [invoice.computation.totals for invoice in invoices]
    return {
        "gstin": gstin,
        "gstr1": gstr1_summary(invoices),
        "gstr3b": gstr3b_summary(totals),
        "hsn": merge_hsn_summaries(totals),
    }


def jsonable(value: Any) -> Any:
    """Convert report values (Decimals, summary rows) into plain JSON types."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {str(key): jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(item) for item in value]
    return value
