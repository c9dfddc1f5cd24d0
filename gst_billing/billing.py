from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Sequence

from gst_billing.discounts import DiscountMode, allocate_header_discount
from gst_billing.line_items import LineItem, ResolvedLine, resolve_line
from gst_billing.logger import log_invoice_event
from gst_billing.tax_engine import TaxSplit, TaxType, classify_tax_type, compute_tax
from gst_billing.totals import InvoiceTotals, reconcile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InvoiceComputation:
    tax_type: TaxType
    discount_mode: DiscountMode
    lines: tuple[ResolvedLine, ...]
    tax_splits: tuple[TaxSplit, ...]
    totals: InvoiceTotals

    @property
    def is_inter_state(self) -> bool:
        return self.tax_type is TaxType.IGST


def compute_invoice(
    items: Sequence[LineItem],
    *,
    seller_state: str | None,
    buyer_state: str | None,
    header_discount: Any = 0,
    discount_mode: DiscountMode | str = DiscountMode.LINE,
    shipping_charges: Any = 0,
    paid_amount: Any = 0,
    exact_cents: bool = False,
    invoice_ref: str = "-",
) -> InvoiceComputation:
    """Run the full tax pipeline for one invoice.

    Classification happens once, lines are resolved, the header discount is
    allocated when ``discount_mode`` is ``header``, tax is split per line and
    everything is summed. The result is a pure function of the arguments.
    """
    started = time.perf_counter()
    mode = DiscountMode.parse(discount_mode)
    tax_type = classify_tax_type(seller_state, buyer_state)
    inter_state = tax_type is TaxType.IGST

    lines = [resolve_line(item) for item in items]
    if mode is DiscountMode.HEADER:
        lines = allocate_header_discount(lines, header_discount, exact_cents=exact_cents)

    splits = [compute_tax(line.taxable_amount, line.tax_rate, inter_state) for line in lines]
    totals = reconcile(lines, splits, shipping_charges, paid_amount)

    log_invoice_event(
        logger,
        logging.DEBUG,
        "Computed invoice totals",
        invoice_ref=invoice_ref,
        stage="reconcile",
        tax_type=tax_type.value,
        latency_ms=int((time.perf_counter() - started) * 1000),
        outcome="success",
    )
    return InvoiceComputation(
        tax_type=tax_type,
        discount_mode=mode,
        lines=tuple(lines),
        tax_splits=tuple(splits),
        totals=totals,
    )
