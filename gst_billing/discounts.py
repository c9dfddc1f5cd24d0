from __future__ import annotations

from decimal import ROUND_DOWN, Decimal
from enum import Enum
from typing import Any, Sequence

from gst_billing.coercion import ZERO, money, non_negative
from gst_billing.line_items import ResolvedLine

_CENT = Decimal("0.01")


class DiscountMode(str, Enum):
    """Which of the two discount mechanisms an invoice uses.

    ``line`` applies each line's own percentage and ignores any header amount;
    ``header`` spreads one order-level amount across lines pro rata and ignores
    per-line percentages. The two are never combined.
    """

    LINE = "line"
    HEADER = "header"

    @classmethod
    def parse(cls, value: Any, default: "DiscountMode | None" = None) -> "DiscountMode":
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        for mode in cls:
            if mode.value == text:
                return mode
        return default or cls.LINE


def allocation_shares(
    item_totals: Sequence[Decimal],
    header_discount: Any,
    *,
    exact_cents: bool = False,
) -> list[Decimal]:
    total_before = sum(item_totals, ZERO)
    if total_before <= 0:
        return [ZERO for _ in item_totals]
    discount = min(non_negative(header_discount), total_before)
    shares = [item_total * discount / total_before for item_total in item_totals]
    if not exact_cents:
        return shares

    # Only whole cents are handed out, never more than the discount itself.
    target = discount.quantize(_CENT, rounding=ROUND_DOWN)
    shares = [money(share) for share in shares]
    remainder = target - sum(shares, ZERO)
    if remainder:
        last = max(i for i, item_total in enumerate(item_totals) if item_total > 0)
        shares[last] += remainder
    return shares


def allocate_header_discount(
    lines: Sequence[ResolvedLine],
    header_discount: Any,
    *,
    exact_cents: bool = False,
) -> list[ResolvedLine]:
    """Spread an order-level discount across lines in proportion to ``item_total``.

    The allocation replaces whatever per-line discount the lines carried: each
    line is rebuilt from ``item_total - allocated``. Inclusive lines have tax
    extracted from the discounted gross.
    """
    shares = allocation_shares(
        [line.item_total for line in lines],
        header_discount,
        exact_cents=exact_cents,
    )
    return [line.with_gross(line.item_total - share, share) for line, share in zip(lines, shares)]
