from __future__ import annotations

from typing import Any

from gst_billing.coercion import money

_ONES = (
    "", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine",
    "Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen",
    "Seventeen", "Eighteen", "Nineteen",
)
_TENS = ("", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety")

# Indian grouping: crore = 10^7, lakh = 10^5.
_SCALES = ((10_000_000, "Crore"), (100_000, "Lakh"), (1_000, "Thousand"))


def _below_thousand(n: int) -> list[str]:
    words: list[str] = []
    if n >= 100:
        words += [_ONES[n // 100], "Hundred"]
        n %= 100
    if n >= 20:
        words.append(_TENS[n // 10])
        n %= 10
    if n > 0:
        words.append(_ONES[n])
    return words


def _integer_words(n: int) -> list[str]:
    words: list[str] = []
    for size, label in _SCALES:
        if n >= size:
            count = n // size
            words += (_integer_words(count) if count >= 1000 else _below_thousand(count)) + [label]
            n %= size
    return words + _below_thousand(n)


def amount_in_words(amount: Any) -> str:
    """Spell a rupee amount in the Indian numbering system, e.g. for invoice footers."""
    value = money(amount)
    negative = value < 0
    value = abs(value)
    rupees = int(value)
    paise = int((value - rupees) * 100)

    words = _integer_words(rupees) or ["Zero"]
    text = " ".join(words) + " Rupees"
    if paise:
        text += " and " + " ".join(_below_thousand(paise)) + " Paise"
    text += " Only"
    return f"Minus {text}" if negative else text
