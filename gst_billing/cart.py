from __future__ import annotations

from typing import Any, Mapping

from gst_billing.line_items import LineItem

# Field names used by the billing screen, the POS screen and stored invoices.
DEFAULT_LINE_ALIASES: dict[str, list[str]] = {
    "rate": ["rate", "price", "unitPrice", "unit_price"],
    "quantity": ["quantity", "qty"],
    "tax_rate": ["taxRate", "taxSlab", "tax_rate", "tax_slab"],
    "discount_percent": ["discountPercent", "discount_percent", "discount"],
    "price_type": ["priceType", "price_type", "inputType"],
    "hsn_code": ["hsnCode", "hsn_code", "hsn"],
    "name": ["name", "description"],
}


def _pick(data: Mapping[str, Any], aliases: list[str]) -> Any:
    for alias in aliases:
        if alias in data and data[alias] not in (None, ""):
            return data[alias]
    return None


def pick_line_fields(
    raw: Mapping[str, Any],
    aliases: dict[str, list[str]] | None = None,
) -> dict[str, Any]:
    """Resolve a raw cart row into canonical line fields.

    Values missing on the row fall back to the nested ``item`` catalogue entry.
    """
    active = aliases or DEFAULT_LINE_ALIASES
    catalogue = raw.get("item")
    fallback: Mapping[str, Any] = catalogue if isinstance(catalogue, Mapping) else {}
    fields: dict[str, Any] = {}
    for field_name, names in active.items():
        value = _pick(raw, names)
        if value is None:
            value = _pick(fallback, names)
        fields[field_name] = value
    return fields


def line_item_from_mapping(raw: Mapping[str, Any]) -> LineItem:
    return LineItem.build(**pick_line_fields(raw))


def line_items_from_cart(rows: Any) -> list[LineItem]:
    if not isinstance(rows, list):
        return []
    return [line_item_from_mapping(row) for row in rows if isinstance(row, Mapping)]
