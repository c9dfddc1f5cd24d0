from __future__ import annotations

from decimal import Decimal
from typing import Any

from gst_billing.billing import InvoiceComputation, compute_invoice
from gst_billing.coercion import money
from gst_billing.config import Settings
from gst_billing.discounts import DiscountMode
from schemas.invoice_schema import InvoicePayload


def validate_invoice_payload(payload: dict[str, Any]) -> InvoicePayload:
    return InvoicePayload.model_validate(payload)


def evaluate_business_rules(
    payload: InvoicePayload,
    computation: InvoiceComputation,
) -> list[dict[str, Any]]:
    violations: list[dict[str, Any]] = []

    if not payload.items:
        violations.append(
            {
                "code": "empty_cart",
                "severity": "error",
                "message": "invoice requires at least one item",
            }
        )

    bad_lines = [idx for idx, line in enumerate(payload.items, start=1) if line.quantity <= 0]
    if bad_lines:
        violations.append(
            {
                "code": "invalid_quantity",
                "severity": "error",
                "message": "item quantity must be greater than zero",
                "lines": bad_lines,
            }
        )

    customer = payload.customer
    if customer.customer_type == "B2B" and not customer.gstin:
        violations.append(
            {
                "code": "missing_gstin",
                "severity": "error",
                "message": "B2B invoices require the customer's GSTIN",
            }
        )

    if computation.discount_mode is DiscountMode.LINE and payload.discount > 0:
        violations.append(
            {
                "code": "discount_mode_conflict",
                "severity": "warning",
                "message": "header discount is ignored when discount_mode is 'line'",
                "ignored_discount": float(payload.discount),
            }
        )
    elif computation.discount_mode is DiscountMode.HEADER and any(
        line.discount_percent > 0 for line in payload.items
    ):
        violations.append(
            {
                "code": "discount_mode_conflict",
                "severity": "warning",
                "message": "per-line discounts are ignored when discount_mode is 'header'",
            }
        )

    balance = computation.totals.rounded().balance
    if balance < 0:
        violations.append(
            {
                "code": "overpayment",
                "severity": "warning",
                "message": "paid amount exceeds grand total",
                "balance": float(balance),
            }
        )

    return violations


def rounding_drift(computation: InvoiceComputation) -> Decimal:
    """Gap between the printed grand total and the exact grand total rounded once.

    Printed tax is rebuilt from a half-up rounded CGST doubled for SGST, so the
    two can part by a cent on odd half-cent splits.
    """
    totals = computation.totals
    return abs(totals.rounded().grand_total - money(totals.grand_total))


def validate_and_compute(
    payload: dict[str, Any] | InvoicePayload,
    settings: Settings | None = None,
) -> dict[str, Any]:
    active = settings or Settings()
    request = payload if isinstance(payload, InvoicePayload) else validate_invoice_payload(payload)
    computation = compute_invoice(
        request.line_items(),
        seller_state=request.seller_state or active.company_state,
        buyer_state=request.customer.state,
        header_discount=request.discount,
        discount_mode=request.discount_mode or active.default_discount_mode,
        shipping_charges=request.shipping_charges,
        paid_amount=request.paid_amount,
        exact_cents=active.exact_cent_allocation,
    )
    violations = evaluate_business_rules(request, computation)
    drift = rounding_drift(computation)
    if drift > active.amount_tolerance:
        violations.append(
            {
                "code": "amount_mismatch",
                "severity": "error",
                "message": "printed grand_total differs from the exact total by more than the tolerance",
                "drift": float(drift),
            }
        )
    is_valid = not any(v["severity"] == "error" for v in violations)
    return {
        "request": request,
        "computation": computation,
        "violations": violations,
        "is_valid": is_valid,
    }
