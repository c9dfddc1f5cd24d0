from __future__ import annotations

from copy import deepcopy
from decimal import Decimal

import pytest
from pydantic import ValidationError

from gst_billing.config import Settings
from gst_billing.discounts import DiscountMode
from gst_billing.validation import rounding_drift, validate_and_compute, validate_invoice_payload


def _valid_payload() -> dict:
    return {
        "customer": {
            "firmName": "Sharma Traders",
            "state": "27-Maharashtra",
            "gstNo": "27abcde1234f1z5",
            "customerType": "b2b",
        },
        "items": [
            {"name": "Carpet", "hsnCode": "5703", "rate": 1000, "quantity": 2, "taxSlab": 18},
        ],
        "discount": 0,
        "shippingCharges": 0,
        "paidAmount": 0,
        "paymentMethod": "UPI",
        "billingType": "B2B",
    }


def _settings() -> Settings:
    return Settings(company_state="27-Maharashtra")


def test_validate_invoice_payload_accepts_camel_case_front_end_payload() -> None:
    request = validate_invoice_payload(_valid_payload())
    assert request.customer.name == "Sharma Traders"
    assert request.customer.gstin == "27ABCDE1234F1Z5"
    assert request.customer.customer_type == "B2B"
    assert request.items[0].hsn_code == "5703"
    assert request.payment_method == "UPI"


def test_validate_invoice_payload_accepts_snake_case() -> None:
    request = validate_invoice_payload(
        {"items": [{"rate": "10", "quantity": "1"}], "shipping_charges": "25", "paid_amount": "5"}
    )
    assert float(request.shipping_charges) == 25.0
    assert float(request.paid_amount) == 5.0


def test_non_numeric_fields_coerce_instead_of_failing() -> None:
    payload = _valid_payload()
    payload["shippingCharges"] = "free"
    payload["items"][0]["taxSlab"] = None
    request = validate_invoice_payload(payload)
    assert request.shipping_charges == 0
    assert request.items[0].tax_rate == 0


def test_unknown_customer_type_is_rejected() -> None:
    payload = _valid_payload()
    payload["customer"]["customerType"] = "wholesale"
    with pytest.raises(ValidationError) as exc_info:
        validate_invoice_payload(payload)
    assert any("customer" in ".".join(map(str, e["loc"])) for e in exc_info.value.errors())


def test_validate_and_compute_valid_intra_state_invoice() -> None:
    result = validate_and_compute(_valid_payload(), _settings())
    totals = result["computation"].totals
    assert result["is_valid"]
    assert result["violations"] == []
    assert float(totals.cgst) == 180.0
    assert float(totals.grand_total) == 2360.0


def test_empty_cart_is_an_error_but_still_computes() -> None:
    payload = _valid_payload()
    payload["items"] = []
    result = validate_and_compute(payload, _settings())
    assert not result["is_valid"]
    assert any(v["code"] == "empty_cart" for v in result["violations"])
    assert result["computation"].totals.grand_total == 0


def test_b2b_without_gstin_is_an_error() -> None:
    payload = _valid_payload()
    payload["customer"]["gstNo"] = "  "
    result = validate_and_compute(payload, _settings())
    assert any(v["code"] == "missing_gstin" and v["severity"] == "error" for v in result["violations"])


def test_zero_quantity_line_is_an_error() -> None:
    payload = _valid_payload()
    payload["items"].append({"rate": 10, "quantity": 0, "taxSlab": 5})
    result = validate_and_compute(payload, _settings())
    violation = next(v for v in result["violations"] if v["code"] == "invalid_quantity")
    assert violation["lines"] == [2]


@pytest.mark.parametrize(
    ("mode", "mutate"),
    [
        ("line", lambda p: p.update({"discount": 100})),
        ("header", lambda p: p["items"][0].update({"discount": 10})),
    ],
)
def test_ignored_discount_is_flagged_as_warning(mode: str, mutate: object) -> None:
    payload = deepcopy(_valid_payload())
    payload["discountMode"] = mode
    mutate(payload)
    result = validate_and_compute(payload, _settings())
    assert result["is_valid"]
    assert any(v["code"] == "discount_mode_conflict" for v in result["violations"])


def test_overpayment_is_a_warning() -> None:
    payload = _valid_payload()
    payload["paidAmount"] = 3000
    result = validate_and_compute(payload, _settings())
    assert result["is_valid"]
    assert any(v["code"] == "overpayment" for v in result["violations"])
    assert float(result["computation"].totals.balance) == -640.0


def test_default_discount_mode_comes_from_settings() -> None:
    payload = _valid_payload()
    payload["discount"] = 200
    settings = Settings(company_state="27-Maharashtra", default_discount_mode=DiscountMode.HEADER)
    result = validate_and_compute(payload, settings)
    assert float(result["computation"].totals.sub_total) == 1800.0


def test_payload_seller_state_overrides_settings() -> None:
    payload = _valid_payload()
    payload["sellerState"] = "06-Haryana"
    result = validate_and_compute(payload, _settings())
    assert float(result["computation"].totals.igst) == 360.0


def _inclusive_half_cent_payload() -> dict:
    payload = _valid_payload()
    # 1.05 incl. 5% -> taxable 1.00, cgst 0.025 printed as 0.03 twice
    payload["items"] = [{"rate": "1.05", "quantity": 1, "taxSlab": 5, "priceType": "Inclusive"}]
    return payload


def test_printed_total_within_tolerance_passes() -> None:
    result = validate_and_compute(_inclusive_half_cent_payload(), _settings())
    assert result["is_valid"]
    assert rounding_drift(result["computation"]) == Decimal("0.01")
    assert not any(v["code"] == "amount_mismatch" for v in result["violations"])


def test_printed_total_drift_beyond_tolerance_is_an_error() -> None:
    settings = Settings(company_state="27-Maharashtra", amount_tolerance=Decimal("0"))
    result = validate_and_compute(_inclusive_half_cent_payload(), settings)
    assert not result["is_valid"]
    violation = next(v for v in result["violations"] if v["code"] == "amount_mismatch")
    assert violation["drift"] == 0.01


def test_whole_cent_invoice_has_no_drift() -> None:
    settings = Settings(company_state="27-Maharashtra", amount_tolerance=Decimal("0"))
    result = validate_and_compute(_valid_payload(), settings)
    assert result["is_valid"]
    assert rounding_drift(result["computation"]) == 0


def test_exact_cent_allocation_comes_from_settings() -> None:
    payload = _valid_payload()
    payload["discountMode"] = "header"
    payload["discount"] = 1
    payload["items"] = [{"rate": 1, "quantity": 1, "taxSlab": 0} for _ in range(3)]
    settings = Settings(company_state="27-Maharashtra", exact_cent_allocation=True)
    lines = validate_and_compute(payload, settings)["computation"].lines
    assert [line.discount_amount for line in lines] == [Decimal("0.33"), Decimal("0.33"), Decimal("0.34")]
