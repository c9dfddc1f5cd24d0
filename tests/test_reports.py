from __future__ import annotations

from decimal import Decimal

from gst_billing.billing import compute_invoice
from gst_billing.line_items import LineItem
from gst_billing.config import Settings
from gst_billing.reports import (
    ReturnInvoice,
    gst_returns,
    gstr1_summary,
    gstr3b_summary,
    jsonable,
    merge_hsn_summaries,
    return_invoices,
)
from schemas.invoice_schema import GstReturnRequest


def _totals(buyer_state: str, *items: LineItem):
    return compute_invoice(list(items), seller_state="33-Tamil Nadu", buyer_state=buyer_state).totals


def test_gstr3b_summary_adds_up_invoices() -> None:
    invoices = [
        _totals("33-Tamil Nadu", LineItem.build(rate=1000, quantity=1, tax_rate=18, hsn_code="5703")),
        _totals("29-Karnataka", LineItem.build(rate=500, quantity=2, tax_rate=12, hsn_code="9403")),
    ]
    summary = gstr3b_summary(invoices)
    assert summary["invoice_count"] == 2
    assert summary["outward_taxable_supplies"] == Decimal("2000.00")
    assert summary["cgst"] == Decimal("90.00")
    assert summary["sgst"] == Decimal("90.00")
    assert summary["igst"] == Decimal("120.00")
    assert summary["exempt_nil"] == 0


def test_merge_hsn_summaries_across_invoices() -> None:
    invoices = [
        _totals("33-Tamil Nadu", LineItem.build(rate=100, quantity=2, tax_rate=18, hsn_code="5703")),
        _totals(
            "29-Karnataka",
            LineItem.build(rate=100, quantity=1, tax_rate=18, hsn_code="5703"),
            LineItem.build(rate=40, quantity=5, tax_rate=5, hsn_code="1006"),
        ),
    ]
    merged = merge_hsn_summaries(invoices)
    assert merged["count"] == 2
    assert [row.hsn_code for row in merged["rows"]] == ["1006", "5703"]
    carpets = merged["rows"][1]
    assert carpets.quantity == Decimal("3.00")
    assert carpets.taxable_amount == Decimal("300.00")
    assert carpets.cgst_amount == Decimal("18.00")
    assert carpets.igst_amount == Decimal("18.00")
    assert carpets.total_tax == Decimal("54.00")
    assert merged["total"].taxable_amount == Decimal("500.00")


def test_empty_period_reports_zeros() -> None:
    assert gstr3b_summary([])["outward_taxable_supplies"] == 0
    assert merge_hsn_summaries([])["count"] == 0


def _issued(number: str, buyer_state: str, *items: LineItem, gstin: str | None = None) -> ReturnInvoice:
    computation = compute_invoice(list(items), seller_state="33-Tamil Nadu", buyer_state=buyer_state)
    return ReturnInvoice(
        invoice_number=number,
        invoice_date="2024-04-10",
        customer_gstin=gstin,
        place_of_supply=buyer_state[:2],
        computation=computation,
    )


def _period() -> list[ReturnInvoice]:
    return [
        _issued("INV-1", "29-Karnataka", LineItem.build(rate=1000, quantity=1, tax_rate=18), gstin="29AAACG1234K1Z2"),
        _issued("INV-2", "29-Karnataka", LineItem.build(rate=500, quantity=1, tax_rate=12), gstin="29AAACG1234K1Z2"),
        _issued("INV-3", "29-Karnataka", LineItem.build(rate=250000, quantity=1, tax_rate=18)),
        _issued(
            "INV-4",
            "33-Tamil Nadu",
            LineItem.build(rate=100, quantity=1, tax_rate=18),
            LineItem.build(rate=200, quantity=1, tax_rate=5),
        ),
        _issued("INV-5", "33-Tamil Nadu", LineItem.build(rate=300, quantity=1, tax_rate=18)),
    ]


def test_gstr1_groups_registered_buyers_by_gstin() -> None:
    gstr1 = gstr1_summary(_period())
    assert len(gstr1["b2b"]) == 1
    party = gstr1["b2b"][0]
    assert party["ctin"] == "29AAACG1234K1Z2"
    assert [entry["inum"] for entry in party["inv"]] == ["INV-1", "INV-2"]
    first = party["inv"][0]
    assert first["val"] == Decimal("1180.00")
    assert first["pos"] == "29"
    assert first["itms"] == [
        {"rt": Decimal("18"), "txval": Decimal("1000.00"), "iamt": Decimal("180.00"), "camt": 0, "samt": 0}
    ]


def test_gstr1_large_unregistered_invoices_go_to_b2cl() -> None:
    gstr1 = gstr1_summary(_period())
    assert [(group["pos"], [e["inum"] for e in group["inv"]]) for group in gstr1["b2cl"]] == [("29", ["INV-3"])]
    assert gstr1["b2cl"][0]["inv"][0]["val"] == Decimal("295000.00")


def test_gstr1_small_unregistered_invoices_sum_per_state_and_rate() -> None:
    gstr1 = gstr1_summary(_period())
    assert [(row["pos"], row["rt"], row["sply_ty"]) for row in gstr1["b2cs"]] == [
        ("33", Decimal("5"), "INTRA"),
        ("33", Decimal("18"), "INTRA"),
    ]
    eighteen = gstr1["b2cs"][1]
    assert eighteen["txval"] == Decimal("400.00")
    assert eighteen["camt"] == eighteen["samt"] == Decimal("36.00")
    assert eighteen["iamt"] == 0
    assert gstr1["counts"] == {"b2b": 2, "b2cl": 1, "b2cs": 2}
    assert gstr1["gt"] == Decimal("297422.00")


def test_b2cl_threshold_is_exclusive() -> None:
    at_limit = _issued("INV-9", "29-Karnataka", LineItem.build(rate=250000, quantity=1, tax_rate=0))
    gstr1 = gstr1_summary([at_limit])
    assert gstr1["b2cl"] == []
    assert gstr1["b2cs"][0]["sply_ty"] == "INTER"
    assert gstr1["b2cs"][0]["txval"] == Decimal("250000.00")


def test_return_invoices_recompute_stored_payloads() -> None:
    request = GstReturnRequest.model_validate(
        [
            {
                "invoiceNumber": 101,
                "invoiceDate": "2024-04-02T10:15:00.000Z",
                "customer": {"state": "", "gstNo": "33abcde1234f1z5", "customerType": "B2B"},
                "items": [{"rate": 100, "qty": 2, "taxSlab": 5}],
            }
        ]
    )
    [invoice] = return_invoices(request.invoices, Settings())
    assert invoice.invoice_number == "101"
    assert invoice.invoice_date == "2024-04-02"
    assert invoice.customer_gstin == "33ABCDE1234F1Z5"
    # blank customer state falls back to the seller's
    assert invoice.place_of_supply == "33"
    assert invoice.computation.totals.grand_total == Decimal("210")


def test_gst_returns_bundle_is_json_ready() -> None:
    report = jsonable(gst_returns(_period(), gstin="33BVRPS2849Q2ZG"))
    assert report["gstin"] == "33BVRPS2849Q2ZG"
    assert report["gstr3b"]["invoice_count"] == 5
    assert report["gstr3b"]["outward_taxable_supplies"] == 252100.0
    assert report["hsn"]["rows"][0]["hsn_code"] == "NA"
    assert report["gstr1"]["b2cs"][1]["rt"] == 18.0
