from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from gst_billing.billing import InvoiceComputation
from gst_billing.config import Settings
from gst_billing.reports import gst_returns, jsonable, return_invoices
from gst_billing.states import GST_STATE_CODES, extract_state_code
from gst_billing.tax_engine import TaxType, classify_tax_type
from gst_billing.validation import validate_and_compute
from gst_billing.words import amount_in_words
from schemas.invoice_schema import GstReturnRequest, InvoicePayload, InvoiceTotalsOut, TaxTypeRequest

logger = logging.getLogger(__name__)


def create_billing_app(settings: Settings | None = None) -> FastAPI:
    active = settings or Settings()
    app = FastAPI(title="GST Invoice Engine API", version="0.1.0")

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/states")
    def states() -> dict[str, Any]:
        return {
            "company_state": active.company_state,
            "states": [
                {"code": code, "name": name, "label": f"{code}-{name}"}
                for code, name in GST_STATE_CODES.items()
            ],
        }

    @app.post("/tax-type")
    def tax_type(request: TaxTypeRequest) -> dict[str, Any]:
        seller_state = request.seller_state or active.company_state
        result = classify_tax_type(seller_state, request.buyer_state)
        return {
            "tax_type": result.value,
            "is_inter_state": result is TaxType.IGST,
            "seller_state_code": extract_state_code(seller_state),
            "buyer_state_code": extract_state_code(request.buyer_state),
        }

    @app.post("/invoices/preview")
    def preview(payload: InvoicePayload) -> dict[str, Any]:
        result = validate_and_compute(payload, active)
        return {
            **render_computation(result["computation"]),
            "violations": result["violations"],
            "is_valid": result["is_valid"],
        }

    @app.post("/invoices", status_code=201, response_model=None)
    def create_invoice(payload: InvoicePayload) -> dict[str, Any] | JSONResponse:
        result = validate_and_compute(payload, active)
        if not result["is_valid"]:
            logger.info(
                "Rejected invoice: %s",
                ",".join(v["code"] for v in result["violations"] if v["severity"] == "error"),
            )
            return JSONResponse(
                status_code=422,
                content={
                    "detail": "Invoice failed business rules",
                    "violations": result["violations"],
                },
            )
        computation: InvoiceComputation = result["computation"]
        logger.info(
            "Accepted invoice customer=%s tax_type=%s grand_total=%s",
            payload.customer.name or "walk-in",
            computation.tax_type.value,
            computation.totals.rounded().grand_total,
        )
        return {
            "invoice": payload.model_dump(mode="json"),
            **render_computation(computation),
            "violations": result["violations"],
        }

    @app.post("/gst-returns")
    def gst_return_summaries(request: GstReturnRequest) -> dict[str, Any]:
        invoices = return_invoices(request.invoices, active)
        logger.info("Built GST return summaries for %d invoices", len(invoices))
        return jsonable(gst_returns(invoices, gstin=active.company_gstin))

    return app


def render_computation(computation: InvoiceComputation) -> dict[str, Any]:
    totals = InvoiceTotalsOut.from_totals(computation.totals)
    return {
        "tax_type": computation.tax_type.value,
        "is_inter_state": computation.is_inter_state,
        "discount_mode": computation.discount_mode.value,
        "totals": totals.model_dump(),
        "amount_in_words": amount_in_words(computation.totals.rounded().grand_total),
    }
