from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from gst_billing.api import render_computation
from gst_billing.config import Settings, load_dotenv
from gst_billing.logger import configure_logging
from gst_billing.reports import gst_returns, jsonable, return_invoices
from gst_billing.validation import validate_and_compute
from schemas.invoice_schema import GstReturnRequest

logger = logging.getLogger(__name__)


def _read_json(path: str) -> Any:
    text = sys.stdin.read() if path == "-" else Path(path).read_text(encoding="utf-8")
    return json.loads(text)


def _read_payload(path: str) -> dict[str, Any]:
    payload = _read_json(path)
    if isinstance(payload, list):
        # A bare list is a cart with no invoice-level fields.
        return {"items": payload}
    if not isinstance(payload, dict):
        raise ValueError("Invoice input must be a JSON object or a list of cart lines")
    return payload


def run_compute(
    input_path: str,
    *,
    settings: Settings,
    seller_state: str | None = None,
    buyer_state: str | None = None,
) -> int:
    payload = _read_payload(input_path)
    if seller_state:
        payload["seller_state"] = seller_state
    if buyer_state:
        customer = payload.get("customer")
        payload["customer"] = {**(customer if isinstance(customer, dict) else {}), "state": buyer_state}

    try:
        result = validate_and_compute(payload, settings)
    except ValidationError as exc:
        logger.error("Invalid invoice payload: %s", exc)
        return 2

    output = {
        **render_computation(result["computation"]),
        "violations": result["violations"],
        "is_valid": result["is_valid"],
    }
    print(json.dumps(output, indent=2, ensure_ascii=False))
    return 0


def run_reports(input_path: str, *, settings: Settings) -> int:
    try:
        request = GstReturnRequest.model_validate(_read_json(input_path))
    except ValidationError as exc:
        logger.error("Invalid invoice list: %s", exc)
        return 2

    invoices = return_invoices(request.invoices, settings)
    report = gst_returns(invoices, gstin=settings.company_gstin)
    print(json.dumps(jsonable(report), indent=2, ensure_ascii=False))
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="GST Invoice Engine")
    subparsers = parser.add_subparsers(dest="command", required=True)

    compute = subparsers.add_parser("compute", help="Compute invoice totals for a JSON cart")
    compute.add_argument("--input", default="-", help="Path to invoice JSON, or - for stdin")
    compute.add_argument("--seller-state", default=None, help="Override COMPANY_STATE, e.g. 27-Maharashtra")
    compute.add_argument("--buyer-state", default=None, help="Customer state, e.g. 06-Haryana")

    reports = subparsers.add_parser("reports", help="GSTR-1, GSTR-3B and HSN summaries for stored invoices")
    reports.add_argument("--input", default="-", help="Path to a JSON list of invoices, or - for stdin")

    subparsers.add_parser("serve", help="Run the billing API")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    load_dotenv()
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    if args.command == "compute":
        return run_compute(
            args.input,
            settings=settings,
            seller_state=args.seller_state,
            buyer_state=args.buyer_state,
        )
    if args.command == "reports":
        return run_reports(args.input, settings=settings)
    if args.command == "serve":
        from gst_billing.api_main import main as serve_main

        serve_main()
        return 0
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
