from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path

from gst_billing.discounts import DiscountMode
from gst_billing.states import GST_STATE_CODES, extract_state_code


def _parse_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    company_name: str = "Shaikh Carpets And Mats"
    company_gstin: str = "33BVRPS2849Q2ZG"
    # `NN-State Name`, the seller's registered state
    company_state: str = "33-Tamil Nadu"
    default_discount_mode: DiscountMode = DiscountMode.LINE
    # Round header-discount shares to whole cents, remainder on the last line
    exact_cent_allocation: bool = False
    amount_tolerance: Decimal = Decimal("0.01")
    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @property
    def company_state_code(self) -> str:
        return extract_state_code(self.company_state)

    @classmethod
    def from_env(cls) -> "Settings":
        company_state = os.getenv("COMPANY_STATE", cls.company_state).strip()
        if extract_state_code(company_state) not in GST_STATE_CODES:
            raise ValueError(
                "COMPANY_STATE must be formatted as NN-StateName with a known GST state code"
            )

        mode_env = os.getenv("DEFAULT_DISCOUNT_MODE", DiscountMode.LINE.value).strip().lower()
        if mode_env not in {mode.value for mode in DiscountMode}:
            raise ValueError("DEFAULT_DISCOUNT_MODE must be one of: line, header")

        tolerance_env = os.getenv("AMOUNT_TOLERANCE", "0.01").strip()
        try:
            tolerance = Decimal(tolerance_env)
        except InvalidOperation as exc:
            raise ValueError(f"AMOUNT_TOLERANCE must be a number, got {tolerance_env!r}") from exc
        if not tolerance.is_finite() or tolerance < 0:
            raise ValueError("AMOUNT_TOLERANCE must be a non-negative number")

        port_env = os.getenv("API_PORT", "8000").strip()
        if not port_env.isdigit() or not 0 < int(port_env) < 65536:
            raise ValueError(f"API_PORT must be a valid TCP port, got {port_env!r}")

        return cls(
            company_name=os.getenv("COMPANY_NAME", cls.company_name).strip(),
            company_gstin=os.getenv("COMPANY_GSTIN", cls.company_gstin).strip().upper(),
            company_state=company_state,
            default_discount_mode=DiscountMode(mode_env),
            exact_cent_allocation=_parse_bool(os.getenv("EXACT_CENT_ALLOCATION")),
            amount_tolerance=tolerance,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            api_host=os.getenv("API_HOST", "0.0.0.0").strip(),
            api_port=int(port_env),
        )


def load_dotenv(path: str | Path = ".env") -> None:
    env_path = Path(path)
    if not env_path.exists():
        return
    for line in env_path.read_text(encoding="utf-8").splitlines():
        entry = line.strip()
        if not entry or entry.startswith("#") or "=" not in entry:
            continue
        key, value = entry.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        os.environ.setdefault(key, value)
