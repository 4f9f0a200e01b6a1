from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .project_constants import BASE_TOKEN, DEFAULT_ESCROW_ACCOUNT, VOTE_TOKEN, VOTE_UNIT_PRICE

DEFAULT_STATE_FILE = "prize_events_state.json"


@dataclass(frozen=True)
class Settings:
    state_file: str
    ledger_url: str | None
    escrow_account: str
    vote_token: str
    base_token: str
    vote_unit_price: int

    @property
    def local_ledger(self) -> bool:
        return not self.ledger_url

    @staticmethod
    def from_env(
        state_file_override: str | None = None,
        ledger_url_override: str | None = None,
    ) -> "Settings":
        load_dotenv()

        price_raw = os.getenv("VOTE_UNIT_PRICE", "").strip()
        try:
            unit_price = int(price_raw) if price_raw else VOTE_UNIT_PRICE
        except ValueError:
            raise RuntimeError(f"VOTE_UNIT_PRICE must be an integer raw amount, got {price_raw!r}")
        if unit_price <= 0:
            raise RuntimeError("VOTE_UNIT_PRICE must be positive.")

        # --ledger-url wins; otherwise LEDGER_URL; otherwise a local file-backed ledger.
        ledger_url = ledger_url_override or os.getenv("LEDGER_URL", "").strip() or None

        return Settings(
            state_file=state_file_override
            or os.getenv("PRIZE_EVENTS_STATE_FILE", "").strip()
            or DEFAULT_STATE_FILE,
            ledger_url=ledger_url,
            escrow_account=os.getenv("ESCROW_ACCOUNT", "").strip() or DEFAULT_ESCROW_ACCOUNT,
            vote_token=os.getenv("VOTE_TOKEN", "").strip() or VOTE_TOKEN,
            base_token=os.getenv("BASE_TOKEN", "").strip() or BASE_TOKEN,
            vote_unit_price=unit_price,
        )
