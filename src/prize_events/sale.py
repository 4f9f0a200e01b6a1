from __future__ import annotations

import logging
from typing import Optional

from .errors import InvalidAmount
from .ledger import LedgerClient
from .models import VotingTokensPurchased
from .notifications import Notifier
from .project_constants import BASE_TOKEN, VOTE_TOKEN, VOTE_UNIT_PRICE

log = logging.getLogger(__name__)


class VotingTokenSale:
    """Sells vote weight for base-token payments at a fixed unit price."""

    def __init__(
        self,
        ledger: LedgerClient,
        vote_token: str = VOTE_TOKEN,
        base_token: str = BASE_TOKEN,
        unit_price: int = VOTE_UNIT_PRICE,
        notifier: Optional[Notifier] = None,
    ) -> None:
        if unit_price <= 0:
            raise InvalidAmount("unit_price", unit_price)
        self.ledger = ledger
        self.vote_token = vote_token
        self.base_token = base_token
        self.unit_price = unit_price
        self.notifier = notifier or Notifier()

    def quote(self, payment: int) -> int:
        return payment // self.unit_price

    def purchase(self, buyer: str, payment: int) -> int:
        if not isinstance(payment, int) or isinstance(payment, bool) or payment <= 0:
            raise InvalidAmount("payment", payment)
        minted = self.quote(payment)
        if minted == 0:
            raise InvalidAmount("payment", payment, f"must cover at least one unit price ({self.unit_price})")

        self.ledger.debit(buyer, self.base_token, payment)
        try:
            self.ledger.mint(buyer, self.vote_token, minted)
        except BaseException:
            # hand the payment and its allowance back; a purchase either mints or costs nothing
            self.ledger.reverse_debit(buyer, self.base_token, payment)
            raise

        log.info("Sale: %s paid %d %s for %d %s", buyer, payment, self.base_token, minted, self.vote_token)
        self.notifier.emit(VotingTokensPurchased(buyer, payment, minted))
        return minted
