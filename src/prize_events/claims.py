"""
Claims ledger: amounts owed per (participant, token) until withdrawn.

Balances are only ever raised by a closing distribution and only ever zeroed by
a successful claim.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Mapping, Optional, Tuple

from .errors import LedgerError, TransferFailed
from .ledger import LedgerClient
from .locking import KeyedLocks
from .models import PrizeClaimed
from .notifications import Notifier

log = logging.getLogger(__name__)


class ClaimsLedger:
    def __init__(self, ledger: LedgerClient, notifier: Optional[Notifier] = None) -> None:
        self.ledger = ledger
        self.notifier = notifier or Notifier()
        self._balances: Dict[Tuple[str, str], int] = {}
        self._locks = KeyedLocks()

    def get_claim_balance(self, participant: str, token: str) -> int:
        return self._balances.get((participant, token), 0)

    def credit_many(self, token: str, credits: Mapping[str, int]) -> None:
        """Add every credit under one hold of all affected keys."""
        keys = [(p, token) for p in credits]
        with self._locks.hold_all(keys):
            for participant, amount in credits.items():
                if amount < 0:
                    raise ValueError(f"negative credit {amount} for {participant}")
            for participant, amount in credits.items():
                key = (participant, token)
                self._balances[key] = self._balances.get(key, 0) + amount

    def claim(self, participant: str, token: str) -> int:
        """
        Pay out the participant's whole balance in token; returns the amount paid.

        A zero balance returns 0 without touching the ledger. The balance is zeroed
        before the transfer is requested and restored if the transfer fails.
        """
        key = (participant, token)
        with self._locks.hold(key):
            amount = self._balances.get(key, 0)
            if amount == 0:
                log.debug("Claim by %s in %s: nothing owed", participant, token)
                return 0

            self._balances[key] = 0
            try:
                self.ledger.credit(participant, token, amount)
            except BaseException as e:
                self._balances[key] = amount
                if isinstance(e, LedgerError) and not isinstance(e, TransferFailed):
                    raise TransferFailed(participant, token, amount, str(e)) from e
                raise

        log.info("Claim: %s received %d %s", participant, amount, token)
        self.notifier.emit(PrizeClaimed(participant, token, amount))
        return amount

    def items(self) -> Iterable[Tuple[str, str, int]]:
        for (participant, token), amount in sorted(self._balances.items()):
            if amount:
                yield participant, token, amount

    def load(self, rows: Iterable[Tuple[str, str, int]]) -> None:
        self._balances = {(p, t): int(a) for p, t, a in rows}
