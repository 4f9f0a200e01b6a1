"""
Fungible-token ledger collaborator.

The engine only ever talks to a LedgerClient. Role grants (who may mint or burn)
are checked inside the ledger; the engine never inspects them.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from enum import Enum
from threading import RLock
from typing import Any, Dict, Protocol, Set, Tuple

from .errors import (
    InsufficientAllowance,
    InsufficientBalance,
    InvalidAmount,
    Unauthorized,
)
from .project_constants import DEFAULT_ESCROW_ACCOUNT

log = logging.getLogger(__name__)


class Role(str, Enum):
    MINTER = "minter"
    BURNER = "burner"
    NONE = "none"


class LedgerClient(Protocol):
    escrow_account: str

    def debit(self, account: str, token: str, amount: int) -> None:
        """Pull amount of token from account into escrow."""

    def credit(self, account: str, token: str, amount: int) -> None:
        """Pay amount of token out of escrow to account."""

    def reverse_debit(self, account: str, token: str, amount: int) -> None:
        """Undo a debit: return amount to account and restore its allowance."""

    def mint(self, account: str, token: str, amount: int) -> None:
        ...

    def burn(self, account: str, token: str, amount: int) -> None:
        ...

    def balance_of(self, account: str, token: str) -> int:
        ...


def _check_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise InvalidAmount("amount", amount)


class InMemoryLedger:
    """
    Process-local ledger: balances, allowances granted to the escrow account,
    and per-token role grants. Used by tests and by the CLI when no LEDGER_URL is set.
    """

    def __init__(self, escrow_account: str = DEFAULT_ESCROW_ACCOUNT) -> None:
        self.escrow_account = escrow_account
        self._lock = RLock()
        self._balances: Dict[Tuple[str, str], int] = defaultdict(int)
        self._allowances: Dict[Tuple[str, str], int] = defaultdict(int)
        self._roles: Dict[Tuple[str, str], Set[Role]] = defaultdict(set)

    # ---------- administration ----------
    def grant_role(self, token: str, account: str, role: Role) -> None:
        with self._lock:
            if role is Role.NONE:
                self._roles.pop((token, account), None)
            else:
                self._roles[(token, account)].add(role)

    def has_role(self, token: str, account: str, role: Role) -> bool:
        with self._lock:
            return role in self._roles.get((token, account), set())

    def issue(self, account: str, token: str, amount: int) -> None:
        """Administrative supply: bypasses role checks (genesis funding, tests)."""
        _check_amount(amount)
        with self._lock:
            self._balances[(account, token)] += amount
        log.info("Issued %d %s to %s", amount, token, account)

    def approve(self, owner: str, token: str, amount: int) -> None:
        """Allow the escrow account to pull up to amount of token from owner."""
        _check_amount(amount)
        with self._lock:
            self._allowances[(owner, token)] = amount

    def allowance(self, owner: str, token: str) -> int:
        with self._lock:
            return self._allowances.get((owner, token), 0)

    def transfer(self, sender: str, recipient: str, token: str, amount: int) -> None:
        _check_amount(amount)
        with self._lock:
            self._take(sender, token, amount)
            self._balances[(recipient, token)] += amount

    # ---------- LedgerClient ----------
    def debit(self, account: str, token: str, amount: int) -> None:
        _check_amount(amount)
        with self._lock:
            allowed = self._allowances.get((account, token), 0)
            if allowed < amount:
                raise InsufficientAllowance(account, token, amount, allowed)
            self._take(account, token, amount)
            self._allowances[(account, token)] = allowed - amount
            self._balances[(self.escrow_account, token)] += amount
        log.debug("debit %s %s from %s", amount, token, account)

    def credit(self, account: str, token: str, amount: int) -> None:
        _check_amount(amount)
        with self._lock:
            self._take(self.escrow_account, token, amount)
            self._balances[(account, token)] += amount
        log.debug("credit %s %s to %s", amount, token, account)

    def reverse_debit(self, account: str, token: str, amount: int) -> None:
        _check_amount(amount)
        with self._lock:
            self._take(self.escrow_account, token, amount)
            self._balances[(account, token)] += amount
            self._allowances[(account, token)] += amount
        log.debug("reverse debit %s %s to %s", amount, token, account)

    def mint(self, account: str, token: str, amount: int) -> None:
        _check_amount(amount)
        with self._lock:
            if not self.has_role(token, self.escrow_account, Role.MINTER):
                raise Unauthorized(self.escrow_account, token, Role.MINTER.value)
            self._balances[(account, token)] += amount

    def burn(self, account: str, token: str, amount: int) -> None:
        _check_amount(amount)
        with self._lock:
            if not self.has_role(token, self.escrow_account, Role.BURNER):
                raise Unauthorized(self.escrow_account, token, Role.BURNER.value)
            self._take(account, token, amount)

    def balance_of(self, account: str, token: str) -> int:
        with self._lock:
            return self._balances.get((account, token), 0)

    def _take(self, account: str, token: str, amount: int) -> None:
        have = self._balances.get((account, token), 0)
        if have < amount:
            raise InsufficientBalance(account, token, amount, have)
        self._balances[(account, token)] = have - amount

    # ---------- persistence ----------
    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "escrow_account": self.escrow_account,
                "balances": [
                    {"account": a, "token": t, "amount": str(v)}
                    for (a, t), v in sorted(self._balances.items())
                    if v
                ],
                "allowances": [
                    {"account": a, "token": t, "amount": str(v)}
                    for (a, t), v in sorted(self._allowances.items())
                    if v
                ],
                "roles": [
                    {"token": t, "account": a, "role": r.value}
                    for (t, a), roles in sorted(self._roles.items())
                    for r in sorted(roles, key=lambda x: x.value)
                ],
            }

    @classmethod
    def restore(cls, data: Dict[str, Any]) -> "InMemoryLedger":
        ledger = cls(escrow_account=data.get("escrow_account") or DEFAULT_ESCROW_ACCOUNT)
        for b in data.get("balances", []):
            ledger._balances[(b["account"], b["token"])] = int(b["amount"])
        for a in data.get("allowances", []):
            ledger._allowances[(a["account"], a["token"])] = int(a["amount"])
        for r in data.get("roles", []):
            ledger._roles[(r["token"], r["account"])].add(Role(r["role"]))
        return ledger
