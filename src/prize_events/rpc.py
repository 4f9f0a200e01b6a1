from __future__ import annotations

import itertools
import logging
from typing import Any, Dict, List, Optional

import httpx

from .errors import (
    InsufficientAllowance,
    InsufficientBalance,
    LedgerError,
    LedgerRpcError,
    TransferFailed,
    Unauthorized,
)

log = logging.getLogger(__name__)


def _ledger_error_from_rpc(error: Dict[str, Any]) -> LedgerError:
    """Map a JSON-RPC error object onto the ledger error it reports."""
    data = error.get("data") if isinstance(error, dict) else None
    if not isinstance(data, dict):
        return LedgerRpcError(error)

    reason = data.get("reason")
    account = str(data.get("account", ""))
    token = str(data.get("token", ""))
    needed = int(data.get("needed", 0))
    if reason == "InsufficientAllowance":
        return InsufficientAllowance(account, token, needed, int(data.get("allowed", 0)))
    if reason == "InsufficientBalance":
        return InsufficientBalance(account, token, needed, int(data.get("available", 0)))
    if reason == "Unauthorized":
        return Unauthorized(account, token, str(data.get("role", "")))
    if reason == "TransferFailed":
        return TransferFailed(account, token, needed, str(error.get("message", "")))
    return LedgerRpcError(error)


class HttpLedgerClient:
    """LedgerClient backed by a remote ledger service speaking JSON-RPC 2.0."""

    def __init__(
        self,
        rpc_url: str,
        escrow_account: str,
        timeout_s: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.escrow_account = escrow_account
        self.client = httpx.Client(timeout=timeout_s, transport=transport)
        self._ids = itertools.count(1)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "HttpLedgerClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def debit(self, account: str, token: str, amount: int) -> None:
        self._call("ledger_debit", [account, token, str(amount), self.escrow_account])

    def credit(self, account: str, token: str, amount: int) -> None:
        self._call("ledger_credit", [account, token, str(amount), self.escrow_account])

    def reverse_debit(self, account: str, token: str, amount: int) -> None:
        self._call("ledger_reverseDebit", [account, token, str(amount), self.escrow_account])

    def mint(self, account: str, token: str, amount: int) -> None:
        self._call("ledger_mint", [account, token, str(amount), self.escrow_account])

    def burn(self, account: str, token: str, amount: int) -> None:
        self._call("ledger_burn", [account, token, str(amount), self.escrow_account])

    def balance_of(self, account: str, token: str) -> int:
        """Returns the raw balance; the service encodes big ints as strings."""
        data = self._call("ledger_balanceOf", [account, token])
        return int(data["result"])

    def _call(self, method: str, params: List[Any]) -> Dict[str, Any]:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        log.debug("RPC %s %s", method, params)
        try:
            resp = self.client.post(self.rpc_url, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            # transport and HTTP status failures surface as ledger errors
            raise LedgerRpcError({"message": f"{method}: {e}"}) from e
        if "error" in data:
            raise _ledger_error_from_rpc(data["error"])
        return data
