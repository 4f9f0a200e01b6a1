from __future__ import annotations

from typing import Iterable, List

import base58

from .errors import InvalidAccount

ACCOUNT_KEY_LEN = 32


def parse_account(account: str) -> bytes:
    """
    Decode a base58 account identifier into its 32 raw key bytes.
    Raises InvalidAccount for anything that is not exactly a 32-byte key.
    """
    if not isinstance(account, str) or not account:
        raise InvalidAccount(account, "expected a non-empty base58 string")
    try:
        raw = base58.b58decode(account)
    except ValueError as e:
        raise InvalidAccount(account, f"not base58 ({e})") from e
    if len(raw) != ACCOUNT_KEY_LEN:
        raise InvalidAccount(account, f"decodes to {len(raw)} bytes, expected {ACCOUNT_KEY_LEN}")
    return raw


def require_account(account: str) -> str:
    parse_account(account)
    return account


def account_from_bytes(raw: bytes) -> str:
    if len(raw) != ACCOUNT_KEY_LEN:
        raise InvalidAccount(raw.hex(), f"expected {ACCOUNT_KEY_LEN} key bytes")
    return base58.b58encode(raw).decode("ascii")


def normalize_accounts(accounts: Iterable[str]) -> List[str]:
    """Validate every identifier and drop repeats, keeping first-seen order."""
    out: List[str] = []
    seen = set()
    for acct in accounts:
        require_account(acct)
        if acct in seen:
            continue
        seen.add(acct)
        out.append(acct)
    return out


def load_account_list(path: str | None) -> List[str]:
    if not path:
        return []
    out: List[str] = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            w = line.strip()
            if not w or w.startswith("#"):
                continue
            out.append(w)
    return out
