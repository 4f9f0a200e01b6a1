from __future__ import annotations

import fcntl
import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from .engine import PrizeEventEngine
from .ledger import InMemoryLedger

log = logging.getLogger(__name__)

STATE_VERSION = 1


def lock_path(path: str) -> Path:
    p = Path(path)
    return p.with_name(p.name + ".lock")


@contextmanager
def state_lock(path: str) -> Iterator[None]:
    """
    Exclusive POSIX lock on a sidecar file next to the state file.

    Held across a whole read-modify-write so concurrent CLI processes
    serialise instead of overwriting each other's updates.
    """
    target = lock_path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "a+") as f:
        fcntl.flock(f.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)


def read_state(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        return {}
    with open(p, "r", encoding="utf-8") as f:
        data = json.load(f)
    version = data.get("version")
    if version != STATE_VERSION:
        raise RuntimeError(f"Unsupported state file version {version!r} in {path}")
    return data


def load_local_ledger(data: Dict[str, Any], escrow_account: str) -> InMemoryLedger:
    raw = data.get("ledger")
    if not raw:
        return InMemoryLedger(escrow_account=escrow_account)
    ledger = InMemoryLedger.restore(raw)
    if ledger.escrow_account != escrow_account:
        raise RuntimeError(
            f"State file escrow account {ledger.escrow_account} does not match {escrow_account}"
        )
    return ledger


def restore_engine(data: Dict[str, Any], engine: PrizeEventEngine) -> PrizeEventEngine:
    if data.get("engine"):
        engine.restore(data["engine"])
    return engine


def save_state(path: str, engine: PrizeEventEngine, ledger: Optional[InMemoryLedger] = None) -> None:
    """Write the whole state atomically (temp file + rename)."""
    state = {
        "version": STATE_VERSION,
        "engine": engine.snapshot(),
        "ledger": ledger.snapshot() if ledger is not None else None,
    }
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".state-", suffix=".json", dir=str(target.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(state, f, indent=2)
        os.replace(tmp, target)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise
    log.debug("State written to %s", target)
