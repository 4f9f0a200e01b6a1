"""
Failure taxonomy for the prize-event engine.

Every error aborts the operation that raised it with no partial state change.
Ledger errors are raised by the ledger collaborator and pass through untouched.
"""

from __future__ import annotations

from typing import Any, Iterable


class PrizeEventError(Exception):
    """Root of every engine failure."""


class ValidationError(PrizeEventError):
    pass


class AuthorizationError(PrizeEventError):
    pass


class StateError(PrizeEventError):
    pass


class LedgerError(PrizeEventError):
    pass


# ---------- validation ----------
class TooManyParticipants(ValidationError):
    def __init__(self, count: int, limit: int) -> None:
        super().__init__(
            f"{count} participants supplied; at most {limit} allowed per setup call"
        )
        self.count = count
        self.limit = limit


class InvalidDistribution(ValidationError):
    def __init__(self, distribution: Iterable[int], reason: str) -> None:
        self.distribution = list(distribution)
        super().__init__(f"winners distribution {self.distribution} rejected: {reason}")


class InvalidAmount(ValidationError):
    def __init__(self, field: str, value: Any, reason: str = "must be a positive integer amount") -> None:
        super().__init__(f"{field} {reason}, got {value!r}")
        self.field = field
        self.value = value


class InvalidAccount(ValidationError):
    def __init__(self, account: Any, reason: str) -> None:
        super().__init__(f"invalid account {account!r}: {reason}")
        self.account = account


# ---------- authorization ----------
class OnlyOwnerAllowed(AuthorizationError):
    def __init__(self, event_id: int, caller: str) -> None:
        super().__init__(f"only the organizer of event {event_id} may close it (caller={caller})")
        self.event_id = event_id
        self.caller = caller


class VoterNotAllowed(AuthorizationError):
    def __init__(self, event_id: int, voter: str) -> None:
        super().__init__(f"{voter} is not on the voters list of event {event_id}")
        self.event_id = event_id
        self.voter = voter


class NotValidParticipantForEvent(AuthorizationError):
    def __init__(self, event_id: int, participant: str) -> None:
        super().__init__(f"{participant} is not a participant of event {event_id}")
        self.event_id = event_id
        self.participant = participant


# ---------- state ----------
class NotAValidEvent(StateError):
    def __init__(self, event_id: Any, reason: str = "") -> None:
        super().__init__(reason or f"no prize event with id {event_id!r}")
        self.event_id = event_id


class EventClosed(StateError):
    def __init__(self, event_id: int) -> None:
        super().__init__(f"event {event_id} is closed")
        self.event_id = event_id


class EventStillOpen(StateError):
    def __init__(self, event_id: int) -> None:
        super().__init__(f"event {event_id} is still open; no distribution exists yet")
        self.event_id = event_id


# ---------- ledger ----------
class InsufficientAllowance(LedgerError):
    def __init__(self, account: str, token: str, needed: int, allowed: int) -> None:
        super().__init__(
            f"insufficient allowance: {account} approved {allowed} {token}, needs {needed}"
        )
        self.account = account
        self.token = token


class InsufficientBalance(LedgerError):
    def __init__(self, account: str, token: str, needed: int, available: int) -> None:
        super().__init__(
            f"insufficient balance: {account} holds {available} {token}, needs {needed}"
        )
        self.account = account
        self.token = token


class Unauthorized(LedgerError):
    def __init__(self, account: str, token: str, role: str) -> None:
        super().__init__(f"{account} lacks the {role} role on {token}")
        self.account = account
        self.token = token


class TransferFailed(LedgerError):
    def __init__(self, account: str, token: str, amount: int, cause: str = "") -> None:
        msg = f"transfer of {amount} {token} to {account} failed"
        if cause:
            msg += f": {cause}"
        super().__init__(msg)
        self.account = account
        self.token = token
        self.amount = amount


class LedgerRpcError(LedgerError):
    def __init__(self, error: Any) -> None:
        super().__init__(f"ledger RPC error: {error}")
        self.error = error
