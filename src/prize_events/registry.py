"""
Event registry: owns the sequential table of prize events and drives the
Open -> Closed transition.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from threading import Lock
from typing import Dict, Iterator, List, Optional, Sequence

from .accounts import normalize_accounts, require_account
from .errors import (
    EventClosed,
    InvalidAmount,
    InvalidDistribution,
    NotAValidEvent,
    OnlyOwnerAllowed,
    TooManyParticipants,
)
from .ledger import LedgerClient
from .locking import KeyedLocks
from .models import EventStatus, PrizeEvent, PrizeEventClosed, PrizeEventCreated
from .notifications import Notifier
from .project_constants import MAX_PARTICIPANTS_PER_SETUP, PERCENT_TOTAL

log = logging.getLogger(__name__)


def validate_distribution(distribution: Sequence[int], participant_count: int) -> None:
    dist = list(distribution)
    if any(not isinstance(p, int) or isinstance(p, bool) or p < 0 for p in dist):
        raise InvalidDistribution(dist, "percentages must be non-negative integers")
    if sum(dist) != PERCENT_TOTAL:
        raise InvalidDistribution(dist, f"sums to {sum(dist)}, expected {PERCENT_TOTAL}")
    if not 1 <= len(dist) <= participant_count:
        raise InvalidDistribution(
            dist,
            f"{len(dist)} paid ranks for {participant_count} participants",
        )


class EventRegistry:
    def __init__(self, ledger: LedgerClient, notifier: Optional[Notifier] = None) -> None:
        self.ledger = ledger
        self.notifier = notifier or Notifier()
        self._events: List[PrizeEvent] = []
        self._id_lock = Lock()
        self._event_locks = KeyedLocks()

    @contextmanager
    def locked(self, event_id: int) -> Iterator[PrizeEvent]:
        """Hold the event's mutation lock and yield the event."""
        event = self._lookup(event_id)
        with self._event_locks.hold(("event", event_id)):
            yield event

    def _lookup(self, event_id: int) -> PrizeEvent:
        if (
            not isinstance(event_id, int)
            or isinstance(event_id, bool)
            or not 0 <= event_id < len(self._events)
        ):
            raise NotAValidEvent(event_id)
        return self._events[event_id]

    def setup_event(
        self,
        caller: str,
        prize_amount: int,
        token: str,
        distribution: Sequence[int],
        voters: Sequence[str],
        participants: Sequence[str],
        reference_block: int = 0,
    ) -> int:
        require_account(caller)
        if len(participants) > MAX_PARTICIPANTS_PER_SETUP:
            raise TooManyParticipants(len(participants), MAX_PARTICIPANTS_PER_SETUP)
        roster = normalize_accounts(participants)
        allow_list = normalize_accounts(voters)
        validate_distribution(distribution, len(roster))
        if not isinstance(prize_amount, int) or isinstance(prize_amount, bool) or prize_amount <= 0:
            raise InvalidAmount("prize_amount", prize_amount)

        with self._id_lock:
            # Ledger failures propagate as-is; nothing has been recorded yet.
            self.ledger.debit(caller, token, prize_amount)
            event = PrizeEvent(
                id=len(self._events),
                organizer=caller,
                prize_amount=prize_amount,
                prize_token=token,
                reference_block=int(reference_block),
                winners_distribution=tuple(distribution),
                participants=tuple(roster),
                voters=tuple(allow_list),
            )
            self._events.append(event)

        log.info(
            "Event %d created by %s: prize=%d %s, %d participants, distribution=%s",
            event.id, caller, prize_amount, token, len(roster), list(distribution),
        )
        self.notifier.emit(PrizeEventCreated(event.id, prize_amount, event.reference_block))
        return event.id

    def close_event(self, caller: str, event_id: int, distributor) -> Dict[str, int]:
        """
        Close an open event. distributor.distribute(event) runs exactly once and
        must credit the claims ledger in full before the status flips.
        """
        with self.locked(event_id) as event:
            if caller != event.organizer:
                raise OnlyOwnerAllowed(event_id, caller)
            if not event.is_open:
                raise EventClosed(event_id)
            credits = distributor.distribute(event)
            event.status = EventStatus.CLOSED

        log.info("Event %d closed; credited %d winner(s)", event_id, len(credits))
        self.notifier.emit(PrizeEventClosed(event_id, dict(credits)))
        return credits

    def get_event(self, event_id: int) -> PrizeEvent:
        event = self._lookup(event_id)
        return PrizeEvent.from_dict(event.to_dict())

    def list_events(self) -> List[PrizeEvent]:
        return [PrizeEvent.from_dict(e.to_dict()) for e in self._events]

    @property
    def next_id(self) -> int:
        return len(self._events)

    def load(self, events: Sequence[PrizeEvent]) -> None:
        with self._id_lock:
            ids = [e.id for e in events]
            if ids != list(range(len(ids))):
                raise ValueError(f"event table is not sequential from 0: {ids}")
            self._events = list(events)
