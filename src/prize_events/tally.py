from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, Iterable, Tuple

from .errors import (
    InvalidAmount,
    NotAValidEvent,
    NotValidParticipantForEvent,
    VoterNotAllowed,
)
from .ledger import LedgerClient
from .models import VoteCast
from .registry import EventRegistry

log = logging.getLogger(__name__)


class VoteTally:
    """Accumulated vote weight per (event, participant)."""

    def __init__(self, registry: EventRegistry, ledger: LedgerClient, vote_token: str) -> None:
        self.registry = registry
        self.ledger = ledger
        self.vote_token = vote_token
        self._votes: Dict[int, Dict[str, int]] = defaultdict(dict)

    def vote(self, voter: str, event_id: int, participant: str, weight: int) -> int:
        """Spend weight vote-tokens on participant. Returns the participant's new total."""
        with self.registry.locked(event_id) as event:
            if not event.is_open:
                raise NotAValidEvent(event_id, f"event {event_id} is closed to voting")
            if not event.open_voting and voter not in event.voters:
                raise VoterNotAllowed(event_id, voter)
            if participant not in event.participants:
                raise NotValidParticipantForEvent(event_id, participant)
            if not isinstance(weight, int) or isinstance(weight, bool) or weight <= 0:
                raise InvalidAmount("weight", weight)

            # Spent weight moves into escrow for good; there is no refund path.
            self.ledger.debit(voter, self.vote_token, weight)
            votes = self._votes[event_id]
            total = votes.get(participant, 0) + weight
            votes[participant] = total

        log.info("Vote: event=%d voter=%s participant=%s weight=%d", event_id, voter, participant, weight)
        self.registry.notifier.emit(VoteCast(event_id, voter, participant, weight))
        return total

    def get_tally_for(self, event_id: int, participant: str) -> int:
        self.registry.get_event(event_id)
        return self._votes.get(event_id, {}).get(participant, 0)

    def tallies(self, event_id: int) -> Dict[str, int]:
        """Votes for every participant of the event, zero where none were cast."""
        event = self.registry.get_event(event_id)
        votes = self._votes.get(event_id, {})
        return {p: votes.get(p, 0) for p in event.participants}

    def items(self) -> Iterable[Tuple[int, str, int]]:
        for event_id, votes in sorted(self._votes.items()):
            for participant, weight in sorted(votes.items()):
                yield event_id, participant, weight

    def load(self, rows: Iterable[Tuple[int, str, int]]) -> None:
        self._votes = defaultdict(dict)
        for event_id, participant, weight in rows:
            self._votes[int(event_id)][participant] = int(weight)
