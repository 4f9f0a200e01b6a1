from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple


class EventStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass
class PrizeEvent:
    id: int
    organizer: str
    prize_amount: int
    prize_token: str
    reference_block: int
    winners_distribution: Tuple[int, ...]
    participants: Tuple[str, ...]
    voters: Tuple[str, ...] = ()
    status: EventStatus = EventStatus.OPEN

    @property
    def is_open(self) -> bool:
        return self.status is EventStatus.OPEN

    @property
    def open_voting(self) -> bool:
        # empty voters list means anyone may vote
        return not self.voters

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "organizer": self.organizer,
            "prize_amount": str(self.prize_amount),
            "prize_token": self.prize_token,
            "reference_block": self.reference_block,
            "winners_distribution": list(self.winners_distribution),
            "participants": list(self.participants),
            "voters": list(self.voters),
            "status": self.status.value,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "PrizeEvent":
        return PrizeEvent(
            id=int(d["id"]),
            organizer=d["organizer"],
            prize_amount=int(d["prize_amount"]),
            prize_token=d["prize_token"],
            reference_block=int(d.get("reference_block", 0)),
            winners_distribution=tuple(int(p) for p in d["winners_distribution"]),
            participants=tuple(d["participants"]),
            voters=tuple(d.get("voters", [])),
            status=EventStatus(d.get("status", EventStatus.OPEN.value)),
        )


# ---------- notifications ----------
@dataclass(frozen=True)
class PrizeEventCreated:
    event_id: int
    prize_amount: int
    reference_block: int


@dataclass(frozen=True)
class VoteCast:
    event_id: int
    voter: str
    participant: str
    weight: int


@dataclass(frozen=True)
class PrizeEventClosed:
    event_id: int
    credits: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class PrizeClaimed:
    participant: str
    token: str
    amount: int


@dataclass(frozen=True)
class VotingTokensPurchased:
    buyer: str
    payment: int
    minted: int
