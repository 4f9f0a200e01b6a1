from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Mapping, Sequence, Tuple

from .project_constants import PERCENT_TOTAL, TOKEN_DECIMALS

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankedParticipant:
    address: str
    votes: int
    rank: int  # 0-based
    credit: int


def to_tokens(raw_amount: int) -> Decimal:
    value = Decimal(raw_amount).scaleb(-TOKEN_DECIMALS)
    if value == value.to_integral_value():
        return value.quantize(Decimal(1))
    return value.normalize()


def format_tokens(raw_amount: int) -> str:
    return format(to_tokens(raw_amount), "f")


def to_raw(tokens: Decimal | str | int) -> int:
    """Converts a token amount to raw units; sub-unit precision is rejected."""
    value = Decimal(str(tokens)).scaleb(TOKEN_DECIMALS)
    if not value.is_finite():
        raise ValueError(f"{tokens} is not a finite amount")
    if value != value.to_integral_value():
        raise ValueError(f"{tokens} has more than {TOKEN_DECIMALS} decimals")
    return int(value)


def rank_participants(tallies: Mapping[str, int]) -> List[Tuple[str, int]]:
    # Descending votes; equal votes fall back to ascending address so the
    # ranking is reproducible from the tallies alone.
    return sorted(tallies.items(), key=lambda x: (-x[1], x[0]))


def split_prize(prize_amount: int, distribution: Sequence[int], rank: int) -> int:
    if rank >= len(distribution):
        return 0
    return prize_amount * distribution[rank] // PERCENT_TOTAL


def build_ranking(
    tallies: Mapping[str, int],
    prize_amount: int,
    distribution: Sequence[int],
) -> List[RankedParticipant]:
    return [
        RankedParticipant(addr, votes, rank, split_prize(prize_amount, distribution, rank))
        for rank, (addr, votes) in enumerate(rank_participants(tallies))
    ]


def credits_from_ranking(ranking: Sequence[RankedParticipant]) -> Dict[str, int]:
    return {r.address: r.credit for r in ranking if r.credit > 0}


class DistributionEngine:
    """Ranks a closing event's participants and credits the claims ledger."""

    def __init__(self, tally, claims) -> None:
        self.tally = tally
        self.claims = claims

    def compute(self, event) -> List[RankedParticipant]:
        return build_ranking(
            self.tally.tallies(event.id),
            event.prize_amount,
            event.winners_distribution,
        )

    def distribute(self, event) -> Dict[str, int]:
        ranking = self.compute(event)
        credits = credits_from_ranking(ranking)
        self.claims.credit_many(event.prize_token, credits)

        residue = event.prize_amount - sum(credits.values())
        if residue:
            log.warning(
                "Event %d: %d raw %s left undistributed in escrow (rounding)",
                event.id, residue, event.prize_token,
            )
        return credits
