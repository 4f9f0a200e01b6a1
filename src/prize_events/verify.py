from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict

from .distribution import build_ranking
from .engine import PrizeEventEngine
from .errors import EventStillOpen


def build_audit(engine: PrizeEventEngine, event_id: int) -> Dict[str, Any]:
    """Audit document for a closed event: enough to recompute every credit."""
    event = engine.get_event(event_id)
    if event.is_open:
        raise EventStillOpen(event_id)

    tallies = engine.tally.tallies(event_id)
    ranking = build_ranking(tallies, event.prize_amount, event.winners_distribution)
    total_credited = sum(r.credit for r in ranking)

    return {
        "metadata": {
            "tool": "prize-events",
            "version": "1.0.0",
            "generated_at_utc": datetime.now(timezone.utc).isoformat(),
            "event_id": event.id,
            "organizer": event.organizer,
            "prize_token": event.prize_token,
            "prize_amount": str(event.prize_amount),
            "reference_block": event.reference_block,
            "winners_distribution": list(event.winners_distribution),
        },
        # Rank order; votes are what a verifier re-ranks from.
        "ranking": [
            {
                "address": r.address,
                "votes": str(r.votes),
                "rank": r.rank,
                "credit": str(r.credit),
            }
            for r in ranking
        ],
        "total_credited": str(total_credited),
        "residue": str(event.prize_amount - total_credited),
    }


def verify_audit(audit_path: str) -> Dict[str, Any]:
    with open(audit_path, "r", encoding="utf-8") as f:
        audit = json.load(f)

    meta = audit["metadata"]
    prize_amount = int(meta["prize_amount"])
    distribution = [int(p) for p in meta["winners_distribution"]]
    recorded = audit["ranking"]

    tallies = {r["address"]: int(r["votes"]) for r in recorded}
    if len(tallies) != len(recorded):
        raise RuntimeError("Duplicate participant in audit ranking")

    ranking = build_ranking(tallies, prize_amount, distribution)
    for expected, got in zip(recorded, ranking):
        if expected["address"] != got.address or int(expected["rank"]) != got.rank:
            raise RuntimeError(
                f"Ranking mismatch at rank {got.rank}: audit={expected['address']} "
                f"recomputed={got.address}"
            )
        if int(expected["credit"]) != got.credit:
            raise RuntimeError(
                f"Credit mismatch for {got.address}: audit={expected['credit']} "
                f"recomputed={got.credit}"
            )

    total = sum(r.credit for r in ranking)
    if int(audit["total_credited"]) != total:
        raise RuntimeError(
            f"Total credited mismatch: audit={audit['total_credited']} recomputed={total}"
        )
    if int(audit["residue"]) != prize_amount - total:
        raise RuntimeError(
            f"Residue mismatch: audit={audit['residue']} recomputed={prize_amount - total}"
        )

    return {
        "ok": True,
        "event_id": int(meta["event_id"]),
        "winners": [r.address for r in ranking if r.credit > 0],
        "total_credited": total,
        "residue": prize_amount - total,
    }
