"""
PrizeEventEngine wires the registry, tally, distribution and claims together
and exposes the operations a calling layer (CLI, API) uses.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from .claims import ClaimsLedger
from .distribution import DistributionEngine
from .ledger import LedgerClient
from .models import PrizeEvent
from .notifications import Notifier
from .project_constants import BASE_TOKEN, VOTE_TOKEN, VOTE_UNIT_PRICE
from .registry import EventRegistry
from .sale import VotingTokenSale
from .tally import VoteTally


class PrizeEventEngine:
    def __init__(
        self,
        ledger: LedgerClient,
        vote_token: str = VOTE_TOKEN,
        base_token: str = BASE_TOKEN,
        unit_price: int = VOTE_UNIT_PRICE,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.ledger = ledger
        self.notifier = notifier or Notifier()
        self.registry = EventRegistry(ledger, self.notifier)
        self.tally = VoteTally(self.registry, ledger, vote_token)
        self.claims = ClaimsLedger(ledger, self.notifier)
        self.distribution = DistributionEngine(self.tally, self.claims)
        self.sale = VotingTokenSale(ledger, vote_token, base_token, unit_price, self.notifier)

    @property
    def vote_token(self) -> str:
        return self.tally.vote_token

    def subscribe(self, listener):
        return self.notifier.subscribe(listener)

    # ---------- operations ----------
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
        return self.registry.setup_event(
            caller, prize_amount, token, distribution, voters, participants, reference_block
        )

    def vote(self, voter: str, event_id: int, participant: str, weight: int) -> int:
        return self.tally.vote(voter, event_id, participant, weight)

    def close_event(self, caller: str, event_id: int) -> Dict[str, int]:
        return self.registry.close_event(caller, event_id, self.distribution)

    def claim(self, participant: str, token: str) -> int:
        return self.claims.claim(participant, token)

    def purchase_voting_tokens(self, buyer: str, payment: int) -> int:
        return self.sale.purchase(buyer, payment)

    def get_event(self, event_id: int) -> PrizeEvent:
        return self.registry.get_event(event_id)

    def list_events(self) -> List[PrizeEvent]:
        return self.registry.list_events()

    def get_tally_for(self, event_id: int, participant: str) -> int:
        return self.tally.get_tally_for(event_id, participant)

    def get_claim_balance(self, participant: str, token: str) -> int:
        return self.claims.get_claim_balance(participant, token)

    # ---------- persisted state ----------
    def snapshot(self) -> Dict[str, Any]:
        return {
            "events": [e.to_dict() for e in self.registry.list_events()],
            "tallies": [
                {"event_id": ev, "participant": p, "votes": str(w)}
                for ev, p, w in self.tally.items()
            ],
            "claims": [
                {"participant": p, "token": t, "amount": str(a)}
                for p, t, a in self.claims.items()
            ],
        }

    def restore(self, data: Dict[str, Any]) -> None:
        self.registry.load([PrizeEvent.from_dict(e) for e in data.get("events", [])])
        self.tally.load(
            (int(r["event_id"]), r["participant"], int(r["votes"]))
            for r in data.get("tallies", [])
        )
        self.claims.load(
            (r["participant"], r["token"], int(r["amount"])) for r in data.get("claims", [])
        )
