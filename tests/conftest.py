import pytest

from prize_events.accounts import account_from_bytes
from prize_events.engine import PrizeEventEngine
from prize_events.ledger import InMemoryLedger, Role
from prize_events.project_constants import ONE_TOKEN, VOTE_TOKEN

PRIZE_TOKEN = "TEST"
TOTAL_SUPPLY = 100_000 * ONE_TOKEN


def make_account(n: int) -> str:
    return account_from_bytes(bytes([n]) * 32)


# Named accounts, one per role in a typical event.
ORGANIZER = make_account(1)
SPONSOR = make_account(2)
VOTER1 = make_account(3)
VOTER2 = make_account(4)
VOTER3 = make_account(5)
PARTICIPANT1 = make_account(6)
PARTICIPANT2 = make_account(7)
PARTICIPANT3 = make_account(8)
PARTICIPANT4 = make_account(9)
NON_VOTER = make_account(10)


@pytest.fixture
def ledger():
    ledger = InMemoryLedger()
    ledger.issue(ORGANIZER, PRIZE_TOKEN, TOTAL_SUPPLY)
    ledger.grant_role(VOTE_TOKEN, ledger.escrow_account, Role.MINTER)
    return ledger


@pytest.fixture
def notifications():
    return []


@pytest.fixture
def engine(ledger, notifications):
    engine = PrizeEventEngine(ledger)
    engine.subscribe(notifications.append)
    return engine


@pytest.fixture
def approved(ledger):
    ledger.approve(ORGANIZER, PRIZE_TOKEN, TOTAL_SUPPLY)
    return ledger


def give_votes(ledger, voter: str, weight: int) -> None:
    """Put weight vote tokens in voter's wallet and let the engine pull them."""
    ledger.issue(voter, VOTE_TOKEN, weight)
    ledger.approve(voter, VOTE_TOKEN, ledger.allowance(voter, VOTE_TOKEN) + weight)


def setup_default_event(engine, voters=(), participants=(PARTICIPANT1, PARTICIPANT2, PARTICIPANT3)):
    return engine.setup_event(
        ORGANIZER,
        ONE_TOKEN,
        PRIZE_TOKEN,
        [50, 30, 20],
        list(voters),
        list(participants),
        reference_block=2_000_000,
    )


