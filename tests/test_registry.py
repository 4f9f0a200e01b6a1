import pytest

from conftest import (
    NON_VOTER,
    ORGANIZER,
    PARTICIPANT1,
    PARTICIPANT2,
    PARTICIPANT3,
    PRIZE_TOKEN,
    TOTAL_SUPPLY,
    VOTER1,
    make_account,
    setup_default_event,
)
from prize_events.errors import (
    EventClosed,
    InsufficientAllowance,
    InsufficientBalance,
    InvalidAccount,
    InvalidAmount,
    InvalidDistribution,
    NotAValidEvent,
    OnlyOwnerAllowed,
    TooManyParticipants,
    ValidationError,
)
from prize_events.models import EventStatus, PrizeEventClosed, PrizeEventCreated
from prize_events.project_constants import ONE_TOKEN

PARTICIPANTS = [PARTICIPANT1, PARTICIPANT2, PARTICIPANT3]


# ============================================================================
# setup_event
# ============================================================================

def test_setup_without_allowance_fails(engine, ledger):
    with pytest.raises(InsufficientAllowance):
        setup_default_event(engine)
    assert engine.registry.next_id == 0
    assert ledger.balance_of(ORGANIZER, PRIZE_TOKEN) == TOTAL_SUPPLY


def test_setup_without_balance_fails(engine, ledger):
    poor = make_account(42)
    ledger.approve(poor, PRIZE_TOKEN, ONE_TOKEN)
    with pytest.raises(InsufficientBalance):
        engine.setup_event(poor, ONE_TOKEN, PRIZE_TOKEN, [100], [], [PARTICIPANT1])
    assert engine.registry.next_id == 0


def test_too_many_participants(engine, approved):
    participants = [make_account(100 + i) for i in range(11)]
    with pytest.raises(TooManyParticipants):
        engine.setup_event(ORGANIZER, ONE_TOKEN, PRIZE_TOKEN, [50, 30, 20], [], participants)


def test_participant_cap_counts_raw_list(engine, approved):
    # the cap applies to what the caller submitted, duplicates included
    with pytest.raises(TooManyParticipants):
        engine.setup_event(ORGANIZER, ONE_TOKEN, PRIZE_TOKEN, [100], [], [PARTICIPANT1] * 11)


def test_ten_participants_is_allowed(engine, approved):
    participants = [make_account(100 + i) for i in range(10)]
    event_id = engine.setup_event(ORGANIZER, ONE_TOKEN, PRIZE_TOKEN, [50, 30, 20], [], participants)
    assert len(engine.get_event(event_id).participants) == 10


@pytest.mark.parametrize(
    "distribution",
    [[50, 70], [50, 30], [99], [101], [], [50, 60, -10]],
)
def test_invalid_distribution(engine, approved, distribution):
    with pytest.raises(InvalidDistribution):
        engine.setup_event(ORGANIZER, ONE_TOKEN, PRIZE_TOKEN, distribution, [], PARTICIPANTS)
    assert engine.registry.next_id == 0


@pytest.mark.parametrize("distribution", [[100], [50, 50], [50, 30, 20], [34, 33, 33]])
def test_distribution_summing_to_100_is_accepted(engine, approved, distribution):
    assert engine.setup_event(ORGANIZER, ONE_TOKEN, PRIZE_TOKEN, distribution, [], PARTICIPANTS) == 0


def test_distribution_longer_than_roster(engine, approved):
    with pytest.raises(InvalidDistribution):
        engine.setup_event(ORGANIZER, ONE_TOKEN, PRIZE_TOKEN, [50, 30, 20], [], [PARTICIPANT1])


def test_invalid_prize_amount(engine, approved):
    with pytest.raises(InvalidAmount):
        engine.setup_event(ORGANIZER, 0, PRIZE_TOKEN, [100], [], [PARTICIPANT1])


def test_malformed_account_is_rejected(engine, approved):
    with pytest.raises(InvalidAccount) as exc:
        engine.setup_event(ORGANIZER, ONE_TOKEN, PRIZE_TOKEN, [100], [], ["not-base58-0OIl"])
    assert isinstance(exc.value, ValidationError)


def test_setup_escrows_prize_and_records_event(engine, approved, notifications):
    event_id = setup_default_event(engine, voters=[VOTER1])

    assert event_id == 0
    assert approved.balance_of(approved.escrow_account, PRIZE_TOKEN) == ONE_TOKEN
    assert approved.balance_of(ORGANIZER, PRIZE_TOKEN) == TOTAL_SUPPLY - ONE_TOKEN

    event = engine.get_event(0)
    assert event.organizer == ORGANIZER
    assert event.prize_amount == ONE_TOKEN
    assert event.winners_distribution == (50, 30, 20)
    assert event.participants == tuple(PARTICIPANTS)
    assert event.voters == (VOTER1,)
    assert event.status is EventStatus.OPEN
    assert notifications == [PrizeEventCreated(0, ONE_TOKEN, 2_000_000)]


def test_ids_are_sequential(engine, approved):
    assert [setup_default_event(engine) for _ in range(3)] == [0, 1, 2]


def test_duplicate_participants_collapse(engine, approved):
    event_id = engine.setup_event(
        ORGANIZER, ONE_TOKEN, PRIZE_TOKEN, [100], [], [PARTICIPANT1, PARTICIPANT1, PARTICIPANT2]
    )
    assert engine.get_event(event_id).participants == (PARTICIPANT1, PARTICIPANT2)


def test_get_event_unknown(engine):
    with pytest.raises(NotAValidEvent):
        engine.get_event(0)
    with pytest.raises(NotAValidEvent):
        engine.get_event(-1)


def test_get_event_returns_a_copy(engine, approved):
    setup_default_event(engine)
    event = engine.get_event(0)
    event.status = EventStatus.CLOSED
    assert engine.get_event(0).status is EventStatus.OPEN


# ============================================================================
# close_event
# ============================================================================

def test_close_unknown_event(engine, approved):
    setup_default_event(engine)
    with pytest.raises(NotAValidEvent):
        engine.close_event(ORGANIZER, 1)


def test_close_by_non_organizer(engine, approved):
    setup_default_event(engine)
    with pytest.raises(OnlyOwnerAllowed):
        engine.close_event(NON_VOTER, 0)
    assert engine.get_event(0).is_open


def test_close_twice(engine, approved, notifications):
    setup_default_event(engine)
    engine.close_event(ORGANIZER, 0)
    with pytest.raises(EventClosed):
        engine.close_event(ORGANIZER, 0)
    assert engine.get_event(0).status is EventStatus.CLOSED
    assert sum(isinstance(n, PrizeEventClosed) for n in notifications) == 1


def test_close_failure_leaves_event_open(engine, approved):
    setup_default_event(engine)

    class Boom(Exception):
        pass

    class FailingDistributor:
        def distribute(self, event):
            raise Boom()

    with pytest.raises(Boom):
        engine.registry.close_event(ORGANIZER, 0, FailingDistributor())
    assert engine.get_event(0).is_open
