import json

import pytest

from conftest import ORGANIZER, PARTICIPANT1, PARTICIPANT2, PARTICIPANT3, PRIZE_TOKEN, VOTER1, give_votes
from prize_events.errors import EventStillOpen, StateError
from prize_events.verify import build_audit, verify_audit


@pytest.fixture
def closed_event(engine, approved):
    engine.setup_event(ORGANIZER, 10, PRIZE_TOKEN, [34, 33, 33], [], [PARTICIPANT1, PARTICIPANT2, PARTICIPANT3])
    give_votes(approved, VOTER1, 6)
    engine.vote(VOTER1, 0, PARTICIPANT3, 3)
    engine.vote(VOTER1, 0, PARTICIPANT1, 2)
    engine.vote(VOTER1, 0, PARTICIPANT2, 1)
    engine.close_event(ORGANIZER, 0)
    return engine


def write(tmp_path, audit):
    path = tmp_path / "audit.json"
    path.write_text(json.dumps(audit), encoding="utf-8")
    return str(path)


def test_audit_records_ranking_and_residue(closed_event):
    audit = build_audit(closed_event, 0)
    assert [r["address"] for r in audit["ranking"]] == [PARTICIPANT3, PARTICIPANT1, PARTICIPANT2]
    assert [r["credit"] for r in audit["ranking"]] == ["3", "3", "3"]
    assert audit["total_credited"] == "9"
    assert audit["residue"] == "1"


def test_audit_of_open_event(engine, approved):
    engine.setup_event(ORGANIZER, 10, PRIZE_TOKEN, [100], [], [PARTICIPANT1])
    with pytest.raises(EventStillOpen) as exc:
        build_audit(engine, 0)
    assert isinstance(exc.value, StateError)


def test_verify_accepts_untouched_audit(tmp_path, closed_event):
    result = verify_audit(write(tmp_path, build_audit(closed_event, 0)))
    assert result["ok"] is True
    assert result["winners"] == [PARTICIPANT3, PARTICIPANT1, PARTICIPANT2]
    assert result["residue"] == 1


def test_verify_detects_tampered_votes(tmp_path, closed_event):
    audit = build_audit(closed_event, 0)
    audit["ranking"][2]["votes"] = "100"
    with pytest.raises(RuntimeError, match="Ranking mismatch"):
        verify_audit(write(tmp_path, audit))


def test_verify_detects_tampered_credit(tmp_path, closed_event):
    audit = build_audit(closed_event, 0)
    audit["ranking"][0]["credit"] = "4"
    with pytest.raises(RuntimeError, match="Credit mismatch"):
        verify_audit(write(tmp_path, audit))
