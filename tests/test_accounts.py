import pytest

from conftest import PARTICIPANT1, PARTICIPANT2
from prize_events.accounts import (
    account_from_bytes,
    load_account_list,
    normalize_accounts,
    parse_account,
)
from prize_events.errors import InvalidAccount
from prize_events.project_constants import DEFAULT_ESCROW_ACCOUNT


def test_default_escrow_is_a_valid_account():
    assert parse_account(DEFAULT_ESCROW_ACCOUNT) == bytes(32)


def test_bytes_round_trip():
    raw = bytes(range(32))
    assert parse_account(account_from_bytes(raw)) == raw


@pytest.mark.parametrize("bad", ["", "0OIl", "abc", None, DEFAULT_ESCROW_ACCOUNT + "1"])
def test_invalid_accounts(bad):
    with pytest.raises(InvalidAccount):
        parse_account(bad)


def test_normalize_keeps_first_seen_order():
    assert normalize_accounts([PARTICIPANT2, PARTICIPANT1, PARTICIPANT2]) == [PARTICIPANT2, PARTICIPANT1]


def test_load_account_list(tmp_path):
    path = tmp_path / "voters.txt"
    path.write_text(f"# voters\n\n  {PARTICIPANT1}  \n{PARTICIPANT2}\n", encoding="utf-8")
    assert load_account_list(str(path)) == [PARTICIPANT1, PARTICIPANT2]
    assert load_account_list(None) == []
