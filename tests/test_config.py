import pytest

from prize_events.config import DEFAULT_STATE_FILE, Settings
from prize_events.project_constants import DEFAULT_ESCROW_ACCOUNT, VOTE_UNIT_PRICE


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("LEDGER_URL", "ESCROW_ACCOUNT", "VOTE_TOKEN", "BASE_TOKEN", "VOTE_UNIT_PRICE", "PRIZE_EVENTS_STATE_FILE"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    s = Settings.from_env()
    assert s.state_file == DEFAULT_STATE_FILE
    assert s.ledger_url is None
    assert s.local_ledger
    assert s.escrow_account == DEFAULT_ESCROW_ACCOUNT
    assert s.vote_unit_price == VOTE_UNIT_PRICE


def test_env_values(monkeypatch):
    monkeypatch.setenv("LEDGER_URL", "http://ledger.local/rpc")
    monkeypatch.setenv("VOTE_UNIT_PRICE", "500")
    monkeypatch.setenv("VOTE_TOKEN", "BALLOT")
    s = Settings.from_env()
    assert s.ledger_url == "http://ledger.local/rpc"
    assert not s.local_ledger
    assert s.vote_unit_price == 500
    assert s.vote_token == "BALLOT"


def test_overrides_win(monkeypatch):
    monkeypatch.setenv("PRIZE_EVENTS_STATE_FILE", "env.json")
    monkeypatch.setenv("LEDGER_URL", "http://env/rpc")
    s = Settings.from_env(state_file_override="cli.json", ledger_url_override="http://cli/rpc")
    assert s.state_file == "cli.json"
    assert s.ledger_url == "http://cli/rpc"


@pytest.mark.parametrize("price", ["abc", "0", "-3"])
def test_bad_unit_price(monkeypatch, price):
    monkeypatch.setenv("VOTE_UNIT_PRICE", price)
    with pytest.raises(RuntimeError):
        Settings.from_env()
