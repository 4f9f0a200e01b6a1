from __future__ import annotations

import argparse
import json
import logging
import sys
from contextlib import contextmanager
from decimal import InvalidOperation
from typing import Iterator, List, Optional, Tuple

from .accounts import load_account_list
from .config import Settings
from .distribution import format_tokens, to_raw
from .engine import PrizeEventEngine
from .errors import PrizeEventError
from .ledger import InMemoryLedger, Role
from .rpc import HttpLedgerClient
from .store import load_local_ledger, read_state, restore_engine, save_state, state_lock
from .verify import build_audit, verify_audit

log = logging.getLogger("prize_events")


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


@contextmanager
def open_engine(
    args: argparse.Namespace, save: bool
) -> Iterator[Tuple[PrizeEventEngine, Settings, Optional[InMemoryLedger]]]:
    """Load engine state, yield it, and write it back after a successful mutating command."""
    settings = Settings.from_env(
        state_file_override=args.state, ledger_url_override=args.ledger_url
    )
    with state_lock(settings.state_file):
        data = read_state(settings.state_file)
        log.debug(
            "State file %s, %s ledger",
            settings.state_file,
            "local" if settings.local_ledger else settings.ledger_url,
        )

        local: Optional[InMemoryLedger] = None
        remote: Optional[HttpLedgerClient] = None
        if settings.local_ledger:
            local = load_local_ledger(data, settings.escrow_account)
            if not data:
                # fresh local ledger: the engine may mint vote tokens
                local.grant_role(settings.vote_token, settings.escrow_account, Role.MINTER)
            ledger = local
        else:
            remote = HttpLedgerClient(settings.ledger_url, settings.escrow_account, timeout_s=args.timeout)
            ledger = remote

        try:
            engine = PrizeEventEngine(
                ledger,
                vote_token=settings.vote_token,
                base_token=settings.base_token,
                unit_price=settings.vote_unit_price,
            )
            restore_engine(data, engine)
            yield engine, settings, local
            if save:
                save_state(settings.state_file, engine, local)
        finally:
            if remote is not None:
                remote.close()


def parse_amount(settings: Settings, token: str, text: str) -> int:
    # vote weight is counted in whole raw units; every other token in decimal tokens
    try:
        if token == settings.vote_token:
            return int(text)
        return to_raw(text)
    except (ValueError, InvalidOperation, OverflowError):
        raise SystemExit(f"Invalid amount for {token}: {text!r}")


def show_amount(settings: Settings, token: str, raw: int) -> str:
    if token == settings.vote_token:
        return str(raw)
    return format_tokens(raw)


def _require_local(local: Optional[InMemoryLedger], cmd: str) -> InMemoryLedger:
    if local is None:
        raise SystemExit(f"'{cmd}' only works with the local ledger (unset LEDGER_URL).")
    return local


def cmd_setup(args: argparse.Namespace) -> int:
    participants: List[str] = list(args.participants or []) + load_account_list(args.participants_file)
    voters: List[str] = list(args.voters or []) + load_account_list(args.voters_file)

    with open_engine(args, save=True) as (engine, settings, _):
        amount = parse_amount(settings, args.token, args.amount)
        event_id = engine.setup_event(
            args.caller,
            amount,
            args.token,
            args.distribution,
            voters,
            participants,
            reference_block=args.reference_block,
        )
    print(f"Event created : {event_id}")
    print(f"Prize         : {args.amount} {args.token}")
    print(f"Distribution  : {' / '.join(str(p) + '%' for p in args.distribution)}")
    print(f"Voting        : {'open' if not voters else f'{len(set(voters))} allowed voter(s)'}")
    return 0


def cmd_vote(args: argparse.Namespace) -> int:
    with open_engine(args, save=True) as (engine, _, _local):
        total = engine.vote(args.caller, args.event, args.participant, args.weight)
    print(f"Vote recorded : {args.weight} -> {args.participant} (total {total})")
    return 0


def cmd_close(args: argparse.Namespace) -> int:
    with open_engine(args, save=True) as (engine, settings, _):
        credits = engine.close_event(args.caller, args.event)
        event = engine.get_event(args.event)
    print(f"Event {args.event} closed")
    print("----------------------------------------")
    for addr, amount in sorted(credits.items(), key=lambda x: (-x[1], x[0])):
        print(f"{addr} : {show_amount(settings, event.prize_token, amount)} {event.prize_token}")
    return 0


def cmd_claim(args: argparse.Namespace) -> int:
    with open_engine(args, save=True) as (engine, settings, _):
        amount = engine.claim(args.caller, args.token)
    if amount == 0:
        print(f"Nothing to claim in {args.token}")
    else:
        print(f"Claimed       : {show_amount(settings, args.token, amount)} {args.token}")
    return 0


def cmd_purchase(args: argparse.Namespace) -> int:
    with open_engine(args, save=True) as (engine, settings, _):
        payment = parse_amount(settings, settings.base_token, args.payment)
        minted = engine.purchase_voting_tokens(args.caller, payment)
    print(f"Purchased     : {minted} {settings.vote_token}")
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    with open_engine(args, save=False) as (engine, _, _local):
        events = [engine.get_event(args.event)] if args.event is not None else engine.list_events()
    print(json.dumps([e.to_dict() for e in events], indent=2))
    return 0


def cmd_tally(args: argparse.Namespace) -> int:
    with open_engine(args, save=False) as (engine, _, _local):
        event = engine.get_event(args.event)
        votes = {p: engine.get_tally_for(args.event, p) for p in event.participants}
    print(f"Event {event.id} ({event.status.value})")
    for addr, weight in sorted(votes.items(), key=lambda x: (-x[1], x[0])):
        print(f"{addr} : {weight}")
    return 0


def cmd_balance(args: argparse.Namespace) -> int:
    with open_engine(args, save=False) as (engine, settings, _):
        held = engine.ledger.balance_of(args.account, args.token)
        owed = engine.get_claim_balance(args.account, args.token)
    print(f"Ledger balance : {show_amount(settings, args.token, held)} {args.token}")
    print(f"Claimable      : {show_amount(settings, args.token, owed)} {args.token}")
    return 0


def cmd_fund(args: argparse.Namespace) -> int:
    with open_engine(args, save=True) as (_, settings, local):
        ledger = _require_local(local, "fund")
        ledger.issue(args.account, args.token, parse_amount(settings, args.token, args.amount))
    print(f"Funded {args.account} with {args.amount} {args.token}")
    return 0


def cmd_approve(args: argparse.Namespace) -> int:
    with open_engine(args, save=True) as (_, settings, local):
        ledger = _require_local(local, "approve")
        ledger.approve(args.caller, args.token, parse_amount(settings, args.token, args.amount))
    print(f"Approved {args.amount} {args.token} from {args.caller}")
    return 0


def cmd_audit(args: argparse.Namespace) -> int:
    with open_engine(args, save=False) as (engine, _, _local):
        audit = build_audit(engine, args.event)

    with open(args.out, "w", encoding="utf-8") as f:
        json.dump(audit, f, indent=2)

    print(f"Residue       : {audit['residue']}")
    print(f"Wrote audit   : {args.out}")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    result = verify_audit(args.audit)
    print("AUDIT VERIFIED")
    print(f"Event         : {result['event_id']}")
    print(f"Winners       : {', '.join(result['winners'])}")
    print(f"Total credited: {result['total_credited']}")
    print(f"Residue       : {result['residue']}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="prize-events",
        description="Prize events: fund a pool, vote on participants, close and claim.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument("--state", default=None, help="State file path (else env / default).")
    p.add_argument("--ledger-url", default=None, help="Remote ledger JSON-RPC URL.")
    p.add_argument("--timeout", type=float, default=60.0, help="Ledger RPC timeout seconds.")

    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("setup", help="Create a prize event and escrow its prize.")
    s.add_argument("--as", dest="caller", required=True, help="Organizer account.")
    s.add_argument("--amount", required=True, help="Prize amount in tokens.")
    s.add_argument("--token", required=True, help="Prize token.")
    s.add_argument("--distribution", required=True, type=int, nargs="+", help="Percentages, e.g. 50 30 20.")
    s.add_argument("--participants", nargs="*", default=[])
    s.add_argument("--participants-file", default=None, help="One participant account per line.")
    s.add_argument("--voters", nargs="*", default=[], help="Allowed voters (empty: anyone).")
    s.add_argument("--voters-file", default=None, help="One voter account per line.")
    s.add_argument("--reference-block", type=int, default=0)
    s.set_defaults(func=cmd_setup)

    v = sub.add_parser("vote", help="Spend vote weight on a participant.")
    v.add_argument("--as", dest="caller", required=True)
    v.add_argument("--event", required=True, type=int)
    v.add_argument("--participant", required=True)
    v.add_argument("--weight", required=True, type=int)
    v.set_defaults(func=cmd_vote)

    c = sub.add_parser("close", help="Close an event and credit its winners.")
    c.add_argument("--as", dest="caller", required=True)
    c.add_argument("--event", required=True, type=int)
    c.set_defaults(func=cmd_close)

    cl = sub.add_parser("claim", help="Withdraw claimable prizes in a token.")
    cl.add_argument("--as", dest="caller", required=True)
    cl.add_argument("--token", required=True)
    cl.set_defaults(func=cmd_claim)

    pu = sub.add_parser("purchase", help="Buy vote weight with the base token.")
    pu.add_argument("--as", dest="caller", required=True)
    pu.add_argument("--payment", required=True, help="Payment in base tokens.")
    pu.set_defaults(func=cmd_purchase)

    sh = sub.add_parser("show", help="Print events as JSON.")
    sh.add_argument("--event", type=int, default=None)
    sh.set_defaults(func=cmd_show)

    t = sub.add_parser("tally", help="Print votes per participant.")
    t.add_argument("--event", required=True, type=int)
    t.set_defaults(func=cmd_tally)

    b = sub.add_parser("balance", help="Ledger and claimable balance of an account.")
    b.add_argument("--account", required=True)
    b.add_argument("--token", required=True)
    b.set_defaults(func=cmd_balance)

    f = sub.add_parser("fund", help="Issue tokens to an account (local ledger only).")
    f.add_argument("--account", required=True)
    f.add_argument("--token", required=True)
    f.add_argument("--amount", required=True)
    f.set_defaults(func=cmd_fund)

    a = sub.add_parser("approve", help="Let the engine pull tokens (local ledger only).")
    a.add_argument("--as", dest="caller", required=True)
    a.add_argument("--token", required=True)
    a.add_argument("--amount", required=True)
    a.set_defaults(func=cmd_approve)

    au = sub.add_parser("audit", help="Write the distribution audit of a closed event.")
    au.add_argument("--event", required=True, type=int)
    au.add_argument("--out", default="audit.json", help="Audit output JSON path.")
    au.set_defaults(func=cmd_audit)

    ve = sub.add_parser("verify", help="Re-verify an audit JSON deterministically.")
    ve.add_argument("--audit", required=True, help="Path to audit.json.")
    ve.set_defaults(func=cmd_verify)

    return p


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    try:
        code = args.func(args)
    except PrizeEventError as e:
        print(f"error: {type(e).__name__}: {e}", file=sys.stderr)
        code = 1
    raise SystemExit(code)
