"""Ballot CLI: command-line interface for the election engine.

Usage:
    python -m ballot.cli create --chairperson chair --proposal yes --proposal no
    python -m ballot.cli enroll --caller chair alice bob
    python -m ballot.cli delegate --caller alice --to bob
    python -m ballot.cli vote --caller bob --proposal 0
    python -m ballot.cli winner
    python -m ballot.cli results
    python -m ballot.cli show-voter --id alice
    python -m ballot.cli status
    python -m ballot.cli check-invariants
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from ballot.config import ElectionConfig
from ballot.log import configure_logging
from ballot.persistence.event_log import EventLog
from ballot.persistence.state_store import StateStore
from ballot.service import BallotService, ServiceResult


DEFAULT_CONFIG = Path(__file__).resolve().parents[2] / "config"
DEFAULT_DATA = Path(__file__).resolve().parents[2] / "data"


def _make_service(config_dir: Path, data_dir: Path = DEFAULT_DATA) -> BallotService:
    """Create a BallotService with durable persistence."""
    data_dir.mkdir(parents=True, exist_ok=True)
    config = ElectionConfig.from_config_dir(config_dir)
    event_log = EventLog(storage_path=data_dir / "events.jsonl")
    state_store = StateStore(storage_path=data_dir / "state.json")
    return BallotService(config, event_log=event_log, state_store=state_store)


def _report(result: ServiceResult, message: str) -> int:
    if result.success:
        print(message)
        warning = result.data.get("warning")
        if warning:
            print(f"Warning: {warning}", file=sys.stderr)
        return 0
    print(f"Failed: {'; '.join(result.errors)}", file=sys.stderr)
    return 1


def cmd_create(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    result = service.create_election(args.proposal, args.chairperson)
    return _report(
        result,
        f"Created election with {len(args.proposal)} proposals "
        f"(chairperson: {args.chairperson})",
    )


def cmd_enroll(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    result = service.enroll(args.caller, args.targets)
    return _report(result, f"Enrolled {len(args.targets)} voters")


def cmd_delegate(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    result = service.delegate(args.caller, args.to)
    terminus = result.data.get("terminus")
    return _report(result, f"Delegated {args.caller} -> {args.to} (resolved to {terminus})")


def cmd_vote(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    result = service.cast_vote(args.caller, args.proposal)
    return _report(result, f"Vote cast by {args.caller} for proposal {args.proposal}")


def cmd_winner(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    result = service.winner_name()
    return _report(
        result,
        f"{result.data.get('winning_proposal')}: {result.data.get('winner_name')}",
    )


def cmd_results(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    result = service.results()
    if result.success:
        print(json.dumps(result.data["results"], indent=2))
        return 0
    return _report(result, "")


def cmd_show_voter(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    voter = service.get_voter(args.id)
    if voter is None:
        print("Failed: No election exists: create one first", file=sys.stderr)
        return 1
    record = voter.to_record()
    record["delegation_chain"] = service.delegation_chain(args.id)
    print(json.dumps(record, indent=2))
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    print(json.dumps(service.status(), indent=2))
    return 0


def cmd_check_invariants(args: argparse.Namespace) -> int:
    """Validate configuration and stored election state."""
    errors: list[str] = []
    try:
        config = ElectionConfig.from_config_dir(args.config)
        errors.extend(config.validate())
    except (ValueError, OSError) as e:
        errors.append(f"config: {e}")
    else:
        try:
            service = _make_service(args.config, args.data)
            errors.extend(service.check_invariants())
        except (ValueError, OSError) as e:
            errors.append(f"state: {e}")

    if errors:
        for err in errors:
            print(f"FAIL: {err}", file=sys.stderr)
        return 1
    print("All invariants hold")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ballot",
        description="Delegating ballot: election engine CLI",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help="Path to config directory (default: config/)",
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=DEFAULT_DATA,
        help="Path to data directory (default: data/)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Log level (default: WARNING)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit logs as JSON lines",
    )
    sub = parser.add_subparsers(dest="command")

    # create
    p_create = sub.add_parser("create", help="Create the election")
    p_create.add_argument("--chairperson", required=True, help="Chairperson ID")
    p_create.add_argument(
        "--proposal", action="append", required=True,
        help="Proposal name (repeat for each proposal, in ballot order)",
    )

    # enroll
    p_enroll = sub.add_parser("enroll", help="Give voters the right to vote")
    p_enroll.add_argument("--caller", required=True, help="Caller ID (chairperson)")
    p_enroll.add_argument("targets", nargs="+", help="Voter IDs to enroll")

    # delegate
    p_del = sub.add_parser("delegate", help="Delegate a vote to another voter")
    p_del.add_argument("--caller", required=True, help="Delegating voter ID")
    p_del.add_argument("--to", required=True, help="Delegate voter ID")

    # vote
    p_vote = sub.add_parser("vote", help="Vote for a proposal")
    p_vote.add_argument("--caller", required=True, help="Voter ID")
    p_vote.add_argument("--proposal", type=int, required=True, help="Proposal index")

    sub.add_parser("winner", help="Show the winning proposal")
    sub.add_parser("results", help="Show per-proposal vote counts")

    p_show = sub.add_parser("show-voter", help="Show a voter and their delegation chain")
    p_show.add_argument("--id", required=True, help="Voter ID")

    sub.add_parser("status", help="Show election status")
    sub.add_parser("check-invariants", help="Run configuration and state invariant checks")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging(args.log_level, json_output=args.log_json)

    commands = {
        "create": cmd_create,
        "enroll": cmd_enroll,
        "delegate": cmd_delegate,
        "vote": cmd_vote,
        "winner": cmd_winner,
        "results": cmd_results,
        "show-voter": cmd_show_voter,
        "status": cmd_status,
        "check-invariants": cmd_check_invariants,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
