"""Run CLI command wiring.

This module registers run creation, state transitions, and history
inspection subcommands.
"""

from __future__ import annotations

import argparse
from datetime import datetime
from typing import Any, Sequence

from catalog.catalog_sdk import RunLedgerClient
from core.errors import CatalogValidationError, RunNotFoundError
from core.types import RUN_STATES, Run, RunMeta


def add_run_command(subparsers: Any) -> None:
    """Register run subcommands."""
    parser = subparsers.add_parser("run", help="Create runs and record state transitions")
    run_subparsers = parser.add_subparsers(dest="run_command", required=True)

    create_parser = run_subparsers.add_parser("create", help="Create a run in state NEW")
    create_parser.add_argument("namespace", help="Namespace of the job")
    create_parser.add_argument("job", help="Job name")
    create_parser.add_argument(
        "--arg",
        action="append",
        default=[],
        help="Run argument as key=value, repeatable",
    )
    create_parser.add_argument("--nominal-start", help="Nominal start time, ISO-8601")
    create_parser.add_argument("--nominal-end", help="Nominal end time, ISO-8601")

    transition_parser = run_subparsers.add_parser("transition", help="Move a run to a new state")
    transition_parser.add_argument("run_id", help="Run id")
    transition_parser.add_argument("state", choices=RUN_STATES, help="Target state")

    state_parser = run_subparsers.add_parser("state", help="Show the current run state")
    state_parser.add_argument("run_id", help="Run id")

    show_parser = run_subparsers.add_parser("show", help="Show one run")
    show_parser.add_argument("run_id", help="Run id")

    history_parser = run_subparsers.add_parser("history", help="List run state history")
    history_parser.add_argument("run_id", help="Run id")

    list_parser = run_subparsers.add_parser("list", help="List runs of a job")
    list_parser.add_argument("namespace", help="Namespace of the job")
    list_parser.add_argument("job", help="Job name")
    list_parser.add_argument("--limit", type=int, help="Page size")
    list_parser.add_argument("--offset", type=int, default=0, help="Page offset")


def run_run_command(client: RunLedgerClient, args: argparse.Namespace) -> int:
    """Handle run subcommands."""
    if args.run_command == "create":
        meta = RunMeta(
            nominal_start_time=_parse_time(args.nominal_start, "--nominal-start"),
            nominal_end_time=_parse_time(args.nominal_end, "--nominal-end"),
            args=parse_run_args(args.arg),
        )
        run = client.runs.create_run(args.namespace, args.job, meta)
        print(run.id)
        return 0
    if args.run_command == "transition":
        record = client.runs.transition(args.run_id, args.state)
        print(f"{record.run_id}\t{record.state}\t{record.transitioned_at.isoformat()}")
        return 0
    if args.run_command == "state":
        print(client.runs.get_current_state(args.run_id))
        return 0
    if args.run_command == "show":
        found = client.runs.get_run(args.run_id)
        if found is None:
            raise RunNotFoundError(args.run_id)
        print(format_run(found))
        return 0
    if args.run_command == "history":
        for record in client.runs.list_states(args.run_id):
            print(f"{record.id}\t{record.state}\t{record.transitioned_at.isoformat()}")
        return 0
    if args.run_command == "list":
        limit = client.config.default_page_limit if args.limit is None else args.limit
        for run in client.runs.list_runs(args.namespace, args.job, limit, args.offset):
            print(format_run(run))
        return 0
    raise ValueError(f"Unsupported run command: {args.run_command}")


def parse_run_args(raw_args: Sequence[str]) -> dict[str, str]:
    """Parse repeated ``key=value`` flags into a run argument map."""
    parsed: dict[str, str] = {}
    for raw_arg in raw_args:
        key, separator, value = raw_arg.partition("=")
        if not separator or not key.strip():
            raise CatalogValidationError(f"Invalid run argument '{raw_arg}'. Use key=value.")
        parsed[key.strip()] = value
    return parsed


def format_run(run: Run) -> str:
    args_text = ",".join(f"{key}={value}" for key, value in sorted(run.args.items()))
    return (
        f"{run.id}\t"
        f"{run.state}\t"
        f"{run.created_at.isoformat()}\t"
        f"{run.job_version_id}\t"
        f"{args_text or '-'}"
    )


def _parse_time(raw_value: str | None, flag_name: str) -> datetime | None:
    if raw_value is None:
        return None
    try:
        return datetime.fromisoformat(raw_value)
    except ValueError as error:
        raise CatalogValidationError(
            f"Invalid {flag_name} value '{raw_value}'. Use an ISO-8601 timestamp."
        ) from error
