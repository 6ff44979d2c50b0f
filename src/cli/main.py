"""runledger CLI entry points.
This module exposes catalog commands for namespaces, sources, datasets,
jobs, and runs. It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from catalog.catalog_sdk import RunLedgerClient
from cli.apply_command import add_apply_command, run_apply_command
from cli.dataset_command import add_dataset_command, run_dataset_command
from cli.job_command import add_job_command, run_job_command
from cli.run_command import add_run_command, run_run_command
from core.config import RunLedgerConfig
from core.errors import NamespaceNotFoundError, RunLedgerError
from core.types import NamespaceMeta, SourceMeta


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="runledger", description="runledger metadata catalog")
    parser.add_argument("--db-path", help="Override RUNLEDGER_DB_PATH for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_namespace_command(subparsers)
    _add_source_command(subparsers)
    add_dataset_command(subparsers)
    add_job_command(subparsers)
    add_run_command(subparsers)
    add_apply_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the runledger CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = _build_client(args.db_path)
        return _dispatch(parser, client, args)
    except RunLedgerError as error:
        print(f"error={error}", file=sys.stderr)
        return 1


def _dispatch(
    parser: argparse.ArgumentParser, client: RunLedgerClient, args: argparse.Namespace
) -> int:
    if args.command == "namespace":
        return _run_namespace_command(client, args)
    if args.command == "source":
        return _run_source_command(client, args)
    if args.command == "dataset":
        return run_dataset_command(client, args)
    if args.command == "job":
        return run_job_command(client, args)
    if args.command == "run":
        return run_run_command(client, args)
    if args.command == "apply":
        return run_apply_command(client, args)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(db_path: str | None) -> RunLedgerClient:
    """Build SDK client with optional database path override.

    Args:
        db_path: Optional override path.

    Returns:
        Configured SDK client.
    """
    config = RunLedgerConfig.from_env()
    if db_path:
        config = replace(config, db_path=Path(db_path).expanduser().resolve())
    return RunLedgerClient(config)


def _run_namespace_command(client: RunLedgerClient, args: argparse.Namespace) -> int:
    """Handle namespace subcommands.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    if args.namespace_command == "put":
        namespace = client.namespaces.create_or_update(
            args.name,
            NamespaceMeta(owner_name=args.owner, description=args.description),
        )
        print(namespace.name)
        return 0
    if args.namespace_command == "get":
        found = client.namespaces.get(args.name)
        if found is None:
            raise NamespaceNotFoundError(args.name)
        print(f"{found.name}\t{found.owner_name}\t{found.description or '-'}")
        return 0
    limit = client.config.default_page_limit if args.limit is None else args.limit
    for namespace in client.namespaces.get_all(limit, args.offset):
        print(
            f"{namespace.name}\t"
            f"{namespace.owner_name}\t"
            f"{namespace.created_at.isoformat()}\t"
            f"{namespace.description or '-'}"
        )
    return 0


def _run_source_command(client: RunLedgerClient, args: argparse.Namespace) -> int:
    """Handle source subcommands.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    if args.source_command == "put":
        source = client.sources.create_or_update(
            args.name,
            SourceMeta(
                type=args.type,
                connection_url=args.connection_url,
                description=args.description,
            ),
        )
        print(source.name)
        return 0
    limit = client.config.default_page_limit if args.limit is None else args.limit
    for source in client.sources.get_all(limit, args.offset):
        print(f"{source.name}\t{source.type}\t{source.connection_url or '-'}")
    return 0


def _add_namespace_command(subparsers: Any) -> None:
    """Register namespace subcommands."""
    parser = subparsers.add_parser("namespace", help="Create and list namespaces")
    namespace_subparsers = parser.add_subparsers(dest="namespace_command", required=True)
    put_parser = namespace_subparsers.add_parser("put", help="Create or update a namespace")
    put_parser.add_argument("name", help="Namespace name")
    put_parser.add_argument("--owner", required=True, help="Current owner of the namespace")
    put_parser.add_argument("--description", help="Optional description")
    get_parser = namespace_subparsers.add_parser("get", help="Show one namespace")
    get_parser.add_argument("name", help="Namespace name")
    list_parser = namespace_subparsers.add_parser("list", help="List namespaces")
    list_parser.add_argument("--limit", type=int, help="Page size")
    list_parser.add_argument("--offset", type=int, default=0, help="Page offset")


def _add_source_command(subparsers: Any) -> None:
    """Register source subcommands."""
    parser = subparsers.add_parser("source", help="Register and list sources")
    source_subparsers = parser.add_subparsers(dest="source_command", required=True)
    put_parser = source_subparsers.add_parser("put", help="Create or update a source")
    put_parser.add_argument("name", help="Source name")
    put_parser.add_argument("--type", required=True, help="Source kind, e.g. POSTGRESQL")
    put_parser.add_argument("--connection-url", help="Connection locator")
    put_parser.add_argument("--description", help="Optional description")
    list_parser = source_subparsers.add_parser("list", help="List sources")
    list_parser.add_argument("--limit", type=int, help="Page size")
    list_parser.add_argument("--offset", type=int, default=0, help="Page offset")
