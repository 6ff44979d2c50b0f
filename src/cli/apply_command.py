"""Metadata-spec CLI command wiring.

This module registers the apply subcommand and delegates to the shared
metadata-spec engine used by CLI and SDK entry points.
"""

from __future__ import annotations

import argparse
from typing import Any

from catalog.catalog_sdk import RunLedgerClient


def add_apply_command(subparsers: Any) -> None:
    """Register apply subcommand."""
    parser = subparsers.add_parser(
        "apply",
        help="Register namespaces, sources, datasets, and jobs from a YAML spec",
    )
    parser.add_argument("spec_file", help="Path to YAML metadata spec file")


def run_apply_command(client: RunLedgerClient, args: argparse.Namespace) -> int:
    """Handle apply command invocation."""
    for line in client.apply_spec(args.spec_file):
        print(line)
    return 0
