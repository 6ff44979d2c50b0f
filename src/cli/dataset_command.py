"""Dataset CLI command wiring."""

from __future__ import annotations

import argparse
from typing import Any

from catalog.catalog_sdk import RunLedgerClient
from core.errors import CatalogValidationError, DatasetNotFoundError
from core.types import DATASET_TYPES, Dataset, DatasetFacet, DatasetMeta, DbTableFacet, StreamFacet


def add_dataset_command(subparsers: Any) -> None:
    """Register dataset subcommands."""
    parser = subparsers.add_parser("dataset", help="Register and inspect datasets")
    dataset_subparsers = parser.add_subparsers(dest="dataset_command", required=True)

    put_parser = dataset_subparsers.add_parser("put", help="Create or update a dataset")
    put_parser.add_argument("namespace", help="Owning namespace")
    put_parser.add_argument("name", help="Dataset name")
    put_parser.add_argument("--physical-name", required=True, help="Name in the source system")
    put_parser.add_argument("--source", required=True, help="Source the dataset lives in")
    put_parser.add_argument(
        "--type",
        default="DB_TABLE",
        choices=DATASET_TYPES,
        help="Dataset type",
    )
    put_parser.add_argument("--schema-location", help="Schema locator, required for STREAM")
    put_parser.add_argument("--description", help="Optional description")
    put_parser.add_argument("--run-id", help="Run that produced this dataset state")

    get_parser = dataset_subparsers.add_parser("get", help="Show one dataset")
    get_parser.add_argument("namespace", help="Owning namespace")
    get_parser.add_argument("name", help="Dataset name")

    list_parser = dataset_subparsers.add_parser("list", help="List datasets of a namespace")
    list_parser.add_argument("namespace", help="Owning namespace")
    list_parser.add_argument("--limit", type=int, help="Page size")
    list_parser.add_argument("--offset", type=int, default=0, help="Page offset")

    versions_parser = dataset_subparsers.add_parser("versions", help="List dataset versions")
    versions_parser.add_argument("namespace", help="Owning namespace")
    versions_parser.add_argument("name", help="Dataset name")


def run_dataset_command(client: RunLedgerClient, args: argparse.Namespace) -> int:
    """Handle dataset subcommands."""
    if args.dataset_command == "put":
        meta = DatasetMeta(
            type=args.type,
            physical_name=args.physical_name,
            source_name=args.source,
            facet=_facet_from_args(args),
            description=args.description,
            run_id=args.run_id,
        )
        dataset = client.datasets.create_or_update(args.namespace, args.name, meta)
        print(dataset.current_version)
        return 0
    if args.dataset_command == "get":
        found = client.datasets.get(args.namespace, args.name)
        if found is None:
            raise DatasetNotFoundError(args.namespace, args.name)
        print(format_dataset(found))
        return 0
    if args.dataset_command == "list":
        limit = client.config.default_page_limit if args.limit is None else args.limit
        for dataset in client.datasets.get_all(args.namespace, limit, args.offset):
            print(format_dataset(dataset))
        return 0
    if args.dataset_command == "versions":
        for version in client.datasets.list_versions(args.namespace, args.name):
            print(
                f"{version.id}\t"
                f"{version.version}\t"
                f"{version.created_at.isoformat()}\t"
                f"{version.physical_name}\t"
                f"{version.run_id or '-'}"
            )
        return 0
    raise ValueError(f"Unsupported dataset command: {args.dataset_command}")


def format_dataset(dataset: Dataset) -> str:
    schema_location = "-"
    match dataset.facet:
        case StreamFacet(schema_location=location):
            schema_location = location
    return (
        f"{dataset.namespace}.{dataset.name}\t"
        f"{dataset.type}\t"
        f"{dataset.physical_name}\t"
        f"{dataset.source_name}\t"
        f"{dataset.current_version}\t"
        f"{schema_location}\t"
        f"{dataset.description or '-'}"
    )


def _facet_from_args(args: argparse.Namespace) -> DatasetFacet:
    if args.type == "STREAM":
        return StreamFacet(schema_location=args.schema_location or "")
    if args.schema_location:
        raise CatalogValidationError("--schema-location applies only to STREAM datasets.")
    return DbTableFacet()
