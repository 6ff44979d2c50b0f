"""Job CLI command wiring."""

from __future__ import annotations

import argparse
from typing import Any, Sequence

from catalog.catalog_sdk import RunLedgerClient
from core.errors import CatalogValidationError, JobNotFoundError
from core.types import JOB_TYPES, DatasetId, Job, JobMeta


def add_job_command(subparsers: Any) -> None:
    """Register job subcommands."""
    parser = subparsers.add_parser("job", help="Register and inspect jobs")
    job_subparsers = parser.add_subparsers(dest="job_command", required=True)

    put_parser = job_subparsers.add_parser("put", help="Create or update a job")
    put_parser.add_argument("namespace", help="Owning namespace")
    put_parser.add_argument("name", help="Job name")
    put_parser.add_argument("--location", required=True, help="Code location of the job")
    put_parser.add_argument("--type", default="BATCH", choices=JOB_TYPES, help="Job type")
    put_parser.add_argument(
        "--input",
        action="append",
        default=[],
        help="Input dataset as [namespace:]name, repeatable",
    )
    put_parser.add_argument(
        "--output",
        action="append",
        default=[],
        help="Output dataset as [namespace:]name, repeatable",
    )
    put_parser.add_argument("--description", help="Optional description")

    get_parser = job_subparsers.add_parser("get", help="Show one job")
    get_parser.add_argument("namespace", help="Owning namespace")
    get_parser.add_argument("name", help="Job name")

    list_parser = job_subparsers.add_parser("list", help="List jobs of a namespace")
    list_parser.add_argument("namespace", help="Owning namespace")
    list_parser.add_argument("--limit", type=int, help="Page size")
    list_parser.add_argument("--offset", type=int, default=0, help="Page offset")

    versions_parser = job_subparsers.add_parser("versions", help="List job versions")
    versions_parser.add_argument("namespace", help="Owning namespace")
    versions_parser.add_argument("name", help="Job name")


def run_job_command(client: RunLedgerClient, args: argparse.Namespace) -> int:
    """Handle job subcommands."""
    if args.job_command == "put":
        meta = JobMeta(
            type=args.type,
            inputs=parse_dataset_refs(args.input, args.namespace),
            outputs=parse_dataset_refs(args.output, args.namespace),
            location=args.location,
            description=args.description,
        )
        job = client.jobs.create_or_update(args.namespace, args.name, meta)
        print(job.current_version)
        return 0
    if args.job_command == "get":
        found = client.jobs.get(args.namespace, args.name)
        if found is None:
            raise JobNotFoundError(args.namespace, args.name)
        print(format_job(found))
        return 0
    if args.job_command == "list":
        limit = client.config.default_page_limit if args.limit is None else args.limit
        for job in client.jobs.get_all(args.namespace, limit, args.offset):
            print(format_job(job))
        return 0
    if args.job_command == "versions":
        for version in client.jobs.list_versions(args.namespace, args.name):
            print(
                f"{version.id}\t"
                f"{version.version}\t"
                f"{version.created_at.isoformat()}\t"
                f"{','.join(version.input_versions) or '-'}\t"
                f"{','.join(version.output_versions) or '-'}\t"
                f"{version.latest_run_id or '-'}"
            )
        return 0
    raise ValueError(f"Unsupported job command: {args.job_command}")


def parse_dataset_refs(raw_refs: Sequence[str], default_namespace: str) -> tuple[DatasetId, ...]:
    """Parse ``[namespace:]name`` references, defaulting to the job's namespace."""
    refs: list[DatasetId] = []
    for raw_ref in raw_refs:
        namespace, separator, name = raw_ref.rpartition(":")
        if not name or (separator and not namespace):
            raise CatalogValidationError(
                f"Invalid dataset reference '{raw_ref}'. Use [namespace:]name."
            )
        refs.append(DatasetId(namespace=namespace or default_namespace, name=name))
    return tuple(refs)


def format_job(job: Job) -> str:
    return (
        f"{job.namespace}.{job.name}\t"
        f"{job.type}\t"
        f"{job.location}\t"
        f"{job.current_version}\t"
        f"{','.join(str(item) for item in job.inputs) or '-'}\t"
        f"{','.join(str(item) for item in job.outputs) or '-'}\t"
        f"{job.description or '-'}"
    )
