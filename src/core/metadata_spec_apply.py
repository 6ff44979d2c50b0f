"""Shared metadata-spec application engine for CLI and SDK workflows.

Entries are applied in dependency order (namespaces, sources, datasets,
then jobs) so a job can reference datasets declared in the same file.
Each entry is its own catalog write; a failure stops the run and leaves
earlier entries applied.
"""

from __future__ import annotations

from typing import Any, Protocol

from core.logging_config import get_logger
from core.metadata_spec import MetadataSpec, load_metadata_spec

_LOGGER = get_logger(__name__)


class MetadataSpecClient(Protocol):
    """Client API contract required by metadata-spec application."""

    def with_db_path(self, db_path: str) -> Any: ...

    @property
    def namespaces(self) -> Any: ...

    @property
    def sources(self) -> Any: ...

    @property
    def datasets(self) -> Any: ...

    @property
    def jobs(self) -> Any: ...


def apply_metadata_spec_file(client: MetadataSpecClient, spec_file: str) -> tuple[str, ...]:
    """Load and apply a metadata-spec file, returning printable output lines."""
    spec = load_metadata_spec(spec_file)
    return apply_metadata_spec(client, spec)


def apply_metadata_spec(client: MetadataSpecClient, spec: MetadataSpec) -> tuple[str, ...]:
    """Apply a parsed metadata spec and return output lines."""
    target = client.with_db_path(spec.defaults.db_path) if spec.defaults.db_path else client
    output_lines: list[str] = []
    for namespace_entry in spec.namespaces:
        namespace = target.namespaces.create_or_update(namespace_entry.name, namespace_entry.meta)
        output_lines.append(f"namespace={namespace.name} owner={namespace.owner_name}")
    for source_entry in spec.sources:
        source = target.sources.create_or_update(source_entry.name, source_entry.meta)
        output_lines.append(f"source={source.name} type={source.type}")
    for dataset_entry in spec.datasets:
        dataset = target.datasets.create_or_update(
            dataset_entry.namespace, dataset_entry.name, dataset_entry.meta
        )
        output_lines.append(
            f"dataset={dataset.namespace}.{dataset.name} version={dataset.current_version}"
        )
    for job_entry in spec.jobs:
        job = target.jobs.create_or_update(job_entry.namespace, job_entry.name, job_entry.meta)
        output_lines.append(f"job={job.namespace}.{job.name} version={job.current_version}")
    _LOGGER.info(
        "metadata_spec_applied",
        namespaces=len(spec.namespaces),
        sources=len(spec.sources),
        datasets=len(spec.datasets),
        jobs=len(spec.jobs),
    )
    return tuple(output_lines)
