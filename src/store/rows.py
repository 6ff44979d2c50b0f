"""Row models mirroring the persisted table layout.

Rows are plain frozen dataclasses; catalog services translate them to
the domain models in ``core.types``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class NamespaceRow:
    uuid: str
    created_at: datetime
    updated_at: datetime
    name: str
    description: str | None
    current_owner_name: str


@dataclass(frozen=True)
class SourceRow:
    uuid: str
    type: str
    created_at: datetime
    updated_at: datetime
    name: str
    connection_url: str | None
    description: str | None


@dataclass(frozen=True)
class DatasetRow:
    """Dataset anchor row as inserted."""

    uuid: str
    type: str
    created_at: datetime
    updated_at: datetime
    namespace_uuid: str
    source_uuid: str
    name: str
    physical_name: str
    description: str | None
    current_version_uuid: str | None


@dataclass(frozen=True)
class ExtendedDatasetRow:
    """Dataset anchor row joined with namespace and source names."""

    uuid: str
    type: str
    created_at: datetime
    updated_at: datetime
    namespace_uuid: str
    namespace_name: str
    source_uuid: str
    source_name: str
    name: str
    physical_name: str
    description: str | None
    current_version_uuid: str | None


@dataclass(frozen=True)
class DatasetVersionRow:
    """Dataset version row; ``schema_location`` is set for streams only.

    ``source_name`` is filled on reads from the joined source row.
    """

    uuid: str
    created_at: datetime
    dataset_uuid: str
    version: str
    type: str
    physical_name: str
    source_uuid: str
    run_uuid: str | None
    schema_location: str | None
    source_name: str | None = None


@dataclass(frozen=True)
class JobRow:
    uuid: str
    type: str
    created_at: datetime
    updated_at: datetime
    namespace_uuid: str
    name: str
    description: str | None
    current_version_uuid: str | None


@dataclass(frozen=True)
class ExtendedJobRow:
    """Job anchor row joined with its namespace name."""

    uuid: str
    type: str
    created_at: datetime
    updated_at: datetime
    namespace_uuid: str
    namespace_name: str
    name: str
    description: str | None
    current_version_uuid: str | None


@dataclass(frozen=True)
class JobVersionRow:
    uuid: str
    created_at: datetime
    job_uuid: str
    version: str
    location: str
    input_version_uuids: tuple[str, ...]
    output_version_uuids: tuple[str, ...]


@dataclass(frozen=True)
class RunArgsRow:
    uuid: str
    created_at: datetime
    args: str
    checksum: str


@dataclass(frozen=True)
class RunRow:
    """Run anchor row; the current state columns are the cached pointer."""

    uuid: str
    created_at: datetime
    updated_at: datetime
    job_version_uuid: str
    run_args_uuid: str
    nominal_start_time: datetime | None
    nominal_end_time: datetime | None
    current_run_state: str | None
    transitioned_at: datetime | None


@dataclass(frozen=True)
class ExtendedRunRow:
    """Run row joined with its serialized arguments."""

    uuid: str
    created_at: datetime
    updated_at: datetime
    job_version_uuid: str
    run_args_uuid: str
    nominal_start_time: datetime | None
    nominal_end_time: datetime | None
    current_run_state: str | None
    transitioned_at: datetime | None
    args: str


@dataclass(frozen=True)
class RunStateRow:
    uuid: str
    transitioned_at: datetime
    run_uuid: str
    state: str
