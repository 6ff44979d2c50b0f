"""Shared typed models.

This module defines immutable data models used by the store, catalog
services, SDK, and CLI to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Mapping

DatasetType = Literal["DB_TABLE", "STREAM"]
JobType = Literal["BATCH", "STREAM", "SERVICE"]
RunState = Literal["NEW", "RUNNING", "COMPLETED", "FAILED", "ABORTED"]

DATASET_TYPES: tuple[DatasetType, ...] = ("DB_TABLE", "STREAM")
JOB_TYPES: tuple[JobType, ...] = ("BATCH", "STREAM", "SERVICE")
RUN_STATES: tuple[RunState, ...] = ("NEW", "RUNNING", "COMPLETED", "FAILED", "ABORTED")


@dataclass(frozen=True)
class DbTableFacet:
    """Version payload of a database table; tables carry no extra schema."""


@dataclass(frozen=True)
class StreamFacet:
    """Version payload of a stream.

    Attributes:
        schema_location: Locator of the stream schema (registry URL).
    """

    schema_location: str


DatasetFacet = DbTableFacet | StreamFacet


@dataclass(frozen=True)
class DatasetId:
    """Namespace-qualified dataset identity."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}.{self.name}"


@dataclass(frozen=True)
class NamespaceMeta:
    """Caller-supplied namespace attributes."""

    owner_name: str
    description: str | None = None


@dataclass(frozen=True)
class Namespace:
    """Namespace view returned by the registry."""

    name: str
    created_at: datetime
    updated_at: datetime
    owner_name: str
    description: str | None


@dataclass(frozen=True)
class SourceMeta:
    """Caller-supplied source attributes.

    Attributes:
        type: Free-form source kind tag, e.g. POSTGRESQL or KAFKA.
        connection_url: Connection locator.
        description: Optional human description.
    """

    type: str
    connection_url: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class Source:
    """Source view returned by the registry."""

    type: str
    name: str
    created_at: datetime
    updated_at: datetime
    connection_url: str | None
    description: str | None


@dataclass(frozen=True)
class DatasetMeta:
    """Caller-supplied dataset attributes.

    ``type`` is the discriminant and ``facet`` the variant payload;
    both must agree.

    Attributes:
        type: Dataset kind.
        physical_name: Name of the dataset in its source system.
        source_name: Source the dataset lives in.
        facet: Variant-specific payload.
        description: Optional description, never part of the version.
        run_id: Optional run that produced this dataset state.
    """

    type: DatasetType
    physical_name: str
    source_name: str
    facet: DatasetFacet = field(default_factory=DbTableFacet)
    description: str | None = None
    run_id: str | None = None


@dataclass(frozen=True)
class Dataset:
    """Dataset anchor merged with its current version payload."""

    type: DatasetType
    namespace: str
    name: str
    physical_name: str
    created_at: datetime
    updated_at: datetime
    source_name: str
    current_version: str
    facet: DatasetFacet
    description: str | None


@dataclass(frozen=True)
class DatasetVersion:
    """One immutable dataset version.

    Attributes:
        id: Version row id, used to fetch this exact version later.
        version: Content version derived from identity fields.
    """

    id: str
    version: str
    namespace: str
    dataset_name: str
    created_at: datetime
    type: DatasetType
    physical_name: str
    source_name: str
    run_id: str | None
    facet: DatasetFacet


@dataclass(frozen=True)
class JobMeta:
    """Caller-supplied job attributes."""

    type: JobType
    inputs: tuple[DatasetId, ...]
    outputs: tuple[DatasetId, ...]
    location: str
    description: str | None = None


@dataclass(frozen=True)
class Job:
    """Job anchor merged with its current version payload."""

    type: JobType
    namespace: str
    name: str
    created_at: datetime
    updated_at: datetime
    inputs: tuple[DatasetId, ...]
    outputs: tuple[DatasetId, ...]
    location: str
    current_version: str
    description: str | None


@dataclass(frozen=True)
class JobVersion:
    """One immutable job version with resolved dataset-version links.

    Attributes:
        input_versions: Dataset version row ids of inputs when recorded.
        output_versions: Dataset version row ids of outputs when recorded.
    """

    id: str
    version: str
    namespace: str
    job_name: str
    created_at: datetime
    inputs: tuple[DatasetId, ...]
    outputs: tuple[DatasetId, ...]
    input_versions: tuple[str, ...]
    output_versions: tuple[str, ...]
    location: str
    latest_run_id: str | None


@dataclass(frozen=True)
class RunMeta:
    """Caller-supplied run attributes."""

    nominal_start_time: datetime | None = None
    nominal_end_time: datetime | None = None
    args: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Run:
    """Run view with its cached current state."""

    id: str
    created_at: datetime
    updated_at: datetime
    nominal_start_time: datetime | None
    nominal_end_time: datetime | None
    state: RunState
    args: Mapping[str, str]
    job_version_id: str


@dataclass(frozen=True)
class RunStateRecord:
    """One immutable entry of a run's state history."""

    id: str
    transitioned_at: datetime
    run_id: str
    state: RunState
