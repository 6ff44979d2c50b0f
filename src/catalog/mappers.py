"""Row and domain model mapping plus request validation helpers.

Functions here are stateless: they build rows for inserts, turn rows
back into domain models, and reject malformed metadata before any
transaction opens.
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timedelta, timezone
from typing import Mapping, cast
from uuid import uuid4

from core.constants import HASH_ALGORITHM
from core.errors import CatalogValidationError, StoreError
from core.types import (
    DATASET_TYPES,
    JOB_TYPES,
    RUN_STATES,
    DatasetFacet,
    DatasetId,
    DatasetMeta,
    DatasetType,
    DatasetVersion,
    Dataset,
    DbTableFacet,
    Job,
    JobMeta,
    JobType,
    JobVersion,
    Namespace,
    NamespaceMeta,
    Run,
    RunMeta,
    RunState,
    RunStateRecord,
    Source,
    SourceMeta,
    StreamFacet,
)
from store.rows import (
    DatasetRow,
    DatasetVersionRow,
    ExtendedDatasetRow,
    ExtendedJobRow,
    ExtendedRunRow,
    JobRow,
    JobVersionRow,
    NamespaceRow,
    RunArgsRow,
    RunRow,
    RunStateRow,
    SourceRow,
)

_MIN_TICK = timedelta(microseconds=1)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def next_timestamp(previous: datetime | None) -> datetime:
    """Return now, bumped past ``previous`` so history stays strictly ordered."""
    now = utc_now()
    if previous is not None and now <= previous:
        return previous + _MIN_TICK
    return now


def validate_name(value: str, field_name: str) -> str:
    """Reject blank identity strings.

    Args:
        value: Candidate name.
        field_name: Field label for the error message.

    Returns:
        The unchanged value.

    Raises:
        CatalogValidationError: If the value is not a non-empty string.
    """
    if not isinstance(value, str) or not value.strip():
        raise CatalogValidationError(f"Field '{field_name}' must be a non-empty string.")
    return value


def validate_page(limit: int, offset: int) -> None:
    """Reject negative pagination bounds."""
    if limit < 0 or offset < 0:
        raise CatalogValidationError(
            f"Pagination bounds must be non-negative, got limit={limit} offset={offset}."
        )


def validate_dataset_meta(meta: DatasetMeta) -> None:
    """Reject dataset metadata whose discriminant and payload disagree."""
    if meta.type not in DATASET_TYPES:
        raise CatalogValidationError(
            f"Unsupported dataset type {meta.type!r}. Use one of: {', '.join(DATASET_TYPES)}."
        )
    validate_name(meta.physical_name, "physical_name")
    validate_name(meta.source_name, "source_name")
    match (meta.type, meta.facet):
        case ("STREAM", StreamFacet(schema_location=schema_location)):
            validate_name(schema_location, "schema_location")
        case ("DB_TABLE", DbTableFacet()):
            pass
        case _:
            raise CatalogValidationError(
                f"Dataset type {meta.type!r} does not match payload {type(meta.facet).__name__}."
            )


def validate_job_meta(meta: JobMeta) -> None:
    """Reject job metadata with an unknown type or blank references."""
    if meta.type not in JOB_TYPES:
        raise CatalogValidationError(
            f"Unsupported job type {meta.type!r}. Use one of: {', '.join(JOB_TYPES)}."
        )
    validate_name(meta.location, "location")
    for dataset_id in (*meta.inputs, *meta.outputs):
        validate_name(dataset_id.namespace, "dataset namespace")
        validate_name(dataset_id.name, "dataset name")


def parse_run_state(raw_state: str) -> RunState:
    """Narrow a stored state string to ``RunState``; unknown values mean corruption."""
    if raw_state in RUN_STATES:
        return cast(RunState, raw_state)
    raise StoreError(f"Unknown run state {raw_state!r} in store. Expected one of {RUN_STATES}.")


def to_namespace(row: NamespaceRow) -> Namespace:
    """Map a namespace row to its domain view."""
    return Namespace(
        name=row.name,
        created_at=row.created_at,
        updated_at=row.updated_at,
        owner_name=row.current_owner_name,
        description=row.description,
    )


def to_namespace_row(name: str, meta: NamespaceMeta) -> NamespaceRow:
    """Build a fresh namespace row for an upsert."""
    now = utc_now()
    return NamespaceRow(
        uuid=str(uuid4()),
        created_at=now,
        updated_at=now,
        name=name,
        description=meta.description,
        current_owner_name=meta.owner_name,
    )


def to_source(row: SourceRow) -> Source:
    """Map a source row to its domain view."""
    return Source(
        type=row.type,
        name=row.name,
        created_at=row.created_at,
        updated_at=row.updated_at,
        connection_url=row.connection_url,
        description=row.description,
    )


def to_source_row(name: str, meta: SourceMeta) -> SourceRow:
    """Build a fresh source row for an upsert."""
    now = utc_now()
    return SourceRow(
        uuid=str(uuid4()),
        type=meta.type,
        created_at=now,
        updated_at=now,
        name=name,
        connection_url=meta.connection_url,
        description=meta.description,
    )


def to_dataset(extended_row: ExtendedDatasetRow, version_row: DatasetVersionRow) -> Dataset:
    """Merge a dataset anchor with its current version payload."""
    dataset_type = _dataset_type(extended_row.type)
    return Dataset(
        type=dataset_type,
        namespace=extended_row.namespace_name,
        name=extended_row.name,
        physical_name=extended_row.physical_name,
        created_at=extended_row.created_at,
        updated_at=extended_row.updated_at,
        source_name=extended_row.source_name,
        current_version=version_row.version,
        facet=to_dataset_facet(dataset_type, version_row),
        description=extended_row.description,
    )


def to_dataset_facet(dataset_type: DatasetType, version_row: DatasetVersionRow) -> DatasetFacet:
    """Rebuild the type-specific payload stored alongside a version row."""
    match dataset_type:
        case "STREAM":
            if version_row.schema_location is None:
                raise StoreError(
                    f"Stream version {version_row.uuid} is missing its schema location."
                )
            return StreamFacet(schema_location=version_row.schema_location)
        case _:
            return DbTableFacet()


def to_dataset_row(
    namespace_uuid: str, source_uuid: str, name: str, meta: DatasetMeta, now: datetime
) -> DatasetRow:
    """Build a new dataset anchor row with an empty version pointer."""
    return DatasetRow(
        uuid=str(uuid4()),
        type=meta.type,
        created_at=now,
        updated_at=now,
        namespace_uuid=namespace_uuid,
        source_uuid=source_uuid,
        name=name,
        physical_name=meta.physical_name,
        description=meta.description,
        current_version_uuid=None,
    )


def to_dataset_version_row(
    dataset_uuid: str, source_uuid: str, version: str, meta: DatasetMeta, now: datetime
) -> DatasetVersionRow:
    """Build an immutable dataset version row.

    Args:
        dataset_uuid: Owning dataset row id.
        source_uuid: Source the version lives in.
        version: Content version computed from identity fields.
        meta: Dataset attributes the version captures.
        now: Creation time.

    Returns:
        Row ready for insertion.
    """
    schema_location: str | None = None
    match meta.facet:
        case StreamFacet(schema_location=location):
            schema_location = location
        case DbTableFacet():
            pass
    return DatasetVersionRow(
        uuid=str(uuid4()),
        created_at=now,
        dataset_uuid=dataset_uuid,
        version=version,
        type=meta.type,
        physical_name=meta.physical_name,
        source_uuid=source_uuid,
        run_uuid=meta.run_id,
        schema_location=schema_location,
        source_name=meta.source_name,
    )


def to_dataset_version(
    extended_row: ExtendedDatasetRow, version_row: DatasetVersionRow
) -> DatasetVersion:
    """Map a dataset version row to its domain view."""
    dataset_type = _dataset_type(version_row.type)
    return DatasetVersion(
        id=version_row.uuid,
        version=version_row.version,
        namespace=extended_row.namespace_name,
        dataset_name=extended_row.name,
        created_at=version_row.created_at,
        type=dataset_type,
        physical_name=version_row.physical_name,
        source_name=version_row.source_name or extended_row.source_name,
        run_id=version_row.run_uuid,
        facet=to_dataset_facet(dataset_type, version_row),
    )


def to_job(
    extended_row: ExtendedJobRow,
    version_row: JobVersionRow,
    inputs: tuple[DatasetId, ...],
    outputs: tuple[DatasetId, ...],
) -> Job:
    """Merge a job anchor with its current version payload."""
    return Job(
        type=_job_type(extended_row.type),
        namespace=extended_row.namespace_name,
        name=extended_row.name,
        created_at=extended_row.created_at,
        updated_at=extended_row.updated_at,
        inputs=inputs,
        outputs=outputs,
        location=version_row.location,
        current_version=version_row.version,
        description=extended_row.description,
    )


def to_job_row(namespace_uuid: str, name: str, meta: JobMeta, now: datetime) -> JobRow:
    """Build a new job anchor row with an empty version pointer."""
    return JobRow(
        uuid=str(uuid4()),
        type=meta.type,
        created_at=now,
        updated_at=now,
        namespace_uuid=namespace_uuid,
        name=name,
        description=meta.description,
        current_version_uuid=None,
    )


def to_job_version_row(
    job_uuid: str,
    version: str,
    location: str,
    input_version_uuids: tuple[str, ...],
    output_version_uuids: tuple[str, ...],
    now: datetime,
) -> JobVersionRow:
    """Build an immutable job version row with its dataset-version links."""
    return JobVersionRow(
        uuid=str(uuid4()),
        created_at=now,
        job_uuid=job_uuid,
        version=version,
        location=location,
        input_version_uuids=input_version_uuids,
        output_version_uuids=output_version_uuids,
    )


def to_job_version(
    extended_row: ExtendedJobRow,
    version_row: JobVersionRow,
    inputs: tuple[DatasetId, ...],
    outputs: tuple[DatasetId, ...],
    latest_run_uuid: str | None,
) -> JobVersion:
    """Map a job version row to its domain view.

    Args:
        extended_row: Owning job row.
        version_row: Version row to map.
        inputs: Input dataset identities resolved from the links.
        outputs: Output dataset identities resolved from the links.
        latest_run_uuid: Most recent run of the version, derived on read.

    Returns:
        Job version view.
    """
    return JobVersion(
        id=version_row.uuid,
        version=version_row.version,
        namespace=extended_row.namespace_name,
        job_name=extended_row.name,
        created_at=version_row.created_at,
        inputs=inputs,
        outputs=outputs,
        input_versions=version_row.input_version_uuids,
        output_versions=version_row.output_version_uuids,
        location=version_row.location,
        latest_run_id=latest_run_uuid,
    )


def to_run(extended_row: ExtendedRunRow) -> Run:
    """Map a run row to its domain view.

    Raises:
        StoreError: If the run has no recorded state.
    """
    if extended_row.current_run_state is None:
        raise StoreError(f"Run {extended_row.uuid} has no recorded state.")
    return Run(
        id=extended_row.uuid,
        created_at=extended_row.created_at,
        updated_at=extended_row.updated_at,
        nominal_start_time=extended_row.nominal_start_time,
        nominal_end_time=extended_row.nominal_end_time,
        state=parse_run_state(extended_row.current_run_state),
        args=_args_from_json(extended_row.args),
        job_version_id=extended_row.job_version_uuid,
    )


def to_run_row(job_version_uuid: str, run_args_uuid: str, meta: RunMeta, now: datetime) -> RunRow:
    """Build a new run anchor row; the state pointer is set by the first append."""
    return RunRow(
        uuid=str(uuid4()),
        created_at=now,
        updated_at=now,
        job_version_uuid=job_version_uuid,
        run_args_uuid=run_args_uuid,
        nominal_start_time=meta.nominal_start_time,
        nominal_end_time=meta.nominal_end_time,
        current_run_state=None,
        transitioned_at=None,
    )


def to_run_args_row(args: Mapping[str, str]) -> RunArgsRow:
    """Build a content-addressed run args row from an argument map."""
    serialized = args_to_json(args)
    return RunArgsRow(
        uuid=str(uuid4()),
        created_at=utc_now(),
        args=serialized,
        checksum=args_checksum(serialized),
    )


def to_run_state_row(run_uuid: str, state: RunState, transitioned_at: datetime) -> RunStateRow:
    """Build one immutable state history row."""
    return RunStateRow(
        uuid=str(uuid4()),
        transitioned_at=transitioned_at,
        run_uuid=run_uuid,
        state=state,
    )


def to_run_state_record(row: RunStateRow) -> RunStateRecord:
    """Map a state history row to its domain view."""
    return RunStateRecord(
        id=row.uuid,
        transitioned_at=row.transitioned_at,
        run_id=row.run_uuid,
        state=parse_run_state(row.state),
    )


def args_to_json(args: Mapping[str, str]) -> str:
    """Serialize run arguments canonically with sorted keys."""
    return json.dumps(dict(args), sort_keys=True, separators=(",", ":"))


def args_checksum(serialized_args: str) -> str:
    """Return the hex digest used to deduplicate run arguments."""
    hash_builder = hashlib.new(HASH_ALGORITHM)
    hash_builder.update(serialized_args.encode("utf-8"))
    return hash_builder.hexdigest()


def _args_from_json(raw_args: str) -> dict[str, str]:
    try:
        payload = json.loads(raw_args)
    except json.JSONDecodeError as error:
        raise StoreError(f"Stored run args are not valid JSON: {error.msg}.") from error
    if not isinstance(payload, dict):
        raise StoreError("Stored run args must be a JSON object.")
    return {str(key): str(value) for key, value in payload.items()}


def _dataset_type(raw_type: str) -> DatasetType:
    if raw_type in DATASET_TYPES:
        return cast(DatasetType, raw_type)
    raise StoreError(f"Unknown dataset type {raw_type!r} in store.")


def _job_type(raw_type: str) -> JobType:
    if raw_type in JOB_TYPES:
        return cast(JobType, raw_type)
    raise StoreError(f"Unknown job type {raw_type!r} in store.")
