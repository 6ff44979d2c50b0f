"""Job lifecycle, versions, and input/output linkage.

Each job version records, at creation time, the current version row of
every input and output dataset. That is what lets lineage consumers
reconstruct exactly which dataset states a job version read and wrote.
"""

from __future__ import annotations

import sqlite3
from typing import Literal, Sequence

from catalog.collaborators import NamespaceExistence
from catalog.identity_retry import retry_on_identity_conflict
from catalog.mappers import (
    next_timestamp,
    to_job,
    to_job_row,
    to_job_version,
    to_job_version_row,
    utc_now,
    validate_job_meta,
    validate_name,
    validate_page,
)
from catalog.version_resolver import job_version
from core.constants import DEFAULT_MAX_CONFLICT_RETRIES
from core.errors import DatasetNotFoundError, NamespaceNotFoundError, StoreError
from core.logging_config import get_logger
from core.types import DatasetId, Job, JobMeta, JobVersion
from store.dataset_dao import find_dataset, find_dataset_by_uuid, find_dataset_version
from store.job_dao import (
    find_job,
    find_job_by_uuid,
    find_job_version,
    find_job_version_by_version,
    find_latest_run_uuid,
    insert_job,
    insert_job_version,
    list_job_versions,
    list_jobs,
    refresh_job,
    update_current_version,
)
from store.metadata_store import MetadataStore
from store.namespace_dao import find_namespace
from store.rows import ExtendedJobRow, JobVersionRow

_LOGGER = get_logger(__name__)

WriteOutcome = Literal["created", "versioned", "reverted", "refreshed"]


class JobCatalog:
    """Create-or-update and lookup operations for jobs."""

    def __init__(
        self,
        store: MetadataStore,
        namespaces: NamespaceExistence,
        max_conflict_retries: int = DEFAULT_MAX_CONFLICT_RETRIES,
    ) -> None:
        """Create the catalog.

        Args:
            store: Metadata store every write runs against.
            namespaces: Existence check for owning namespaces.
            max_conflict_retries: Attempts before an identity conflict propagates.
        """
        self._store = store
        self._namespaces = namespaces
        self._max_conflict_retries = max_conflict_retries

    def create_or_update(self, namespace: str, name: str, meta: JobMeta) -> Job:
        """Register a job or record a new version of it.

        Each input and output is linked to the dataset version current at
        write time. A change to the job type or description alone is a
        refresh and keeps the current version.

        Args:
            namespace: Owning namespace, which must already exist.
            name: Job name, unique within the namespace.
            meta: Job attributes.

        Returns:
            Job merged with its current version.

        Raises:
            NamespaceNotFoundError: If the namespace is unknown.
            DatasetNotFoundError: If any input or output dataset is unknown.
            CatalogValidationError: If the metadata is malformed.
        """
        validate_name(namespace, "namespace")
        validate_name(name, "job")
        validate_job_meta(meta)
        if not self._namespaces.exists(namespace):
            raise NamespaceNotFoundError(namespace)
        version = job_version(namespace, name, meta)
        job, outcome = retry_on_identity_conflict(
            lambda: self._write(namespace, name, meta, version),
            self._max_conflict_retries,
            entity=f"job:{namespace}.{name}",
        )
        _LOGGER.info(
            "job_refreshed" if outcome == "refreshed" else "job_version_created",
            namespace=namespace,
            job=name,
            version=job.current_version,
            outcome=outcome,
        )
        return job

    def get(self, namespace: str, name: str) -> Job | None:
        """Return the job merged with its current version, or None when unknown."""
        with self._store.read() as conn:
            extended_row = find_job(conn, namespace, name)
            if extended_row is None:
                return None
            return _to_job(conn, extended_row)

    def get_all(self, namespace: str, limit: int, offset: int) -> list[Job]:
        """List jobs of a namespace by creation time ascending.

        Args:
            namespace: Namespace to list.
            limit: Maximum number of jobs to return.
            offset: Number of jobs to skip.

        Returns:
            One page of jobs; past-the-end offsets yield an empty list.

        Raises:
            CatalogValidationError: If limit or offset is negative.
        """
        validate_page(limit, offset)
        with self._store.read() as conn:
            rows = list_jobs(conn, namespace, limit, offset)
            return [_to_job(conn, row) for row in rows]

    def get_version(self, version_id: str) -> JobVersion | None:
        """Fetch any job version, current or prior, by its version row id."""
        with self._store.read() as conn:
            version_row = find_job_version(conn, version_id)
            if version_row is None:
                return None
            extended_row = find_job_by_uuid(conn, version_row.job_uuid)
            if extended_row is None:
                raise StoreError(f"Job version {version_id} has no owning job.")
            return _to_job_version(conn, extended_row, version_row)

    def list_versions(self, namespace: str, name: str) -> list[JobVersion]:
        """List every version of a job in insertion order; unknown jobs yield []."""
        with self._store.read() as conn:
            extended_row = find_job(conn, namespace, name)
            if extended_row is None:
                return []
            return [
                _to_job_version(conn, extended_row, row)
                for row in list_job_versions(conn, extended_row.uuid)
            ]

    def _write(
        self, namespace: str, name: str, meta: JobMeta, version: str
    ) -> tuple[Job, WriteOutcome]:
        """Apply one create-or-update attempt inside a single transaction.

        Raises:
            IdentityConflictError: If a concurrent writer inserted the anchor first.
        """
        with self._store.transaction() as conn:
            namespace_row = find_namespace(conn, namespace)
            if namespace_row is None:
                raise NamespaceNotFoundError(namespace)
            input_versions = _resolve_dataset_versions(conn, meta.inputs)
            output_versions = _resolve_dataset_versions(conn, meta.outputs)
            existing = find_job(conn, namespace, name)
            if existing is None:
                now = utc_now()
                job_row = to_job_row(namespace_row.uuid, name, meta, now)
                insert_job(conn, job_row)
                version_row = to_job_version_row(
                    job_row.uuid, version, meta.location, input_versions, output_versions, now
                )
                insert_job_version(conn, version_row)
                update_current_version(
                    conn, job_row.uuid, now, version_row.uuid, meta.type, meta.description
                )
                outcome: WriteOutcome = "created"
            else:
                current = _current_version_row(conn, existing)
                now = next_timestamp(max(existing.updated_at, current.created_at))
                if current.version == version:
                    refresh_job(conn, existing.uuid, now, meta.type, meta.description)
                    outcome = "refreshed"
                else:
                    prior = find_job_version_by_version(conn, existing.uuid, version)
                    if prior is not None:
                        target_uuid = prior.uuid
                        outcome = "reverted"
                    else:
                        version_row = to_job_version_row(
                            existing.uuid,
                            version,
                            meta.location,
                            input_versions,
                            output_versions,
                            now,
                        )
                        insert_job_version(conn, version_row)
                        target_uuid = version_row.uuid
                        outcome = "versioned"
                    update_current_version(
                        conn, existing.uuid, now, target_uuid, meta.type, meta.description
                    )
            stored = find_job(conn, namespace, name)
            if stored is None:
                raise StoreError(f"Job {namespace}.{name} vanished inside its transaction.")
            return _to_job(conn, stored), outcome


def _resolve_dataset_versions(
    conn: sqlite3.Connection, dataset_ids: Sequence[DatasetId]
) -> tuple[str, ...]:
    """Map dataset identities to their current version rows, as an ordered set."""
    unique_ids = sorted({(item.namespace, item.name) for item in dataset_ids})
    version_uuids: list[str] = []
    for namespace, name in unique_ids:
        dataset_row = find_dataset(conn, namespace, name)
        if dataset_row is None or dataset_row.current_version_uuid is None:
            raise DatasetNotFoundError(namespace, name)
        version_uuids.append(dataset_row.current_version_uuid)
    return tuple(version_uuids)


def _dataset_ids(conn: sqlite3.Connection, version_uuids: Sequence[str]) -> tuple[DatasetId, ...]:
    """Map linked dataset version row ids back to dataset identities."""
    dataset_ids: list[DatasetId] = []
    for version_uuid in version_uuids:
        version_row = find_dataset_version(conn, version_uuid)
        if version_row is None:
            raise StoreError(f"Job version references missing dataset version {version_uuid}.")
        dataset_row = find_dataset_by_uuid(conn, version_row.dataset_uuid)
        if dataset_row is None:
            raise StoreError(f"Dataset version {version_uuid} has no owning dataset.")
        dataset_ids.append(DatasetId(dataset_row.namespace_name, dataset_row.name))
    return tuple(dataset_ids)


def _current_version_row(conn: sqlite3.Connection, row: ExtendedJobRow) -> JobVersionRow:
    """Load the version row the job anchor points at.

    Raises:
        StoreError: If the pointer is null or dangling.
    """
    if row.current_version_uuid is None:
        raise StoreError(f"Job {row.namespace_name}.{row.name} has no current version.")
    version_row = find_job_version(conn, row.current_version_uuid)
    if version_row is None:
        raise StoreError(
            f"Job {row.namespace_name}.{row.name} points at missing version "
            f"{row.current_version_uuid}."
        )
    return version_row


def _to_job(conn: sqlite3.Connection, row: ExtendedJobRow) -> Job:
    """Merge a job anchor with its current version and dataset identities."""
    version_row = _current_version_row(conn, row)
    return to_job(
        row,
        version_row,
        _dataset_ids(conn, version_row.input_version_uuids),
        _dataset_ids(conn, version_row.output_version_uuids),
    )


def _to_job_version(
    conn: sqlite3.Connection, row: ExtendedJobRow, version_row: JobVersionRow
) -> JobVersion:
    """Map a version row, resolving its dataset links and latest run."""
    return to_job_version(
        row,
        version_row,
        _dataset_ids(conn, version_row.input_version_uuids),
        _dataset_ids(conn, version_row.output_version_uuids),
        find_latest_run_uuid(conn, version_row.uuid),
    )
