"""Dataset lifecycle and version management.

This module decides, per write, whether incoming dataset metadata is a
new version or a refresh of descriptive fields, and applies the outcome
in one store transaction. Version rows are append-only; the dataset
anchor row carries the only mutable pointer.
"""

from __future__ import annotations

import sqlite3
from typing import Literal

from catalog.collaborators import NamespaceExistence, RunExistence
from catalog.identity_retry import retry_on_identity_conflict
from catalog.mappers import (
    next_timestamp,
    to_dataset,
    to_dataset_row,
    to_dataset_version,
    to_dataset_version_row,
    utc_now,
    validate_dataset_meta,
    validate_name,
    validate_page,
)
from catalog.source_registry import resolve_source
from catalog.version_resolver import dataset_version
from core.constants import DEFAULT_MAX_CONFLICT_RETRIES, UNKNOWN_SOURCE_TYPE
from core.errors import NamespaceNotFoundError, RunNotFoundError, StoreError
from core.logging_config import get_logger
from core.types import Dataset, DatasetMeta, DatasetVersion
from store.dataset_dao import (
    find_dataset,
    find_dataset_by_uuid,
    find_dataset_version,
    find_dataset_version_by_version,
    insert_dataset,
    insert_dataset_version,
    list_dataset_versions,
    list_datasets,
    refresh_dataset,
    update_current_version,
)
from store.metadata_store import MetadataStore
from store.namespace_dao import find_namespace
from store.rows import DatasetVersionRow, ExtendedDatasetRow

_LOGGER = get_logger(__name__)

WriteOutcome = Literal["created", "versioned", "reverted", "refreshed"]


class DatasetCatalog:
    """Create-or-update and lookup operations for datasets."""

    def __init__(
        self,
        store: MetadataStore,
        namespaces: NamespaceExistence,
        runs: RunExistence,
        max_conflict_retries: int = DEFAULT_MAX_CONFLICT_RETRIES,
    ) -> None:
        """Create the catalog.

        Args:
            store: Metadata store every write runs against.
            namespaces: Existence check for owning namespaces.
            runs: Existence check for producing runs.
            max_conflict_retries: Attempts before an identity conflict propagates.
        """
        self._store = store
        self._namespaces = namespaces
        self._runs = runs
        self._max_conflict_retries = max_conflict_retries

    def create_or_update(self, namespace: str, name: str, meta: DatasetMeta) -> Dataset:
        """Register a dataset or record a new version of it.

        Identity fields decide the outcome: identical content refreshes the
        description, earlier content moves the pointer back to that
        version, and new content appends a version.

        Args:
            namespace: Owning namespace, which must already exist.
            name: Dataset name, unique within the namespace.
            meta: Dataset attributes.

        Returns:
            Dataset merged with its current version.

        Raises:
            NamespaceNotFoundError: If the namespace is unknown.
            RunNotFoundError: If ``meta.run_id`` names an unknown run.
            CatalogValidationError: If the metadata is malformed.
        """
        validate_name(namespace, "namespace")
        validate_name(name, "dataset")
        validate_dataset_meta(meta)
        if not self._namespaces.exists(namespace):
            raise NamespaceNotFoundError(namespace)
        if meta.run_id is not None and not self._runs.run_exists(meta.run_id):
            raise RunNotFoundError(meta.run_id)
        version = dataset_version(namespace, name, meta)
        dataset, outcome, source_created = retry_on_identity_conflict(
            lambda: self._write(namespace, name, meta, version),
            self._max_conflict_retries,
            entity=f"dataset:{namespace}.{name}",
        )
        if source_created:
            _LOGGER.info(
                "source_created", source=meta.source_name, source_type=UNKNOWN_SOURCE_TYPE
            )
        _LOGGER.info(
            "dataset_refreshed" if outcome == "refreshed" else "dataset_version_created",
            namespace=namespace,
            dataset=name,
            version=dataset.current_version,
            outcome=outcome,
        )
        return dataset

    def get(self, namespace: str, name: str) -> Dataset | None:
        """Return the dataset merged with its current version, or None when unknown."""
        with self._store.read() as conn:
            extended_row = find_dataset(conn, namespace, name)
            if extended_row is None:
                return None
            return to_dataset(extended_row, _current_version_row(conn, extended_row))

    def get_all(self, namespace: str, limit: int, offset: int) -> list[Dataset]:
        """List datasets by creation time ascending; past-the-end offsets yield []."""
        validate_page(limit, offset)
        with self._store.read() as conn:
            rows = list_datasets(conn, namespace, limit, offset)
            return [to_dataset(row, _current_version_row(conn, row)) for row in rows]

    def get_version(self, version_id: str) -> DatasetVersion | None:
        """Fetch any version, current or prior, by its version row id."""
        with self._store.read() as conn:
            version_row = find_dataset_version(conn, version_id)
            if version_row is None:
                return None
            extended_row = find_dataset_by_uuid(conn, version_row.dataset_uuid)
            if extended_row is None:
                raise StoreError(f"Dataset version {version_id} has no owning dataset.")
            return to_dataset_version(extended_row, version_row)

    def list_versions(self, namespace: str, name: str) -> list[DatasetVersion]:
        """List every version of a dataset in insertion order."""
        with self._store.read() as conn:
            extended_row = find_dataset(conn, namespace, name)
            if extended_row is None:
                return []
            version_rows = list_dataset_versions(conn, extended_row.uuid)
            return [to_dataset_version(extended_row, row) for row in version_rows]

    def _write(
        self, namespace: str, name: str, meta: DatasetMeta, version: str
    ) -> tuple[Dataset, WriteOutcome, bool]:
        """Apply one create-or-update attempt inside a single transaction.

        Returns:
            Stored dataset, the write outcome, and whether the source was
            created by this attempt.

        Raises:
            IdentityConflictError: If a concurrent writer inserted the anchor first.
        """
        with self._store.transaction() as conn:
            namespace_row = find_namespace(conn, namespace)
            if namespace_row is None:
                raise NamespaceNotFoundError(namespace)
            source_row, source_created = resolve_source(conn, meta.source_name)
            existing = find_dataset(conn, namespace, name)
            if existing is None:
                now = utc_now()
                dataset_row = to_dataset_row(namespace_row.uuid, source_row.uuid, name, meta, now)
                insert_dataset(conn, dataset_row)
                version_row = to_dataset_version_row(
                    dataset_row.uuid, source_row.uuid, version, meta, now
                )
                insert_dataset_version(conn, version_row)
                update_current_version(conn, now, version_row, meta.description)
                outcome: WriteOutcome = "created"
            else:
                outcome = _apply_update(conn, existing, source_row.uuid, meta, version)
            stored = find_dataset(conn, namespace, name)
            if stored is None:
                raise StoreError(f"Dataset {namespace}.{name} vanished inside its transaction.")
            return to_dataset(stored, _current_version_row(conn, stored)), outcome, source_created


def _apply_update(
    conn: sqlite3.Connection,
    existing: ExtendedDatasetRow,
    source_uuid: str,
    meta: DatasetMeta,
    version: str,
) -> WriteOutcome:
    """Refresh, revert, or append a version for an existing dataset."""
    current = _current_version_row(conn, existing)
    now = next_timestamp(max(existing.updated_at, current.created_at))
    if current.version == version:
        refresh_dataset(conn, existing.uuid, now, meta.description)
        return "refreshed"
    prior = find_dataset_version_by_version(conn, existing.uuid, version)
    if prior is not None:
        update_current_version(conn, now, prior, meta.description)
        return "reverted"
    version_row = to_dataset_version_row(existing.uuid, source_uuid, version, meta, now)
    insert_dataset_version(conn, version_row)
    update_current_version(conn, now, version_row, meta.description)
    return "versioned"


def _current_version_row(conn: sqlite3.Connection, row: ExtendedDatasetRow) -> DatasetVersionRow:
    """Load the version row the dataset anchor points at.

    Raises:
        StoreError: If the pointer is null or dangling.
    """
    if row.current_version_uuid is None:
        raise StoreError(f"Dataset {row.namespace_name}.{row.name} has no current version.")
    version_row = find_dataset_version(conn, row.current_version_uuid)
    if version_row is None:
        raise StoreError(
            f"Dataset {row.namespace_name}.{row.name} points at missing version "
            f"{row.current_version_uuid}."
        )
    return version_row
