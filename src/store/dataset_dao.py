"""Row access for datasets, dataset versions, and stream extensions."""

from __future__ import annotations

import sqlite3
from datetime import datetime

from core.errors import StoreError
from store.columns import (
    CREATED_AT,
    CURRENT_VERSION_UUID,
    DATASET_UUID,
    DESCRIPTION,
    NAME,
    NAMESPACE_NAME,
    NAMESPACE_UUID,
    PHYSICAL_NAME,
    ROW_UUID,
    RUN_UUID,
    SCHEMA_LOCATION,
    SOURCE_NAME,
    SOURCE_UUID,
    TYPE,
    UPDATED_AT,
    VERSION,
    string_or_none,
    string_or_throw,
    timestamp_or_throw,
    timestamp_to_text,
    uuid_or_none,
    uuid_or_throw,
)
from store.rows import DatasetRow, DatasetVersionRow, ExtendedDatasetRow

_SELECT_EXTENDED = (
    "SELECT d.*, n.name AS namespace_name, s.name AS source_name "
    "FROM datasets d "
    "JOIN namespaces n ON n.uuid = d.namespace_uuid "
    "JOIN sources s ON s.uuid = d.source_uuid "
)
_SELECT_VERSION = (
    "SELECT v.*, sv.schema_location AS schema_location, s.name AS source_name "
    "FROM dataset_versions v "
    "JOIN sources s ON s.uuid = v.source_uuid "
    "LEFT JOIN stream_versions sv ON sv.dataset_version_uuid = v.uuid "
)


def insert_dataset(conn: sqlite3.Connection, row: DatasetRow) -> None:
    """Insert a dataset anchor; raises on a duplicate (namespace, name)."""
    conn.execute(
        "INSERT INTO datasets (uuid, type, created_at, updated_at, namespace_uuid, source_uuid, "
        "name, physical_name, description, current_version_uuid) "
        "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
        (
            row.uuid,
            row.type,
            timestamp_to_text(row.created_at),
            timestamp_to_text(row.updated_at),
            row.namespace_uuid,
            row.source_uuid,
            row.name,
            row.physical_name,
            row.description,
            row.current_version_uuid,
        ),
    )


def find_dataset(
    conn: sqlite3.Connection, namespace_name: str, name: str
) -> ExtendedDatasetRow | None:
    """Look up a dataset anchor by its namespace-qualified name.

    Args:
        conn: Open store connection.
        namespace_name: Owning namespace name.
        name: Dataset name.

    Returns:
        Dataset row joined with namespace and source names, or None.
    """
    result = conn.execute(
        _SELECT_EXTENDED + "WHERE n.name = ? AND d.name = ?",
        (namespace_name, name),
    ).fetchone()
    return _extended_dataset_row(result) if result is not None else None


def find_dataset_by_uuid(conn: sqlite3.Connection, dataset_uuid: str) -> ExtendedDatasetRow | None:
    """Look up a dataset anchor by row id, or None when absent."""
    result = conn.execute(_SELECT_EXTENDED + "WHERE d.uuid = ?", (dataset_uuid,)).fetchone()
    return _extended_dataset_row(result) if result is not None else None


def list_datasets(
    conn: sqlite3.Connection, namespace_name: str, limit: int, offset: int
) -> list[ExtendedDatasetRow]:
    """List datasets of one namespace by creation time ascending."""
    results = conn.execute(
        _SELECT_EXTENDED + "WHERE n.name = ? "
        "ORDER BY d.created_at ASC, d.name ASC LIMIT ? OFFSET ?",
        (namespace_name, limit, offset),
    ).fetchall()
    return [_extended_dataset_row(result) for result in results]


def refresh_dataset(
    conn: sqlite3.Connection,
    dataset_uuid: str,
    updated_at: datetime,
    description: str | None,
) -> None:
    """Refresh descriptive fields without touching the version pointer."""
    conn.execute(
        "UPDATE datasets SET updated_at = ?, description = ? WHERE uuid = ?",
        (timestamp_to_text(updated_at), description, dataset_uuid),
    )


def update_current_version(
    conn: sqlite3.Connection,
    updated_at: datetime,
    version_row: DatasetVersionRow,
    description: str | None,
) -> None:
    """Point a dataset at one of its versions and mirror that version's identity.

    Raises:
        StoreError: If the version belongs to another dataset.
    """
    cursor = conn.execute(
        "UPDATE datasets SET updated_at = ?, current_version_uuid = ?, type = ?, "
        "physical_name = ?, source_uuid = ?, description = ? "
        "WHERE uuid = ? "
        "AND EXISTS (SELECT 1 FROM dataset_versions WHERE uuid = ? AND dataset_uuid = ?)",
        (
            timestamp_to_text(updated_at),
            version_row.uuid,
            version_row.type,
            version_row.physical_name,
            version_row.source_uuid,
            description,
            version_row.dataset_uuid,
            version_row.uuid,
            version_row.dataset_uuid,
        ),
    )
    if cursor.rowcount != 1:
        raise StoreError(
            f"Cannot point dataset {version_row.dataset_uuid} at version {version_row.uuid}: "
            "the version does not belong to the dataset."
        )


def insert_dataset_version(conn: sqlite3.Connection, row: DatasetVersionRow) -> None:
    """Insert one immutable version row plus its stream extension when present."""
    conn.execute(
        "INSERT INTO dataset_versions (uuid, created_at, dataset_uuid, version, type, "
        "physical_name, source_uuid, run_uuid) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
        (
            row.uuid,
            timestamp_to_text(row.created_at),
            row.dataset_uuid,
            row.version,
            row.type,
            row.physical_name,
            row.source_uuid,
            row.run_uuid,
        ),
    )
    if row.schema_location is not None:
        conn.execute(
            "INSERT INTO stream_versions (dataset_version_uuid, schema_location) VALUES (?, ?)",
            (row.uuid, row.schema_location),
        )


def find_dataset_version(conn: sqlite3.Connection, version_uuid: str) -> DatasetVersionRow | None:
    """Look up a dataset version by row id, or None when absent."""
    result = conn.execute(_SELECT_VERSION + "WHERE v.uuid = ?", (version_uuid,)).fetchone()
    return _dataset_version_row(result) if result is not None else None


def find_dataset_version_by_version(
    conn: sqlite3.Connection, dataset_uuid: str, version: str
) -> DatasetVersionRow | None:
    """Look up a dataset's version row by its content version id.

    Returns:
        Matching version row, or None if the dataset never had that content.
    """
    result = conn.execute(
        _SELECT_VERSION + "WHERE v.dataset_uuid = ? AND v.version = ?",
        (dataset_uuid, version),
    ).fetchone()
    return _dataset_version_row(result) if result is not None else None


def list_dataset_versions(conn: sqlite3.Connection, dataset_uuid: str) -> list[DatasetVersionRow]:
    """List versions of one dataset in insertion order."""
    results = conn.execute(
        _SELECT_VERSION + "WHERE v.dataset_uuid = ? ORDER BY v.created_at ASC, v.rowid ASC",
        (dataset_uuid,),
    ).fetchall()
    return [_dataset_version_row(result) for result in results]


def _extended_dataset_row(result: sqlite3.Row) -> ExtendedDatasetRow:
    return ExtendedDatasetRow(
        uuid=uuid_or_throw(result, ROW_UUID),
        type=string_or_throw(result, TYPE),
        created_at=timestamp_or_throw(result, CREATED_AT),
        updated_at=timestamp_or_throw(result, UPDATED_AT),
        namespace_uuid=uuid_or_throw(result, NAMESPACE_UUID),
        namespace_name=string_or_throw(result, NAMESPACE_NAME),
        source_uuid=uuid_or_throw(result, SOURCE_UUID),
        source_name=string_or_throw(result, SOURCE_NAME),
        name=string_or_throw(result, NAME),
        physical_name=string_or_throw(result, PHYSICAL_NAME),
        description=string_or_none(result, DESCRIPTION),
        current_version_uuid=uuid_or_none(result, CURRENT_VERSION_UUID),
    )


def _dataset_version_row(result: sqlite3.Row) -> DatasetVersionRow:
    return DatasetVersionRow(
        uuid=uuid_or_throw(result, ROW_UUID),
        created_at=timestamp_or_throw(result, CREATED_AT),
        dataset_uuid=uuid_or_throw(result, DATASET_UUID),
        version=string_or_throw(result, VERSION),
        type=string_or_throw(result, TYPE),
        physical_name=string_or_throw(result, PHYSICAL_NAME),
        source_uuid=uuid_or_throw(result, SOURCE_UUID),
        run_uuid=uuid_or_none(result, RUN_UUID),
        schema_location=string_or_none(result, SCHEMA_LOCATION),
        source_name=string_or_none(result, SOURCE_NAME),
    )
