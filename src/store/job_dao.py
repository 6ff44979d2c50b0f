"""Row access for jobs and job versions.

Job version rows are written once by ``insert_job_version`` and never
updated. The most recent run of a version is derived from the runs
table on read.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime

from core.errors import StoreError
from store.columns import (
    CREATED_AT,
    CURRENT_VERSION_UUID,
    DESCRIPTION,
    INPUT_VERSION_UUIDS,
    JOB_UUID,
    LOCATION,
    NAME,
    NAMESPACE_NAME,
    NAMESPACE_UUID,
    OUTPUT_VERSION_UUIDS,
    ROW_UUID,
    TYPE,
    UPDATED_AT,
    VERSION,
    string_array_or_throw,
    string_array_to_text,
    string_or_none,
    string_or_throw,
    timestamp_or_throw,
    timestamp_to_text,
    uuid_or_none,
    uuid_or_throw,
)
from store.rows import ExtendedJobRow, JobRow, JobVersionRow

_SELECT_EXTENDED = (
    "SELECT j.*, n.name AS namespace_name "
    "FROM jobs j "
    "JOIN namespaces n ON n.uuid = j.namespace_uuid "
)


def insert_job(conn: sqlite3.Connection, row: JobRow) -> None:
    """Insert a job anchor; raises on a duplicate (namespace, name)."""
    conn.execute(
        "INSERT INTO jobs (uuid, type, created_at, updated_at, namespace_uuid, name, "
        "description, current_version_uuid) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
        (
            row.uuid,
            row.type,
            timestamp_to_text(row.created_at),
            timestamp_to_text(row.updated_at),
            row.namespace_uuid,
            row.name,
            row.description,
            row.current_version_uuid,
        ),
    )


def find_job(conn: sqlite3.Connection, namespace_name: str, name: str) -> ExtendedJobRow | None:
    """Look up a job anchor by its namespace-qualified name.

    Args:
        conn: Open store connection.
        namespace_name: Owning namespace name.
        name: Job name.

    Returns:
        Job row joined with its namespace name, or None when absent.
    """
    result = conn.execute(
        _SELECT_EXTENDED + "WHERE n.name = ? AND j.name = ?",
        (namespace_name, name),
    ).fetchone()
    return _extended_job_row(result) if result is not None else None


def find_job_by_uuid(conn: sqlite3.Connection, job_uuid: str) -> ExtendedJobRow | None:
    """Look up a job anchor by row id, or None when absent."""
    result = conn.execute(_SELECT_EXTENDED + "WHERE j.uuid = ?", (job_uuid,)).fetchone()
    return _extended_job_row(result) if result is not None else None


def list_jobs(
    conn: sqlite3.Connection, namespace_name: str, limit: int, offset: int
) -> list[ExtendedJobRow]:
    """List jobs of one namespace by creation time ascending."""
    results = conn.execute(
        _SELECT_EXTENDED + "WHERE n.name = ? "
        "ORDER BY j.created_at ASC, j.name ASC LIMIT ? OFFSET ?",
        (namespace_name, limit, offset),
    ).fetchall()
    return [_extended_job_row(result) for result in results]


def refresh_job(
    conn: sqlite3.Connection,
    job_uuid: str,
    updated_at: datetime,
    job_type: str,
    description: str | None,
) -> None:
    """Refresh descriptive fields without touching the version pointer.

    Args:
        conn: Connection inside an open write transaction.
        job_uuid: Job anchor row id.
        updated_at: New modification time.
        job_type: Job type, which is descriptive and not versioned.
        description: New description; None clears it.
    """
    conn.execute(
        "UPDATE jobs SET updated_at = ?, type = ?, description = ? WHERE uuid = ?",
        (timestamp_to_text(updated_at), job_type, description, job_uuid),
    )


def update_current_version(
    conn: sqlite3.Connection,
    job_uuid: str,
    updated_at: datetime,
    version_uuid: str,
    job_type: str,
    description: str | None,
) -> None:
    """Advance the job's current version pointer to one of its own versions.

    Raises:
        StoreError: If the version belongs to another job.
    """
    cursor = conn.execute(
        "UPDATE jobs SET updated_at = ?, current_version_uuid = ?, type = ?, description = ? "
        "WHERE uuid = ? "
        "AND EXISTS (SELECT 1 FROM job_versions WHERE uuid = ? AND job_uuid = ?)",
        (
            timestamp_to_text(updated_at),
            version_uuid,
            job_type,
            description,
            job_uuid,
            version_uuid,
            job_uuid,
        ),
    )
    if cursor.rowcount != 1:
        raise StoreError(
            f"Cannot point job {job_uuid} at version {version_uuid}: "
            "the version does not belong to the job."
        )


def insert_job_version(conn: sqlite3.Connection, row: JobVersionRow) -> None:
    """Insert one immutable job version row with its dataset-version links."""
    conn.execute(
        "INSERT INTO job_versions (uuid, created_at, job_uuid, version, location, "
        "input_version_uuids, output_version_uuids) "
        "VALUES (?, ?, ?, ?, ?, ?, ?)",
        (
            row.uuid,
            timestamp_to_text(row.created_at),
            row.job_uuid,
            row.version,
            row.location,
            string_array_to_text(row.input_version_uuids),
            string_array_to_text(row.output_version_uuids),
        ),
    )


def find_job_version(conn: sqlite3.Connection, version_uuid: str) -> JobVersionRow | None:
    """Look up a job version by row id, or None when absent."""
    result = conn.execute("SELECT * FROM job_versions WHERE uuid = ?", (version_uuid,)).fetchone()
    return _job_version_row(result) if result is not None else None


def find_job_version_by_version(
    conn: sqlite3.Connection, job_uuid: str, version: str
) -> JobVersionRow | None:
    """Look up a job's version row by its content version id.

    Args:
        conn: Open store connection.
        job_uuid: Owning job row id.
        version: Content version computed from identity fields.

    Returns:
        Matching version row, or None if the job never had that content.
    """
    result = conn.execute(
        "SELECT * FROM job_versions WHERE job_uuid = ? AND version = ?",
        (job_uuid, version),
    ).fetchone()
    return _job_version_row(result) if result is not None else None


def list_job_versions(conn: sqlite3.Connection, job_uuid: str) -> list[JobVersionRow]:
    """List versions of one job in insertion order."""
    results = conn.execute(
        "SELECT * FROM job_versions WHERE job_uuid = ? ORDER BY created_at ASC, rowid ASC",
        (job_uuid,),
    ).fetchall()
    return [_job_version_row(result) for result in results]


def find_latest_run_uuid(conn: sqlite3.Connection, version_uuid: str) -> str | None:
    """Return the most recently created run of one job version.

    Args:
        conn: Open store connection.
        version_uuid: Job version row id.

    Returns:
        Run row id, or None when the version has never run.
    """
    result = conn.execute(
        "SELECT uuid FROM runs WHERE job_version_uuid = ? "
        "ORDER BY created_at DESC, rowid DESC LIMIT 1",
        (version_uuid,),
    ).fetchone()
    return uuid_or_none(result, ROW_UUID) if result is not None else None


def _extended_job_row(result: sqlite3.Row) -> ExtendedJobRow:
    return ExtendedJobRow(
        uuid=uuid_or_throw(result, ROW_UUID),
        type=string_or_throw(result, TYPE),
        created_at=timestamp_or_throw(result, CREATED_AT),
        updated_at=timestamp_or_throw(result, UPDATED_AT),
        namespace_uuid=uuid_or_throw(result, NAMESPACE_UUID),
        namespace_name=string_or_throw(result, NAMESPACE_NAME),
        name=string_or_throw(result, NAME),
        description=string_or_none(result, DESCRIPTION),
        current_version_uuid=uuid_or_none(result, CURRENT_VERSION_UUID),
    )


def _job_version_row(result: sqlite3.Row) -> JobVersionRow:
    return JobVersionRow(
        uuid=uuid_or_throw(result, ROW_UUID),
        created_at=timestamp_or_throw(result, CREATED_AT),
        job_uuid=uuid_or_throw(result, JOB_UUID),
        version=string_or_throw(result, VERSION),
        location=string_or_throw(result, LOCATION),
        input_version_uuids=string_array_or_throw(result, INPUT_VERSION_UUIDS),
        output_version_uuids=string_array_or_throw(result, OUTPUT_VERSION_UUIDS),
    )
