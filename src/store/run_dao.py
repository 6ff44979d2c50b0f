"""Row access for runs, run arguments, and the run state log.

``append_state_and_advance`` is the one place where the state log and
the cached current-state pointer are written together; callers must
invoke it inside a single store transaction.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime

from core.errors import InvalidStateTransitionError
from store.columns import (
    ARGS,
    CHECKSUM,
    CREATED_AT,
    CURRENT_RUN_STATE,
    JOB_VERSION_UUID,
    NOMINAL_END_TIME,
    NOMINAL_START_TIME,
    ROW_UUID,
    RUN_ARGS_UUID,
    RUN_UUID,
    STATE,
    TRANSITIONED_AT,
    UPDATED_AT,
    string_or_none,
    string_or_throw,
    timestamp_or_none,
    timestamp_or_throw,
    timestamp_to_text,
    uuid_or_throw,
)
from store.rows import ExtendedRunRow, RunArgsRow, RunRow, RunStateRow

_SELECT_EXTENDED = (
    "SELECT r.*, ra.args AS args FROM runs r JOIN run_args ra ON ra.uuid = r.run_args_uuid "
)


def upsert_run_args(conn: sqlite3.Connection, row: RunArgsRow) -> RunArgsRow:
    """Store run arguments once per checksum and return the stored row."""
    conn.execute(
        "INSERT INTO run_args (uuid, created_at, args, checksum) VALUES (?, ?, ?, ?) "
        "ON CONFLICT(checksum) DO NOTHING",
        (row.uuid, timestamp_to_text(row.created_at), row.args, row.checksum),
    )
    result = conn.execute("SELECT * FROM run_args WHERE checksum = ?", (row.checksum,)).fetchone()
    return RunArgsRow(
        uuid=uuid_or_throw(result, ROW_UUID),
        created_at=timestamp_or_throw(result, CREATED_AT),
        args=string_or_throw(result, ARGS),
        checksum=string_or_throw(result, CHECKSUM),
    )


def count_run_args(conn: sqlite3.Connection) -> int:
    """Return the number of distinct stored argument sets."""
    return int(conn.execute("SELECT COUNT(*) FROM run_args").fetchone()[0])


def insert_run(conn: sqlite3.Connection, row: RunRow) -> None:
    """Insert a run anchor with an empty state pointer."""
    conn.execute(
        "INSERT INTO runs (uuid, created_at, updated_at, job_version_uuid, run_args_uuid, "
        "nominal_start_time, nominal_end_time, current_run_state, transitioned_at) "
        "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
        (
            row.uuid,
            timestamp_to_text(row.created_at),
            timestamp_to_text(row.updated_at),
            row.job_version_uuid,
            row.run_args_uuid,
            timestamp_to_text(row.nominal_start_time),
            timestamp_to_text(row.nominal_end_time),
            row.current_run_state,
            timestamp_to_text(row.transitioned_at),
        ),
    )


def find_run(conn: sqlite3.Connection, run_uuid: str) -> ExtendedRunRow | None:
    """Look up a run joined with its arguments, or None when absent."""
    result = conn.execute(_SELECT_EXTENDED + "WHERE r.uuid = ?", (run_uuid,)).fetchone()
    return _extended_run_row(result) if result is not None else None


def run_exists(conn: sqlite3.Connection, run_uuid: str) -> bool:
    """Return whether a run with ``run_uuid`` exists."""
    result = conn.execute("SELECT 1 FROM runs WHERE uuid = ?", (run_uuid,)).fetchone()
    return result is not None


def list_runs_for_job(
    conn: sqlite3.Connection, job_uuid: str, limit: int, offset: int
) -> list[ExtendedRunRow]:
    """List runs across every version of one job, oldest first."""
    results = conn.execute(
        _SELECT_EXTENDED + "JOIN job_versions jv ON jv.uuid = r.job_version_uuid "
        "WHERE jv.job_uuid = ? ORDER BY r.created_at ASC, r.rowid ASC LIMIT ? OFFSET ?",
        (job_uuid, limit, offset),
    ).fetchall()
    return [_extended_run_row(result) for result in results]


def find_current_state(conn: sqlite3.Connection, run_uuid: str) -> tuple[str | None, datetime | None]:
    """Read the cached state pointer of one run.

    Returns:
        Pair of current state and its transition time, both None before
        the first state is recorded.
    """
    result = conn.execute(
        "SELECT current_run_state, transitioned_at FROM runs WHERE uuid = ?", (run_uuid,)
    ).fetchone()
    if result is None:
        return None, None
    return string_or_none(result, CURRENT_RUN_STATE), timestamp_or_none(result, TRANSITIONED_AT)


def append_state_and_advance(
    conn: sqlite3.Connection,
    row: RunStateRow,
    expected_state: str | None,
) -> None:
    """Append one state row and move the run pointer onto it.

    The pointer update is a compare-and-set on ``expected_state`` so a
    transition computed from a stale read can never land.

    Args:
        conn: Connection inside an open write transaction.
        row: State row to append.
        expected_state: Pointer value the caller validated against.

    Raises:
        InvalidStateTransitionError: If the pointer no longer matches.
    """
    conn.execute(
        "INSERT INTO run_states (uuid, transitioned_at, run_uuid, state) VALUES (?, ?, ?, ?)",
        (row.uuid, timestamp_to_text(row.transitioned_at), row.run_uuid, row.state),
    )
    cursor = conn.execute(
        "UPDATE runs SET updated_at = ?, transitioned_at = ?, current_run_state = ? "
        "WHERE uuid = ? AND current_run_state IS ?",
        (
            timestamp_to_text(row.transitioned_at),
            timestamp_to_text(row.transitioned_at),
            row.state,
            row.run_uuid,
            expected_state,
        ),
    )
    if cursor.rowcount != 1:
        raise InvalidStateTransitionError(
            f"Run {row.run_uuid} changed state concurrently; expected {expected_state!r}. "
            "Re-read the run state and retry."
        )


def list_run_states(conn: sqlite3.Connection, run_uuid: str) -> list[RunStateRow]:
    """List the state history of one run, oldest first."""
    results = conn.execute(
        "SELECT * FROM run_states WHERE run_uuid = ? ORDER BY transitioned_at ASC, rowid ASC",
        (run_uuid,),
    ).fetchall()
    return [_run_state_row(result) for result in results]


def find_latest_run_state(conn: sqlite3.Connection, run_uuid: str) -> RunStateRow | None:
    """Return the newest history row by scanning the log."""
    result = conn.execute(
        "SELECT * FROM run_states WHERE run_uuid = ? "
        "ORDER BY transitioned_at DESC, rowid DESC LIMIT 1",
        (run_uuid,),
    ).fetchone()
    return _run_state_row(result) if result is not None else None


def _extended_run_row(result: sqlite3.Row) -> ExtendedRunRow:
    return ExtendedRunRow(
        uuid=uuid_or_throw(result, ROW_UUID),
        created_at=timestamp_or_throw(result, CREATED_AT),
        updated_at=timestamp_or_throw(result, UPDATED_AT),
        job_version_uuid=uuid_or_throw(result, JOB_VERSION_UUID),
        run_args_uuid=uuid_or_throw(result, RUN_ARGS_UUID),
        nominal_start_time=timestamp_or_none(result, NOMINAL_START_TIME),
        nominal_end_time=timestamp_or_none(result, NOMINAL_END_TIME),
        current_run_state=string_or_none(result, CURRENT_RUN_STATE),
        transitioned_at=timestamp_or_none(result, TRANSITIONED_AT),
        args=string_or_throw(result, ARGS),
    )


def _run_state_row(result: sqlite3.Row) -> RunStateRow:
    return RunStateRow(
        uuid=uuid_or_throw(result, ROW_UUID),
        transitioned_at=timestamp_or_throw(result, TRANSITIONED_AT),
        run_uuid=uuid_or_throw(result, RUN_UUID),
        state=string_or_throw(result, STATE),
    )
