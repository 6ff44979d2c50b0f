"""Row access for namespaces and sources."""

from __future__ import annotations

import sqlite3
from typing import TypeVar

from core.errors import StoreError
from store.columns import (
    CONNECTION_URL,
    CREATED_AT,
    CURRENT_OWNER_NAME,
    DESCRIPTION,
    NAME,
    ROW_UUID,
    TYPE,
    UPDATED_AT,
    string_or_none,
    string_or_throw,
    timestamp_or_throw,
    timestamp_to_text,
    uuid_or_throw,
)
from store.rows import NamespaceRow, SourceRow

RowT = TypeVar("RowT", NamespaceRow, SourceRow)


def upsert_namespace(conn: sqlite3.Connection, row: NamespaceRow) -> NamespaceRow:
    """Insert a namespace or refresh its description and owner."""
    conn.execute(
        "INSERT INTO namespaces (uuid, created_at, updated_at, name, description, current_owner_name) "
        "VALUES (?, ?, ?, ?, ?, ?) "
        "ON CONFLICT(name) DO UPDATE SET "
        "updated_at = excluded.updated_at, "
        "description = excluded.description, "
        "current_owner_name = excluded.current_owner_name",
        (
            row.uuid,
            timestamp_to_text(row.created_at),
            timestamp_to_text(row.updated_at),
            row.name,
            row.description,
            row.current_owner_name,
        ),
    )
    return _require(find_namespace(conn, row.name), "namespace", row.name)


def find_namespace(conn: sqlite3.Connection, name: str) -> NamespaceRow | None:
    """Look up a namespace by name, or None when absent."""
    result = conn.execute("SELECT * FROM namespaces WHERE name = ?", (name,)).fetchone()
    return _namespace_row(result) if result is not None else None


def namespace_exists(conn: sqlite3.Connection, name: str) -> bool:
    """Return whether a namespace with ``name`` exists."""
    result = conn.execute("SELECT 1 FROM namespaces WHERE name = ?", (name,)).fetchone()
    return result is not None


def list_namespaces(conn: sqlite3.Connection, limit: int, offset: int) -> list[NamespaceRow]:
    """List namespaces by creation time ascending."""
    results = conn.execute(
        "SELECT * FROM namespaces ORDER BY created_at ASC, name ASC LIMIT ? OFFSET ?",
        (limit, offset),
    ).fetchall()
    return [_namespace_row(result) for result in results]


def upsert_source(conn: sqlite3.Connection, row: SourceRow) -> SourceRow:
    """Insert a source or refresh its type, connection, and description."""
    conn.execute(
        "INSERT INTO sources (uuid, type, created_at, updated_at, name, connection_url, description) "
        "VALUES (?, ?, ?, ?, ?, ?, ?) "
        "ON CONFLICT(name) DO UPDATE SET "
        "type = excluded.type, "
        "updated_at = excluded.updated_at, "
        "connection_url = excluded.connection_url, "
        "description = excluded.description",
        _source_params(row),
    )
    return _require(find_source(conn, row.name), "source", row.name)


def insert_source_if_absent(conn: sqlite3.Connection, row: SourceRow) -> tuple[SourceRow, bool]:
    """Insert a source unless one with the same name exists.

    Returns:
        Stored source row and whether this call created it.
    """
    cursor = conn.execute(
        "INSERT INTO sources (uuid, type, created_at, updated_at, name, connection_url, description) "
        "VALUES (?, ?, ?, ?, ?, ?, ?) "
        "ON CONFLICT(name) DO NOTHING",
        _source_params(row),
    )
    stored = _require(find_source(conn, row.name), "source", row.name)
    return stored, cursor.rowcount == 1


def find_source(conn: sqlite3.Connection, name: str) -> SourceRow | None:
    """Look up a source by name, or None when absent."""
    result = conn.execute("SELECT * FROM sources WHERE name = ?", (name,)).fetchone()
    return _source_row(result) if result is not None else None


def list_sources(conn: sqlite3.Connection, limit: int, offset: int) -> list[SourceRow]:
    """List sources by creation time ascending."""
    results = conn.execute(
        "SELECT * FROM sources ORDER BY created_at ASC, name ASC LIMIT ? OFFSET ?",
        (limit, offset),
    ).fetchall()
    return [_source_row(result) for result in results]


def _require(row: RowT | None, kind: str, name: str) -> RowT:
    """Return a row read back after an upsert.

    Raises:
        StoreError: If the row is missing after the write.
    """
    if row is None:
        raise StoreError(f"Upserted {kind} '{name}' is missing after write.")
    return row


def _source_params(row: SourceRow) -> tuple[object, ...]:
    """Return insert parameters of a source row in column order."""
    return (
        row.uuid,
        row.type,
        timestamp_to_text(row.created_at),
        timestamp_to_text(row.updated_at),
        row.name,
        row.connection_url,
        row.description,
    )


def _namespace_row(result: sqlite3.Row) -> NamespaceRow:
    return NamespaceRow(
        uuid=uuid_or_throw(result, ROW_UUID),
        created_at=timestamp_or_throw(result, CREATED_AT),
        updated_at=timestamp_or_throw(result, UPDATED_AT),
        name=string_or_throw(result, NAME),
        description=string_or_none(result, DESCRIPTION),
        current_owner_name=string_or_throw(result, CURRENT_OWNER_NAME),
    )


def _source_row(result: sqlite3.Row) -> SourceRow:
    return SourceRow(
        uuid=uuid_or_throw(result, ROW_UUID),
        type=string_or_throw(result, TYPE),
        created_at=timestamp_or_throw(result, CREATED_AT),
        updated_at=timestamp_or_throw(result, UPDATED_AT),
        name=string_or_throw(result, NAME),
        connection_url=string_or_none(result, CONNECTION_URL),
        description=string_or_none(result, DESCRIPTION),
    )
