"""Column names and stateless row extraction helpers.

Every helper here is a pure function over one ``sqlite3.Row`` so DAO
modules can map rows without sharing state.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime

from core.errors import StoreError

# common row columns
ROW_UUID = "uuid"
TYPE = "type"
CREATED_AT = "created_at"
UPDATED_AT = "updated_at"
NAME = "name"
VERSION = "version"
DESCRIPTION = "description"
NAMESPACE_UUID = "namespace_uuid"
NAMESPACE_NAME = "namespace_name"
DATASET_UUID = "dataset_uuid"
JOB_VERSION_UUID = "job_version_uuid"
CURRENT_VERSION_UUID = "current_version_uuid"

# namespace
CURRENT_OWNER_NAME = "current_owner_name"

# source
CONNECTION_URL = "connection_url"

# dataset
SOURCE_UUID = "source_uuid"
SOURCE_NAME = "source_name"
PHYSICAL_NAME = "physical_name"

# stream version
SCHEMA_LOCATION = "schema_location"

# job version
JOB_UUID = "job_uuid"
LOCATION = "location"
INPUT_VERSION_UUIDS = "input_version_uuids"
OUTPUT_VERSION_UUIDS = "output_version_uuids"

# run
RUN_ARGS_UUID = "run_args_uuid"
NOMINAL_START_TIME = "nominal_start_time"
NOMINAL_END_TIME = "nominal_end_time"
CURRENT_RUN_STATE = "current_run_state"

# run args
ARGS = "args"
CHECKSUM = "checksum"

# run state
TRANSITIONED_AT = "transitioned_at"
RUN_UUID = "run_uuid"
STATE = "state"


def uuid_or_none(row: sqlite3.Row, column: str) -> str | None:
    """Return a UUID column value, or None when null."""
    value = row[column]
    if value is None:
        return None
    return str(value)


def uuid_or_throw(row: sqlite3.Row, column: str) -> str:
    """Return a UUID column value that must not be null."""
    return str(_required(row, column))


def string_or_none(row: sqlite3.Row, column: str) -> str | None:
    """Return a text column value, or None when null."""
    value = row[column]
    if value is None:
        return None
    return str(value)


def string_or_throw(row: sqlite3.Row, column: str) -> str:
    """Return a text column value that must not be null."""
    return str(_required(row, column))


def timestamp_or_none(row: sqlite3.Row, column: str) -> datetime | None:
    """Parse an ISO timestamp column, or None when null."""
    value = row[column]
    if value is None:
        return None
    return datetime.fromisoformat(str(value))


def timestamp_or_throw(row: sqlite3.Row, column: str) -> datetime:
    """Parse an ISO timestamp column that must not be null."""
    return datetime.fromisoformat(str(_required(row, column)))


def string_array_or_throw(row: sqlite3.Row, column: str) -> tuple[str, ...]:
    """Decode a JSON array column of strings."""
    raw_value = _required(row, column)
    try:
        payload = json.loads(str(raw_value))
    except json.JSONDecodeError as error:
        raise StoreError(
            f"Column '{column}' holds invalid JSON: {error.msg}. The row is corrupted."
        ) from error
    if not isinstance(payload, list):
        raise StoreError(f"Column '{column}' must hold a JSON array, got {type(payload).__name__}.")
    return tuple(str(item) for item in payload)


def timestamp_to_text(value: datetime | None) -> str | None:
    """Render a timestamp for storage; ISO text sorts chronologically in UTC."""
    if value is None:
        return None
    return value.isoformat(timespec="microseconds")


def string_array_to_text(values: tuple[str, ...]) -> str:
    """Render a string array for storage as a JSON array."""
    return json.dumps(list(values))


def _required(row: sqlite3.Row, column: str) -> object:
    value = row[column]
    if value is None:
        raise StoreError(f"Column '{column}' is unexpectedly null. The row is corrupted.")
    return value
