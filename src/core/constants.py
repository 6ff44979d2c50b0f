"""Core constants used across runledger modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".runledger")
DEFAULT_DB_FILE_NAME = "catalog.db"
DEFAULT_BUSY_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_CONFLICT_RETRIES = 3
DEFAULT_PAGE_LIMIT = 100
HASH_ALGORITHM = "sha256"
VERSION_ID_BYTES = 16
METADATA_SPEC_VERSION = 1
UNKNOWN_SOURCE_TYPE = "UNKNOWN"
DEFAULT_OWNER_NAME = "anonymous"
