"""Runtime configuration model for runledger.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DEFAULT_BUSY_TIMEOUT_SECONDS,
    DEFAULT_DATA_ROOT,
    DEFAULT_DB_FILE_NAME,
    DEFAULT_MAX_CONFLICT_RETRIES,
    DEFAULT_PAGE_LIMIT,
)
from core.errors import RunLedgerConfigError


@dataclass(frozen=True)
class RunLedgerConfig:
    """Validated runtime configuration.

    Attributes:
        db_path: SQLite database file backing the catalog.
        busy_timeout_seconds: How long a write waits for the store lock.
        max_conflict_retries: Attempts before a uniqueness race is surfaced.
        default_page_limit: Page size used when callers omit a limit.
    """

    db_path: Path
    busy_timeout_seconds: float
    max_conflict_retries: int
    default_page_limit: int

    @classmethod
    def from_env(cls) -> "RunLedgerConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            RunLedgerConfigError: If environment values are invalid.
        """
        default_db_path = DEFAULT_DATA_ROOT / DEFAULT_DB_FILE_NAME
        db_path_value = os.getenv("RUNLEDGER_DB_PATH", str(default_db_path))
        busy_timeout = _parse_float(
            "RUNLEDGER_BUSY_TIMEOUT_SECONDS",
            os.getenv("RUNLEDGER_BUSY_TIMEOUT_SECONDS", str(DEFAULT_BUSY_TIMEOUT_SECONDS)),
        )
        max_retries = _parse_int(
            "RUNLEDGER_MAX_CONFLICT_RETRIES",
            os.getenv("RUNLEDGER_MAX_CONFLICT_RETRIES", str(DEFAULT_MAX_CONFLICT_RETRIES)),
            minimum=1,
        )
        page_limit = _parse_int(
            "RUNLEDGER_DEFAULT_PAGE_LIMIT",
            os.getenv("RUNLEDGER_DEFAULT_PAGE_LIMIT", str(DEFAULT_PAGE_LIMIT)),
            minimum=0,
        )
        return cls(
            db_path=Path(db_path_value).expanduser().resolve(),
            busy_timeout_seconds=busy_timeout,
            max_conflict_retries=max_retries,
            default_page_limit=page_limit,
        )


def _parse_int(env_name: str, raw_value: str, minimum: int) -> int:
    """Parse an integer environment value with a lower bound.

    Args:
        env_name: Environment variable name for error messages.
        raw_value: Raw string from environment.
        minimum: Smallest accepted value.

    Returns:
        Parsed integer.

    Raises:
        RunLedgerConfigError: If value is not an integer or below minimum.
    """
    try:
        parsed = int(raw_value)
    except ValueError as error:
        raise RunLedgerConfigError(
            f"Invalid {env_name} value: expected integer, got '{raw_value}'. "
            f"Set {env_name} to a numeric value."
        ) from error
    if parsed < minimum:
        raise RunLedgerConfigError(
            f"Invalid {env_name} value: expected >= {minimum}, got {parsed}."
        )
    return parsed


def _parse_float(env_name: str, raw_value: str) -> float:
    """Parse a positive float environment value.

    Args:
        env_name: Environment variable name for error messages.
        raw_value: Raw string from environment.

    Returns:
        Parsed float.

    Raises:
        RunLedgerConfigError: If value is not a positive number.
    """
    try:
        parsed = float(raw_value)
    except ValueError as error:
        raise RunLedgerConfigError(
            f"Invalid {env_name} value: expected number of seconds, got '{raw_value}'."
        ) from error
    if parsed <= 0:
        raise RunLedgerConfigError(f"Invalid {env_name} value: expected > 0, got {parsed}.")
    return parsed
