"""Unit tests for core config parsing."""

from __future__ import annotations

import os

import pytest

from core.config import RunLedgerConfig
from core.constants import DEFAULT_MAX_CONFLICT_RETRIES, DEFAULT_PAGE_LIMIT
from core.errors import RunLedgerConfigError


def test_from_env_reads_db_path(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should resolve the database path from environment."""
    monkeypatch.setenv("RUNLEDGER_DB_PATH", "./.tmp-runledger/catalog.db")

    config = RunLedgerConfig.from_env()

    assert config.db_path.name == "catalog.db" and config.db_path.is_absolute()


def test_from_env_uses_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Unset variables should fall back to documented defaults."""
    for env_name in (
        "RUNLEDGER_DB_PATH",
        "RUNLEDGER_BUSY_TIMEOUT_SECONDS",
        "RUNLEDGER_MAX_CONFLICT_RETRIES",
        "RUNLEDGER_DEFAULT_PAGE_LIMIT",
    ):
        monkeypatch.delenv(env_name, raising=False)

    config = RunLedgerConfig.from_env()

    assert (
        config.max_conflict_retries == DEFAULT_MAX_CONFLICT_RETRIES
        and config.default_page_limit == DEFAULT_PAGE_LIMIT
        and config.db_path.parent.name == ".runledger"
    )


def test_from_env_raises_for_invalid_retry_count(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for non-numeric retry counts."""
    monkeypatch.setenv("RUNLEDGER_MAX_CONFLICT_RETRIES", "not-a-number")

    with pytest.raises(RunLedgerConfigError):
        RunLedgerConfig.from_env()

    assert os.getenv("RUNLEDGER_MAX_CONFLICT_RETRIES") == "not-a-number"


def test_from_env_rejects_zero_retries(monkeypatch: pytest.MonkeyPatch) -> None:
    """At least one attempt is required."""
    monkeypatch.setenv("RUNLEDGER_MAX_CONFLICT_RETRIES", "0")

    with pytest.raises(RunLedgerConfigError):
        RunLedgerConfig.from_env()

    assert True


def test_from_env_rejects_non_positive_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    """Busy timeout must be a positive number of seconds."""
    monkeypatch.setenv("RUNLEDGER_BUSY_TIMEOUT_SECONDS", "-1")

    with pytest.raises(RunLedgerConfigError):
        RunLedgerConfig.from_env()

    assert True
