"""Transactional SQLite metadata store.

This module owns connections and the transaction boundary used by every
catalog mutation. Each ``transaction()`` opens a short-lived connection,
takes the write lock up front with ``BEGIN IMMEDIATE`` and either commits
every write or rolls all of them back. SQLite driver errors are
translated into the runledger store error taxonomy here and nowhere else.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from core.config import RunLedgerConfig
from core.constants import DEFAULT_BUSY_TIMEOUT_SECONDS
from core.errors import IdentityConflictError, StoreError, StoreUnavailableError
from core.logging_config import get_logger
from store.schema import init_schema

_LOGGER = get_logger(__name__)
_UNAVAILABLE_MARKERS = ("locked", "busy", "unable to open", "disk i/o")


class MetadataStore:
    """SQLite-backed store with explicit transaction boundaries."""

    def __init__(
        self,
        db_path: Path,
        busy_timeout_seconds: float = DEFAULT_BUSY_TIMEOUT_SECONDS,
    ) -> None:
        """Create a store handle; no connection is held between calls.

        Args:
            db_path: SQLite database file path.
            busy_timeout_seconds: Lock wait before StoreUnavailableError.
        """
        self._db_path = db_path
        self._busy_timeout_seconds = busy_timeout_seconds

    @classmethod
    def from_config(cls, config: RunLedgerConfig) -> "MetadataStore":
        """Build a store from runtime configuration."""
        return cls(config.db_path, config.busy_timeout_seconds)

    @property
    def db_path(self) -> Path:
        """SQLite database file backing this store."""
        return self._db_path

    def initialize(self) -> None:
        """Create the database file and schema when missing.

        Raises:
            StoreUnavailableError: If the database cannot be opened.
        """
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect()
        try:
            with _translated_errors(self._db_path):
                conn.execute("PRAGMA journal_mode=WAL")
        finally:
            conn.close()
        with self.transaction() as tx:
            init_schema(tx)
        _LOGGER.info("store_initialized", db_path=str(self._db_path))

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block inside one atomic write transaction.

        Yields:
            Connection bound to an open immediate transaction.

        Raises:
            IdentityConflictError: If a write violated a unique constraint.
            StoreUnavailableError: If the store is locked past the timeout.
            StoreError: For any other driver failure.
        """
        conn = self._connect()
        try:
            with _translated_errors(self._db_path):
                conn.execute("BEGIN IMMEDIATE")
                try:
                    yield conn
                    conn.commit()
                except BaseException:
                    conn.rollback()
                    raise
        finally:
            conn.close()

    @contextmanager
    def read(self) -> Iterator[sqlite3.Connection]:
        """Run read-only queries against one consistent snapshot.

        Yields:
            Connection bound to a deferred transaction that is rolled back.
        """
        conn = self._connect()
        try:
            with _translated_errors(self._db_path):
                conn.execute("BEGIN")
                try:
                    yield conn
                finally:
                    conn.rollback()
        finally:
            conn.close()

    def _connect(self) -> sqlite3.Connection:
        with _translated_errors(self._db_path):
            conn = sqlite3.connect(
                str(self._db_path),
                timeout=self._busy_timeout_seconds,
                isolation_level=None,
            )
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys=ON")
        return conn


@contextmanager
def _translated_errors(db_path: Path) -> Iterator[None]:
    """Map sqlite3 driver errors onto the store error taxonomy."""
    try:
        yield
    except sqlite3.IntegrityError as error:
        message = str(error)
        if message.startswith("UNIQUE constraint failed"):
            raise IdentityConflictError(message) from error
        raise StoreError(f"Integrity violation in {db_path}: {message}.") from error
    except sqlite3.OperationalError as error:
        message = str(error)
        if any(marker in message.lower() for marker in _UNAVAILABLE_MARKERS):
            raise StoreUnavailableError(
                f"Metadata store at {db_path} is unavailable: {message}. "
                "No changes were applied; retry the operation."
            ) from error
        raise StoreError(f"Metadata store operation failed in {db_path}: {message}.") from error
    except sqlite3.Error as error:
        raise StoreError(f"Metadata store operation failed in {db_path}: {error}.") from error
