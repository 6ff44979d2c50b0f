"""runledger exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class RunLedgerError(Exception):
    """Base exception for all runledger failures."""


class RunLedgerConfigError(RunLedgerError):
    """Raised for invalid runtime configuration."""


class CatalogValidationError(RunLedgerError):
    """Raised for malformed metadata or request bounds."""


class NotFoundError(RunLedgerError):
    """Raised when a referenced identity has no row."""


class NamespaceNotFoundError(NotFoundError):
    """Raised when a namespace does not exist."""

    def __init__(self, namespace: str) -> None:
        super().__init__(
            f"Namespace '{namespace}' not found. Create the namespace before writing into it."
        )
        self.namespace = namespace


class DatasetNotFoundError(NotFoundError):
    """Raised when a dataset does not exist."""

    def __init__(self, namespace: str, name: str) -> None:
        super().__init__(
            f"Dataset '{namespace}.{name}' not found. Register the dataset before referencing it."
        )
        self.namespace = namespace
        self.name = name


class JobNotFoundError(NotFoundError):
    """Raised when a job does not exist."""

    def __init__(self, namespace: str, name: str) -> None:
        super().__init__(
            f"Job '{namespace}.{name}' not found. Register the job before creating runs."
        )
        self.namespace = namespace
        self.name = name


class RunNotFoundError(NotFoundError):
    """Raised when a run does not exist."""

    def __init__(self, run_id: str) -> None:
        super().__init__(f"Run '{run_id}' not found. Use an id returned by run creation.")
        self.run_id = run_id


class InvalidStateTransitionError(RunLedgerError):
    """Raised when a run state edge is not allowed."""


class StoreError(RunLedgerError):
    """Raised for metadata store failures."""


class IdentityConflictError(StoreError):
    """Raised when a concurrent insert loses a uniqueness race."""


class StoreUnavailableError(StoreError):
    """Raised for connectivity, lock, and timeout faults of the store."""


class MetadataSpecError(RunLedgerError):
    """Raised for invalid or unsupported metadata spec files."""
