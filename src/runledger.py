"""Public SDK surface for runledger.

This module provides a stable import path for catalog users.
It re-exports the primary client and typed metadata models.
"""

from __future__ import annotations

from catalog.catalog_sdk import RunLedgerClient
from catalog.run_lifecycle import ALLOWED_STATE_TRANSITIONS
from core.config import RunLedgerConfig
from core.errors import (
    DatasetNotFoundError,
    InvalidStateTransitionError,
    JobNotFoundError,
    NamespaceNotFoundError,
    NotFoundError,
    RunLedgerError,
    RunNotFoundError,
    StoreUnavailableError,
)
from core.types import (
    Dataset,
    DatasetId,
    DatasetMeta,
    DatasetVersion,
    DbTableFacet,
    Job,
    JobMeta,
    JobVersion,
    NamespaceMeta,
    Run,
    RunMeta,
    RunStateRecord,
    SourceMeta,
    StreamFacet,
)

__all__ = [
    "ALLOWED_STATE_TRANSITIONS",
    "Dataset",
    "DatasetId",
    "DatasetMeta",
    "DatasetNotFoundError",
    "DatasetVersion",
    "DbTableFacet",
    "InvalidStateTransitionError",
    "Job",
    "JobMeta",
    "JobNotFoundError",
    "JobVersion",
    "NamespaceMeta",
    "NamespaceNotFoundError",
    "NotFoundError",
    "Run",
    "RunLedgerClient",
    "RunLedgerConfig",
    "RunLedgerError",
    "RunMeta",
    "RunNotFoundError",
    "RunStateRecord",
    "SourceMeta",
    "StoreUnavailableError",
    "StreamFacet",
]
