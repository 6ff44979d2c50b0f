"""Python SDK for catalog operations.

This module exposes one client object wiring the metadata store to the
namespace, source, dataset, job, and run services.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from catalog.dataset_catalog import DatasetCatalog
from catalog.job_catalog import JobCatalog
from catalog.namespace_registry import NamespaceRegistry
from catalog.run_lifecycle import RunLifecycle
from catalog.source_registry import SourceRegistry
from core.config import RunLedgerConfig
from core.metadata_spec_apply import apply_metadata_spec_file
from store.metadata_store import MetadataStore


class RunLedgerClient:
    """Primary SDK entry point for catalog workflows."""

    def __init__(self, config: RunLedgerConfig | None = None) -> None:
        """Create SDK client and make sure the schema exists.

        Args:
            config: Optional runtime configuration.

        Raises:
            StoreUnavailableError: If the database cannot be opened.
        """
        self._config = config or RunLedgerConfig.from_env()
        self._store = MetadataStore.from_config(self._config)
        self._store.initialize()
        self._namespaces = NamespaceRegistry(self._store)
        self._sources = SourceRegistry(self._store)
        self._runs = RunLifecycle(self._store)
        self._datasets = DatasetCatalog(
            self._store,
            namespaces=self._namespaces,
            runs=self._runs,
            max_conflict_retries=self._config.max_conflict_retries,
        )
        self._jobs = JobCatalog(
            self._store,
            namespaces=self._namespaces,
            max_conflict_retries=self._config.max_conflict_retries,
        )

    @property
    def config(self) -> RunLedgerConfig:
        """Runtime configuration the client was built with."""
        return self._config

    @property
    def namespaces(self) -> NamespaceRegistry:
        """Namespace registry."""
        return self._namespaces

    @property
    def sources(self) -> SourceRegistry:
        """Source registry."""
        return self._sources

    @property
    def datasets(self) -> DatasetCatalog:
        """Dataset catalog."""
        return self._datasets

    @property
    def jobs(self) -> JobCatalog:
        """Job catalog."""
        return self._jobs

    @property
    def runs(self) -> RunLifecycle:
        """Run lifecycle service."""
        return self._runs

    def with_db_path(self, db_path: str) -> "RunLedgerClient":
        """Create a new client bound to a different database file.

        Args:
            db_path: Replacement SQLite database path.

        Returns:
            Client using the same settings with a new database.
        """
        resolved_path = Path(db_path).expanduser().resolve()
        return RunLedgerClient(replace(self._config, db_path=resolved_path))

    def apply_spec(self, spec_file: str) -> tuple[str, ...]:
        """Apply a declarative YAML metadata spec.

        Args:
            spec_file: YAML metadata spec path.

        Returns:
            Printable lines describing every applied entity.

        Raises:
            MetadataSpecError: If the spec file is invalid.
        """
        return apply_metadata_spec_file(self, spec_file)
