"""Shared catalog builders for tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

from catalog.catalog_sdk import RunLedgerClient
from core.config import RunLedgerConfig
from core.types import DatasetFacet, DatasetMeta, DbTableFacet, NamespaceMeta


def build_config(tmp_path: Path, max_conflict_retries: int = 3) -> RunLedgerConfig:
    """Build a config backed by a SQLite file under ``tmp_path``.

    Args:
        tmp_path: Per-test temporary directory.
        max_conflict_retries: Identity conflict retry budget.

    Returns:
        Test configuration.
    """
    return RunLedgerConfig(
        db_path=tmp_path / "catalog.db",
        busy_timeout_seconds=10.0,
        max_conflict_retries=max_conflict_retries,
        default_page_limit=100,
    )


def build_client(tmp_path: Path, namespaces: tuple[str, ...] = ("warehouse",)) -> RunLedgerClient:
    """Build an initialized client with the given namespaces registered."""
    client = RunLedgerClient(build_config(tmp_path))
    for namespace in namespaces:
        client.namespaces.create_or_update(namespace, NamespaceMeta(owner_name="data-eng"))
    return client


def table_meta(
    physical_name: str = "public.events",
    source_name: str = "warehouse",
    description: str | None = None,
    run_id: str | None = None,
    facet: DatasetFacet | None = None,
) -> DatasetMeta:
    """Build DB_TABLE dataset metadata with overridable fields."""
    return DatasetMeta(
        type="DB_TABLE",
        physical_name=physical_name,
        source_name=source_name,
        facet=facet or DbTableFacet(),
        description=description,
        run_id=run_id,
    )


def miss_first_lookup(lookup: Callable[..., Any]) -> Callable[..., Any]:
    """Wrap an anchor lookup so its first call reports the row as absent.

    The catalog then inserts an anchor that already exists, which is what a
    writer that lost a creation race observes.

    Args:
        lookup: DAO lookup function, e.g. ``find_dataset``.

    Returns:
        Lookup that returns None once and delegates afterwards.
    """
    calls: list[tuple[Any, ...]] = []

    def wrapped(*args: Any) -> Any:
        calls.append(args)
        if len(calls) == 1:
            return None
        return lookup(*args)

    return wrapped
