"""Integration tests for concurrent create-or-update convergence."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from core.types import DatasetMeta, NamespaceMeta
from runledger import RunLedgerClient
from tests.catalog_fixtures import build_config, table_meta

WRITERS = 8


def _create_concurrently(client: RunLedgerClient, metas: list[DatasetMeta]) -> list[str]:
    with ThreadPoolExecutor(max_workers=len(metas)) as executor:
        futures = [
            executor.submit(client.datasets.create_or_update, "warehouse", "events", meta)
            for meta in metas
        ]
        return [future.result().current_version for future in futures]


def _client(tmp_path) -> RunLedgerClient:
    client = RunLedgerClient(build_config(tmp_path))
    client.namespaces.create_or_update("warehouse", NamespaceMeta(owner_name="data-eng"))
    return client


def test_identical_concurrent_writes_converge(tmp_path) -> None:
    """Concurrent identical writes should yield one dataset and one version."""
    client = _client(tmp_path)

    versions = _create_concurrently(client, [table_meta() for _ in range(WRITERS)])
    datasets = client.datasets.get_all("warehouse", limit=10, offset=0)

    assert (
        len(set(versions)) == 1
        and len(datasets) == 1
        and len(client.datasets.list_versions("warehouse", "events")) == 1
    )


def test_distinct_concurrent_writes_keep_every_version(tmp_path) -> None:
    """Concurrent distinct writes should append one version each and end on a committed one."""
    client = _client(tmp_path)
    metas = [table_meta(physical_name=f"public.events_{index}") for index in range(WRITERS)]

    versions = _create_concurrently(client, metas)
    history = client.datasets.list_versions("warehouse", "events")
    current = client.datasets.get("warehouse", "events")

    assert (
        len(history) == WRITERS
        and current is not None
        and current.current_version == history[-1].version
        and current.current_version in versions
    )
