"""Unit tests for dataset create-or-update and lookups."""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from core.errors import CatalogValidationError, NamespaceNotFoundError, RunNotFoundError, StoreError
from core.types import DatasetId, DatasetMeta, DbTableFacet, JobMeta, RunMeta, StreamFacet
from store.dataset_dao import find_dataset
from tests.catalog_fixtures import build_client, miss_first_lookup, table_meta


def _stream_meta(schema_location: str, description: str | None = None) -> DatasetMeta:
    return DatasetMeta(
        type="STREAM",
        physical_name="events",
        source_name="kafka",
        facet=StreamFacet(schema_location=schema_location),
        description=description,
    )


def test_create_registers_dataset_with_first_version(tmp_path) -> None:
    """First write should create the anchor, one version, and the source."""
    client = build_client(tmp_path)

    dataset = client.datasets.create_or_update("warehouse", "events", table_meta())
    versions = client.datasets.list_versions("warehouse", "events")
    source = client.sources.get("warehouse")

    assert (
        dataset.physical_name == "public.events"
        and dataset.facet == DbTableFacet()
        and [version.version for version in versions] == [dataset.current_version]
        and source is not None
        and source.type == "UNKNOWN"
    )


def test_identical_meta_is_idempotent(tmp_path) -> None:
    """Repeating identical metadata should keep one version row."""
    client = build_client(tmp_path)

    first = client.datasets.create_or_update("warehouse", "events", table_meta())
    second = client.datasets.create_or_update("warehouse", "events", table_meta())

    assert (
        first.current_version == second.current_version
        and len(client.datasets.list_versions("warehouse", "events")) == 1
    )


def test_schema_location_change_creates_new_stream_version(tmp_path) -> None:
    """Changing stream schema location should append a version and keep the prior one."""
    client = build_client(tmp_path, namespaces=("streams",))
    first = client.datasets.create_or_update(
        "streams", "events", _stream_meta("http://registry/events/1")
    )
    prior_id = client.datasets.list_versions("streams", "events")[0].id

    second = client.datasets.create_or_update(
        "streams", "events", _stream_meta("http://registry/events/2")
    )
    versions = client.datasets.list_versions("streams", "events")
    prior = client.datasets.get_version(prior_id)

    assert (
        second.current_version != first.current_version
        and len(versions) == 2
        and second.facet == StreamFacet(schema_location="http://registry/events/2")
        and prior is not None
        and prior.facet == StreamFacet(schema_location="http://registry/events/1")
    )


def test_description_change_refreshes_without_new_version(tmp_path) -> None:
    """Description is descriptive only and must not create a version."""
    client = build_client(tmp_path)
    first = client.datasets.create_or_update("warehouse", "events", table_meta())

    second = client.datasets.create_or_update(
        "warehouse", "events", table_meta(description="Clickstream events")
    )

    assert (
        second.current_version == first.current_version
        and second.description == "Clickstream events"
        and second.updated_at > first.updated_at
        and len(client.datasets.list_versions("warehouse", "events")) == 1
    )


def test_revert_reuses_existing_version_row(tmp_path) -> None:
    """Returning to earlier identity fields should point back at the earlier version."""
    client = build_client(tmp_path)
    first = client.datasets.create_or_update("warehouse", "events", table_meta())
    client.datasets.create_or_update(
        "warehouse", "events", table_meta(physical_name="public.events_v2")
    )

    reverted = client.datasets.create_or_update("warehouse", "events", table_meta())

    assert (
        reverted.current_version == first.current_version
        and reverted.physical_name == "public.events"
        and len(client.datasets.list_versions("warehouse", "events")) == 2
    )


def test_unknown_namespace_raises_not_found(tmp_path) -> None:
    """Writes into a missing namespace should fail before any row is written."""
    client = build_client(tmp_path)

    with pytest.raises(NamespaceNotFoundError):
        client.datasets.create_or_update("missing", "events", table_meta())

    assert client.datasets.get("missing", "events") is None


def test_unknown_run_reference_raises_not_found(tmp_path) -> None:
    """A run id that does not exist should be rejected."""
    client = build_client(tmp_path)

    with pytest.raises(RunNotFoundError):
        client.datasets.create_or_update("warehouse", "events", table_meta(run_id="no-such-run"))

    assert client.datasets.get("warehouse", "events") is None


def test_type_and_payload_mismatch_is_rejected(tmp_path) -> None:
    """A DB_TABLE discriminant with a stream payload should be invalid."""
    client = build_client(tmp_path)
    meta = table_meta(facet=StreamFacet(schema_location="http://registry/x"))

    with pytest.raises(CatalogValidationError):
        client.datasets.create_or_update("warehouse", "events", meta)

    assert client.datasets.get("warehouse", "events") is None


def test_get_all_orders_by_creation_and_paginates(tmp_path) -> None:
    """Listing should be creation ordered and slice by offset and limit."""
    client = build_client(tmp_path)
    for name in ("c_table", "a_table", "b_table"):
        client.datasets.create_or_update("warehouse", name, table_meta(physical_name=name))

    page = client.datasets.get_all("warehouse", limit=2, offset=1)
    past_end = client.datasets.get_all("warehouse", limit=10, offset=5)

    assert [dataset.name for dataset in page] == ["a_table", "b_table"] and past_end == []


def test_get_all_rejects_negative_bounds(tmp_path) -> None:
    """Negative limit or offset should be a validation error."""
    client = build_client(tmp_path)

    with pytest.raises(CatalogValidationError):
        client.datasets.get_all("warehouse", limit=-1, offset=0)

    assert True


def test_get_returns_none_for_unknown_dataset(tmp_path) -> None:
    """Lookups of unknown datasets should return None."""
    client = build_client(tmp_path)

    assert client.datasets.get("warehouse", "nothing") is None


def test_version_records_producing_run(tmp_path) -> None:
    """A known run id should be stored on the version it produced."""
    client = build_client(tmp_path)
    client.datasets.create_or_update("warehouse", "raw", table_meta(physical_name="raw"))
    client.jobs.create_or_update(
        "warehouse",
        "etl",
        JobMeta(
            type="BATCH",
            inputs=(DatasetId("warehouse", "raw"),),
            outputs=(),
            location="git://etl",
        ),
    )
    run = client.runs.create_run("warehouse", "etl", RunMeta(args={"date": "2024-01-01"}))

    client.datasets.create_or_update("warehouse", "events", table_meta(run_id=run.id))
    versions = client.datasets.list_versions("warehouse", "events")

    assert versions[0].run_id == run.id


def test_lost_creation_race_recovers_as_update(tmp_path, monkeypatch) -> None:
    """A writer whose anchor insert hits the unique constraint should retry as an update."""
    client = build_client(tmp_path)
    first = client.datasets.create_or_update("warehouse", "events", table_meta())
    monkeypatch.setattr("catalog.dataset_catalog.find_dataset", miss_first_lookup(find_dataset))

    with capture_logs() as logs:
        second = client.datasets.create_or_update(
            "warehouse", "events", table_meta(description="Clickstream events")
        )
    retries = [entry for entry in logs if entry["event"] == "identity_conflict_retry"]

    assert (
        len(retries) == 1
        and second.current_version == first.current_version
        and second.description == "Clickstream events"
        and len(client.datasets.get_all("warehouse", limit=10, offset=0)) == 1
        and len(client.datasets.list_versions("warehouse", "events")) == 1
    )


def test_lazily_created_source_is_logged_after_commit(tmp_path) -> None:
    """A dataset naming a new source should log its creation once."""
    client = build_client(tmp_path)

    with capture_logs() as logs:
        client.datasets.create_or_update("warehouse", "events", table_meta(source_name="kafka"))
    events = [entry["event"] for entry in logs]

    assert events.count("source_created") == 1 and events.index("source_created") < events.index(
        "dataset_version_created"
    )


def test_rolled_back_write_does_not_report_source(tmp_path, monkeypatch) -> None:
    """A failed dataset write should neither keep nor log the source it created."""
    client = build_client(tmp_path)

    def failing_insert(*_args) -> None:
        raise StoreError("disk full")

    monkeypatch.setattr("catalog.dataset_catalog.insert_dataset_version", failing_insert)
    with capture_logs() as logs:
        with pytest.raises(StoreError):
            client.datasets.create_or_update(
                "warehouse", "events", table_meta(source_name="kafka")
            )

    assert client.sources.get("kafka") is None and all(
        entry["event"] != "source_created" for entry in logs
    )
