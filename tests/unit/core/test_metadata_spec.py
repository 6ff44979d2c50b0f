"""Unit tests for metadata-spec parsing."""

from __future__ import annotations

import pytest

from core.errors import MetadataSpecError
from core.metadata_spec import load_metadata_spec, parse_metadata_spec
from core.types import DatasetId, StreamFacet
from tests.fixture_paths import fixture_path


def test_load_metadata_spec_valid_catalog_parses_entries() -> None:
    """Valid metadata spec should parse every section with defaults applied."""
    spec = load_metadata_spec(str(fixture_path("metadata_spec/valid_catalog.yaml")))
    clicks = spec.datasets[1]
    job = spec.jobs[0]

    assert (
        [entry.name for entry in spec.namespaces] == ["warehouse"]
        and spec.sources[0].meta.type == "POSTGRESQL"
        and clicks.namespace == "warehouse"
        and clicks.meta.type == "STREAM"
        and clicks.meta.facet == StreamFacet(schema_location="http://registry.internal/clicks/1")
        and job.meta.type == "BATCH"
        and job.meta.inputs
        == (DatasetId("warehouse", "raw_events"), DatasetId("warehouse", "clicks"))
        and job.meta.outputs == ()
    )


def test_load_metadata_spec_unknown_root_key_raises_error() -> None:
    """Unknown root fields should be rejected."""
    with pytest.raises(MetadataSpecError):
        load_metadata_spec(str(fixture_path("metadata_spec/unknown_root_key.yaml")))
    assert True


def test_load_metadata_spec_stream_without_schema_raises_error() -> None:
    """Stream datasets must declare a schema location."""
    with pytest.raises(MetadataSpecError):
        load_metadata_spec(str(fixture_path("metadata_spec/stream_without_schema.yaml")))
    assert True


def test_load_metadata_spec_unsupported_version_raises_error() -> None:
    """Only version 1 specs are supported."""
    with pytest.raises(MetadataSpecError):
        load_metadata_spec(str(fixture_path("metadata_spec/unsupported_version.yaml")))
    assert True


def test_load_metadata_spec_missing_namespace_raises_error() -> None:
    """Entries without a namespace or namespace default should be rejected."""
    with pytest.raises(MetadataSpecError):
        load_metadata_spec(str(fixture_path("metadata_spec/missing_namespace.yaml")))
    assert True


def test_load_metadata_spec_missing_file_raises_error(tmp_path) -> None:
    """Missing spec files should raise a metadata spec error."""
    with pytest.raises(MetadataSpecError):
        load_metadata_spec(str(tmp_path / "absent.yaml"))
    assert True


def test_parse_metadata_spec_rejects_empty_document() -> None:
    """A spec declaring no entries is an error."""
    with pytest.raises(MetadataSpecError):
        parse_metadata_spec({"version": 1})
    assert True


def test_parse_metadata_spec_rejects_schema_location_on_table() -> None:
    """Schema locations only apply to stream datasets."""
    payload = {
        "version": 1,
        "datasets": [
            {
                "namespace": "warehouse",
                "name": "events",
                "physical_name": "public.events",
                "source": "pg",
                "schema_location": "http://registry/events",
            }
        ],
    }

    with pytest.raises(MetadataSpecError):
        parse_metadata_spec(payload)

    assert True
