"""Unit tests for namespace and source registries."""

from __future__ import annotations

import pytest

from core.errors import CatalogValidationError, NamespaceNotFoundError
from core.types import NamespaceMeta, SourceMeta
from tests.catalog_fixtures import build_client, table_meta


def test_namespace_create_or_update_refreshes_owner(tmp_path) -> None:
    """Re-registering a namespace should update owner and keep creation time."""
    client = build_client(tmp_path, namespaces=())
    first = client.namespaces.create_or_update("warehouse", NamespaceMeta(owner_name="alice"))

    second = client.namespaces.create_or_update(
        "warehouse", NamespaceMeta(owner_name="bob", description="Main warehouse")
    )

    assert (
        second.owner_name == "bob"
        and second.description == "Main warehouse"
        and second.created_at == first.created_at
        and client.namespaces.exists("warehouse")
    )


def test_namespace_require_raises_for_unknown(tmp_path) -> None:
    """Requiring a missing namespace should raise not-found."""
    client = build_client(tmp_path, namespaces=())

    with pytest.raises(NamespaceNotFoundError):
        client.namespaces.require("missing")

    assert client.namespaces.get("missing") is None


def test_namespace_rejects_blank_name(tmp_path) -> None:
    """Blank namespace names are invalid."""
    client = build_client(tmp_path, namespaces=())

    with pytest.raises(CatalogValidationError):
        client.namespaces.create_or_update("  ", NamespaceMeta(owner_name="alice"))

    assert client.namespaces.get_all(limit=10, offset=0) == []


def test_explicit_source_overrides_lazy_placeholder(tmp_path) -> None:
    """A lazily created source should keep its identity when registered explicitly."""
    client = build_client(tmp_path)
    client.datasets.create_or_update("warehouse", "events", table_meta(source_name="pg"))
    placeholder = client.sources.get("pg")

    registered = client.sources.create_or_update(
        "pg", SourceMeta(type="POSTGRESQL", connection_url="postgresql://db/warehouse")
    )
    dataset = client.datasets.get("warehouse", "events")

    assert (
        placeholder is not None
        and placeholder.type == "UNKNOWN"
        and registered.type == "POSTGRESQL"
        and dataset is not None
        and dataset.source_name == "pg"
        and [source.name for source in client.sources.get_all(limit=10, offset=0)] == ["pg"]
    )
