"""Source registration.

Sources are created explicitly through ``create_or_update`` or lazily
the first time a dataset references an unknown source name.
"""

from __future__ import annotations

import sqlite3

from catalog.mappers import to_source, to_source_row, validate_name, validate_page
from core.constants import UNKNOWN_SOURCE_TYPE
from core.logging_config import get_logger
from core.types import Source, SourceMeta
from store.metadata_store import MetadataStore
from store.namespace_dao import find_source, insert_source_if_absent, list_sources, upsert_source
from store.rows import SourceRow

_LOGGER = get_logger(__name__)


class SourceRegistry:
    """Explicit source registration and lookup."""

    def __init__(self, store: MetadataStore) -> None:
        self._store = store

    def create_or_update(self, name: str, meta: SourceMeta) -> Source:
        """Register a source or overwrite its type, connection, and description.

        Args:
            name: Unique source name.
            meta: Source attributes.

        Returns:
            Stored source.

        Raises:
            CatalogValidationError: If the name or type is blank.
        """
        validate_name(name, "source")
        validate_name(meta.type, "source type")
        with self._store.transaction() as conn:
            row = upsert_source(conn, to_source_row(name, meta))
        _LOGGER.info("source_upserted", source=name, source_type=meta.type)
        return to_source(row)

    def get(self, name: str) -> Source | None:
        """Return the named source, or None when unknown."""
        with self._store.read() as conn:
            row = find_source(conn, name)
        return to_source(row) if row is not None else None

    def get_all(self, limit: int, offset: int) -> list[Source]:
        """List sources by creation time ascending."""
        validate_page(limit, offset)
        with self._store.read() as conn:
            rows = list_sources(conn, limit, offset)
        return [to_source(row) for row in rows]


def resolve_source(conn: sqlite3.Connection, name: str) -> tuple[SourceRow, bool]:
    """Return the named source, creating a placeholder row on first use.

    Idempotent on name; runs inside the caller's transaction, so the
    caller logs creation only once that transaction has committed.

    Args:
        conn: Connection inside an open write transaction.
        name: Source name referenced by a dataset.

    Returns:
        Stored source row and whether this call created it.
    """
    return insert_source_if_absent(
        conn, to_source_row(name, SourceMeta(type=UNKNOWN_SOURCE_TYPE))
    )
