"""Namespace registration and existence checks."""

from __future__ import annotations

from catalog.mappers import to_namespace, to_namespace_row, validate_name, validate_page
from core.errors import NamespaceNotFoundError
from core.logging_config import get_logger
from core.types import Namespace, NamespaceMeta
from store.metadata_store import MetadataStore
from store.namespace_dao import find_namespace, list_namespaces, namespace_exists, upsert_namespace

_LOGGER = get_logger(__name__)


class NamespaceRegistry:
    """Creates namespaces and answers existence checks for the catalogs."""

    def __init__(self, store: MetadataStore) -> None:
        """Create the registry over ``store``."""
        self._store = store

    def create_or_update(self, name: str, meta: NamespaceMeta) -> Namespace:
        """Create a namespace or refresh its owner and description."""
        validate_name(name, "namespace")
        validate_name(meta.owner_name, "owner_name")
        with self._store.transaction() as conn:
            row = upsert_namespace(conn, to_namespace_row(name, meta))
        _LOGGER.info("namespace_upserted", namespace=name, owner=meta.owner_name)
        return to_namespace(row)

    def exists(self, namespace: str) -> bool:
        """Return whether ``namespace`` has been registered."""
        with self._store.read() as conn:
            return namespace_exists(conn, namespace)

    def get(self, name: str) -> Namespace | None:
        """Return the named namespace, or None when unknown."""
        with self._store.read() as conn:
            row = find_namespace(conn, name)
        return to_namespace(row) if row is not None else None

    def get_all(self, limit: int, offset: int) -> list[Namespace]:
        """List namespaces by creation time ascending.

        Raises:
            CatalogValidationError: If limit or offset is negative.
        """
        validate_page(limit, offset)
        with self._store.read() as conn:
            rows = list_namespaces(conn, limit, offset)
        return [to_namespace(row) for row in rows]

    def require(self, name: str) -> None:
        """Raise NamespaceNotFoundError unless the namespace exists."""
        if not self.exists(name):
            raise NamespaceNotFoundError(name)
