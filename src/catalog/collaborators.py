"""Existence checks the catalogs consume from other components."""

from __future__ import annotations

from typing import Protocol


class NamespaceExistence(Protocol):
    """Answers whether a namespace has been registered."""

    def exists(self, namespace: str) -> bool: ...


class RunExistence(Protocol):
    """Answers whether a run id refers to a recorded run."""

    def run_exists(self, run_id: str) -> bool: ...
