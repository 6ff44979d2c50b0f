"""Local recovery from uniqueness races on anchor rows.

Two writers creating the same (namespace, name) race on the store's
unique constraint. The loser's transaction rolls back with
``IdentityConflictError``; re-running the whole operation re-reads the
now-present anchor and proceeds as an update.
"""

from __future__ import annotations

from typing import Callable, TypeVar

from core.errors import IdentityConflictError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)

ResultT = TypeVar("ResultT")


def retry_on_identity_conflict(
    operation: Callable[[], ResultT],
    max_attempts: int,
    entity: str,
) -> ResultT:
    """Run ``operation``, re-running it after each identity conflict.

    Args:
        operation: Callable that performs one full transaction.
        max_attempts: Total attempts before the conflict propagates.
        entity: Entity label for logs, e.g. ``dataset:ns.name``.

    Returns:
        Result of the first attempt that commits.

    Raises:
        IdentityConflictError: If every attempt lost a race.
    """
    attempt = 1
    while True:
        try:
            return operation()
        except IdentityConflictError as error:
            if attempt >= max_attempts:
                raise
            _LOGGER.info(
                "identity_conflict_retry",
                entity=entity,
                attempt=attempt,
                reason=str(error),
            )
            attempt += 1
