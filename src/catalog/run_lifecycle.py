"""Run creation, the run state machine, and the current-state projection.

Every run carries an append-only state log and a cached pointer to its
newest entry. Transitions validate against ``ALLOWED_STATE_TRANSITIONS``
and write the log row and the pointer in one store transaction.
"""

from __future__ import annotations

from catalog.mappers import (
    next_timestamp,
    parse_run_state,
    to_run,
    to_run_args_row,
    to_run_row,
    to_run_state_record,
    to_run_state_row,
    utc_now,
    validate_name,
    validate_page,
)
from core.errors import InvalidStateTransitionError, JobNotFoundError, RunNotFoundError, StoreError
from core.logging_config import get_logger
from core.types import RUN_STATES, Run, RunMeta, RunState, RunStateRecord
from store.job_dao import find_job
from store.metadata_store import MetadataStore
from store.run_dao import (
    append_state_and_advance,
    find_current_state,
    find_run,
    insert_run,
    list_run_states,
    list_runs_for_job,
    run_exists,
    upsert_run_args,
)

_LOGGER = get_logger(__name__)

INITIAL_RUN_STATE: RunState = "NEW"
ALLOWED_STATE_TRANSITIONS: dict[RunState, tuple[RunState, ...]] = {
    "NEW": ("RUNNING",),
    "RUNNING": ("COMPLETED", "FAILED", "ABORTED"),
    "COMPLETED": (),
    "FAILED": (),
    "ABORTED": (),
}


def validate_transition(current: RunState, next_state: RunState) -> None:
    """Validate one run state edge against the allowed state machine edges."""
    allowed_states = ALLOWED_STATE_TRANSITIONS[current]
    if next_state not in allowed_states:
        raise InvalidStateTransitionError(
            f"Invalid run state transition {current!r} -> {next_state!r}. "
            f"Allowed: {', '.join(allowed_states) or 'none'}."
        )


def is_terminal(state: RunState) -> bool:
    """Return whether ``state`` has no outgoing edges."""
    return not ALLOWED_STATE_TRANSITIONS[state]


class RunLifecycle:
    """Persistent run state machine backed by the metadata store."""

    def __init__(self, store: MetadataStore) -> None:
        self._store = store

    def create_run(self, namespace: str, job_name: str, meta: RunMeta) -> Run:
        """Create a run of the job's current version in state NEW.

        The job version row is not modified; its latest run is derived
        from the runs table when the version is read.

        Args:
            namespace: Namespace of the job.
            job_name: Job whose current version the run executes.
            meta: Nominal times and run arguments.

        Returns:
            Newly created run.

        Raises:
            JobNotFoundError: If the job is unknown.
        """
        validate_name(namespace, "namespace")
        validate_name(job_name, "job")
        args_row = to_run_args_row(meta.args)
        with self._store.transaction() as conn:
            job_row = find_job(conn, namespace, job_name)
            if job_row is None or job_row.current_version_uuid is None:
                raise JobNotFoundError(namespace, job_name)
            stored_args = upsert_run_args(conn, args_row)
            now = utc_now()
            run_row = to_run_row(job_row.current_version_uuid, stored_args.uuid, meta, now)
            insert_run(conn, run_row)
            state_row = to_run_state_row(run_row.uuid, INITIAL_RUN_STATE, now)
            append_state_and_advance(conn, state_row, expected_state=None)
            stored_run = find_run(conn, run_row.uuid)
            if stored_run is None:
                raise StoreError(f"Run {run_row.uuid} vanished inside its transaction.")
            run = to_run(stored_run)
        _LOGGER.info(
            "run_created",
            run_id=run.id,
            namespace=namespace,
            job=job_name,
            job_version_id=run.job_version_id,
            args_checksum=stored_args.checksum,
        )
        return run

    def transition(self, run_id: str, target: RunState) -> RunStateRecord:
        """Move a run to ``target`` and record the transition.

        Raises:
            RunNotFoundError: If the run is unknown.
            InvalidStateTransitionError: If the edge is not allowed; the
                run state is left unchanged.
        """
        if target not in RUN_STATES:
            raise InvalidStateTransitionError(
                f"Unknown run state {target!r}. Use one of: {', '.join(RUN_STATES)}."
            )
        with self._store.transaction() as conn:
            raw_state, transitioned_at = find_current_state(conn, run_id)
            if raw_state is None:
                if not run_exists(conn, run_id):
                    raise RunNotFoundError(run_id)
                raise StoreError(f"Run {run_id} has no recorded state.")
            current = parse_run_state(raw_state)
            validate_transition(current, target)
            state_row = to_run_state_row(run_id, target, next_timestamp(transitioned_at))
            append_state_and_advance(conn, state_row, expected_state=current)
        _LOGGER.info(
            "run_transitioned",
            run_id=run_id,
            from_state=current,
            to_state=target,
            terminal=is_terminal(target),
        )
        return to_run_state_record(state_row)

    def get_current_state(self, run_id: str) -> RunState:
        """Return the cached current state without scanning history.

        Raises:
            RunNotFoundError: If the run is unknown.
        """
        with self._store.read() as conn:
            raw_state, _ = find_current_state(conn, run_id)
        if raw_state is None:
            raise RunNotFoundError(run_id)
        return parse_run_state(raw_state)

    def run_exists(self, run_id: str) -> bool:
        """Return whether ``run_id`` names a recorded run."""
        with self._store.read() as conn:
            return run_exists(conn, run_id)

    def get_run(self, run_id: str) -> Run | None:
        """Return the run with its cached current state, or None when unknown."""
        with self._store.read() as conn:
            row = find_run(conn, run_id)
        return to_run(row) if row is not None else None

    def list_states(self, run_id: str) -> list[RunStateRecord]:
        """Return the state history of a run, oldest first."""
        with self._store.read() as conn:
            if not run_exists(conn, run_id):
                raise RunNotFoundError(run_id)
            rows = list_run_states(conn, run_id)
        return [to_run_state_record(row) for row in rows]

    def list_runs(self, namespace: str, job_name: str, limit: int, offset: int) -> list[Run]:
        """List runs across every version of a job, oldest first.

        Args:
            namespace: Namespace of the job.
            job_name: Job whose runs to list.
            limit: Maximum number of runs to return.
            offset: Number of runs to skip.

        Returns:
            One page of runs.

        Raises:
            JobNotFoundError: If the job is unknown.
            CatalogValidationError: If limit or offset is negative.
        """
        validate_page(limit, offset)
        with self._store.read() as conn:
            job_row = find_job(conn, namespace, job_name)
            if job_row is None:
                raise JobNotFoundError(namespace, job_name)
            rows = list_runs_for_job(conn, job_row.uuid, limit, offset)
        return [to_run(row) for row in rows]
