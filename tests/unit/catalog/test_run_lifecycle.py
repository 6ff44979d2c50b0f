"""Unit tests for the run state machine and current-state projection."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from catalog.run_lifecycle import ALLOWED_STATE_TRANSITIONS, validate_transition
from core.errors import InvalidStateTransitionError, JobNotFoundError, RunNotFoundError
from core.types import DatasetId, JobMeta, RunMeta
from store.metadata_store import MetadataStore
from store.run_dao import count_run_args, find_latest_run_state
from tests.catalog_fixtures import build_client, table_meta


def _client_with_job(tmp_path):
    client = build_client(tmp_path)
    client.datasets.create_or_update("warehouse", "events", table_meta())
    client.jobs.create_or_update(
        "warehouse",
        "etl",
        JobMeta(
            type="BATCH",
            inputs=(DatasetId("warehouse", "events"),),
            outputs=(),
            location="git://etl",
        ),
    )
    return client


def _latest_logged_state(client, run_id: str) -> str | None:
    with MetadataStore(client.config.db_path).read() as conn:
        row = find_latest_run_state(conn, run_id)
    return row.state if row is not None else None


def test_create_run_starts_in_new_state(tmp_path) -> None:
    """A created run should be NEW with one history row and link to the job version."""
    client = _client_with_job(tmp_path)
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)

    run = client.runs.create_run(
        "warehouse", "etl", RunMeta(nominal_start_time=start, args={"date": "2024-01-01"})
    )
    history = client.runs.list_states(run.id)
    job_version = client.jobs.list_versions("warehouse", "etl")[-1]

    assert (
        run.state == "NEW"
        and run.nominal_start_time == start
        and run.args == {"date": "2024-01-01"}
        and [record.state for record in history] == ["NEW"]
        and run.job_version_id == job_version.id
        and job_version.latest_run_id == run.id
    )


def test_create_run_for_unknown_job_raises_not_found(tmp_path) -> None:
    """Runs need a registered job."""
    client = _client_with_job(tmp_path)

    with pytest.raises(JobNotFoundError):
        client.runs.create_run("warehouse", "ghost", RunMeta())

    assert True


def test_identical_args_share_one_row(tmp_path) -> None:
    """Run args should be content addressed by checksum."""
    client = _client_with_job(tmp_path)

    first = client.runs.create_run("warehouse", "etl", RunMeta(args={"a": "1", "b": "2"}))
    second = client.runs.create_run("warehouse", "etl", RunMeta(args={"b": "2", "a": "1"}))
    with MetadataStore(client.config.db_path).read() as conn:
        args_rows = count_run_args(conn)

    assert first.id != second.id and args_rows == 1


def test_legal_sequence_records_every_state(tmp_path) -> None:
    """NEW -> RUNNING -> COMPLETED should succeed with one log row per step."""
    client = _client_with_job(tmp_path)
    run = client.runs.create_run("warehouse", "etl", RunMeta())

    running = client.runs.transition(run.id, "RUNNING")
    completed = client.runs.transition(run.id, "COMPLETED")
    history = client.runs.list_states(run.id)

    assert (
        running.state == "RUNNING"
        and completed.state == "COMPLETED"
        and [record.state for record in history] == ["NEW", "RUNNING", "COMPLETED"]
        and history[1].transitioned_at < history[2].transitioned_at
        and client.runs.get_current_state(run.id) == "COMPLETED"
    )


@pytest.mark.parametrize(
    ("path", "illegal_target"),
    [
        ((), "COMPLETED"),
        (("RUNNING",), "RUNNING"),
        (("RUNNING",), "NEW"),
        (("RUNNING", "COMPLETED"), "RUNNING"),
        (("RUNNING", "FAILED"), "COMPLETED"),
        (("RUNNING", "ABORTED"), "RUNNING"),
    ],
)
def test_illegal_transition_leaves_state_unchanged(tmp_path, path, illegal_target) -> None:
    """Illegal edges should raise and leave the pointer and log untouched."""
    client = _client_with_job(tmp_path)
    run = client.runs.create_run("warehouse", "etl", RunMeta())
    for state in path:
        client.runs.transition(run.id, state)
    before_state = client.runs.get_current_state(run.id)
    before_history = client.runs.list_states(run.id)

    with pytest.raises(InvalidStateTransitionError):
        client.runs.transition(run.id, illegal_target)

    assert (
        client.runs.get_current_state(run.id) == before_state
        and client.runs.list_states(run.id) == before_history
    )


def test_pointer_matches_latest_log_row(tmp_path) -> None:
    """After each transition the cached state equals the newest history row."""
    client = _client_with_job(tmp_path)
    run = client.runs.create_run("warehouse", "etl", RunMeta())
    observed = []

    for target in ("RUNNING", "FAILED"):
        client.runs.transition(run.id, target)
        observed.append((client.runs.get_current_state(run.id), _latest_logged_state(client, run.id)))

    assert observed == [("RUNNING", "RUNNING"), ("FAILED", "FAILED")]


def test_unknown_run_raises_not_found(tmp_path) -> None:
    """Unknown run ids should raise on transition and state reads."""
    client = _client_with_job(tmp_path)

    with pytest.raises(RunNotFoundError):
        client.runs.transition("missing-run", "RUNNING")
    with pytest.raises(RunNotFoundError):
        client.runs.get_current_state("missing-run")

    assert client.runs.run_exists("missing-run") is False


def test_run_exists_and_list_runs(tmp_path) -> None:
    """Created runs should be discoverable by id and by job."""
    client = _client_with_job(tmp_path)
    first = client.runs.create_run("warehouse", "etl", RunMeta())
    second = client.runs.create_run("warehouse", "etl", RunMeta())

    listed = client.runs.list_runs("warehouse", "etl", limit=10, offset=0)

    assert client.runs.run_exists(first.id) and [run.id for run in listed] == [first.id, second.id]


def test_terminal_states_have_no_outgoing_edges() -> None:
    """Terminal states should reject every target."""
    for terminal in ("COMPLETED", "FAILED", "ABORTED"):
        for target in ALLOWED_STATE_TRANSITIONS:
            with pytest.raises(InvalidStateTransitionError):
                validate_transition(terminal, target)

    assert ALLOWED_STATE_TRANSITIONS["NEW"] == ("RUNNING",)


def _job_version_rows(client) -> list[tuple[object, ...]]:
    with MetadataStore(client.config.db_path).read() as conn:
        rows = conn.execute("SELECT * FROM job_versions ORDER BY rowid").fetchall()
    return [tuple(row) for row in rows]


def test_create_run_leaves_job_version_rows_untouched(tmp_path) -> None:
    """Committed job version rows should be identical before and after run creation."""
    client = _client_with_job(tmp_path)
    before = _job_version_rows(client)

    client.runs.create_run("warehouse", "etl", RunMeta())

    assert _job_version_rows(client) == before


def test_latest_run_follows_newest_run(tmp_path) -> None:
    """A job version should report its most recently created run."""
    client = _client_with_job(tmp_path)
    client.runs.create_run("warehouse", "etl", RunMeta())
    newest = client.runs.create_run("warehouse", "etl", RunMeta())

    job_version = client.jobs.list_versions("warehouse", "etl")[-1]

    assert job_version.latest_run_id == newest.id
