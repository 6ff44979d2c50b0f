"""Unit tests for CLI command handling."""

from __future__ import annotations

from cli.main import main
from tests.fixture_paths import fixture_path


def _run(db_path, capsys, *args: str) -> tuple[int, str]:
    exit_code = main(["--db-path", str(db_path), *args])
    return exit_code, capsys.readouterr().out.strip()


def _register_events(db_path, capsys) -> str:
    _run(db_path, capsys, "namespace", "put", "warehouse", "--owner", "data-eng")
    _, version = _run(
        db_path,
        capsys,
        "dataset",
        "put",
        "warehouse",
        "events",
        "--physical-name",
        "public.events",
        "--source",
        "pg",
    )
    return version


def test_cli_dataset_put_prints_version(tmp_path, capsys) -> None:
    """Dataset put should print the current version, stable across repeats."""
    db_path = tmp_path / "catalog.db"
    first = _register_events(db_path, capsys)

    exit_code, second = _run(
        db_path,
        capsys,
        "dataset",
        "put",
        "warehouse",
        "events",
        "--physical-name",
        "public.events",
        "--source",
        "pg",
    )

    assert exit_code == 0 and bool(first) and first == second


def test_cli_dataset_versions_lists_history(tmp_path, capsys) -> None:
    """Versions command should print one line per dataset version."""
    db_path = tmp_path / "catalog.db"
    _register_events(db_path, capsys)
    _run(
        db_path,
        capsys,
        "dataset",
        "put",
        "warehouse",
        "events",
        "--physical-name",
        "public.events_v2",
        "--source",
        "pg",
    )

    exit_code, output = _run(db_path, capsys, "dataset", "versions", "warehouse", "events")

    assert exit_code == 0 and len(output.splitlines()) == 2


def test_cli_run_lifecycle_commands(tmp_path, capsys) -> None:
    """Run create, transition, and state should drive the state machine."""
    db_path = tmp_path / "catalog.db"
    _register_events(db_path, capsys)
    _run(
        db_path,
        capsys,
        "job",
        "put",
        "warehouse",
        "etl",
        "--location",
        "git://etl",
        "--input",
        "events",
    )
    _, run_id = _run(db_path, capsys, "run", "create", "warehouse", "etl", "--arg", "date=2024-01-01")
    _run(db_path, capsys, "run", "transition", run_id, "RUNNING")

    exit_code, state = _run(db_path, capsys, "run", "state", run_id)

    assert exit_code == 0 and state == "RUNNING"


def test_cli_invalid_transition_exits_non_zero(tmp_path, capsys) -> None:
    """Domain errors should print to stderr and return exit code 1."""
    db_path = tmp_path / "catalog.db"
    _register_events(db_path, capsys)
    _run(db_path, capsys, "job", "put", "warehouse", "etl", "--location", "git://etl")
    _, run_id = _run(db_path, capsys, "run", "create", "warehouse", "etl")

    exit_code = main(["--db-path", str(db_path), "run", "transition", run_id, "COMPLETED"])
    captured = capsys.readouterr()

    assert exit_code == 1 and "error=" in captured.err and captured.out == ""


def test_cli_dataset_put_into_unknown_namespace_fails(tmp_path, capsys) -> None:
    """Writes into a missing namespace should fail with exit code 1."""
    exit_code, _ = _run(
        tmp_path / "catalog.db",
        capsys,
        "dataset",
        "put",
        "missing",
        "events",
        "--physical-name",
        "public.events",
        "--source",
        "pg",
    )

    assert exit_code == 1


def test_cli_apply_registers_spec(tmp_path, capsys) -> None:
    """Apply should register every entry and print one line per entity."""
    exit_code, output = _run(
        tmp_path / "catalog.db",
        capsys,
        "apply",
        str(fixture_path("metadata_spec/valid_catalog.yaml")),
    )
    lines = output.splitlines()

    assert exit_code == 0 and len(lines) == 5 and lines[-1].startswith("job=warehouse.daily_rollup")
