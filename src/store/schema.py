"""SQLite schema for the metadata catalog.

Anchor tables (namespaces, sources, datasets, jobs, runs) are the only
mutable rows. Version and state tables are append-only; the catalog
never issues UPDATE or DELETE against them.
"""

from __future__ import annotations

import sqlite3

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS namespaces (
  uuid TEXT PRIMARY KEY,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  name TEXT NOT NULL UNIQUE,
  description TEXT,
  current_owner_name TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS sources (
  uuid TEXT PRIMARY KEY,
  type TEXT NOT NULL,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  name TEXT NOT NULL UNIQUE,
  connection_url TEXT,
  description TEXT
);

CREATE TABLE IF NOT EXISTS datasets (
  uuid TEXT PRIMARY KEY,
  type TEXT NOT NULL,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  namespace_uuid TEXT NOT NULL REFERENCES namespaces(uuid),
  source_uuid TEXT NOT NULL REFERENCES sources(uuid),
  name TEXT NOT NULL,
  physical_name TEXT NOT NULL,
  description TEXT,
  current_version_uuid TEXT REFERENCES dataset_versions(uuid),
  UNIQUE (namespace_uuid, name)
);

CREATE INDEX IF NOT EXISTS idx_datasets_namespace_created
  ON datasets(namespace_uuid, created_at);

CREATE TABLE IF NOT EXISTS dataset_versions (
  uuid TEXT PRIMARY KEY,
  created_at TEXT NOT NULL,
  dataset_uuid TEXT NOT NULL REFERENCES datasets(uuid),
  version TEXT NOT NULL,
  type TEXT NOT NULL,
  physical_name TEXT NOT NULL,
  source_uuid TEXT NOT NULL REFERENCES sources(uuid),
  run_uuid TEXT REFERENCES runs(uuid),
  UNIQUE (dataset_uuid, version)
);

CREATE TABLE IF NOT EXISTS stream_versions (
  dataset_version_uuid TEXT PRIMARY KEY REFERENCES dataset_versions(uuid),
  schema_location TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS jobs (
  uuid TEXT PRIMARY KEY,
  type TEXT NOT NULL,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  namespace_uuid TEXT NOT NULL REFERENCES namespaces(uuid),
  name TEXT NOT NULL,
  description TEXT,
  current_version_uuid TEXT REFERENCES job_versions(uuid),
  UNIQUE (namespace_uuid, name)
);

CREATE INDEX IF NOT EXISTS idx_jobs_namespace_created
  ON jobs(namespace_uuid, created_at);

CREATE TABLE IF NOT EXISTS job_versions (
  uuid TEXT PRIMARY KEY,
  created_at TEXT NOT NULL,
  job_uuid TEXT NOT NULL REFERENCES jobs(uuid),
  version TEXT NOT NULL,
  location TEXT NOT NULL,
  input_version_uuids TEXT NOT NULL,
  output_version_uuids TEXT NOT NULL,
  UNIQUE (job_uuid, version)
);

CREATE TABLE IF NOT EXISTS run_args (
  uuid TEXT PRIMARY KEY,
  created_at TEXT NOT NULL,
  args TEXT NOT NULL,
  checksum TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS runs (
  uuid TEXT PRIMARY KEY,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  job_version_uuid TEXT NOT NULL REFERENCES job_versions(uuid),
  run_args_uuid TEXT NOT NULL REFERENCES run_args(uuid),
  nominal_start_time TEXT,
  nominal_end_time TEXT,
  current_run_state TEXT,
  transitioned_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_runs_job_version ON runs(job_version_uuid, created_at);

CREATE TABLE IF NOT EXISTS run_states (
  uuid TEXT PRIMARY KEY,
  transitioned_at TEXT NOT NULL,
  run_uuid TEXT NOT NULL REFERENCES runs(uuid),
  state TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_run_states_run ON run_states(run_uuid, transitioned_at);
"""


def init_schema(conn: sqlite3.Connection) -> None:
    """Create all catalog tables and indexes when missing."""
    for statement in SCHEMA_SQL.split(";"):
        if statement.strip():
            conn.execute(statement)
