"""Deterministic version ids derived from identity fields.

A version id is a 128-bit prefix of the SHA-256 digest over the
canonical JSON encoding of the ordered identity fields, rendered as a
UUID string. Encoding the fields as a JSON list keeps ``("a:b", "c")``
and ``("a", "b:c")`` distinct.
"""

from __future__ import annotations

import hashlib
import json
import uuid
from typing import Sequence

from core.constants import HASH_ALGORITHM, VERSION_ID_BYTES
from core.types import DatasetId, DatasetMeta, DbTableFacet, JobMeta, StreamFacet


def resolve(identity_fields: Sequence[str | None]) -> str:
    """Compute the version id of one ordered identity tuple."""
    normalized = json.dumps(list(identity_fields), separators=(",", ":"), ensure_ascii=False)
    hash_builder = hashlib.new(HASH_ALGORITHM)
    hash_builder.update(normalized.encode("utf-8"))
    return str(uuid.UUID(bytes=hash_builder.digest()[:VERSION_ID_BYTES]))


def dataset_identity_fields(namespace: str, name: str, meta: DatasetMeta) -> list[str | None]:
    """Identity fields of a dataset; description and run are excluded."""
    fields: list[str | None] = [namespace, name, meta.type, meta.physical_name, meta.source_name]
    match meta.facet:
        case StreamFacet(schema_location=schema_location):
            fields.append(schema_location)
        case DbTableFacet():
            pass
    return fields


def job_identity_fields(namespace: str, name: str, meta: JobMeta) -> list[str | None]:
    """Identity fields of a job; inputs and outputs act as ordered sets.

    The job type is descriptive, like the description, and is excluded.
    """
    return [
        namespace,
        name,
        json.dumps(_ordered_set(meta.inputs)),
        json.dumps(_ordered_set(meta.outputs)),
        meta.location,
    ]


def dataset_version(namespace: str, name: str, meta: DatasetMeta) -> str:
    """Return the content version id of dataset metadata."""
    return resolve(dataset_identity_fields(namespace, name, meta))


def job_version(namespace: str, name: str, meta: JobMeta) -> str:
    """Return the content version id of job metadata."""
    return resolve(job_identity_fields(namespace, name, meta))


def _ordered_set(dataset_ids: Sequence[DatasetId]) -> list[list[str]]:
    unique_ids = {(item.namespace, item.name) for item in dataset_ids}
    return [list(item) for item in sorted(unique_ids)]
