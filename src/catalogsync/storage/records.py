"""Persisted record sets and the upsert + scoped-delete reconcile over them.

Each record type lives under one key as a JSON array.  A reconcile reads the
whole array, merges this run's records into it and writes it back once.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from loguru import logger
from pydantic import ValidationError

from catalogsync.errors import StoreError
from catalogsync.models.run import MergeResult

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence

    from catalogsync.models.records import CatalogRecord
    from catalogsync.storage.blob import BlobStore


class RecordStore:
    """Typed access to whole record sets in a :class:`BlobStore`."""

    def __init__(self, blob_store: BlobStore) -> None:
        self.blob_store = blob_store

    def read[RecordT: CatalogRecord](self, model: type[RecordT]) -> list[RecordT]:
        """Load the set for ``model``; an absent key is an empty set.

        Unreadable content raises :class:`StoreError` so a reconcile never
        overwrites data it could not parse.
        """

        key = model.store_key
        try:
            raw = self.blob_store.read(key)
        except Exception as exc:
            raise StoreError(f"Could not read {key}: {exc}") from exc
        if raw is None:
            return []

        try:
            rows = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise StoreError(f"{key} is not valid JSON: {exc}") from exc
        if not isinstance(rows, list):
            raise StoreError(f"{key} does not hold a JSON array")

        try:
            return [model.model_validate(row) for row in rows]
        except ValidationError as exc:
            raise StoreError(f"{key} holds an invalid record: {exc}") from exc

    def write(self, model: type[CatalogRecord], records: Sequence[CatalogRecord]) -> None:
        key = model.store_key
        data = json.dumps([record.to_json() for record in records], indent=2, ensure_ascii=False)
        try:
            self.blob_store.write(key, (data + "\n").encode("utf-8"))
        except Exception as exc:
            raise StoreError(f"Could not write {key}: {exc}") from exc
        logger.info("Saved {} records to {}", len(records), key)


def merge_records[RecordT: CatalogRecord](
    existing: Sequence[RecordT],
    discovered: Sequence[RecordT],
    scope_keys: Collection[str],
    now: datetime,
) -> tuple[list[RecordT], MergeResult]:
    """Merge ``discovered`` into a copy of ``existing``.

    Existing keys absent from ``discovered`` are dropped only if they are in
    ``scope_keys``.  Stored order is kept and new records are appended.
    """

    merged: dict[str, RecordT] = {record.key: record.model_copy(deep=True) for record in existing}
    discovered_keys: set[str] = set()
    result = MergeResult()

    for record in discovered:
        if record.key in discovered_keys:
            continue
        discovered_keys.add(record.key)
        current = merged.get(record.key)
        if current is not None:
            current.merge_from(record, now)
            result.updated += 1
        else:
            merged[record.key] = record.model_copy(deep=True)
            result.added += 1

    for key in list(merged):
        if key in scope_keys and key not in discovered_keys:
            del merged[key]
            result.removed += 1

    result.total = len(merged)
    return list(merged.values()), result


def plan_reconcile[RecordT: CatalogRecord](
    store: RecordStore,
    model: type[RecordT],
    discovered: Sequence[RecordT],
    scope_keys: Collection[str],
    *,
    now: datetime | None = None,
) -> MergeResult:
    """Counts a reconcile would produce, without writing anything."""

    existing = store.read(model)
    _, result = merge_records(existing, discovered, scope_keys, now or datetime.now(UTC))
    return result


def reconcile[RecordT: CatalogRecord](
    store: RecordStore,
    model: type[RecordT],
    discovered: Sequence[RecordT],
    scope_keys: Collection[str],
    *,
    now: datetime | None = None,
) -> MergeResult:
    """Upsert ``discovered`` and prune in-scope keys that were not rediscovered."""

    existing = store.read(model)
    merged, result = merge_records(existing, discovered, scope_keys, now or datetime.now(UTC))
    store.write(model, merged)
    logger.info(
        "Reconciled {}: {} added, {} updated, {} removed, {} total",
        model.store_key,
        result.added,
        result.updated,
        result.removed,
        result.total,
    )
    return result
