"""Tests for blob stores, record sets and reconcile."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from catalogsync.errors import ConfigurationError, StoreError
from catalogsync.models.records import MarketplaceRecord, SkillRecord
from catalogsync.settings import Settings
from catalogsync.storage.blob import LocalBlobStore, ObjectBlobStore, can_use_object_store, create_blob_store
from catalogsync.storage.records import RecordStore, merge_records, plan_reconcile, reconcile
from tests.factories import T0, FailingBlobStore, UnreachableBlobStore, make_marketplace, make_skill

NOW = datetime(2025, 6, 1, tzinfo=UTC)


def test_local_blob_store_roundtrip(tmp_path: Path) -> None:
    store = LocalBlobStore(tmp_path / "data")
    assert store.read("missing.json") is None

    store.write("marketplaces.json", b"[]")
    assert store.read("marketplaces.json") == b"[]"
    assert [p.name for p in (tmp_path / "data").iterdir()] == ["marketplaces.json"]


def test_local_blob_store_rejects_escaping_keys(tmp_path: Path) -> None:
    store = LocalBlobStore(tmp_path / "data")
    with pytest.raises(ValueError, match="escapes"):
        store.write("../outside.json", b"{}")


def test_object_blob_store_prefixes_keys() -> None:
    backend = MagicMock()
    backend.get.return_value.bytes.return_value = b"[1]"
    store = ObjectBlobStore(backend, prefix="/catalog/")

    store.write("skills.json", b"[]")
    assert store.read("skills.json") == b"[1]"

    backend.put.assert_called_once_with("catalog/skills.json", b"[]")
    backend.get.assert_called_once_with("catalog/skills.json")


def test_create_blob_store_backends(tmp_path: Path) -> None:
    local = create_blob_store(Settings(data_dir=tmp_path))
    assert isinstance(local, LocalBlobStore)
    assert local.root == tmp_path

    settings = Settings(store_backend="r2")
    assert can_use_object_store(settings) is False
    with pytest.raises(ConfigurationError, match="R2 credentials"):
        create_blob_store(settings)


def test_record_store_absent_key_is_empty(record_store: RecordStore) -> None:
    assert record_store.read(MarketplaceRecord) == []


def test_record_store_writes_camel_case_json(record_store: RecordStore, tmp_data_dir: Path) -> None:
    record_store.write(MarketplaceRecord, [make_marketplace(stars=3, stars_fetched_at=NOW, plugin_keywords=["x"])])

    (row,) = json.loads((tmp_data_dir / "marketplaces.json").read_text())
    assert row["pluginCount"] == 1
    assert row["pluginKeywords"] == ["x"]
    assert row["source"] == "auto"
    assert row["starsFetchedAt"].startswith("2025-06-01")
    assert row["discoveredAt"].startswith("2025-01-01")


def test_record_store_keeps_unknown_fields(record_store: RecordStore, tmp_data_dir: Path) -> None:
    tmp_data_dir.mkdir(parents=True)
    (tmp_data_dir / "marketplaces.json").write_text(
        json.dumps([{"repo": "o/r", "description": "d", "source": "manual", "featured": True}])
    )

    (record,) = record_store.read(MarketplaceRecord)
    record_store.write(MarketplaceRecord, [record])

    (row,) = json.loads((tmp_data_dir / "marketplaces.json").read_text())
    assert row["featured"] is True
    assert row["source"] == "manual"


def test_record_store_refuses_corrupt_content(record_store: RecordStore, tmp_data_dir: Path) -> None:
    tmp_data_dir.mkdir(parents=True)
    (tmp_data_dir / "skills.json").write_text("{oops")
    with pytest.raises(StoreError):
        record_store.read(SkillRecord)

    (tmp_data_dir / "skills.json").write_text('{"not": "a list"}')
    with pytest.raises(StoreError):
        record_store.read(SkillRecord)


def test_merge_preserves_discovered_at_and_origin() -> None:
    existing = [make_marketplace("o/r", origin="manual", stars=50, stars_fetched_at=T0, description="old")]
    fresh = [make_marketplace("o/r", discovered_at=NOW, origin="auto", description="new", plugin_count=4)]

    merged, result = merge_records(existing, fresh, {"o/r"}, NOW)

    (record,) = merged
    assert result.updated == 1
    assert record.discovered_at == T0
    assert record.origin == "manual"
    assert record.description == "new"
    assert record.plugin_count == 4
    assert record.last_updated == NOW
    assert record.stars == 50
    assert record.stars_fetched_at == T0
    assert existing[0].description == "old"


def test_merge_updates_stars_when_defined() -> None:
    existing = [make_marketplace("o/r", stars=50, stars_fetched_at=T0)]
    fresh = [make_marketplace("o/r", stars=60, stars_fetched_at=NOW)]

    merged, _ = merge_records(existing, fresh, {"o/r"}, NOW)

    assert merged[0].stars == 60
    assert merged[0].stars_fetched_at == NOW


def test_merge_deletes_only_in_scope_keys() -> None:
    existing = [make_marketplace("a/a"), make_marketplace("b/b"), make_marketplace("c/c")]
    fresh = [make_marketplace("a/a"), make_marketplace("d/d")]

    merged, result = merge_records(existing, fresh, {"a/a", "b/b", "d/d"}, NOW)

    assert [r.repo for r in merged] == ["a/a", "c/c", "d/d"]
    assert (result.added, result.updated, result.removed, result.total) == (1, 1, 1, 3)


def test_merge_counts_duplicate_discoveries_once() -> None:
    fresh = [make_skill("o/r", "pdf"), make_skill("o/r", "pdf", description="second copy")]

    merged, result = merge_records([], fresh, set(), NOW)

    assert result.added == 1
    assert merged[0].description == "The pdf skill"


def test_reconcile_protects_manual_record_outside_scope(record_store: RecordStore) -> None:
    record_store.write(MarketplaceRecord, [make_marketplace("d/d", origin="manual", discovered_at=T0)])

    result = reconcile(record_store, MarketplaceRecord, [make_marketplace("c/c")], {"a/a", "c/c"}, now=NOW)

    records = {r.repo: r for r in record_store.read(MarketplaceRecord)}
    assert (result.added, result.removed, result.total) == (1, 0, 2)
    assert records["d/d"].origin == "manual"
    assert records["d/d"].discovered_at == T0
    assert records["d/d"].last_updated == T0


def test_plan_reconcile_does_not_write(record_store: RecordStore, tmp_data_dir: Path) -> None:
    result = plan_reconcile(record_store, SkillRecord, [make_skill()], {"o-r/pdf"}, now=NOW)

    assert result.added == 1
    assert not (tmp_data_dir / "skills.json").exists()


def test_reconcile_write_failure_raises_store_error() -> None:
    store = RecordStore(FailingBlobStore())
    with pytest.raises(StoreError, match="disk full"):
        reconcile(store, SkillRecord, [make_skill()], set(), now=NOW)


def test_record_store_read_failure_raises_store_error() -> None:
    store = RecordStore(UnreachableBlobStore())
    with pytest.raises(StoreError, match="connection refused"):
        store.read(SkillRecord)
