from __future__ import annotations

import pytest

from relister.infra import SQLiteManager, SQLiteRecordStore, UpsertRequest


def test_sqlite_manager_initialises_schema(tmp_path) -> None:
    manager = SQLiteManager()
    conn = manager.connect(tmp_path / "records.db")
    columns = conn.execute("PRAGMA table_info(processing_records)").fetchall()
    assert {row["name"] for row in columns} == {"id", "attributes"}


def test_batch_get_omits_missing_keys(record_store: SQLiteRecordStore) -> None:
    record_store.upsert(UpsertRequest(key="ITEM#naoto#merc-1", overwrite={"isDraft": True}))
    records = record_store.batch_get(["ITEM#naoto#merc-1", "ITEM#naoto#merc-2"])
    assert list(records) == ["ITEM#naoto#merc-1"]
    assert records["ITEM#naoto#merc-1"] == {"id": "ITEM#naoto#merc-1", "isDraft": True}


def test_upsert_overwrites_but_keeps_create_only(record_store: SQLiteRecordStore) -> None:
    key = "ITEM#naoto#merc-9"
    record_store.upsert(
        UpsertRequest(key=key, overwrite={"ebayTitle": "First"}, create_only={"scanCount": 0})
    )
    record_store.upsert(
        UpsertRequest(key=key, overwrite={"scanCount": 3}),
    )
    record_store.upsert(
        UpsertRequest(key=key, overwrite={"ebayTitle": "Second"}, create_only={"scanCount": 0})
    )
    stored = record_store.batch_get([key])[key]
    assert stored["ebayTitle"] == "Second"
    assert stored["scanCount"] == 3


def test_batch_get_respects_read_limit(tmp_path) -> None:
    store = SQLiteRecordStore(SQLiteManager(), tmp_path / "r.db", batch_read_limit=2)
    with pytest.raises(ValueError):
        store.batch_get(["a", "b", "c"])
    assert store.batch_get([]) == {}


def test_upsert_request_rejects_overlapping_fields() -> None:
    with pytest.raises(ValueError):
        UpsertRequest(key="k", overwrite={"a": 1}, create_only={"a": 2})
    with pytest.raises(ValueError):
        UpsertRequest(key="k")
