"""Tests for record stores and the delivery ledger."""

from __future__ import annotations

from pathlib import Path

import pytest

from lmn_fulfillment.core.config import PersistenceConfig
from lmn_fulfillment.correlation import DeliveryLedger
from lmn_fulfillment.persistence import (
    FileRecordStore,
    IRecordStore,
    MemoryRecordStore,
    create_record_store,
)


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path: Path) -> IRecordStore:
    if request.param == "file":
        return FileRecordStore(tmp_path / "ledger")
    return MemoryRecordStore()


class TestRecordStore:
    def test_satisfies_protocol(self, store: IRecordStore) -> None:
        assert isinstance(store, IRecordStore)

    def test_put_get_delete(self, store: IRecordStore) -> None:
        assert store.get("a") is None
        store.put("a", {"x": 1})
        assert store.exists("a")
        assert store.get("a") == {"x": 1}
        store.delete("a")
        assert not store.exists("a")
        store.delete("a")

    def test_keys_by_prefix(self, store: IRecordStore) -> None:
        for key in ("delivered__b", "delivered__a", "other"):
            store.put(key, {})
        assert store.keys("delivered__") == ["delivered__a", "delivered__b"]

    def test_memory_store_copies(self) -> None:
        store = MemoryRecordStore()
        record = {"nested": {"n": 1}}
        store.put("k", record)
        record["nested"]["n"] = 2
        assert store.get("k") == {"nested": {"n": 1}}

    def test_file_store_survives_restart(self, tmp_path: Path) -> None:
        FileRecordStore(tmp_path).put("doc/1", {"ok": True})
        reopened = FileRecordStore(tmp_path)
        assert reopened.get("doc/1") == {"ok": True}
        assert not list(tmp_path.glob("*.tmp"))


class TestFactory:
    def test_memory(self) -> None:
        assert isinstance(create_record_store(PersistenceConfig(backend="memory")), MemoryRecordStore)

    def test_file(self, tmp_path: Path) -> None:
        store = create_record_store(PersistenceConfig(backend="file", store_path=tmp_path / "s"))
        assert isinstance(store, FileRecordStore)
        assert (tmp_path / "s").is_dir()


class TestDeliveryLedger:
    def test_record_and_query(self, store: IRecordStore) -> None:
        ledger = DeliveryLedger(store)
        assert not ledger.was_delivered("doc_1")
        ledger.record_delivery("doc_1", recipient="a@example.com", message_id="msg_1", attached=True)

        assert ledger.was_delivered("doc_1")
        record = ledger.get("doc_1")
        assert record["recipient"] == "a@example.com"
        assert record["attached"] is True
        assert record["delivered_at"]
        assert ledger.get("doc_2") is None
