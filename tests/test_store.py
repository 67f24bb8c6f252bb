"""Tests for daily_expense.store -- in-memory and JSON ledger stores."""

from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

import pytest

from helpers import make_txn, ts
from daily_expense.errors import StoreReadError
from daily_expense.store import InMemoryStore, JsonLedgerStore


@pytest.fixture(params=["memory", "json"])
def store(request, tmp_path: Path):
    """Each store implementation, empty."""
    if request.param == "memory":
        return InMemoryStore()
    return JsonLedgerStore(tmp_path / "ledger.json")


# ---------------------------------------------------------------------------
# Behavior shared by both implementations
# ---------------------------------------------------------------------------


class TestStoreContract:
    def test_insert_assigns_increasing_ids(self, store):
        first = store.insert(make_txn("A"))
        second = store.insert(make_txn("B"))
        assert (first, second) == (1, 2)

    def test_get_by_id(self, store):
        new_id = store.insert(make_txn("Lunch", "120.00", notes="with team"))
        txn = store.get_by_id(new_id)
        assert txn.title == "Lunch"
        assert txn.amount == Decimal("120.00")
        assert txn.notes == "with team"
        assert txn.id == new_id

    def test_get_by_id_missing(self, store):
        assert store.get_by_id(42) is None

    def test_range_is_inclusive_and_newest_first(self, store):
        store.insert(make_txn("Start", timestamp=ts(2026, 10, 14)))
        store.insert(make_txn("End", timestamp=ts(2026, 10, 14, 23, 59, 59, 999)))
        store.insert(make_txn("Next day", timestamp=ts(2026, 10, 15)))
        rows = store.get_by_range(ts(2026, 10, 14), ts(2026, 10, 14, 23, 59, 59, 999))
        assert [t.title for t in rows] == ["End", "Start"]

    def test_get_all_newest_first(self, store):
        store.insert(make_txn("Old", timestamp=ts(2026, 1, 1)))
        store.insert(make_txn("New", timestamp=ts(2026, 6, 1)))
        assert [t.title for t in store.get_all()] == ["New", "Old"]

    def test_update(self, store):
        new_id = store.insert(make_txn("Lunch", "100.00"))
        txn = store.get_by_id(new_id)
        txn.amount = Decimal("110.00")
        store.update(txn)
        assert store.get_by_id(new_id).amount == Decimal("110.00")

    def test_update_unknown_raises(self, store):
        with pytest.raises(KeyError):
            store.update(make_txn(txn_id=99))

    def test_delete(self, store):
        new_id = store.insert(make_txn())
        store.delete(new_id)
        assert store.get_by_id(new_id) is None

    def test_delete_unknown_raises(self, store):
        with pytest.raises(KeyError):
            store.delete(7)

    def test_ids_not_reused_after_delete(self, store):
        store.insert(make_txn("A"))
        second = store.insert(make_txn("B"))
        store.delete(second)
        assert store.insert(make_txn("C")) == 3

    def test_returned_rows_are_copies(self, store):
        new_id = store.insert(make_txn("Lunch"))
        store.get_by_id(new_id).title = "Changed"
        assert store.get_by_id(new_id).title == "Lunch"


# ---------------------------------------------------------------------------
# JSON ledger specifics
# ---------------------------------------------------------------------------


class TestJsonLedgerStore:
    def test_missing_file_is_empty(self, tmp_path: Path):
        store = JsonLedgerStore(tmp_path / "nope.json")
        assert store.get_all() == []

    def test_amount_stored_as_string(self, tmp_path: Path):
        path = tmp_path / "ledger.json"
        JsonLedgerStore(path).insert(make_txn(amount="0.10"))
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["next_id"] == 2
        assert data["transactions"][0]["amount"] == "0.10"

    def test_persists_across_instances(self, tmp_path: Path):
        path = tmp_path / "ledger.json"
        JsonLedgerStore(path).insert(make_txn("Rent", "15000.00", "HOUSING"))
        txn = JsonLedgerStore(path).get_all()[0]
        assert (txn.title, txn.amount, txn.category) == ("Rent", Decimal("15000.00"), "HOUSING")

    def test_creates_parent_directory(self, tmp_path: Path):
        path = tmp_path / "data" / "ledger.json"
        JsonLedgerStore(path).insert(make_txn())
        assert path.exists()

    def test_corrupt_file_raises_store_read_error(self, tmp_path: Path):
        path = tmp_path / "ledger.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StoreReadError, match="Could not read ledger"):
            JsonLedgerStore(path).get_by_range(0, 10)

    def test_malformed_record_raises_store_read_error(self, tmp_path: Path):
        path = tmp_path / "ledger.json"
        path.write_text(json.dumps({"transactions": [{"title": "x"}]}), encoding="utf-8")
        with pytest.raises(StoreReadError, match="Malformed ledger"):
            JsonLedgerStore(path).get_all()

    def test_next_id_never_below_existing_ids(self, tmp_path: Path):
        path = tmp_path / "ledger.json"
        record = {
            "id": 5,
            "title": "Tea",
            "amount": "20",
            "category": "FOOD",
            "notes": None,
            "image_uri": None,
            "timestamp": ts(2026, 10, 1),
        }
        path.write_text(json.dumps({"next_id": 1, "transactions": [record]}), encoding="utf-8")
        assert JsonLedgerStore(path).insert(make_txn()) == 6
