"""
Unit tests for collection persistence.

Tests the SQLite key/value store, fail-safe loading and the
write-through listener.
"""

import json
import pytest
import sys
from pathlib import Path
from unittest.mock import MagicMock

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from biasdesk.accounts import AccountField, AccountManager
from biasdesk.core.config import Config
from biasdesk.core.db import dispose_engines, session_scope
from biasdesk.core.models import Account, KeyValue, Pair
from biasdesk.core.state import StateOwner
from biasdesk.core.store import (
    ACCOUNTS_KEY,
    PAIRS_KEY,
    KeyValueStore,
    MemoryKeyValueStore,
    SqlKeyValueStore,
    load_collection,
    write_through,
)


@pytest.fixture
def sql_store(tmp_path):
    store = SqlKeyValueStore(Config(database_path=str(tmp_path / "biasdesk.db")))
    yield store
    dispose_engines()


class TestSqlKeyValueStore:
    """Test the SQLite backend."""

    def test_missing_key(self, sql_store):
        assert sql_store.get("nothing") is None

    def test_set_and_overwrite(self, sql_store):
        sql_store.set(PAIRS_KEY, "[]")
        sql_store.set(PAIRS_KEY, '[{"id": 1}]')
        assert sql_store.get(PAIRS_KEY) == '[{"id": 1}]'

    def test_creates_parent_directory(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "biasdesk.db"
        store = SqlKeyValueStore(Config(database_path=str(db_path)))
        store.set(ACCOUNTS_KEY, "[]")
        assert db_path.exists()
        dispose_engines()

    def test_manager_persists_across_instances(self, sql_store):
        manager = AccountManager(sql_store)
        manager.update(1, AccountField.ACCOUNT_SIZE, 20000)
        manager.update(1, AccountField.BALANCE, "19500")

        reloaded = AccountManager(sql_store)
        assert reloaded.get(1).actual_balance == 1500

    def test_failed_unit_of_work_rolls_back(self, sql_store):
        with pytest.raises(RuntimeError):
            with session_scope(sql_store.config) as session:
                session.add(KeyValue(key=ACCOUNTS_KEY, value="[]"))
                session.flush()
                raise RuntimeError("boom")

        assert sql_store.get(ACCOUNTS_KEY) is None


class TestKeyValueStore:
    """Backends must implement both get and set."""

    def test_incomplete_backend_cannot_be_created(self):
        class ReadOnlyStore(KeyValueStore):
            def get(self, key):
                return None

        with pytest.raises(TypeError):
            ReadOnlyStore()

    def test_memory_store(self):
        store = MemoryKeyValueStore({PAIRS_KEY: "[]"})
        store.set(ACCOUNTS_KEY, "[]")
        assert store.data == {PAIRS_KEY: "[]", ACCOUNTS_KEY: "[]"}


class TestLoadCollection:
    """Test fail-safe loading."""

    def test_skips_non_dict_entries(self):
        store = MemoryKeyValueStore({PAIRS_KEY: json.dumps([1, "x", {"id": 5, "name": "EURUSD"}])})
        pairs = load_collection(store, PAIRS_KEY, Pair.from_dict, list)
        assert [p.id for p in pairs] == [5]

    def test_bad_fields_fall_back_to_defaults(self):
        store = MemoryKeyValueStore({ACCOUNTS_KEY: json.dumps([
            {"id": 3, "accountSize": 12345, "calculationMode": "bogus", "roundTo": "x"}
        ])})
        accounts = load_collection(store, ACCOUNTS_KEY, Account.from_dict, list)
        assert accounts[0].account_size == 0
        assert accounts[0].calculation_mode.value == "RiskAmount"
        assert accounts[0].round_to == 0

    def test_reads_original_shape(self):
        """Numbers where strings are expected and Z timestamps are accepted."""
        store = MemoryKeyValueStore({PAIRS_KEY: json.dumps([{
            "id": 1700000000000,
            "name": "GBPUSD",
            "weeklyBias": "bullish",
            "dailyBias": "bearish",
            "lastUpdated": "2026-10-19T08:15:00.000Z",
            "history": [{"date": "2026-10-18T08:00:00.000Z", "dailyBias": "bullish", "weeklyBias": "bullish"}],
            "isEditing": False,
            "manuallyInvalidated": False,
        }])})
        pair = load_collection(store, PAIRS_KEY, Pair.from_dict, list)[0]
        assert pair.id == 1700000000000
        assert pair.last_updated.hour == 8
        assert pair.history[0].daily_bias.value == "bullish"


class TestWriteThrough:
    """Test the persistence listener."""

    def test_saves_full_snapshot_on_change(self):
        store = MagicMock()
        owner = StateOwner([], lambda items, command: items + [command])
        owner.subscribe(write_through(store, PAIRS_KEY))

        owner.apply(Pair(id=1, name="EURUSD"))

        key, payload = store.set.call_args[0]
        assert key == PAIRS_KEY
        assert json.loads(payload)[0]["name"] == "EURUSD"

    def test_noop_does_not_save(self):
        store = MagicMock()
        owner = StateOwner([], lambda items, command: items)
        owner.subscribe(write_through(store, PAIRS_KEY))

        owner.apply("anything")

        store.set.assert_not_called()

    def test_unsubscribe(self):
        store = MagicMock()
        owner = StateOwner([], lambda items, command: items + [command])
        unsubscribe = owner.subscribe(write_through(store, PAIRS_KEY))
        unsubscribe()

        owner.apply(Pair(id=1))

        store.set.assert_not_called()
