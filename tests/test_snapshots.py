"""Snapshot persistence: restore across restarts and fall back on bad data."""

import asyncio

import pytest

from predsim.exchange import Exchange
from predsim.storage.snapshots import BOOKMARKS_KEY, MARKETS_KEY, USER_KEY, SnapshotStore
from predsim.store.seed import seed_markets


def test_empty_store_loads_defaults(temp_db):
    state = SnapshotStore(temp_db).load_state()
    assert state.restored == []
    assert state.user.address is None
    assert state.user.balance == 0
    assert [m.market_id for m in state.markets] == [m.market_id for m in seed_markets()]
    assert state.comments == {}
    assert state.bookmarks == set()


def test_state_survives_restart(settings):
    ex = Exchange.open(settings)
    asyncio.run(ex.connect())
    ex.buy("1", "YES", 100)
    ex.add_comment("1", "Buying the dip")
    ex.toggle_bookmark("2")
    price = ex.get_market("1").outcomes[0].price
    ex.close()

    ex = Exchange.open(settings)
    try:
        user = ex.get_user()
        assert user.balance == pytest.approx(900)
        assert len(user.positions) == 1
        assert user.positions[0].market_id == "1"
        assert ex.get_market("1").outcomes[0].price == pytest.approx(price)
        assert [c.text for c in ex.get_comments("1")][-1] == "Buying the dip"
        assert ex.bookmarks() == {"2"}
    finally:
        ex.close()


def test_corrupt_key_falls_back_per_key(temp_db):
    store = SnapshotStore(temp_db)
    store.put(USER_KEY, {"address": "0xabc", "balance": 42.0})
    store.put(MARKETS_KEY, {"not": "a list"})
    store.put(BOOKMARKS_KEY, [1, 2])
    state = store.load_state()
    assert state.user.balance == 42.0
    assert state.restored == [USER_KEY]
    assert len(state.markets) == 5
    assert state.bookmarks == set()


def test_negative_balance_is_rejected(temp_db):
    store = SnapshotStore(temp_db)
    store.put(USER_KEY, {"address": None, "balance": -5})
    assert store.load_state().user.balance == 0


def test_put_overwrites(temp_db):
    store = SnapshotStore(temp_db)
    store.put("k", [1])
    store.put("k", [1, 2])
    assert store.get("k") == [1, 2]
    assert store.get("missing") is None


def test_unreadable_database_runs_from_defaults(settings, temp_db_path):
    garbage = b"this is not a duckdb file" * 100
    temp_db_path.write_bytes(garbage)
    ex = Exchange.open(settings)
    try:
        assert ex.snapshots is None
        assert [m.market_id for m in ex.list_markets()] == [m.market_id for m in seed_markets()]
        assert ex.get_user().address is None
        asyncio.run(ex.connect())
        ex.buy("1", "YES", 10)
        assert ex.get_user().balance == pytest.approx(990)
    finally:
        ex.close()
    assert temp_db_path.read_bytes() == garbage
