"""Market store: paired prices, clamping, bounded history, creation."""

import math
from datetime import date

import pytest

from predsim.models import Category, MarketSpec
from predsim.store import MarketStore
from predsim.store.markets import clamp_price
from predsim.store.seed import seed_markets

from conftest import make_market


def _pair_sum(market):
    return market.outcomes[0].price + market.outcomes[1].price


def test_clamp_price():
    assert clamp_price(1.5) == 0.99
    assert clamp_price(-0.2) == 0.01
    assert clamp_price(0.42) == 0.42


def test_apply_price_delta_keeps_pair_and_appends_history():
    store = MarketStore([make_market("m1")], clock=lambda: 5_000)
    updated = store.apply_price_delta("m1", 0, 0.7, volume_delta=25.0)
    assert updated is not None
    assert updated.outcomes[0].price == pytest.approx(0.7)
    assert abs(_pair_sum(updated) - 1) < 1e-9
    assert updated.history[-1].timestamp == 5_000
    assert updated.history[-1].price == pytest.approx(0.7)
    assert updated.volume == 25.0


def test_apply_price_delta_on_second_outcome_sets_first():
    store = MarketStore([make_market("m1")])
    updated = store.apply_price_delta("m1", 1, 0.8)
    assert updated.outcomes[1].price == pytest.approx(0.8)
    assert updated.outcomes[0].price == pytest.approx(0.2)
    # History tracks the first outcome
    assert updated.history[-1].price == pytest.approx(0.2)


def test_apply_price_delta_clamps_out_of_range():
    store = MarketStore([make_market("m1")])
    assert store.apply_price_delta("m1", 0, 5.0).outcomes[0].price == 0.99
    assert store.apply_price_delta("m1", 0, -1.0).outcomes[0].price == 0.01


def test_apply_price_delta_unknown_market_or_bad_input_is_noop():
    store = MarketStore([make_market("m1")])
    before = store.get_market("m1")
    assert store.apply_price_delta("nope", 0, 0.7) is None
    assert store.apply_price_delta("m1", 2, 0.7) is None
    assert store.apply_price_delta("m1", 0, math.nan) is None
    assert store.get_market("m1") == before


def test_apply_price_delta_rejects_negative_volume():
    store = MarketStore([make_market("m1")])
    with pytest.raises(ValueError):
        store.apply_price_delta("m1", 0, 0.6, volume_delta=-1)


def test_history_is_bounded():
    store = MarketStore([make_market("m1")], history_limit=50)
    for i in range(120):
        store.apply_price_delta("m1", 0, 0.3 + (i % 10) / 100)
    market = store.get_market("m1")
    assert len(market.history) == 50
    assert market.history[-1].price == pytest.approx(market.outcomes[0].price)


def test_create_market_inserts_first_at_even_odds():
    store = MarketStore([make_market("m1"), make_market("m2")], clock=lambda: 9_000)
    market_id = store.create_market(
        MarketSpec(
            question="Will it rain tomorrow?",
            description="Resolves Yes if it rains.",
            category=Category.POP_CULTURE,
            end_date=date(2030, 6, 1),
        )
    )
    markets = store.list_markets()
    assert markets[0].market_id == market_id
    assert len(markets) == 3
    new = markets[0]
    assert [o.price for o in new.outcomes] == [0.5, 0.5]
    assert new.volume == 0
    assert len(new.history) == 1 and new.history[0].timestamp == 9_000
    assert new.created_at == 9_000


def test_readers_get_copies():
    store = MarketStore([make_market("m1")])
    market = store.get_market("m1")
    market.outcomes[0].price = 0.9
    assert store.get_market("m1").outcomes[0].price == 0.5


def test_current_price():
    store = MarketStore([make_market("m1", yes_price=0.3)])
    assert store.current_price("m1", "YES") == pytest.approx(0.3)
    assert store.current_price("m1", "NO") == pytest.approx(0.7)
    assert store.current_price("m1", "MAYBE") is None
    assert store.current_price("zz", "YES") is None


def test_seed_markets_are_valid():
    markets = seed_markets(now=100 * 86_400_000)
    assert [m.market_id for m in markets] == ["1", "2", "3", "4", "5"]
    for m in markets:
        assert abs(_pair_sum(m) - 1) < 1e-9
        assert len(m.history) == 30
        assert m.history[-1].timestamp == 100 * 86_400_000
    assert markets[3].outcomes[0].name == "Celtics"
    # Deterministic
    assert seed_markets(now=100 * 86_400_000) == markets
