"""Trade engine: buy/sell math, validation order, atomic rejection."""

import asyncio

import pytest

from predsim.errors import (
    InsufficientBalance,
    InvalidAmount,
    InvalidOutcome,
    InvalidSellPercent,
    MarketNotFound,
    NoPosition,
    NotConnected,
)
from predsim.models import Position, User
from predsim.store import MarketStore, UserLedger
from predsim.trading import TradeEngine

from conftest import make_market


def _engine(balance=1000.0, positions=(), yes_price=0.5, connected=True):
    store = MarketStore([make_market("m1", yes_price=yes_price, volume=1_000.0)])
    user = User(address="0xabc" if connected else None, balance=balance, positions=list(positions))
    ledger = UserLedger(user, connect_delay_sec=0)
    return TradeEngine(store, ledger), store, ledger


def test_buy_scenario():
    engine, store, ledger = _engine()
    receipt = engine.buy("m1", "YES", 100)
    assert ledger.balance == pytest.approx(900.0)
    assert receipt.shares == pytest.approx(200.0)
    assert receipt.price == pytest.approx(0.5)
    market = store.get_market("m1")
    assert market.outcomes[0].price == pytest.approx(0.501)
    assert market.outcomes[1].price == pytest.approx(0.499)
    assert market.volume == pytest.approx(1_100.0)
    position = ledger.find_position("m1", "YES")
    assert position.shares == pytest.approx(200.0)
    assert position.avg_price == pytest.approx(0.5)


def test_split_buys_match_one_combined_buy_without_impact():
    store = MarketStore([make_market("m1", yes_price=0.4)])
    split = TradeEngine(store, UserLedger(User(address="0xabc", balance=1000)), price_impact_per_usd=0)
    split.buy("m1", "YES", 60)
    split.buy("m1", "YES", 40)

    other = MarketStore([make_market("m1", yes_price=0.4)])
    combined = TradeEngine(other, UserLedger(User(address="0xabc", balance=1000)), price_impact_per_usd=0)
    combined.buy("m1", "YES", 100)

    a = split.ledger.find_position("m1", "YES")
    b = combined.ledger.find_position("m1", "YES")
    assert a.shares == pytest.approx(b.shares)
    assert a.shares == pytest.approx(250)
    assert a.avg_price == pytest.approx(b.avg_price)
    assert a.avg_price == pytest.approx(0.4)
    assert split.ledger.balance == pytest.approx(combined.ledger.balance)
    assert store.current_price("m1", "YES") == pytest.approx(0.4)


def test_buy_averages_entry_price():
    engine, store, ledger = _engine()
    engine.buy("m1", "YES", 100)
    price_before = store.current_price("m1", "YES")
    engine.buy("m1", "YES", 50)
    position = ledger.find_position("m1", "YES")
    shares_2 = 50 / price_before
    assert position.shares == pytest.approx(200.0 + shares_2)
    assert position.avg_price == pytest.approx((200.0 * 0.5 + 50) / (200.0 + shares_2))


def test_buy_no_outcome_moves_yes_down():
    engine, store, _ = _engine()
    engine.buy("m1", "NO", 1_000)
    market = store.get_market("m1")
    assert market.outcomes[1].price == pytest.approx(0.51)
    assert market.outcomes[0].price == pytest.approx(0.49)


def test_buy_price_impact_is_capped():
    engine, store, _ = _engine(balance=1_000_000, yes_price=0.95)
    engine.buy("m1", "YES", 100_000)
    assert store.current_price("m1", "YES") == pytest.approx(0.99)


def test_sell_half_scenario():
    positions = [Position(market_id="m1", outcome_id="YES", shares=200, avg_price=0.5)]
    engine, store, ledger = _engine(balance=500, positions=positions, yes_price=0.6)
    receipt = engine.sell("m1", "YES", 0.5)
    assert receipt.shares == pytest.approx(100)
    assert receipt.amount == pytest.approx(60)
    assert ledger.balance == pytest.approx(560)
    position = ledger.find_position("m1", "YES")
    assert position.shares == pytest.approx(100)
    assert position.avg_price == 0.5
    # Sells have no price impact
    assert store.current_price("m1", "YES") == pytest.approx(0.6)


def test_sell_all_removes_position():
    positions = [Position(market_id="m1", outcome_id="YES", shares=200, avg_price=0.5)]
    engine, _, ledger = _engine(positions=positions)
    receipt = engine.sell("m1", "YES", 1.0)
    assert receipt.position is None
    assert ledger.get_user().positions == []
    with pytest.raises(NoPosition):
        engine.sell("m1", "YES", 1.0)


def test_sell_dust_remainder_closes_position():
    positions = [Position(market_id="m1", outcome_id="YES", shares=1.0, avg_price=0.5)]
    engine, _, ledger = _engine(positions=positions)
    engine.sell("m1", "YES", 0.99995)
    assert ledger.find_position("m1", "YES") is None


def _state(store, ledger):
    return store.list_markets(), ledger.get_user()


def test_insufficient_balance_leaves_state_unchanged():
    engine, store, ledger = _engine(balance=50)
    before = _state(store, ledger)
    with pytest.raises(InsufficientBalance):
        engine.buy("m1", "YES", 100)
    assert _state(store, ledger) == before


@pytest.mark.parametrize(
    "market_id,outcome_id,amount,error",
    [
        ("m1", "YES", 0, InvalidAmount),
        ("m1", "YES", -5, InvalidAmount),
        ("m1", "YES", float("nan"), InvalidAmount),
        ("zz", "YES", 10, MarketNotFound),
        ("m1", "MAYBE", 10, InvalidOutcome),
    ],
)
def test_buy_rejections_leave_state_unchanged(market_id, outcome_id, amount, error):
    engine, store, ledger = _engine()
    before = _state(store, ledger)
    with pytest.raises(error):
        engine.buy(market_id, outcome_id, amount)
    assert _state(store, ledger) == before


def test_not_connected_checked_first():
    engine, store, ledger = _engine(connected=False)
    with pytest.raises(NotConnected):
        engine.buy("zz", "MAYBE", -1)
    with pytest.raises(NotConnected):
        engine.sell("m1", "YES", 0.5)


@pytest.mark.parametrize("percent", [0, -0.5, 1.5, float("inf")])
def test_invalid_sell_percent(percent):
    positions = [Position(market_id="m1", outcome_id="YES", shares=10, avg_price=0.5)]
    engine, store, ledger = _engine(positions=positions)
    before = _state(store, ledger)
    with pytest.raises(InvalidSellPercent):
        engine.sell("m1", "YES", percent)
    assert _state(store, ledger) == before


def test_buy_after_connect():
    store = MarketStore([make_market("m1")])
    ledger = UserLedger(connect_delay_sec=0)
    engine = TradeEngine(store, ledger)
    with pytest.raises(NotConnected):
        engine.buy("m1", "YES", 10)
    asyncio.run(ledger.connect())
    engine.buy("m1", "YES", 10)
    assert ledger.balance == pytest.approx(990)
