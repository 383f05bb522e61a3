"""User ledger: connect/disconnect, balance rules, preferences."""

import asyncio

import pytest

from predsim.errors import UnknownPreference
from predsim.models import Position, User
from predsim.store import UserLedger
from predsim.store.ledger import MOCK_ADDRESS, short_address


class FailingWallet:
    async def request_accounts(self):
        raise RuntimeError("user rejected")


class StaticWallet:
    def __init__(self, accounts):
        self.accounts = accounts

    async def request_accounts(self):
        return self.accounts


def test_connect_seeds_starting_balance():
    ledger = UserLedger(connect_delay_sec=0)
    user = asyncio.run(ledger.connect())
    assert user.address == MOCK_ADDRESS
    assert user.balance == 1000.0
    assert ledger.is_connected


def test_reconnect_preserves_balance_and_positions():
    position = Position(market_id="m1", outcome_id="YES", shares=10, avg_price=0.4)
    ledger = UserLedger(User(balance=250.0, positions=[position]), connect_delay_sec=0)
    asyncio.run(ledger.connect())
    ledger.disconnect()
    user = asyncio.run(ledger.connect())
    assert user.balance == 250.0
    assert user.positions == [position]


def test_disconnect_is_idempotent():
    ledger = UserLedger(connect_delay_sec=0)
    asyncio.run(ledger.connect())
    ledger.disconnect()
    user = ledger.disconnect()
    assert user.address is None
    assert user.balance == 1000.0


def test_failing_wallet_falls_back_to_mock_address():
    ledger = UserLedger(connect_delay_sec=0)
    user = asyncio.run(ledger.connect(FailingWallet()))
    assert user.address == MOCK_ADDRESS


def test_wallet_account_is_shortened():
    ledger = UserLedger(connect_delay_sec=0)
    user = asyncio.run(ledger.connect(StaticWallet(["0x71C2aBcDeF0123456789aBcDeF0123456789A21"])))
    assert user.address == "0x71C2...9A21"
    empty = UserLedger(connect_delay_sec=0)
    assert asyncio.run(empty.connect(StaticWallet([]))).address == MOCK_ADDRESS


def test_short_address():
    assert short_address("0x1234567890abcdef") == "0x1234...cdef"
    assert short_address("0x1234") == "0x1234"


def test_notification_preferences():
    ledger = UserLedger()
    prefs = ledger.set_notification_preference("price_changes", True)
    assert prefs.price_changes is True
    assert prefs.market_alerts is True
    with pytest.raises(UnknownPreference):
        ledger.set_notification_preference("sms", True)


def test_get_user_marks_positions_to_price():
    position = Position(market_id="m1", outcome_id="YES", shares=10, avg_price=0.4)
    ledger = UserLedger(User(balance=1, positions=[position]))
    user = ledger.get_user(price_lookup=lambda m, o: 0.7)
    assert user.positions[0].current_value == pytest.approx(7.0)


def test_debit_cannot_exceed_balance():
    ledger = UserLedger(User(balance=10))
    with pytest.raises(ValueError):
        ledger.debit(11)
    assert ledger.balance == 10
