"""User ledger - the local user's session, balance, positions and preferences."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol

import structlog

from predsim.errors import UnknownPreference
from predsim.models import NotificationPreferences, Position, User

log = structlog.get_logger(__name__)

MOCK_ADDRESS = "0x71C...9A21"
STARTING_BALANCE = 1000.0
CONNECT_DELAY_SEC = 0.8

PriceLookup = Callable[[str, str], "float | None"]


class WalletProvider(Protocol):
    """External wallet (e.g. a browser extension bridge). Optional."""

    async def request_accounts(self) -> list[str]: ...


def short_address(account: str) -> str:
    """0x71c2...9a21 style display form."""
    if len(account) <= 10:
        return account
    return f"{account[:6]}...{account[-4:]}"


class UserLedger:
    """Owns the single local User. Trade Engine mutates it through the methods below."""

    def __init__(
        self,
        user: User | None = None,
        *,
        starting_balance: float = STARTING_BALANCE,
        connect_delay_sec: float = CONNECT_DELAY_SEC,
        mock_address: str = MOCK_ADDRESS,
    ) -> None:
        self._user = user.model_copy(deep=True) if user else User()
        self.starting_balance = starting_balance
        self.connect_delay_sec = connect_delay_sec
        self.mock_address = mock_address

    # -- reads ---------------------------------------------------------------

    def get_user(self, price_lookup: PriceLookup | None = None) -> User:
        """Snapshot of the user. With price_lookup, current_value is recomputed per position."""
        user = self._user.model_copy(deep=True)
        if price_lookup is not None:
            for position in user.positions:
                price = price_lookup(position.market_id, position.outcome_id)
                if price is not None:
                    position.current_value = position.shares * price
        return user

    @property
    def is_connected(self) -> bool:
        return self._user.address is not None

    @property
    def balance(self) -> float:
        return self._user.balance

    def find_position(self, market_id: str, outcome_id: str) -> Position | None:
        for position in self._user.positions:
            if position.market_id == market_id and position.outcome_id == outcome_id:
                return position.model_copy()
        return None

    # -- session -------------------------------------------------------------

    async def handshake(self, wallet_provider: WalletProvider | None = None) -> str:
        """Simulated connection delay, then resolve a display address. Never raises."""
        await asyncio.sleep(self.connect_delay_sec)
        if wallet_provider is None:
            return self.mock_address
        try:
            accounts = await wallet_provider.request_accounts()
        except Exception as e:
            log.warning("wallet_connect_failed", error=str(e), fallback=self.mock_address)
            return self.mock_address
        if not accounts:
            return self.mock_address
        return short_address(accounts[0])

    def establish_session(self, address: str) -> User:
        """Set the address; seed the starting balance only when balance is zero."""
        self._user.address = address
        if self._user.balance <= 0:
            self._user.balance = self.starting_balance
        log.info("wallet_connected", address=address, balance=self._user.balance)
        return self.get_user()

    async def connect(self, wallet_provider: WalletProvider | None = None) -> User:
        address = await self.handshake(wallet_provider)
        return self.establish_session(address)

    def disconnect(self) -> User:
        """Clear the session. Balance and positions are kept for the next connect."""
        if self._user.address is not None:
            log.info("wallet_disconnected", address=self._user.address)
        self._user.address = None
        return self.get_user()

    def set_notification_preference(self, key: str, value: bool) -> NotificationPreferences:
        if key not in NotificationPreferences.model_fields:
            raise UnknownPreference(f"Unknown notification preference: {key}")
        setattr(self._user.notification_preferences, key, bool(value))
        return self._user.notification_preferences.model_copy()

    # -- trade mutators (called by the trade engine after validation) --------

    def debit(self, amount: float) -> None:
        if amount > self._user.balance:
            raise ValueError("debit exceeds balance")
        # Guard against float dust below zero
        self._user.balance = max(0.0, self._user.balance - amount)

    def credit(self, amount: float) -> None:
        self._user.balance += amount

    def put_position(self, position: Position) -> None:
        """Insert or replace the position for its (market_id, outcome_id) key."""
        for i, existing in enumerate(self._user.positions):
            if existing.market_id == position.market_id and existing.outcome_id == position.outcome_id:
                self._user.positions[i] = position
                return
        self._user.positions.append(position)

    def remove_position(self, market_id: str, outcome_id: str) -> None:
        self._user.positions = [
            p
            for p in self._user.positions
            if not (p.market_id == market_id and p.outcome_id == outcome_id)
        ]
