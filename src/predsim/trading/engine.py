"""Trade engine: buy/sell against the simulated market, updating positions and prices.

Every precondition is checked and every new value computed before the first
mutation, so a rejected trade leaves the ledger and the market untouched.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import structlog

from predsim.errors import (
    InsufficientBalance,
    InvalidAmount,
    InvalidOutcome,
    InvalidSellPercent,
    MarketNotFound,
    NoPosition,
    NotConnected,
)
from predsim.models import Market, Position
from predsim.store.ledger import UserLedger
from predsim.store.markets import MAX_PRICE, MarketStore

log = structlog.get_logger(__name__)

PRICE_IMPACT_PER_USD = 1e-5
DUST_SHARES = 1e-4


@dataclass
class TradeReceipt:
    """Result of a committed trade."""

    side: str
    market_id: str
    outcome_id: str
    amount: float  # USD paid (BUY) or received (SELL)
    shares: float
    price: float  # execution price
    new_price: float  # outcome price after the trade
    balance: float  # balance after the trade
    position: Position | None  # None when the position was closed


def linear_price_impact(price: float, amount_usd: float, per_usd: float = PRICE_IMPACT_PER_USD, cap: float = MAX_PRICE) -> float:
    """Buy pressure moves the bought outcome up linearly in notional, capped."""
    return min(cap, price + amount_usd * per_usd)


class TradeEngine:
    """Executes trades for the local user. Buys move the price; sells do not."""

    def __init__(
        self,
        markets: MarketStore,
        ledger: UserLedger,
        price_impact_per_usd: float = PRICE_IMPACT_PER_USD,
        dust_shares: float = DUST_SHARES,
    ) -> None:
        self.markets = markets
        self.ledger = ledger
        self.price_impact_per_usd = price_impact_per_usd
        self.dust_shares = dust_shares

    def _resolve(self, market_id: str, outcome_id: str) -> tuple[Market, int]:
        market = self.markets.get_market(market_id)
        if market is None:
            raise MarketNotFound(f"Market not found: {market_id}")
        idx = market.outcome_index(outcome_id)
        if idx is None:
            raise InvalidOutcome(f"Invalid outcome {outcome_id!r} for market {market_id}")
        return market, idx

    def buy(self, market_id: str, outcome_id: str, amount_usd: float) -> TradeReceipt:
        if not self.ledger.is_connected:
            raise NotConnected()
        if not math.isfinite(amount_usd) or amount_usd <= 0:
            raise InvalidAmount(f"Invalid amount: {amount_usd}")
        if amount_usd > self.ledger.balance:
            raise InsufficientBalance(
                f"Insufficient balance: {self.ledger.balance:.2f} < {amount_usd:.2f}",
                details={"balance": self.ledger.balance, "amount": amount_usd},
            )
        market, idx = self._resolve(market_id, outcome_id)

        price = market.outcomes[idx].price
        shares_bought = amount_usd / price
        existing = self.ledger.find_position(market_id, outcome_id)
        if existing is not None:
            total_shares = existing.shares + shares_bought
            avg_price = (existing.shares * existing.avg_price + amount_usd) / total_shares
        else:
            total_shares = shares_bought
            avg_price = price
        new_price = linear_price_impact(price, amount_usd, self.price_impact_per_usd, self.markets.max_price)
        position = Position(
            market_id=market_id,
            outcome_id=outcome_id,
            shares=total_shares,
            avg_price=avg_price,
            current_value=total_shares * new_price,
        )

        # Commit
        self.ledger.debit(amount_usd)
        self.ledger.put_position(position)
        updated = self.markets.apply_price_delta(market_id, idx, new_price, volume_delta=amount_usd)

        log.info(
            "trade_buy",
            market_id=market_id,
            outcome_id=outcome_id,
            amount=amount_usd,
            shares=shares_bought,
            price=price,
            new_price=updated.outcomes[idx].price if updated else new_price,
        )
        return TradeReceipt(
            side="BUY",
            market_id=market_id,
            outcome_id=outcome_id,
            amount=amount_usd,
            shares=shares_bought,
            price=price,
            new_price=updated.outcomes[idx].price if updated else new_price,
            balance=self.ledger.balance,
            position=position.model_copy(),
        )

    def sell(self, market_id: str, outcome_id: str, percent: float) -> TradeReceipt:
        """Sell `percent` (0, 1] of the position at the current price. No price impact."""
        if not self.ledger.is_connected:
            raise NotConnected()
        if not math.isfinite(percent) or percent <= 0 or percent > 1:
            raise InvalidSellPercent(f"Invalid sell percent: {percent}")
        existing = self.ledger.find_position(market_id, outcome_id)
        if existing is None:
            raise NoPosition(f"No position for {market_id}/{outcome_id}")
        market, idx = self._resolve(market_id, outcome_id)

        price = market.outcomes[idx].price
        shares_to_sell = existing.shares * percent
        return_amount = shares_to_sell * price
        remaining = existing.shares - shares_to_sell
        if remaining < self.dust_shares:
            position = None
        else:
            position = existing.model_copy(update={"shares": remaining, "current_value": remaining * price})

        # Commit
        self.ledger.credit(return_amount)
        if position is None:
            self.ledger.remove_position(market_id, outcome_id)
        else:
            self.ledger.put_position(position)

        log.info(
            "trade_sell",
            market_id=market_id,
            outcome_id=outcome_id,
            percent=percent,
            shares=shares_to_sell,
            price=price,
            proceeds=return_amount,
            closed=position is None,
        )
        return TradeReceipt(
            side="SELL",
            market_id=market_id,
            outcome_id=outcome_id,
            amount=return_amount,
            shares=shares_to_sell,
            price=price,
            new_price=price,
            balance=self.ledger.balance,
            position=position.model_copy() if position else None,
        )
