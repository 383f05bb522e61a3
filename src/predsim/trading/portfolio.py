"""Portfolio valuation: mark positions to current prices, cost basis and PnL."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from predsim.models import Market, User


@dataclass
class PositionLine:
    """One position marked to market."""

    market_id: str
    question: str
    outcome_id: str
    outcome_name: str
    shares: float
    avg_price: float
    price: float
    current_value: float
    cost_basis: float

    @property
    def pnl(self) -> float:
        return self.current_value - self.cost_basis

    @property
    def pnl_pct(self) -> float:
        return (self.pnl / self.cost_basis) * 100.0 if self.cost_basis > 0 else 0.0


@dataclass
class PortfolioSummary:
    """Totals across all positions plus cash."""

    cash: float
    lines: list[PositionLine] = field(default_factory=list)

    @property
    def portfolio_value(self) -> float:
        return sum(line.current_value for line in self.lines)

    @property
    def invested(self) -> float:
        return sum(line.cost_basis for line in self.lines)

    @property
    def total_pnl(self) -> float:
        return self.portfolio_value - self.invested

    @property
    def pnl_pct(self) -> float:
        invested = self.invested
        return (self.total_pnl / invested) * 100.0 if invested > 0 else 0.0

    @property
    def net_worth(self) -> float:
        return self.cash + self.portfolio_value


def portfolio_summary(user: User, markets: Iterable[Market]) -> PortfolioSummary:
    """Value each position at its market's current price. Unknown markets fall back to avg_price."""
    by_id = {m.market_id: m for m in markets}
    lines = []
    for p in user.positions:
        market = by_id.get(p.market_id)
        price = p.avg_price
        question = p.market_id
        outcome_name = p.outcome_id
        if market is not None:
            question = market.question
            idx = market.outcome_index(p.outcome_id)
            if idx is not None:
                price = market.outcomes[idx].price
                outcome_name = market.outcomes[idx].name
        lines.append(
            PositionLine(
                market_id=p.market_id,
                question=question,
                outcome_id=p.outcome_id,
                outcome_name=outcome_name,
                shares=p.shares,
                avg_price=p.avg_price,
                price=price,
                current_value=p.shares * price,
                cost_basis=p.cost_basis,
            )
        )
    return PortfolioSummary(cash=user.balance, lines=lines)
