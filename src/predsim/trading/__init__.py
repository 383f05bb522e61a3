"""Trade execution and portfolio valuation."""

from predsim.trading.engine import TradeEngine, TradeReceipt
from predsim.trading.portfolio import PortfolioSummary, PositionLine, portfolio_summary

__all__ = ["PortfolioSummary", "PositionLine", "TradeEngine", "TradeReceipt", "portfolio_summary"]
