"""Pydantic schemas for API request/response consistency and OpenAPI docs."""

from __future__ import annotations

from pydantic import BaseModel, Field

from predsim.models import Market, Position


# --- Health ---
class HealthResponse(BaseModel):
    status: str = "ok"
    markets: int = 0
    simulator_running: bool = False
    connected: bool = False


# --- Error (consistent shape for 4xx/5xx) ---
class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Human-readable message")
    code: str | None = Field(None, description="Machine-readable code, e.g. not_connected, market_not_found")


# --- Markets ---
class MarketsListResponse(BaseModel):
    markets: list[Market]
    total: int


class CreateMarketResponse(BaseModel):
    market_id: str


class AnalysisResponse(BaseModel):
    market_id: str
    analysis: str


# --- Comments ---
class CommentRequest(BaseModel):
    text: str


# --- User ---
class NotificationRequest(BaseModel):
    key: str = Field(..., description="market_alerts or price_changes")
    value: bool


# --- Trading ---
class BuyRequest(BaseModel):
    market_id: str
    outcome_id: str
    amount: float = Field(..., description="USD to spend")


class SellRequest(BaseModel):
    market_id: str
    outcome_id: str
    percent: float = Field(1.0, description="Fraction of the position to sell, (0, 1]")


class TradeResponse(BaseModel):
    side: str
    market_id: str
    outcome_id: str
    amount: float
    shares: float
    price: float
    new_price: float
    balance: float
    position: Position | None = None


# --- Portfolio ---
class PositionLineItem(BaseModel):
    market_id: str
    question: str
    outcome_id: str
    outcome_name: str
    shares: float
    avg_price: float
    price: float
    current_value: float
    pnl: float
    pnl_pct: float


class PortfolioResponse(BaseModel):
    cash: float
    portfolio_value: float
    invested: float
    total_pnl: float
    pnl_pct: float
    net_worth: float
    positions: list[PositionLineItem]


# --- Watchlist ---
class WatchlistResponse(BaseModel):
    market_ids: list[str]


class BookmarkResponse(BaseModel):
    market_id: str
    bookmarked: bool
