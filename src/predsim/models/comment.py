"""Comment and TradeActivity - per-market append-only records."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Comment(BaseModel):
    comment_id: str
    author: str
    text: str
    timestamp: str  # display time, e.g. "09:15"
    is_ai: bool = False


class TradeActivity(BaseModel):
    """Committed trade as shown in a market's activity feed."""

    activity_id: str
    market_id: str
    author: str
    side: str = Field(..., pattern="^(BUY|SELL)$")
    outcome_id: str
    amount: float = Field(..., ge=0)  # USD
    shares: float = Field(..., ge=0)
    price: float = Field(..., ge=0, le=1)
    timestamp: int  # ms epoch
