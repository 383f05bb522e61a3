"""Canonical schema (Pydantic) - Market, User, Position, Comment, Sentiment."""

from predsim.models.comment import Comment, TradeActivity
from predsim.models.market import NO, YES, Category, HistoryPoint, Market, MarketSpec, Outcome
from predsim.models.sentiment import MarketSentiment
from predsim.models.user import NotificationPreferences, Position, User

__all__ = [
    "NO",
    "YES",
    "Category",
    "Comment",
    "HistoryPoint",
    "Market",
    "MarketSentiment",
    "MarketSpec",
    "NotificationPreferences",
    "Outcome",
    "Position",
    "TradeActivity",
    "User",
]
