"""AI sentiment and analysis provider with deterministic fallback."""

from predsim.sentiment.provider import SentimentProvider, fallback_sentiment

__all__ = ["SentimentProvider", "fallback_sentiment"]
