"""Exceptions for PredSim.

Everything inherits from ``PredSimError`` so presentation code can catch the
whole family with one ``except`` clause. ``TradeError`` subclasses carry a
machine-readable ``code`` that the CLI and HTTP API surface as inline feedback.
Trade errors are always raised before any state is mutated.
"""

from __future__ import annotations

from typing import Any


class PredSimError(Exception):
    """Base exception for all PredSim errors."""

    code = "error"

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.details: dict[str, Any] = details or {}


class TradeError(PredSimError):
    """Trade rejected."""

    code = "trade_error"
    status_code = 400


class NotConnected(TradeError):
    """Wallet not connected."""

    code = "not_connected"


class InsufficientBalance(TradeError):
    """Insufficient balance."""

    code = "insufficient_balance"


class InvalidAmount(TradeError):
    """Trade amount must be a positive number."""

    code = "invalid_amount"


class MarketNotFound(TradeError):
    """Market not found."""

    code = "market_not_found"
    status_code = 404


class InvalidOutcome(TradeError):
    """Invalid outcome for this market."""

    code = "invalid_outcome"


class NoPosition(TradeError):
    """No position found for this market and outcome."""

    code = "no_position"


class InvalidSellPercent(TradeError):
    """Sell percent must be in (0, 1]."""

    code = "invalid_sell_percent"


class InvalidMarketSpec(PredSimError):
    """Market specification is incomplete or invalid."""

    code = "invalid_market"


class InvalidComment(PredSimError):
    """Comment text must not be blank."""

    code = "invalid_comment"


class UnknownPreference(PredSimError):
    """Unknown notification preference."""

    code = "unknown_preference"


# Recovered locally; logged, never raised to callers.


class PersistenceReadFailure(PredSimError):
    """Stored snapshot could not be read; defaults used."""

    code = "persistence_read_failure"


class PersistenceWriteFailure(PredSimError):
    """Snapshot could not be written; in-memory state stands."""

    code = "persistence_write_failure"


class ProviderUnavailable(PredSimError):
    """Sentiment provider unreachable or misconfigured; fallback used."""

    code = "provider_unavailable"
