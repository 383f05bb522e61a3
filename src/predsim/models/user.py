"""User, Position, NotificationPreferences."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Position(BaseModel):
    """Holding for one (market_id, outcome_id) pair."""

    market_id: str
    outcome_id: str
    shares: float = Field(..., ge=0)
    avg_price: float = Field(..., gt=0, le=1, description="Volume-weighted average entry price")
    current_value: float = 0.0  # shares * current outcome price, refreshed on read

    @property
    def cost_basis(self) -> float:
        return self.shares * self.avg_price


class NotificationPreferences(BaseModel):
    market_alerts: bool = True
    price_changes: bool = False


class User(BaseModel):
    """The single local user. address is None while disconnected."""

    address: str | None = None
    balance: float = Field(0.0, ge=0)
    positions: list[Position] = Field(default_factory=list)
    notification_preferences: NotificationPreferences = Field(default_factory=NotificationPreferences)

    @property
    def connected(self) -> bool:
        return self.address is not None
