"""Market, Outcome, HistoryPoint - canonical entities."""

from __future__ import annotations

import time
from datetime import date
from enum import Enum

from pydantic import BaseModel, Field, field_validator

YES = "YES"
NO = "NO"


def now_ms() -> int:
    return int(time.time() * 1000)


class Category(str, Enum):
    """Closed set of market categories."""

    CRYPTO = "Crypto"
    POLITICS = "Politics"
    SPORTS = "Sports"
    BUSINESS = "Business"
    POP_CULTURE = "Pop Culture"


class Outcome(BaseModel):
    """Single outcome (Yes/No side) of a binary market."""

    outcome_id: str
    name: str
    price: float = Field(..., ge=0, le=1, description="Implied probability in [0, 1]")


class HistoryPoint(BaseModel):
    """Sample of the first outcome's price."""

    timestamp: int  # ms epoch
    price: float = Field(..., ge=0, le=1)


class Market(BaseModel):
    """Binary market with bounded price history."""

    market_id: str
    question: str
    description: str = ""
    category: Category
    image: str | None = None
    volume: float = Field(0.0, ge=0)
    end_date: date
    created_at: int = Field(default_factory=now_ms)  # ms epoch
    outcomes: list[Outcome] = Field(..., min_length=2, max_length=2)
    history: list[HistoryPoint] = Field(default_factory=list)

    def outcome_index(self, outcome_id: str) -> int | None:
        for i, outcome in enumerate(self.outcomes):
            if outcome.outcome_id == outcome_id:
                return i
        return None

    @property
    def yes_price(self) -> float:
        return self.outcomes[0].price


class MarketSpec(BaseModel):
    """User-submitted fields for a new market."""

    question: str
    description: str
    category: Category
    end_date: date
    image: str | None = None

    @field_validator("question", "description")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value
