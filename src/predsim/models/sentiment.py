"""MarketSentiment - structured output of the sentiment provider."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class MarketSentiment(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    score: int = Field(..., ge=0, le=100, description="0 = bearish, 100 = bullish on YES")
    summary: str
    bullish_factors: list[str] = Field(default_factory=list, alias="bullishFactors")
    bearish_factors: list[str] = Field(default_factory=list, alias="bearishFactors")
    source: str = "provider"  # "provider" or "fallback"
