"""Market sentiment and analysis via an OpenAI-compatible chat completions API.

Never raises to callers: a missing API key, a failed request or an unparseable
response all return a deterministic payload with ``source="fallback"``.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from predsim.config.settings import Settings
from predsim.errors import ProviderUnavailable
from predsim.models import Market, MarketSentiment

log = structlog.get_logger(__name__)

NO_KEY_SUMMARY = "AI provider not configured (API key missing). Sentiment derived from the market price."
FAILED_SUMMARY = "Neutral sentiment: AI analysis unavailable, mixed signals."
NO_KEY_ANALYSIS = "API key is missing. Configure the sentiment provider to use AI analysis."
FAILED_ANALYSIS = "An error occurred while fetching the analysis. Please try again later."


def fallback_sentiment(market: Market, reason: str) -> MarketSentiment:
    """Deterministic stand-in. With no key the score tracks the YES price; on failure it is neutral."""
    if reason == "missing_api_key":
        return MarketSentiment(
            score=max(0, min(100, round(market.yes_price * 100))),
            summary=NO_KEY_SUMMARY,
            bullish_factors=["Strong volume trends", "Recent news momentum"],
            bearish_factors=["Market uncertainty", "Historical resistance levels"],
            source="fallback",
        )
    return MarketSentiment(
        score=50,
        summary=FAILED_SUMMARY,
        bullish_factors=["Pending analysis"],
        bearish_factors=["Pending analysis"],
        source="fallback",
    )


def _market_context(market: Market) -> str:
    yes, no = market.outcomes
    return (
        f'Market: "{market.question}"\n'
        f'Description: "{market.description}"\n'
        f"Category: {market.category.value}\n"
        f"Probability for {yes.name}: {yes.price * 100:.1f}%\n"
        f"Probability for {no.name}: {no.price * 100:.1f}%"
    )


def build_sentiment_payload(market: Market, model: str) -> dict[str, Any]:
    system_prompt = (
        "Act as a social sentiment engine for prediction markets. "
        "Respond with strict JSON only."
    )
    user_prompt = (
        "Estimate the sentiment score (0-100) where 0 is extremely negative/unlikely and 100 is "
        "extremely positive/likely for the first outcome.\n"
        "Return JSON with keys: score (number), summary (one punchy sentence), "
        "bullishFactors (list of strings), bearishFactors (list of strings).\n\n"
        + _market_context(market)
    )
    return {
        "model": model,
        "temperature": 0.3,
        "response_format": {"type": "json_object"},
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
    }


def build_analysis_payload(market: Market, model: str) -> dict[str, Any]:
    user_prompt = (
        "You are a prediction market analyst. Provide a concise summary (max 150 words) of the key "
        "factors that could influence this outcome. Do not give financial advice. Focus on the events, "
        "news, or data points that traders should watch.\n\n" + _market_context(market)
    )
    return {
        "model": model,
        "temperature": 0.5,
        "messages": [{"role": "user", "content": user_prompt}],
    }


def _message_content(payload: dict[str, Any]) -> str:
    return payload["choices"][0]["message"]["content"]


def parse_sentiment_response(payload: dict[str, Any]) -> MarketSentiment:
    """Parse a chat completion into MarketSentiment. Raises ValueError on bad shape."""
    try:
        raw = json.loads(_message_content(payload))
        if not isinstance(raw, dict):
            raise ValueError("sentiment response is not a JSON object")
        score = raw.get("score")
        if isinstance(score, (int, float)):
            raw["score"] = max(0, min(100, round(score)))
        raw["source"] = "provider"
        return MarketSentiment.model_validate(raw)
    except (KeyError, IndexError, TypeError, json.JSONDecodeError, ValidationError) as e:
        raise ValueError(f"invalid sentiment response: {e}") from e


class SentimentProvider:
    """External text-generation collaborator. Optional; absent key means fallback only."""

    def __init__(
        self,
        api_key: str | None,
        api_base: str = "https://api.openai.com/v1/chat/completions",
        model: str = "gpt-4o-mini",
        timeout_sec: float = 20.0,
        max_retries: int = 1,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.api_base = api_base
        self.model = model
        self.timeout_sec = timeout_sec
        self.max_retries = max_retries
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> SentimentProvider:
        return cls(
            api_key=settings.sentiment_api_key,
            api_base=settings.sentiment_api_base,
            model=settings.sentiment_model,
            timeout_sec=settings.sentiment_timeout_sec,
            max_retries=settings.sentiment_max_retries,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        """POST with retries. Raises ProviderUnavailable when every attempt failed."""
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        attempts = max(self.max_retries, 0) + 1
        for attempt in range(attempts):
            try:
                async with httpx.AsyncClient(timeout=self.timeout_sec, transport=self._transport) as client:
                    response = await client.post(self.api_base, json=payload, headers=headers)
                if response.is_success:
                    return response.json()
                log.warning(
                    "sentiment_request_failed",
                    status=response.status_code,
                    body=response.text[:200],
                    attempt=attempt + 1,
                )
            except (httpx.HTTPError, json.JSONDecodeError) as e:
                log.warning("sentiment_request_exception", error=str(e), attempt=attempt + 1)
        raise ProviderUnavailable(f"provider request failed after {attempts} attempt(s)")

    async def get_sentiment(self, market: Market) -> MarketSentiment:
        if not self.configured:
            log.info("sentiment_fallback", market_id=market.market_id, reason="missing_api_key")
            return fallback_sentiment(market, "missing_api_key")
        try:
            data = await self._post(build_sentiment_payload(market, self.model))
        except ProviderUnavailable as e:
            log.info("sentiment_fallback", market_id=market.market_id, reason="request_failed", error=str(e))
            return fallback_sentiment(market, "request_failed")
        try:
            return parse_sentiment_response(data)
        except ValueError as e:
            log.warning("sentiment_fallback", market_id=market.market_id, reason="invalid_response", error=str(e))
            return fallback_sentiment(market, "invalid_response")

    async def analyze(self, market: Market) -> str:
        """Free-text analysis of the factors that could move the market."""
        if not self.configured:
            return NO_KEY_ANALYSIS
        try:
            data = await self._post(build_analysis_payload(market, self.model))
        except ProviderUnavailable:
            return FAILED_ANALYSIS
        try:
            text = _message_content(data)
        except (KeyError, IndexError, TypeError):
            log.warning("analysis_invalid_response", market_id=market.market_id)
            return FAILED_ANALYSIS
        return text.strip() if isinstance(text, str) and text.strip() else "Could not generate analysis."
