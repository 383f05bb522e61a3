"""Sentiment provider: fallbacks and response parsing via mocked HTTP."""

import asyncio
import json

import httpx
import pytest

from predsim.sentiment import SentimentProvider, fallback_sentiment
from predsim.sentiment.provider import FAILED_ANALYSIS, NO_KEY_ANALYSIS, parse_sentiment_response

from conftest import make_market


def _completion(content):
    return {"choices": [{"message": {"content": content}}]}


def _provider(handler, max_retries=0):
    return SentimentProvider(api_key="test-key", max_retries=max_retries, transport=httpx.MockTransport(handler))


def test_missing_key_tracks_yes_price():
    result = asyncio.run(SentimentProvider(api_key=None).get_sentiment(make_market("m1", yes_price=0.32)))
    assert result.source == "fallback"
    assert result.score == 32
    assert result.bullish_factors and result.bearish_factors


def test_missing_key_analysis():
    assert asyncio.run(SentimentProvider(api_key=None).analyze(make_market("m1"))) == NO_KEY_ANALYSIS


def test_provider_success():
    requests = []

    def handler(request):
        requests.append(request)
        body = {"score": 71.6, "summary": "Bulls in charge.", "bullishFactors": ["ETF flows"], "bearishFactors": []}
        return httpx.Response(200, json=_completion(json.dumps(body)))

    result = asyncio.run(_provider(handler).get_sentiment(make_market("m1")))
    assert result.source == "provider"
    assert result.score == 72
    assert result.bullish_factors == ["ETF flows"]
    assert requests[0].headers["Authorization"] == "Bearer test-key"
    assert json.loads(requests[0].content)["response_format"] == {"type": "json_object"}


def test_server_error_falls_back_after_retries():
    calls = []

    def handler(request):
        calls.append(1)
        return httpx.Response(500, text="boom")

    provider = _provider(handler, max_retries=2)
    result = asyncio.run(provider.get_sentiment(make_market("m1")))
    assert result == fallback_sentiment(make_market("m1"), "request_failed")
    assert result.score == 50
    assert len(calls) == 3
    assert asyncio.run(provider.analyze(make_market("m1"))) == FAILED_ANALYSIS


def test_unparseable_content_falls_back():
    result = asyncio.run(_provider(lambda r: httpx.Response(200, json=_completion("not json"))).get_sentiment(make_market("m1")))
    assert result.source == "fallback"
    assert result.summary.startswith("Neutral")


def test_network_error_falls_back():
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    result = asyncio.run(_provider(handler).get_sentiment(make_market("m1")))
    assert result.source == "fallback"


def test_analysis_text():
    handler = lambda r: httpx.Response(200, json=_completion("  Watch the FOMC minutes.  "))
    assert asyncio.run(_provider(handler).analyze(make_market("m1"))) == "Watch the FOMC minutes."


def test_parse_clamps_score():
    result = parse_sentiment_response(_completion(json.dumps({"score": 140, "summary": "x"})))
    assert result.score == 100
    with pytest.raises(ValueError):
        parse_sentiment_response({"choices": []})
    with pytest.raises(ValueError):
        parse_sentiment_response(_completion("[1, 2]"))
