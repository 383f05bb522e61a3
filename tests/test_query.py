"""Market browsing: tabs, category, tag, search priority and sort."""

import pytest

from predsim.models import Category
from predsim.store import MarketQuery
from predsim.store.query import filter_and_sort

from conftest import make_market


@pytest.fixture
def markets():
    return [
        make_market("btc", Category.CRYPTO, volume=500, created_at=1, question="Will Bitcoin hit $150k?"),
        make_market(
            "fed",
            Category.BUSINESS,
            volume=900,
            created_at=2,
            question="Will the Fed cut rates?",
            description="Bitcoin traders are watching.",
        ),
        make_market("nba", Category.SPORTS, volume=300, created_at=3, question="Who wins the NBA title?"),
        make_market("vote", Category.POLITICS, volume=100, created_at=4, question="Who wins the election?"),
    ]


def _ids(markets):
    return [m.market_id for m in markets]


def test_default_sorts_by_volume(markets):
    assert _ids(filter_and_sort(markets, MarketQuery())) == ["fed", "btc", "nba", "vote"]


def test_sort_newest(markets):
    assert _ids(filter_and_sort(markets, MarketQuery(sort_by="newest"))) == ["vote", "nba", "fed", "btc"]


def test_tabs(markets):
    assert _ids(filter_and_sort(markets, MarketQuery(tab="sports"))) == ["nba"]
    assert _ids(filter_and_sort(markets, MarketQuery(tab="politics"))) == ["vote"]
    assert _ids(filter_and_sort(markets, MarketQuery(tab="watchlist", watchlist={"btc", "vote"}))) == ["btc", "vote"]
    assert filter_and_sort(markets, MarketQuery(tab="watchlist")) == []


def test_category_and_tag(markets):
    assert _ids(filter_and_sort(markets, MarketQuery(category=Category.CRYPTO))) == ["btc"]
    assert _ids(filter_and_sort(markets, MarketQuery(tag="wins"))) == ["nba", "vote"]
    assert _ids(filter_and_sort(markets, MarketQuery(tag="business"))) == ["fed"]
    assert len(filter_and_sort(markets, MarketQuery(tag="All"))) == 4


def test_search_question_matches_rank_first(markets):
    # "fed" has more volume but only matches in its description
    assert _ids(filter_and_sort(markets, MarketQuery(search="bitcoin"))) == ["btc", "fed"]


def test_search_is_case_insensitive_over_category(markets):
    assert _ids(filter_and_sort(markets, MarketQuery(search="SPORTS"))) == ["nba"]


def test_invalid_query():
    with pytest.raises(ValueError):
        MarketQuery(tab="nope")
    with pytest.raises(ValueError):
        MarketQuery(sort_by="price")
