"""Market browsing: tab / category / tag / search filters and sort order."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from predsim.models import Category, Market

# Tabs that map onto a single category
TAB_CATEGORIES = {
    "politics": Category.POLITICS,
    "sports": Category.SPORTS,
    "business": Category.BUSINESS,
}
TABS = ("all", "watchlist", *TAB_CATEGORIES)
SORT_KEYS = ("volume", "newest")


@dataclass
class MarketQuery:
    """Browse parameters. Empty/None fields do not filter."""

    tab: str = "all"
    category: Category | None = None
    tag: str | None = None
    search: str | None = None
    sort_by: str = "volume"
    watchlist: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        if self.tab not in TABS:
            raise ValueError(f"Unknown tab: {self.tab}. Choose from: {list(TABS)}")
        if self.sort_by not in SORT_KEYS:
            raise ValueError(f"Unknown sort: {self.sort_by}. Choose from: {list(SORT_KEYS)}")


def _matches(market: Market, query: MarketQuery) -> bool:
    if query.tab == "watchlist" and market.market_id not in query.watchlist:
        return False
    tab_category = TAB_CATEGORIES.get(query.tab)
    if tab_category is not None and market.category != tab_category:
        return False
    if query.category is not None and market.category != query.category:
        return False
    if query.tag and query.tag.lower() != "all":
        tag = query.tag.lower()
        if tag not in market.question.lower() and tag not in market.category.value.lower():
            return False
    if query.search:
        term = query.search.lower()
        return (
            term in market.question.lower()
            or term in market.description.lower()
            or term in market.category.value.lower()
        )
    return True


def filter_and_sort(markets: Iterable[Market], query: MarketQuery) -> list[Market]:
    """Filter, then order: question matches for the search term first, then by sort key."""
    selected = [m for m in markets if _matches(m, query)]
    term = (query.search or "").lower()

    def sort_key(market: Market) -> tuple[int, float]:
        relevance = 0 if term and term in market.question.lower() else 1
        if query.sort_by == "newest":
            return (relevance, -market.created_at)
        return (relevance, -market.volume)

    return sorted(selected, key=sort_key)
