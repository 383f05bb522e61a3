"""Per-market comment log, trade activity feed, and the watchlist set."""

from __future__ import annotations

import time
import uuid
from collections import deque
from collections.abc import Callable, Iterable

from predsim.errors import InvalidComment
from predsim.models import Comment, Market, TradeActivity

ACTIVITY_LIMIT = 50


def _display_time() -> str:
    return time.strftime("%H:%M")


def _seed_comments(market_id: str, market: Market | None) -> list[Comment]:
    category = market.category.value if market else "this market"
    bitcoin = market is not None and "Bitcoin" in market.question
    return [
        Comment(
            comment_id=f"c1-{market_id}",
            author="MarketMaker",
            text=f"Liquidity is looking good for {category}.",
            timestamp="09:00",
        ),
        Comment(
            comment_id=f"c2-{market_id}",
            author="Anon",
            text="To the moon!" if bitcoin else "Interesting odds... I might take a position.",
            timestamp="09:15",
        ),
    ]


class CommentLog:
    """Append-only comments keyed by market id."""

    def __init__(
        self,
        comments: dict[str, list[Comment]] | None = None,
        clock: Callable[[], str] = _display_time,
    ) -> None:
        self._comments: dict[str, list[Comment]] = {
            market_id: list(items) for market_id, items in (comments or {}).items()
        }
        self._clock = clock

    def has_thread(self, market_id: str) -> bool:
        return market_id in self._comments

    def get_comments(self, market_id: str, market: Market | None = None) -> list[Comment]:
        """Return the thread, seeding two starter comments the first time it is read."""
        if market_id not in self._comments:
            self._comments[market_id] = _seed_comments(market_id, market)
        return [c.model_copy() for c in self._comments[market_id]]

    def add_comment(self, market_id: str, text: str, author: str) -> Comment:
        text = (text or "").strip()
        if not text:
            raise InvalidComment()
        comment = Comment(
            comment_id=uuid.uuid4().hex[:12],
            author=author,
            text=text,
            timestamp=self._clock(),
        )
        self._comments.setdefault(market_id, []).append(comment)
        return comment.model_copy()

    def to_dict(self) -> dict[str, list[Comment]]:
        return {market_id: list(items) for market_id, items in self._comments.items()}


class ActivityFeed:
    """Recent committed trades per market, newest first, bounded."""

    def __init__(self, limit: int = ACTIVITY_LIMIT) -> None:
        self._limit = limit
        self._by_market: dict[str, deque[TradeActivity]] = {}

    def record(self, activity: TradeActivity) -> None:
        feed = self._by_market.setdefault(activity.market_id, deque(maxlen=self._limit))
        feed.appendleft(activity)

    def recent(self, market_id: str, limit: int | None = None) -> list[TradeActivity]:
        items = list(self._by_market.get(market_id, ()))
        return items[:limit] if limit is not None else items


class Watchlist:
    """User-local set of bookmarked market ids."""

    def __init__(self, market_ids: Iterable[str] | None = None) -> None:
        self._ids: set[str] = set(market_ids or ())

    def toggle(self, market_id: str) -> bool:
        """Flip membership. Returns True if the market is now bookmarked."""
        if market_id in self._ids:
            self._ids.discard(market_id)
            return False
        self._ids.add(market_id)
        return True

    def __contains__(self, market_id: object) -> bool:
        return market_id in self._ids

    def ids(self) -> set[str]:
        return set(self._ids)
