"""Market store - authoritative market list, paired-price enforcement, bounded history."""

from __future__ import annotations

import math
import uuid
from collections.abc import Callable, Iterable

import structlog

from predsim.models import HistoryPoint, Market, MarketSpec, Outcome
from predsim.models.market import NO, YES, now_ms
from predsim.store.query import MarketQuery, filter_and_sort

log = structlog.get_logger(__name__)

MIN_PRICE = 0.01
MAX_PRICE = 0.99
HISTORY_LIMIT = 50
INITIAL_PRICE = 0.5


def clamp_price(price: float, lo: float = MIN_PRICE, hi: float = MAX_PRICE) -> float:
    return max(lo, min(hi, price))


class MarketStore:
    """Owns every Market. Readers get copies; only the mutators below change state."""

    def __init__(
        self,
        markets: Iterable[Market] | None = None,
        *,
        min_price: float = MIN_PRICE,
        max_price: float = MAX_PRICE,
        history_limit: int = HISTORY_LIMIT,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.min_price = min_price
        self.max_price = max_price
        self.history_limit = history_limit
        self._clock = clock
        self._markets: list[Market] = [m.model_copy(deep=True) for m in (markets or [])]
        for market in self._markets:
            market.history = market.history[-self.history_limit :]

    def _find(self, market_id: str) -> Market | None:
        for market in self._markets:
            if market.market_id == market_id:
                return market
        return None

    def list_markets(self) -> list[Market]:
        return [m.model_copy(deep=True) for m in self._markets]

    def get_market(self, market_id: str) -> Market | None:
        market = self._find(market_id)
        return market.model_copy(deep=True) if market else None

    def query_markets(self, query: MarketQuery) -> list[Market]:
        return filter_and_sort(self.list_markets(), query)

    def current_price(self, market_id: str, outcome_id: str) -> float | None:
        market = self._find(market_id)
        if market is None:
            return None
        idx = market.outcome_index(outcome_id)
        return market.outcomes[idx].price if idx is not None else None

    def create_market(self, spec: MarketSpec) -> str:
        """Build a 50/50 market with one seed history point and insert it first. Returns its id."""
        ts = self._clock()
        market_id = uuid.uuid4().hex[:9]
        market = Market(
            market_id=market_id,
            question=spec.question,
            description=spec.description,
            category=spec.category,
            image=spec.image or f"https://picsum.photos/seed/{market_id}/200/200",
            volume=0.0,
            end_date=spec.end_date,
            created_at=ts,
            outcomes=[
                Outcome(outcome_id=YES, name="Yes", price=INITIAL_PRICE),
                Outcome(outcome_id=NO, name="No", price=INITIAL_PRICE),
            ],
            history=[HistoryPoint(timestamp=ts, price=INITIAL_PRICE)],
        )
        self._markets.insert(0, market)
        log.info("market_created", market_id=market_id, category=spec.category.value)
        return market_id

    def apply_price_delta(
        self,
        market_id: str,
        outcome_index: int,
        new_price: float,
        volume_delta: float = 0.0,
    ) -> Market | None:
        """Set one outcome's price (clamped), force the pair to sum to 1, append history.

        Returns the updated market, or None (no-op) for an unknown market/outcome or a
        non-finite price. volume_delta must be non-negative.
        """
        market = self._find(market_id)
        if market is None or not 0 <= outcome_index < len(market.outcomes):
            return None
        if not math.isfinite(new_price):
            return None
        if volume_delta < 0:
            raise ValueError("volume_delta must be non-negative")
        price = clamp_price(new_price, self.min_price, self.max_price)
        other = 1 - outcome_index
        market.outcomes[outcome_index].price = price
        market.outcomes[other].price = 1 - price
        market.history.append(HistoryPoint(timestamp=self._clock(), price=market.outcomes[0].price))
        if len(market.history) > self.history_limit:
            market.history = market.history[-self.history_limit :]
        market.volume += volume_delta
        return market.model_copy(deep=True)

    def __len__(self) -> int:
        return len(self._markets)
