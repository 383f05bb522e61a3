"""Exchange - composition root for markets, the user ledger, trading and simulation.

User-initiated mutations run as: lock -> commit -> persist snapshot -> notify.
Simulator ticks run as: lock -> commit -> notify (snapshotted on close).
"""

from __future__ import annotations

import asyncio
import random
import threading
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import duckdb
import structlog
from pydantic import ValidationError

from predsim.config.settings import Settings
from predsim.errors import InvalidMarketSpec, PersistenceWriteFailure, TradeError
from predsim.models import Comment, Market, MarketSentiment, MarketSpec, NotificationPreferences, TradeActivity, User
from predsim.sentiment.provider import SentimentProvider
from predsim.simulation.price_simulator import PriceSimulator
from predsim.storage.db import get_connection, init_schema
from predsim.storage.snapshots import LoadedState, SnapshotStore
from predsim.storage.trade_log import append_trade
from predsim.store.bus import ChangeBus, Listener, Unsubscribe
from predsim.store.comments import ActivityFeed, CommentLog, Watchlist
from predsim.store.ledger import UserLedger, WalletProvider
from predsim.store.markets import MarketStore
from predsim.store.query import MarketQuery
from predsim.store.seed import seed_markets
from predsim.trading.engine import TradeEngine, TradeReceipt
from predsim.trading.portfolio import PortfolioSummary, portfolio_summary

log = structlog.get_logger(__name__)


class Exchange:
    """Single local actor's view of the simulated exchange."""

    def __init__(
        self,
        markets: MarketStore | None = None,
        ledger: UserLedger | None = None,
        comments: CommentLog | None = None,
        watchlist: Watchlist | None = None,
        *,
        snapshots: SnapshotStore | None = None,
        sentiment: SentimentProvider | None = None,
        price_impact_per_usd: float = 1e-5,
        simulator_interval_sec: float = 3.0,
        simulator_tick_probability: float = 0.3,
        simulator_max_price_step: float = 0.02,
        simulator_max_volume_step: int = 10000,
        rng: random.Random | None = None,
    ) -> None:
        self.markets = markets if markets is not None else MarketStore(seed_markets())
        self.ledger = ledger if ledger is not None else UserLedger()
        self.comments = comments if comments is not None else CommentLog()
        self.watchlist = watchlist if watchlist is not None else Watchlist()
        self.activity = ActivityFeed()
        self.snapshots = snapshots
        self.sentiment = sentiment if sentiment is not None else SentimentProvider(api_key=None)
        self.bus = ChangeBus()
        self._lock = threading.RLock()
        self.engine = TradeEngine(self.markets, self.ledger, price_impact_per_usd=price_impact_per_usd)
        self.simulator = PriceSimulator(
            self.markets,
            interval_sec=simulator_interval_sec,
            tick_probability=simulator_tick_probability,
            max_price_step=simulator_max_price_step,
            max_volume_step=simulator_max_volume_step,
            rng=rng,
            on_tick=self._on_tick,
            lock=self._lock,
        )

    @classmethod
    def open(
        cls,
        settings: Settings,
        db_path: str | Path | None = None,
        rng: random.Random | None = None,
    ) -> Exchange:
        """Open the DuckDB snapshot store, restore state (or defaults) and wire components.

        An unreadable database file is logged and the exchange runs from defaults
        without persistence.
        """
        path = db_path or settings.db_path
        snapshots: SnapshotStore | None = None
        try:
            conn = get_connection(path)
        except duckdb.Error as e:
            log.error("snapshot_open_failed", db_path=str(path), error=str(e))
        else:
            try:
                init_schema(conn)
            except duckdb.Error as e:
                log.error("snapshot_open_failed", db_path=str(path), error=str(e))
                conn.close()
            else:
                snapshots = SnapshotStore(conn)
        if snapshots is not None:
            state = snapshots.load_state()
        else:
            state = LoadedState(user=User(), markets=seed_markets(), comments={}, bookmarks=set())
        return cls(
            MarketStore(
                state.markets,
                min_price=settings.min_price,
                max_price=settings.max_price,
                history_limit=settings.history_limit,
            ),
            UserLedger(
                state.user,
                starting_balance=settings.starting_balance,
                connect_delay_sec=settings.connect_delay_sec,
                mock_address=settings.mock_address,
            ),
            CommentLog(state.comments),
            Watchlist(state.bookmarks),
            snapshots=snapshots,
            sentiment=SentimentProvider.from_settings(settings),
            price_impact_per_usd=settings.price_impact_per_usd,
            simulator_interval_sec=settings.simulator_interval_sec,
            simulator_tick_probability=settings.simulator_tick_probability,
            simulator_max_price_step=settings.simulator_max_price_step,
            simulator_max_volume_step=settings.simulator_max_volume_step,
            rng=rng,
        )

    def close(self) -> None:
        """Stop simulation, flush a final snapshot and close storage."""
        self.simulator.stop()
        with self._lock:
            self._persist()
            if self.snapshots is not None:
                self.snapshots.conn.close()
                self.snapshots = None

    # -- plumbing ------------------------------------------------------------

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        """Serialize a mutation; on success persist then notify."""
        with self._lock:
            yield
            self._persist()
        self.bus.publish()

    def _persist(self) -> None:
        if self.snapshots is None:
            return
        try:
            self.snapshots.save_state(self.get_user(), self.markets.list_markets(), self.comments.to_dict())
        except PersistenceWriteFailure as e:
            log.warning("snapshot_save_failed", error=str(e))

    def _on_tick(self, changed: list[str]) -> None:
        if changed:
            self.bus.publish()

    def _record_trade(self, receipt: TradeReceipt) -> TradeActivity:
        activity = TradeActivity(
            activity_id=uuid.uuid4().hex[:12],
            market_id=receipt.market_id,
            author=self.ledger.get_user().address or "You",
            side=receipt.side,
            outcome_id=receipt.outcome_id,
            amount=receipt.amount,
            shares=receipt.shares,
            price=receipt.price,
            timestamp=int(time.time() * 1000),
        )
        self.activity.record(activity)
        if self.snapshots is not None:
            try:
                append_trade(self.snapshots.conn, activity)
            except duckdb.Error as e:
                log.warning("trade_log_append_failed", error=str(e), activity_id=activity.activity_id)
        return activity

    # -- change bus / simulation ---------------------------------------------

    def subscribe(self, listener: Listener) -> Unsubscribe:
        """Register a listener; the first subscriber inside an event loop starts the simulator."""
        unsubscribe = self.bus.subscribe(listener)
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            log.debug("simulator_deferred", reason="no_running_loop")
        else:
            self.simulator.start()
        return unsubscribe

    def start_simulation(self) -> bool:
        return self.simulator.start()

    def stop_simulation(self) -> None:
        self.simulator.stop()

    def tick(self) -> list[str]:
        """Run one simulator step synchronously."""
        return self.simulator.tick()

    # -- reads ---------------------------------------------------------------

    def list_markets(self) -> list[Market]:
        return self.markets.list_markets()

    def get_market(self, market_id: str) -> Market | None:
        return self.markets.get_market(market_id)

    def query_markets(self, **params: Any) -> list[Market]:
        query = MarketQuery(watchlist=self.watchlist.ids(), **params)
        return self.markets.query_markets(query)

    def get_user(self) -> User:
        return self.ledger.get_user(price_lookup=self.markets.current_price)

    def portfolio(self) -> PortfolioSummary:
        return portfolio_summary(self.get_user(), self.markets.list_markets())

    def get_comments(self, market_id: str) -> list[Comment]:
        if self.comments.has_thread(market_id):
            return self.comments.get_comments(market_id)
        with self._lock:
            comments = self.comments.get_comments(market_id, self.markets.get_market(market_id))
            self._persist()
        return comments

    def recent_activity(self, market_id: str, limit: int | None = None) -> list[TradeActivity]:
        return self.activity.recent(market_id, limit)

    def bookmarks(self) -> set[str]:
        return self.watchlist.ids()

    async def market_sentiment(self, market_id: str) -> MarketSentiment | None:
        market = self.markets.get_market(market_id)
        if market is None:
            return None
        return await self.sentiment.get_sentiment(market)

    async def market_analysis(self, market_id: str) -> str | None:
        market = self.markets.get_market(market_id)
        if market is None:
            return None
        return await self.sentiment.analyze(market)

    # -- mutations -----------------------------------------------------------

    def create_market(self, spec: MarketSpec | dict[str, Any]) -> str:
        if not isinstance(spec, MarketSpec):
            try:
                spec = MarketSpec.model_validate(spec)
            except ValidationError as e:
                raise InvalidMarketSpec(str(e)) from e
        with self._mutation():
            return self.markets.create_market(spec)

    def buy(self, market_id: str, outcome_id: str, amount_usd: float) -> TradeReceipt:
        try:
            with self._mutation():
                receipt = self.engine.buy(market_id, outcome_id, amount_usd)
                self._record_trade(receipt)
        except TradeError as e:
            log.info("trade_rejected", side="BUY", market_id=market_id, outcome_id=outcome_id, code=e.code)
            raise
        return receipt

    def sell(self, market_id: str, outcome_id: str, percent: float) -> TradeReceipt:
        try:
            with self._mutation():
                receipt = self.engine.sell(market_id, outcome_id, percent)
                self._record_trade(receipt)
        except TradeError as e:
            log.info("trade_rejected", side="SELL", market_id=market_id, outcome_id=outcome_id, code=e.code)
            raise
        return receipt

    async def connect(self, wallet_provider: WalletProvider | None = None) -> User:
        # The handshake suspends outside the lock so reads and trades stay available.
        address = await self.ledger.handshake(wallet_provider)
        with self._mutation():
            self.ledger.establish_session(address)
        return self.get_user()

    def disconnect(self) -> User:
        with self._mutation():
            self.ledger.disconnect()
        return self.get_user()

    def set_notification_preference(self, key: str, value: bool) -> NotificationPreferences:
        with self._mutation():
            return self.ledger.set_notification_preference(key, value)

    def add_comment(self, market_id: str, text: str) -> Comment:
        author = "You" if self.ledger.is_connected else "Guest"
        with self._mutation():
            # Seed the thread first so starter comments precede the new one
            self.comments.get_comments(market_id, self.markets.get_market(market_id))
            return self.comments.add_comment(market_id, text, author)

    def toggle_bookmark(self, market_id: str) -> bool:
        with self._lock:
            bookmarked = self.watchlist.toggle(market_id)
            if self.snapshots is not None:
                try:
                    self.snapshots.save_bookmarks(self.watchlist.ids())
                except PersistenceWriteFailure as e:
                    log.warning("bookmarks_save_failed", error=str(e))
        self.bus.publish()
        return bookmarked
