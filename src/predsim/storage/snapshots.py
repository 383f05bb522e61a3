"""Best-effort JSON snapshots of user, markets, comments and bookmarks in DuckDB."""

from __future__ import annotations

import contextlib
import json
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

import duckdb
import structlog
from pydantic import TypeAdapter, ValidationError

from predsim.errors import PersistenceReadFailure, PersistenceWriteFailure
from predsim.models import Comment, Market, User
from predsim.store.seed import seed_markets

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

log = structlog.get_logger(__name__)

USER_KEY = "user_v1"
MARKETS_KEY = "markets_v1"
COMMENTS_KEY = "comments_v1"
BOOKMARKS_KEY = "bookmarks_v1"

_MARKETS = TypeAdapter(list[Market])
_COMMENTS = TypeAdapter(dict[str, list[Comment]])
_BOOKMARKS = TypeAdapter(list[str])

T = TypeVar("T")


@dataclass
class LoadedState:
    """State restored on startup. `restored` lists the keys that came from storage."""

    user: User
    markets: list[Market]
    comments: dict[str, list[Comment]]
    bookmarks: set[str]
    restored: list[str] = field(default_factory=list)


class SnapshotStore:
    """Key/value snapshots on a DuckDB connection. load_state never raises; saves raise PersistenceWriteFailure."""

    def __init__(self, conn: DuckDBPyConnection) -> None:
        self.conn = conn

    def get(self, key: str) -> Any | None:
        row = self.conn.execute("SELECT value FROM kv_store WHERE key = ?", [key]).fetchone()
        if not row or row[0] is None:
            return None
        return json.loads(row[0]) if isinstance(row[0], str) else row[0]

    def put(self, key: str, value: Any) -> None:
        self.conn.execute(
            """
            INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT (key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
            """,
            [key, json.dumps(value), int(time.time() * 1000)],
        )

    def read(self, key: str, parse: Callable[[Any], T]) -> T | None:
        """Parsed value for key, None when absent. Raises PersistenceReadFailure."""
        try:
            raw = self.get(key)
            return None if raw is None else parse(raw)
        except (duckdb.Error, json.JSONDecodeError, ValidationError, TypeError, ValueError) as e:
            raise PersistenceReadFailure(f"cannot read {key}: {e}") from e

    def _load(self, key: str, parse: Callable[[Any], T], default: Callable[[], T], restored: list[str]) -> T:
        try:
            value = self.read(key, parse)
        except PersistenceReadFailure as e:
            log.warning("snapshot_load_failed", key=key, error=str(e))
            return default()
        if value is None:
            return default()
        restored.append(key)
        return value

    def load_state(self) -> LoadedState:
        """Parse each key if present; fall back per key to defaults."""
        restored: list[str] = []
        user = self._load(USER_KEY, User.model_validate, User, restored)
        markets = self._load(MARKETS_KEY, _MARKETS.validate_python, seed_markets, restored)
        comments = self._load(COMMENTS_KEY, _COMMENTS.validate_python, dict, restored)
        bookmarks = self._load(BOOKMARKS_KEY, lambda raw: set(_BOOKMARKS.validate_python(raw)), set, restored)
        log.info("snapshot_loaded", restored=restored, markets=len(markets))
        return LoadedState(user=user, markets=markets, comments=comments, bookmarks=bookmarks, restored=restored)

    def save_state(self, user: User, markets: Iterable[Market], comments: dict[str, list[Comment]]) -> None:
        """Write user, markets and comments in one transaction. Raises PersistenceWriteFailure."""
        try:
            self.conn.begin()
            self.put(USER_KEY, user.model_dump(mode="json"))
            self.put(MARKETS_KEY, _MARKETS.dump_python(list(markets), mode="json"))
            self.put(COMMENTS_KEY, _COMMENTS.dump_python(comments, mode="json"))
            self.conn.commit()
        except duckdb.Error as e:
            with contextlib.suppress(duckdb.Error):
                self.conn.rollback()
            raise PersistenceWriteFailure(f"snapshot save failed: {e}") from e

    def save_bookmarks(self, market_ids: Iterable[str]) -> None:
        try:
            self.put(BOOKMARKS_KEY, sorted(market_ids))
        except duckdb.Error as e:
            raise PersistenceWriteFailure(f"bookmarks save failed: {e}") from e
