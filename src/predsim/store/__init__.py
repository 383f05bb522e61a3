"""In-memory state: markets, the user ledger, comments, watchlist and the change bus."""

from predsim.store.bus import ChangeBus
from predsim.store.comments import ActivityFeed, CommentLog, Watchlist
from predsim.store.ledger import UserLedger
from predsim.store.markets import MarketStore
from predsim.store.query import MarketQuery

__all__ = ["ActivityFeed", "ChangeBus", "CommentLog", "MarketQuery", "MarketStore", "UserLedger", "Watchlist"]
