"""Append-only trade log - every committed trade, queryable and exportable."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from predsim.models import TradeActivity

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection

_COLUMNS = ["activity_id", "market_id", "outcome_id", "side", "author", "amount", "shares", "price", "ts"]


def append_trade(conn: DuckDBPyConnection, activity: TradeActivity) -> None:
    """Append one committed trade."""
    conn.execute(
        """
        INSERT INTO trade_log (activity_id, market_id, outcome_id, side, author, amount, shares, price, ts)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        [
            activity.activity_id,
            activity.market_id,
            activity.outcome_id,
            activity.side,
            activity.author,
            activity.amount,
            activity.shares,
            activity.price,
            activity.timestamp,
        ],
    )


def list_trades(conn: DuckDBPyConnection, market_id: str | None = None, limit: int = 50) -> list[TradeActivity]:
    """Most recent trades first, optionally for one market."""
    cols = ", ".join(_COLUMNS)
    if market_id:
        rows = conn.execute(
            f"SELECT {cols} FROM trade_log WHERE market_id = ? ORDER BY id DESC LIMIT ?",
            [market_id, limit],
        ).fetchall()
    else:
        rows = conn.execute(f"SELECT {cols} FROM trade_log ORDER BY id DESC LIMIT ?", [limit]).fetchall()
    out = []
    for r in rows:
        d = dict(zip(_COLUMNS, r))
        d["timestamp"] = d.pop("ts")
        out.append(TradeActivity(**d))
    return out


def trade_stats(conn: DuckDBPyConnection) -> dict[str, Any]:
    """Total trades, notional by side, time range, and top markets by notional."""
    total, buy_notional, sell_notional, min_ts, max_ts = conn.execute(
        """
        SELECT COUNT(*),
               COALESCE(SUM(CASE WHEN side = 'BUY' THEN amount END), 0),
               COALESCE(SUM(CASE WHEN side = 'SELL' THEN amount END), 0),
               MIN(ts), MAX(ts)
        FROM trade_log
        """
    ).fetchone()
    by_market = conn.execute(
        """
        SELECT market_id, COUNT(*) AS cnt, SUM(amount) AS notional
        FROM trade_log GROUP BY market_id ORDER BY notional DESC LIMIT 20
        """
    ).fetchall()
    return {
        "total_trades": total,
        "buy_notional": buy_notional,
        "sell_notional": sell_notional,
        "min_ts": min_ts,
        "max_ts": max_ts,
        "by_market": [{"market_id": r[0], "count": r[1], "notional": r[2]} for r in by_market],
    }
