"""Export the trade log to Parquet."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from duckdb import DuckDBPyConnection


def _quote(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def export_trades_to_parquet(
    conn: DuckDBPyConnection,
    output_path: str | Path,
    market_id: str | None = None,
) -> int:
    """Export trade_log to a Parquet file. Optional filter by market_id. Returns row count."""
    path = Path(output_path).resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    # COPY takes no bind parameters, so literals are quoted inline
    where = f"WHERE market_id = {_quote(market_id)}" if market_id else ""
    conn.execute(f"COPY (SELECT * FROM trade_log {where} ORDER BY id) TO {_quote(str(path))} (FORMAT PARQUET)")
    return conn.execute(f"SELECT COUNT(*) FROM trade_log {where}").fetchone()[0]
