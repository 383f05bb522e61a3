"""Log subcommand: export, stats."""

from __future__ import annotations

import duckdb
import typer

from predsim.storage.db import get_connection, init_schema
from predsim.storage.export import export_trades_to_parquet
from predsim.storage.trade_log import trade_stats

app = typer.Typer(help="Trade log export and statistics")


def _open(db_path: str) -> duckdb.DuckDBPyConnection:
    try:
        conn = get_connection(db_path)
        init_schema(conn)
    except duckdb.Error as e:
        typer.echo(f"Cannot open trade log at {db_path}: {e}")
        raise typer.Exit(1)
    return conn


@app.command("export")
def export(
    ctx: typer.Context,
    market: str | None = typer.Option(None, "--market", "-m", help="Filter by market ID"),
    output: str = typer.Option("trades.parquet", "--output", "-o", help="Output path"),
) -> None:
    """Export committed trades to Parquet."""
    settings = ctx.obj["settings"]
    conn = _open(settings.db_path)
    try:
        count = export_trades_to_parquet(conn, output, market_id=market)
        typer.echo(f"Exported {count} trades to {output}")
    finally:
        conn.close()


@app.command("stats")
def stats(ctx: typer.Context) -> None:
    """Show trade log statistics (counts, notional, by market)."""
    settings = ctx.obj["settings"]
    conn = _open(settings.db_path)
    try:
        s = trade_stats(conn)
        typer.echo(f"Total trades: {s['total_trades']}")
        typer.echo(f"Buy notional: ${s['buy_notional']:,.2f}  Sell notional: ${s['sell_notional']:,.2f}")
        typer.echo(f"Time range: {s.get('min_ts')} - {s.get('max_ts')} (ms)")
        if s.get("by_market"):
            typer.echo("By market (top 20):")
            for row in s["by_market"]:
                typer.echo(f"  {row['market_id']:<10} {row['count']:>5}  ${row['notional']:,.2f}")
    finally:
        conn.close()
