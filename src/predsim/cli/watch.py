"""Watch subcommand: toggle, list."""

from __future__ import annotations

import typer

from predsim.exchange import Exchange

app = typer.Typer(help="Bookmarked markets (watchlist)")


@app.command("toggle")
def toggle(ctx: typer.Context, market_id: str = typer.Argument(..., help="Market ID")) -> None:
    """Add or remove a market from the watchlist."""
    exchange = Exchange.open(ctx.obj["settings"])
    try:
        added = exchange.toggle_bookmark(market_id)
        typer.echo(f"{'Added' if added else 'Removed'} {market_id}")
    finally:
        exchange.close()


@app.command("list")
def list_watch(ctx: typer.Context) -> None:
    """List bookmarked markets."""
    exchange = Exchange.open(ctx.obj["settings"])
    try:
        rows = exchange.query_markets(tab="watchlist")
        for m in rows:
            typer.echo(f"  {m.market_id:<10} {m.outcomes[0].price * 100:5.1f}%  {m.question[:60]}")
        typer.echo(f"Total: {len(rows)} bookmarked")
    finally:
        exchange.close()
