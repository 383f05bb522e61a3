"""Markets subcommand: list, show, create."""

from __future__ import annotations

from datetime import date, datetime

import typer

from predsim.errors import InvalidMarketSpec
from predsim.exchange import Exchange
from predsim.models import Category

app = typer.Typer(help="Browse and create markets")


def _category(value: str | None) -> Category | None:
    if value is None:
        return None
    for c in Category:
        if c.value.lower() == value.lower() or c.name.lower() == value.lower():
            return c
    typer.echo(f"Unknown category: {value}. Choose from: {[c.value for c in Category]}")
    raise typer.Exit(1)


def _fmt_date(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M:%S")


@app.command("list")
def list_markets(
    ctx: typer.Context,
    tab: str = typer.Option("all", "--tab", help="all, watchlist, politics, sports, business"),
    category: str | None = typer.Option(None, "--category", "-c", help="Filter by category"),
    tag: str | None = typer.Option(None, "--tag", help="Question/category substring"),
    search: str | None = typer.Option(None, "--search", "-s", help="Search question, description, category"),
    sort_by: str = typer.Option("volume", "--sort", help="volume or newest"),
) -> None:
    """List markets with current YES price and volume."""
    exchange = Exchange.open(ctx.obj["settings"])
    try:
        try:
            rows = exchange.query_markets(
                tab=tab, category=_category(category), tag=tag, search=search, sort_by=sort_by
            )
        except ValueError as e:
            typer.echo(str(e))
            raise typer.Exit(1)
        bookmarks = exchange.bookmarks()
        for m in rows:
            star = "*" if m.market_id in bookmarks else " "
            yes = m.outcomes[0]
            typer.echo(
                f"{star} {m.market_id:<10} {yes.name[:8]:<8} {yes.price * 100:5.1f}%  "
                f"${m.volume:>14,.0f}  {m.category.value:<11}  {m.question[:60]}"
            )
        typer.echo(f"Total: {len(rows)} markets")
    finally:
        exchange.close()


@app.command("show")
def show(ctx: typer.Context, market_id: str = typer.Argument(..., help="Market ID")) -> None:
    """Show one market: outcomes, volume, recent history."""
    exchange = Exchange.open(ctx.obj["settings"])
    try:
        m = exchange.get_market(market_id)
        if m is None:
            typer.echo(f"Market not found: {market_id}")
            raise typer.Exit(1)
        typer.echo(m.question)
        typer.echo(f"  {m.description}")
        typer.echo(f"Category: {m.category.value}  Ends: {m.end_date.isoformat()}  Volume: ${m.volume:,.0f}")
        for o in m.outcomes:
            typer.echo(f"  {o.outcome_id:<4} {o.name:<10} {o.price * 100:5.1f}%")
        typer.echo(f"History ({len(m.history)} points, last 5):")
        for h in m.history[-5:]:
            typer.echo(f"  {_fmt_date(h.timestamp)}  {h.price:.4f}")
    finally:
        exchange.close()


@app.command("create")
def create(
    ctx: typer.Context,
    question: str = typer.Option(..., "--question", "-q", help="Market question"),
    description: str = typer.Option(..., "--description", "-d", help="Resolution criteria"),
    category: str = typer.Option(..., "--category", "-c", help="Crypto, Politics, Sports, Business, Pop Culture"),
    end_date: str = typer.Option(..., "--end-date", "-e", help="End date (YYYY-MM-DD)"),
    image: str | None = typer.Option(None, "--image", help="Image URL"),
) -> None:
    """Create a new 50/50 market."""
    try:
        end = date.fromisoformat(end_date)
    except ValueError:
        typer.echo(f"Invalid end date: {end_date} (expected YYYY-MM-DD)")
        raise typer.Exit(1)
    exchange = Exchange.open(ctx.obj["settings"])
    try:
        market_id = exchange.create_market(
            {
                "question": question,
                "description": description,
                "category": _category(category),
                "end_date": end,
                "image": image,
            }
        )
        typer.echo(f"Created market {market_id}")
    except InvalidMarketSpec as e:
        typer.echo(f"Invalid market: {e}")
        raise typer.Exit(1)
    finally:
        exchange.close()
