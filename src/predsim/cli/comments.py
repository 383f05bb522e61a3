"""Comments subcommand: list, add."""

from __future__ import annotations

import typer

from predsim.errors import InvalidComment
from predsim.exchange import Exchange

app = typer.Typer(help="Per-market comments")


@app.command("list")
def list_comments(ctx: typer.Context, market_id: str = typer.Argument(..., help="Market ID")) -> None:
    exchange = Exchange.open(ctx.obj["settings"])
    try:
        for c in exchange.get_comments(market_id):
            typer.echo(f"[{c.timestamp}] {c.author}: {c.text}")
    finally:
        exchange.close()


@app.command("add")
def add(
    ctx: typer.Context,
    market_id: str = typer.Argument(..., help="Market ID"),
    text: str = typer.Argument(..., help="Comment text"),
) -> None:
    exchange = Exchange.open(ctx.obj["settings"])
    try:
        c = exchange.add_comment(market_id, text)
        typer.echo(f"[{c.timestamp}] {c.author}: {c.text}")
    except InvalidComment as e:
        typer.echo(str(e))
        raise typer.Exit(1)
    finally:
        exchange.close()
