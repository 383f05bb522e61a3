"""Sentiment command: AI sentiment score and analysis for a market."""

from __future__ import annotations

import asyncio

import typer

from predsim.exchange import Exchange


def sentiment(
    ctx: typer.Context,
    market_id: str = typer.Argument(..., help="Market ID"),
    analysis: bool = typer.Option(False, "--analysis", help="Also print the free-text analysis"),
) -> None:
    """AI sentiment score for a market (falls back when no provider is configured)."""
    exchange = Exchange.open(ctx.obj["settings"])
    try:
        result = asyncio.run(exchange.market_sentiment(market_id))
        if result is None:
            typer.echo(f"Market not found: {market_id}")
            raise typer.Exit(1)
        typer.echo(f"Score: {result.score}/100  ({result.source})")
        typer.echo(result.summary)
        typer.echo("Bullish: " + "; ".join(result.bullish_factors))
        typer.echo("Bearish: " + "; ".join(result.bearish_factors))
        if analysis:
            typer.echo("")
            typer.echo(asyncio.run(exchange.market_analysis(market_id)) or "")
    finally:
        exchange.close()
