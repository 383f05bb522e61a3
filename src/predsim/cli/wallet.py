"""Wallet subcommand: connect, disconnect, status, notify."""

from __future__ import annotations

import asyncio

import typer

from predsim.errors import UnknownPreference
from predsim.exchange import Exchange

app = typer.Typer(help="Simulated wallet session and preferences")


@app.command("connect")
def connect(ctx: typer.Context) -> None:
    """Connect the simulated wallet (seeds the starting balance on first connect)."""
    exchange = Exchange.open(ctx.obj["settings"])
    try:
        typer.echo("Connecting wallet...")
        user = asyncio.run(exchange.connect())
        typer.echo(f"Connected: {user.address}  Balance: ${user.balance:,.2f}")
    finally:
        exchange.close()


@app.command("disconnect")
def disconnect(ctx: typer.Context) -> None:
    """Disconnect. Balance and positions are kept for the next session."""
    exchange = Exchange.open(ctx.obj["settings"])
    try:
        exchange.disconnect()
        typer.echo("Disconnected.")
    finally:
        exchange.close()


@app.command("status")
def status(ctx: typer.Context) -> None:
    """Show session address, balance, positions count and notification preferences."""
    exchange = Exchange.open(ctx.obj["settings"])
    try:
        user = exchange.get_user()
        typer.echo(f"Address: {user.address or '(disconnected)'}")
        typer.echo(f"Balance: ${user.balance:,.2f}")
        typer.echo(f"Positions: {len(user.positions)}")
        prefs = user.notification_preferences
        typer.echo(f"Notifications: market_alerts={prefs.market_alerts} price_changes={prefs.price_changes}")
    finally:
        exchange.close()


@app.command("notify")
def notify(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="market_alerts or price_changes"),
    enabled: bool = typer.Option(True, "--on/--off", help="Enable or disable"),
) -> None:
    """Toggle a notification preference."""
    exchange = Exchange.open(ctx.obj["settings"])
    try:
        prefs = exchange.set_notification_preference(key, enabled)
        typer.echo(f"market_alerts={prefs.market_alerts} price_changes={prefs.price_changes}")
    except UnknownPreference as e:
        typer.echo(str(e))
        raise typer.Exit(1)
    finally:
        exchange.close()
