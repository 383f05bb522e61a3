"""Sim subcommand: run the price simulator."""

from __future__ import annotations

import asyncio
import time

import typer

from predsim.exchange import Exchange

app = typer.Typer(help="Price simulation")


@app.command("run")
def run_sim(
    ctx: typer.Context,
    ticks: int = typer.Option(10, "--ticks", "-n", help="Number of ticks to run"),
    interval: float | None = typer.Option(
        None, "--interval", "-i", help="Seconds between ticks (default: config simulator.interval_sec; 0 = no wait)"
    ),
) -> None:
    """Run N simulator ticks and print price moves. State is saved on exit."""
    settings = ctx.obj["settings"]
    wait = settings.simulator_interval_sec if interval is None else interval
    exchange = Exchange.open(settings)
    try:
        before = {m.market_id: m.outcomes[0].price for m in exchange.list_markets()}
        for i in range(ticks):
            if i and wait > 0:
                time.sleep(wait)
            changed = exchange.tick()
            for market_id in changed:
                m = exchange.get_market(market_id)
                if m is not None:
                    typer.echo(f"tick {i + 1:>3}  {market_id:<10} {m.outcomes[0].price:.4f}  vol ${m.volume:,.0f}")
        typer.echo("Net moves:")
        for m in exchange.list_markets():
            start = before.get(m.market_id, m.outcomes[0].price)
            typer.echo(f"  {m.market_id:<10} {start:.4f} -> {m.outcomes[0].price:.4f}")
    finally:
        exchange.close()


@app.command("live")
def live(
    ctx: typer.Context,
    seconds: float = typer.Option(30.0, "--seconds", "-s", help="How long to run"),
) -> None:
    """Run the background simulator on its timer and print each change notification."""
    settings = ctx.obj["settings"]
    exchange = Exchange.open(settings)

    async def _run() -> None:
        def on_change() -> None:
            prices = "  ".join(f"{m.market_id}:{m.outcomes[0].price:.3f}" for m in exchange.list_markets())
            typer.echo(prices)

        unsubscribe = exchange.subscribe(on_change)
        try:
            await asyncio.sleep(seconds)
        finally:
            unsubscribe()
            await exchange.simulator.aclose()

    try:
        typer.echo(f"Simulating for {seconds:.0f}s (Ctrl+C to stop)...")
        asyncio.run(_run())
    except KeyboardInterrupt:
        typer.echo("Interrupted.")
    finally:
        exchange.close()
    typer.echo("Stopped.")
