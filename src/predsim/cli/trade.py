"""Trade subcommand: buy, sell."""

from __future__ import annotations

import typer

from predsim.errors import TradeError
from predsim.exchange import Exchange
from predsim.trading import TradeReceipt

app = typer.Typer(help="Buy and sell outcome shares")


def _echo_receipt(receipt: TradeReceipt) -> None:
    verb = "Bought" if receipt.side == "BUY" else "Sold"
    typer.echo(
        f"{verb} {receipt.shares:.4f} {receipt.outcome_id} shares of {receipt.market_id} "
        f"@ {receipt.price:.4f} (${receipt.amount:,.2f})"
    )
    typer.echo(f"Price now {receipt.new_price:.4f}  Balance ${receipt.balance:,.2f}")
    if receipt.position is None:
        typer.echo("Position closed.")
    else:
        p = receipt.position
        typer.echo(f"Position: {p.shares:.4f} shares @ avg {p.avg_price:.4f}")


@app.command("buy")
def buy(
    ctx: typer.Context,
    market_id: str = typer.Argument(..., help="Market ID"),
    outcome: str = typer.Argument(..., help="Outcome ID (YES or NO)"),
    amount: float = typer.Argument(..., help="Amount in USD"),
) -> None:
    """Buy outcome shares for a USD amount. Moves the price up slightly."""
    exchange = Exchange.open(ctx.obj["settings"])
    try:
        _echo_receipt(exchange.buy(market_id, outcome.upper(), amount))
    except TradeError as e:
        typer.echo(f"Trade rejected ({e.code}): {e}")
        raise typer.Exit(1)
    finally:
        exchange.close()


@app.command("sell")
def sell(
    ctx: typer.Context,
    market_id: str = typer.Argument(..., help="Market ID"),
    outcome: str = typer.Argument(..., help="Outcome ID (YES or NO)"),
    percent: float = typer.Option(1.0, "--percent", "-p", help="Fraction of the position to sell, (0, 1]"),
) -> None:
    """Sell a fraction of a position at the current price."""
    exchange = Exchange.open(ctx.obj["settings"])
    try:
        _echo_receipt(exchange.sell(market_id, outcome.upper(), percent))
    except TradeError as e:
        typer.echo(f"Trade rejected ({e.code}): {e}")
        raise typer.Exit(1)
    finally:
        exchange.close()
