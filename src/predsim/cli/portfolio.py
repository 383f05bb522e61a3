"""Portfolio command."""

import typer

from predsim.exchange import Exchange

app = typer.Typer(help="Show portfolio value and PnL")


@app.callback(invoke_without_command=True)
def portfolio(ctx: typer.Context) -> None:
    """Positions marked to current prices, with totals."""
    if ctx.invoked_subcommand is not None:
        return
    exchange = Exchange.open(ctx.obj["settings"])
    try:
        summary = exchange.portfolio()
        typer.echo(f"Cash: ${summary.cash:,.2f}  Positions: ${summary.portfolio_value:,.2f}  Net worth: ${summary.net_worth:,.2f}")
        typer.echo(f"Invested: ${summary.invested:,.2f}  PnL: {summary.total_pnl:+,.2f} ({summary.pnl_pct:+.2f}%)")
        for line in summary.lines:
            typer.echo(
                f"  {line.market_id:<10} {line.outcome_name[:8]:<8} {line.shares:>10.2f} @ {line.avg_price:.3f} "
                f"-> {line.price:.3f}  value ${line.current_value:,.2f}  {line.pnl:+,.2f} ({line.pnl_pct:+.1f}%)"
                f"  {line.question[:40]}"
            )
        if not summary.lines:
            typer.echo("No positions.")
    finally:
        exchange.close()
