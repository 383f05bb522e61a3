"""Root CLI app - entry point and command registration."""

from pathlib import Path

import typer

from predsim.config import get_settings
from predsim.config.settings import configure_logging

app = typer.Typer(
    name="predsim",
    help="PredSim - Simulated prediction market trading: markets, wallet, trades, portfolio.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Path | None = typer.Option(
        None, "--config-dir", "-C", help="Config directory (default: ./config or package config)"
    ),
    profile: str | None = typer.Option(
        None, "--profile", "-p", help="Config profile (e.g. dev) to overlay on default.toml"
    ),
) -> None:
    """Configure logging and store options in context."""
    settings = get_settings(profile, config_dir)
    configure_logging(settings)
    ctx.obj = {"settings": settings, "config_dir": config_dir, "profile": profile}


# Subcommands registered from other modules
from predsim.cli import (  # noqa: E402
    api_cmd,
    comments,
    log,
    markets,
    portfolio,
    sentiment_cmd,
    sim,
    trade,
    tui_cmd,
    wallet,
    watch,
)

app.add_typer(markets.app, name="markets")
app.add_typer(wallet.app, name="wallet")
app.add_typer(trade.app, name="trade")
app.add_typer(portfolio.app, name="portfolio")
app.add_typer(watch.app, name="watch")
app.add_typer(comments.app, name="comments")
app.command("sentiment")(sentiment_cmd.sentiment)
app.add_typer(sim.app, name="sim")
app.add_typer(log.app, name="log")
app.add_typer(api_cmd.app, name="api")
app.add_typer(tui_cmd.app, name="tui")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
