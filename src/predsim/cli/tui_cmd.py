"""TUI dashboard command."""

import typer

from predsim.tui.app import run_tui

app = typer.Typer(
    help="Launch TUI dashboard: live prices and wallet. Keys: c connect, d disconnect, "
    "b buy $10 YES, s sell YES, w watch, q quit."
)


@app.callback(invoke_without_command=True)
def tui(ctx: typer.Context) -> None:
    """Run the dashboard with the price simulator on. Keys: c connect, d disconnect, b buy $10 YES, s sell YES, w watch, q quit."""
    if ctx.invoked_subcommand is not None:
        return
    run_tui(ctx.obj["settings"])
