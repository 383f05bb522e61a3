"""API server command."""

import typer

from predsim.api.main import run_api

app = typer.Typer(help="Start the HTTP API server")


@app.callback(invoke_without_command=True)
def api(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host", help="Bind host"),
    port: int = typer.Option(8000, "--port", help="Bind port"),
    no_simulation: bool = typer.Option(False, "--no-simulation", help="Do not run the price simulator"),
) -> None:
    if ctx.invoked_subcommand is not None:
        return
    run_api(host=host, port=port, simulate=not no_simulation, profile=ctx.obj["profile"])


if __name__ == "__main__":
    app()
