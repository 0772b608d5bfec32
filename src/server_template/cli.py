"""Command-line entry point for the server template."""

from __future__ import annotations

import sys
from typing import Annotated

import httpx
import typer
from rich.console import Console

from server_template import __version__
from server_template.config import settings

app = typer.Typer(
    name="server-template",
    help="Server Template CLI - run the HTTP server and probe its health",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()

LIVENESS_PATH = "/health/live"
HEALTHCHECK_TIMEOUT = 2.0


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Server Template version: {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    Server Template CLI.

    Use 'server-template COMMAND --help' for help with specific commands.
    """


@app.command()
def serve() -> None:
    """Start the server and wait for its readiness probe to pass."""
    from server_template.main import serve as run

    run()


@app.command()
def healthcheck(
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Port of the local listener (defaults to PORT)"),
    ] = None,
    host: Annotated[str, typer.Option("--host", help="Listener host")] = "localhost",
) -> None:
    """
    Container health check: exit 0 when the liveness endpoint answers 200.
    """
    url = f"http://{host}:{port or settings.PORT}{LIVENESS_PATH}"

    try:
        response = httpx.get(url, timeout=HEALTHCHECK_TIMEOUT)
    except httpx.TimeoutException:
        console.print("[red]Health check timeout[/red]")
        raise typer.Exit(1)
    except httpx.HTTPError as e:
        console.print(f"[red]Health check failed: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"Health check status: {response.status_code}")
    if response.status_code != 200:
        raise typer.Exit(1)


def cli_main() -> None:
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    cli_main()
