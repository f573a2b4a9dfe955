"""Quill CLI — Typer entry point for running the API."""

from __future__ import annotations

import logging

import typer
import uvicorn

app = typer.Typer(name="quill", help="Quill blog backend.")

_LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


@app.callback()
def main() -> None:
    """Quill blog backend."""


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", "-h", help="Bind address."),
    port: int = typer.Option(8000, "--port", "-p", help="Port number."),
    log_level: str = typer.Option("info", "--log-level", "-l", help="Logging level."),
    reload: bool = typer.Option(False, "--reload/--no-reload", help="Enable auto-reload for development."),
) -> None:
    """Start the Quill API with uvicorn.

    Settings come from ``QUILL_*`` environment variables and auth from
    ``.quill/auth.json``.

    Examples:

        quill serve

        quill serve --host 0.0.0.0 --port 9000 --log-level debug
    """
    level = log_level.lower()
    if level not in _LOG_LEVELS:
        typer.echo(f"Invalid log level '{log_level}'. Choose from: {', '.join(_LOG_LEVELS)}", err=True)
        raise typer.Exit(code=1)

    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    typer.echo(f"Starting Quill API at http://{host}:{port} ...")
    uvicorn.run("quill_api:create_app", factory=True, host=host, port=port, log_level=level, reload=reload)
