"""Typer CLI entrypoint."""

from __future__ import annotations

import logging
import os

import typer

from amidiauto.core.errors import SequencerError
from amidiauto.core.service import AutoConnectService

VERSION = "1.0.0"
HOMEPAGE_URL = "https://blokas.io/"
USAGE = "Usage: amidiauto [-v | --version]\n\nRuns the ALSA MIDI auto-connect daemon when started without arguments."

app = typer.Typer(help="ALSA MIDI auto-connect daemon", add_completion=False)


def _version_text() -> str:
    return f"amidiauto version {VERSION}, {HOMEPAGE_URL}"


def _configure_logging() -> None:
    level = os.environ.get("AMIDIAUTO_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )


def _build_service() -> AutoConnectService:
    service = AutoConnectService()
    for warning in getattr(service, "load_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    for warning in getattr(service, "runtime_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return service


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", "-v", help="Print version and exit"),
) -> None:
    """Automatically connect MIDI ports as they appear."""
    if ctx.args:
        typer.echo(USAGE)
        typer.echo(_version_text())
        return
    if version:
        typer.echo(_version_text())
        return

    _configure_logging()
    try:
        service = _build_service()
        service.run()
    except SequencerError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=exc.code) from None
    except KeyboardInterrupt:
        typer.echo("Interrupted", err=True)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
