from __future__ import annotations

from typing import List

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from busgen import __version__
from busgen.app import GenerateApp
from busgen.config import BusgenSettings
from busgen.core.errors import BusgenError
from busgen.core.logging import configure_logging

app = typer.Typer(
    no_args_is_help=True,
    help="A generator for in-process event buses with type-safe wrappers.",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo("busgen %s" % __version__)
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    log_level: str = typer.Option(
        None, "--log-level", help="Log level: debug, info, warning, error (default: BUSGEN_LOG_LEVEL or info)"
    ),
    no_color: bool = typer.Option(False, "--no-color", help="Disable coloured output (also: NO_COLOR)"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
) -> None:
    overrides = {}
    if log_level:
        overrides["log_level"] = log_level
    if no_color:
        overrides["no_color"] = True
    try:
        settings = BusgenSettings(**overrides)
    except ValidationError as e:
        raise typer.BadParameter(e.errors()[0]["msg"], param_hint="--log-level") from e

    configure_logging(settings.log_level, no_color=settings.no_color)
    ctx.obj = settings


@app.command()
def generate(
    ctx: typer.Context,
    package: List[str] = typer.Option(
        None, "--package", "-p", help="Target as <dirpath>.<VarName> (repeatable, default: .Events)"
    ),
    output: str = typer.Option(
        None, "--output", "-o", help="Output file path (only valid with a single --package target)"
    ),
    keep_going: bool = typer.Option(
        False, "--keep-going", help="Attempt every target even if an earlier one fails"
    ),
) -> None:
    """Generate a type-safe event bus from a dict declaration."""
    settings: BusgenSettings = ctx.obj

    try:
        results = GenerateApp(settings, output=output, keep_going=keep_going).run(package or [])
    except BusgenError as e:
        _print_error(str(e), no_color=settings.no_color)
        raise typer.Exit(code=1)

    failed = [r for r in results if not r.ok]
    for r in failed:
        _print_error(str(r.error), no_color=settings.no_color)
    if failed:
        raise typer.Exit(code=1)


def _print_error(message: str, *, no_color: bool) -> None:
    console = Console(stderr=True, no_color=no_color)
    console.print(
        Panel(Text(message), title="Error", title_align="left", border_style="red", expand=False),
        highlight=False,
    )


if __name__ == "__main__":
    app()
