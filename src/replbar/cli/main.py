"""CLI entry point for replbar.

Previews and publishes status lines for synthetic connections, which is
handy when tuning colors and mnemonics against a running polybar.
"""

import asyncio
import json
from typing import List, NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape

from .. import __version__
from ..core.config import Config, ConfigError, ConfigManager
from ..publish import close_sink, sink_from_config
from ..runtime.logging import bootstrap_logging
from ..status import Connection, StatusLine
from ..status.errors import PublishError
from ..util.error import describe_error

app = typer.Typer(
    name="replbar",
    help="replbar - connection busy/idle status for polybar",
    no_args_is_help=True,
    add_completion=False,
)

console = Console(stderr=True)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"replbar {__version__}")
        raise typer.Exit()


def _fail(error: Exception) -> NoReturn:
    console.print(f"[red]Error:[/red] {escape(describe_error(error))}")
    raise typer.Exit(1)


def _load_config() -> Config:
    try:
        return asyncio.run(ConfigManager.get())
    except ConfigError as e:
        _fail(e)


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level (debug, info, warn, error)",
    ),
    print_logs: bool = typer.Option(
        False,
        "--print-logs",
        help="Print logs to stderr",
    ),
):
    """replbar - connection busy/idle status for polybar."""
    # Commands reuse this manager, so the config is read once per process
    ConfigManager.current()
    config = _load_config()
    try:
        bootstrap_logging(config, level=log_level, console=True if print_logs else None)
    except ValueError as e:
        _fail(e)


def _build(names: List[str], busy: List[str], current: Optional[str], config: Config) -> StatusLine:
    connections = [Connection(key=index, name=name) for index, name in enumerate(names)]
    status = StatusLine(lambda: connections, config=config.status)

    unknown = sorted({*busy, *([current] if current else [])} - set(names))
    if unknown:
        _fail(ValueError(f"unknown connection(s): {', '.join(unknown)}"))

    for connection in connections:
        if connection.name in busy:
            status.registry.set_busy(connection)
    if current:
        status.registry.set_current(next(c for c in connections if c.name == current))
    return status


@app.command()
def preview(
    names: List[str] = typer.Argument(..., help="Connection names, in display order"),
    busy: Optional[List[str]] = typer.Option(None, "--busy", "-b", help="Mark a connection busy"),
    current: Optional[str] = typer.Option(None, "--current", "-c", help="Connection of the active context"),
):
    """Print the status line for the given connections."""
    config = _load_config()
    status = _build(names, busy or [], current, config)
    typer.echo(status.status_string())


@app.command()
def publish(
    names: List[str] = typer.Argument(..., help="Connection names, in display order"),
    busy: Optional[List[str]] = typer.Option(None, "--busy", "-b", help="Mark a connection busy"),
    current: Optional[str] = typer.Option(None, "--current", "-c", help="Connection of the active context"),
):
    """Send the status line for the given connections to the configured sink."""
    config = _load_config()
    status = _build(names, busy or [], current, config)
    text = status.status_string()
    try:
        sink = sink_from_config(config.publish)
    except ValueError as e:
        _fail(e)
    try:
        sink(text)
    except PublishError as e:
        _fail(e)
    finally:
        close_sink(sink)
    typer.echo(text)


@app.command("config")
def config_command():
    """Show the merged configuration."""
    config = _load_config()
    payload = config.model_dump(mode="json", by_alias=True, exclude_none=True)
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))
    for source in ConfigManager.sources():
        console.print(f"[dim]source: {source}[/dim]")


if __name__ == "__main__":
    app()
