"""blamelens CLI entrypoint.

Commands:
- blame: show the attribution for one line of a file
- annotate: show attributions for a range of lines
- session: drive the inline-blame plugin with scripted editor commands
- config: print the resolved configuration
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cli.tui import ConsoleHost, render_chunks, run_session
from core.lookup import BlameService
from core.plugin import build_plugin
from projections.annotation import to_chunks
from schemas.config import BlameConfig
from storage.blame_cache import BlameCache
from tools.config_loader import ConfigError, load_config
from tools.git import GitRunner

app = typer.Typer(add_completion=False, help="blamelens — inline git blame for the current line")
console = Console()


class _State:
    config_path: Optional[Path] = None


_state = _State()


def _stderr_logger(*_args: object) -> structlog.PrintLogger:
    # Resolve sys.stderr per logger so swapped streams (tests, pipes) are honoured
    return structlog.PrintLogger(file=sys.stderr)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=_stderr_logger,
    )


def _config() -> BlameConfig:
    try:
        return load_config(_state.config_path)
    except ConfigError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=2)


def _service(config: BlameConfig) -> BlameService:
    return BlameService(
        git=GitRunner(config.git_binary, timeout_s=config.timeout_s),
        cache=BlameCache(max_entries=config.max_entries),
        workers=config.workers,
    )


@app.callback()
def _main(
    config: Optional[Path] = typer.Option(None, "--config", help="YAML/JSON config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr"),
) -> None:
    _state.config_path = config
    _configure_logging(verbose)


@app.command()
def blame(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, resolve_path=True),
    line: int = typer.Argument(..., min=1),
    as_json: bool = typer.Option(False, "--json", help="Print the attribution as JSON"),
) -> None:
    """Show the attribution for LINE of PATH."""
    cfg = _config()
    service = _service(cfg)
    try:
        result = service.lookup(str(path), line)
    finally:
        service.close()
    if result is None:
        console.print(f"[yellow]No blame data for {escape(str(path))}:{line}[/yellow]")
        raise typer.Exit(code=1)
    if as_json:
        console.print_json(result.to_json())
        return
    console.print(render_chunks(to_chunks(result, cfg.highlights), cfg.highlights))


@app.command()
def annotate(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, resolve_path=True),
    start: int = typer.Option(1, "--start", min=1),
    end: Optional[int] = typer.Option(None, "--end", min=1, help="Last line (default: end of file)"),
) -> None:
    """Show attributions for a range of lines."""
    cfg = _config()
    total = len(path.read_text(encoding="utf-8", errors="replace").splitlines())
    last = min(end, total) if end is not None else total

    table = Table(title=f"Blame — {path.name}")
    table.add_column("Line", justify="right")
    table.add_column("Author")
    table.add_column("Date")
    table.add_column("Message")
    service = _service(cfg)
    try:
        for n in range(start, last + 1):
            result = service.lookup(str(path), n)
            if result is None:
                table.add_row(str(n), "", "", "")
                continue
            table.add_row(str(n), result.author, result.relative_date, result.message)
    finally:
        service.close()
    console.print(table)


@app.command()
def session(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, resolve_path=True),
    command: List[str] = typer.Option([], "--command", "-c", help="Scripted command (repeatable)"),
    script: Optional[Path] = typer.Option(None, "--script", exists=True, help="File with one command per line"),
) -> None:
    """Drive the inline-blame plugin with scripted editor commands."""
    cfg = _config()
    commands = list(command)
    if script is not None:
        commands.extend(script.read_text(encoding="utf-8").splitlines())

    host = ConsoleHost(file_path=str(path), console=console, highlights=cfg.highlights)
    plugin = build_plugin(host, cfg)
    try:
        unknown = run_session(plugin, host, commands)
    finally:
        plugin.service.close()
    for raw in unknown:
        console.print(f"[yellow]Ignored command: {escape(raw)}[/yellow]")


@app.command("config")
def show_config() -> None:
    """Print the resolved configuration as JSON."""
    console.print_json(_config().to_json())


def main() -> int:
    """Entry point for `python -m cli.main`."""
    app()
    return 0


if __name__ == "__main__":
    sys.exit(main())
