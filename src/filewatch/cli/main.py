"""Command-line interface for filewatch."""
import signal
import sys
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Optional
import logging

import typer
from rich.console import Console
from rich.markup import escape

from filewatch import __version__
from filewatch.config import Config, set_config
from filewatch.core import ChangeDetector
from filewatch.errors import ConfigurationError, FileWatchError
from filewatch.watcher import FileWatcher


app = typer.Typer(
    name="filewatch",
    help="Watch a file and make backups whenever a change is detected.",
)
console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False, level: str = "INFO", quiet: bool = False):
    """
    Configure logging.

    Unless quiet, per-change lines stay visible even when the configured
    level is above INFO; only --quiet hides them.
    """
    root_level = logging.DEBUG if verbose else getattr(logging, level, logging.INFO)
    logging.basicConfig(
        level=root_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    change_logger = logging.getLogger(ChangeDetector.__module__)
    change_logger.setLevel(logging.NOTSET if quiet else min(root_level, logging.INFO))


def _version_callback(value: bool):
    if value:
        console.print(f"filewatch {__version__}")
        raise typer.Exit()


def _watch_stdin(stop_event: threading.Event) -> threading.Thread:
    """Set stop_event once a line, or end of input, arrives on stdin."""
    def wait_for_line():
        try:
            sys.stdin.readline()
        except (OSError, ValueError):
            pass
        stop_event.set()

    thread = threading.Thread(target=wait_for_line, name="StdinWatcher", daemon=True)
    thread.start()
    return thread


@contextmanager
def _stop_on_signals(stop_event: threading.Event):
    """Route SIGINT/SIGTERM to stop_event while the watcher runs."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def handler(signum, frame):
        stop_event.set()

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, handler)
    try:
        yield
    finally:
        for signum, old in previous.items():
            signal.signal(signum, old)


@app.command()
def watch(
    path: Path = typer.Argument(..., help="The file to watch"),
    interval: Optional[int] = typer.Option(
        None, "--interval", "-i", min=1,
        help="Polling interval for file change checks, in milliseconds [default: 5000]",
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Be silent under normal operation"),
    starting_backup: bool = typer.Option(
        False, "--starting-backup", "-s", help="Make a backup of the file on startup"
    ),
    stdin: Optional[bool] = typer.Option(
        None, "--stdin/--no-stdin", help="Stop when a line or end of input arrives on stdin [default: stdin]"
    ),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
):
    """
    Watch a file and make a timestamped backup whenever its content changes.

    Backups are written next to the file as <file>.<YYYYMMDDHHMMSSmmm>.bak.
    Press Enter or Ctrl+C to stop.
    """
    try:
        cfg = Config.load(config_path).with_overrides(
            interval_ms=interval,
            quiet=quiet or None,
            starting_backup=starting_backup or None,
            read_stdin=stdin,
        )
    except ConfigurationError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(2)

    set_config(cfg)
    setup_logging(verbose, cfg.general.log_level, cfg.watch.quiet)

    stop_event = threading.Event()
    watcher = FileWatcher(path, config=cfg)

    try:
        watcher.start()
    except FileWatchError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if not cfg.watch.quiet:
        console.print(f"[bold]Watching {escape(str(path))}[/bold] every {cfg.watch.interval_ms}ms")
        if cfg.watch.read_stdin:
            console.print("Press Enter or Ctrl+C to stop\n")
        else:
            console.print("Press Ctrl+C to stop\n")

    if cfg.watch.read_stdin:
        _watch_stdin(stop_event)

    try:
        with _stop_on_signals(stop_event):
            watcher.wait(stop_event)
    except FileWatchError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    finally:
        watcher.stop()

    if not cfg.watch.quiet:
        console.print("[green]Stopped.[/green]")


if __name__ == "__main__":
    app()
