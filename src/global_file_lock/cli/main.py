"""CLI entry point for global-file-lock.

Invoked as::

    global-file-lock [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m global_file_lock.cli.main

Commands
--------
- version      — Show version information
- show-config  — Print the effective lock configuration
- run          — Run a command while holding a lock
- claim        — Make a single claim attempt
- release      — Remove a lock file
- status       — Show whether a lock file is held
"""
from __future__ import annotations

import logging
import subprocess
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from global_file_lock.config import LockConfig

console = Console()

# Exit status for "lock not acquired in time" (sysexits.h EX_TEMPFAIL).
EXIT_LOCK_TIMEOUT = 75


# ---------------------------------------------------------------------------
# Configuration factory
# ---------------------------------------------------------------------------


def _make_config(
    config_path: str | None,
    initial_delay: float | None,
    restart_delay: float | None,
    delay_cap: float | None,
    max_over_cap_retries: int | None,
    time_unit: float | None,
) -> LockConfig:
    """Build the ``LockConfig`` for this invocation.

    Values given on the command line override the YAML file; anything left
    unset keeps its default.

    Returns
    -------
    LockConfig
        The validated configuration.
    """
    from global_file_lock.config import LockConfig

    overrides = {
        "initial_delay": initial_delay,
        "restart_delay": restart_delay,
        "delay_cap": delay_cap,
        "max_over_cap_retries": max_over_cap_retries,
        "time_unit": time_unit,
    }
    try:
        if config_path:
            return LockConfig.from_yaml(config_path, **overrides)
        return LockConfig.from_mapping(None, **overrides)
    except (ValidationError, ValueError, OSError) as exc:
        console.print(f"[red]Invalid lock configuration:[/red] {exc}")
        sys.exit(2)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="global-file-lock")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file with lock settings.",
)
@click.option("--initial-delay", type=float, default=None, help="First retry delay (units).")
@click.option("--restart-delay", type=float, default=None, help="Delay after each over-cap round.")
@click.option("--delay-cap", type=float, default=None, help="Delay at which a round ends.")
@click.option(
    "--max-over-cap-retries",
    type=int,
    default=None,
    help="Over-cap rounds before giving up.",
)
@click.option("--time-unit", type=float, default=None, help="Seconds per delay unit.")
@click.option("--verbose", "-v", is_flag=True, help="Log lock activity to stderr.")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: str | None,
    initial_delay: float | None,
    restart_delay: float | None,
    delay_cap: float | None,
    max_over_cap_retries: int | None,
    time_unit: float | None,
    verbose: bool,
) -> None:
    """Cross-process mutual exclusion through lock files"""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj["config"] = _make_config(
        config_path,
        initial_delay,
        restart_delay,
        delay_cap,
        max_over_cap_retries,
        time_unit,
    )


# ---------------------------------------------------------------------------
# version / show-config
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show version information."""
    from global_file_lock import __version__

    console.print(f"[bold]global-file-lock[/bold] v{__version__}")


@cli.command(name="show-config")
@click.pass_context
def show_config(ctx: click.Context) -> None:
    """Print the effective configuration as JSON."""
    console.print_json(ctx.obj["config"].model_dump_json())


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


@cli.command(
    name="run",
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@click.argument("lock_path")
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_context
def run_command(ctx: click.Context, lock_path: str, command: tuple[str, ...]) -> None:
    """Run COMMAND while holding LOCK_PATH.

    Exits with the command's exit status, or 75 if the lock could not be
    acquired in time.
    """
    from global_file_lock.errors import LockReleaseError, LockTimeoutError
    from global_file_lock.lock import GlobalLock

    # With interspersed args off, click passes a leading "--" through.
    argv = list(command[1:] if command[0] == "--" else command)
    if not argv:
        raise click.UsageError("Missing COMMAND after '--'.")

    lock = GlobalLock(ctx.obj["config"])
    try:
        completed = lock.run_sync(lock_path, lambda: subprocess.run(argv, check=False))
    except LockTimeoutError as exc:
        console.print(f"[red]{exc}[/red]")
        sys.exit(EXIT_LOCK_TIMEOUT)
    except LockReleaseError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)
    except FileNotFoundError as exc:
        console.print(f"[red]Cannot run command:[/red] {exc}")
        sys.exit(127)
    sys.exit(completed.returncode)


# ---------------------------------------------------------------------------
# claim / release
# ---------------------------------------------------------------------------


@cli.command(name="claim")
@click.argument("lock_path")
def claim_command(lock_path: str) -> None:
    """Create LOCK_PATH once, without waiting.

    Exits 0 if the lock was created, 1 if it is already held.
    """
    from global_file_lock.claim import try_claim

    if try_claim(lock_path):
        console.print(f"[green]Claimed[/green] {lock_path}")
        return
    console.print(f"[yellow]Held elsewhere:[/yellow] {lock_path}")
    sys.exit(1)


@cli.command(name="release")
@click.argument("lock_path")
def release_command(lock_path: str) -> None:
    """Remove LOCK_PATH.  Exits 1 if it does not exist."""
    from global_file_lock.claim import release
    from global_file_lock.errors import LockReleaseError

    try:
        release(lock_path)
    except LockReleaseError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)
    console.print(f"[green]Released[/green] {lock_path}")


# ---------------------------------------------------------------------------
# status
# ---------------------------------------------------------------------------


@cli.command(name="status")
@click.argument("lock_path")
def status_command(lock_path: str) -> None:
    """Show whether LOCK_PATH is currently held."""
    path = Path(lock_path)

    table = Table(title="Lock status", show_lines=False)
    table.add_column("Lock file", style="cyan")
    table.add_column("State")
    table.add_column("Since")

    try:
        stat = path.stat()
    except FileNotFoundError:
        table.add_row(str(path), "[green]free[/green]", "-")
    except OSError as exc:
        console.print(f"[red]Cannot inspect lock file:[/red] {exc}")
        sys.exit(1)
    else:
        since = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
        table.add_row(str(path), "[red]held[/red]", since.strftime("%Y-%m-%d %H:%M:%S UTC"))

    console.print(table)


if __name__ == "__main__":
    cli()
