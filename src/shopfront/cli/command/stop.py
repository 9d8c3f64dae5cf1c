"""Stop command implementation"""

import os
import signal
import time

import click
from rich.console import Console

from ..util import (
    get_instance_path,
    is_initialized,
    is_running,
    get_pid_file,
    read_pid,
)

console = Console()

GRACEFUL_TIMEOUT_SECONDS = 10


def _process_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def _wait_for_exit(pid: int, timeout: float) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if not _process_alive(pid):
            return True
        time.sleep(0.2)
    return not _process_alive(pid)


@click.command(name="stop", help="Stop Shopfront backend server")
@click.argument(
    "path",
    type=click.Path(),
    required=False,
)
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Force kill if graceful shutdown fails",
)
def stop(path: str = None, force: bool = False):
    """Stop Shopfront backend server

    Sends SIGTERM, waits up to 10 seconds, then sends SIGKILL if
    ``--force`` was given.

    Args:
        path: Instance directory path (default: ~/.shopfront)
        force: Force kill if graceful shutdown fails
    """
    # Get instance path
    instance_path = get_instance_path(path)

    # Check if initialized
    if not is_initialized(instance_path):
        console.print(
            f"[red]Error: Not initialized at {instance_path}[/red]"
        )
        raise click.Abort()

    # Check if running
    if not is_running(instance_path):
        console.print(f"[yellow]Instance not running at {instance_path}[/yellow]")
        return

    pid_file = get_pid_file(instance_path)
    pid = read_pid(instance_path)
    if pid is None or not _process_alive(pid):
        console.print("[yellow]Removing stale PID file[/yellow]")
        pid_file.unlink(missing_ok=True)
        return

    console.print(f"Stopping Shopfront (PID {pid})...")
    os.kill(pid, signal.SIGTERM)

    if not _wait_for_exit(pid, GRACEFUL_TIMEOUT_SECONDS):
        if not force:
            console.print(
                f"[red]Error: Process {pid} did not exit within {GRACEFUL_TIMEOUT_SECONDS}s[/red]"
            )
            console.print("[yellow]Retry with --force to kill it[/yellow]")
            raise click.Abort()
        console.print(f"[yellow]Force killing process {pid}[/yellow]")
        os.kill(pid, signal.SIGKILL)
        _wait_for_exit(pid, GRACEFUL_TIMEOUT_SECONDS)

    pid_file.unlink(missing_ok=True)
    console.print("[green]✓ Shopfront stopped[/green]")
