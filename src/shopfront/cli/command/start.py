"""Start command implementation"""

import os

import click
from pydantic import ValidationError
from rich.console import Console

from ..util import (
    get_instance_path,
    is_initialized,
    is_running,
    get_pid_file,
)

console = Console()


@click.command(name="start", help="Start Shopfront backend server")
@click.argument(
    "path",
    type=click.Path(),
    required=False,
)
def start(path: str = None):
    """Start Shopfront backend server

    Args:
        path: Instance directory path (default: ~/.shopfront)
    """
    # Get instance path
    instance_path = get_instance_path(path)

    # Check if initialized
    if not is_initialized(instance_path):
        console.print(
            f"[red]Error: Not initialized at {instance_path}[/red]"
        )
        console.print(
            f"[yellow]Run: shopfront init {path if path else ''}[/yellow]"
        )
        raise click.Abort()

    # Check if already running
    if is_running(instance_path):
        console.print("[red]Error: Instance already running[/red]")
        console.print(f"[yellow]Location: {instance_path}[/yellow]")
        raise click.Abort()

    # Load configuration
    from ...backend.config import load_settings

    try:
        settings = load_settings(instance_path)
    except (ValidationError, OSError, ValueError) as e:
        console.print(f"[red]Error loading config: {e}[/red]")
        raise click.Abort()

    host = settings.server.host
    port = settings.server.port

    # Display startup info
    console.print(f"[cyan]Starting Shopfront from {instance_path}[/cyan]")
    console.print(f"[cyan]Server: http://{host}:{port}[/cyan]")
    console.print(f"[cyan]Docs: http://{host}:{port}/docs[/cyan]")
    console.print("")

    # Start server in foreground
    import uvicorn
    from ...backend.app import create_app

    app = create_app(instance_path, settings)

    # Save PID (current process)
    pid_file = get_pid_file(instance_path)
    pid_file.write_text(str(os.getpid()))

    try:
        uvicorn.run(
            app,
            host=host,
            port=port,
        )
    finally:
        # Clean up PID file when server stops
        pid_file.unlink(missing_ok=True)
