"""CLI utility functions"""

import json
from pathlib import Path

from sqlalchemy import Engine
from sqlmodel import create_engine

FLAG_FILE = ".shopfront_instance"


def get_instance_path(path: str | None = None) -> Path:
    """Get instance path, default to ~/.shopfront

    Args:
        path: Custom path (relative or absolute), None for default

    Returns:
        Resolved absolute path
    """
    if path is None:
        return Path.home() / ".shopfront"
    return Path(path).resolve()


def is_initialized(instance_path: Path) -> bool:
    """Check if instance is initialized

    Args:
        instance_path: Instance directory path

    Returns:
        True if .shopfront_instance exists
    """
    return (instance_path / FLAG_FILE).exists()


def get_instance_info(instance_path: Path) -> dict:
    """Get instance metadata

    Raises:
        FileNotFoundError: If not initialized
    """
    flag_file = instance_path / FLAG_FILE
    if not flag_file.exists():
        raise FileNotFoundError(
            f"Instance not initialized at {instance_path}"
        )

    with open(flag_file, "r") as f:
        return json.load(f)


def get_sync_engine(database_url: str) -> Engine:
    """Create a blocking engine for CLI maintenance tasks

    Args:
        database_url: Async database URL from settings

    Returns:
        Engine using the synchronous driver of the same database
    """
    return create_engine(database_url.replace("+aiosqlite", ""), echo=False)


def get_pid_file(instance_path: Path) -> Path:
    """Get PID file path"""
    return instance_path / ".shopfront.pid"


def read_pid(instance_path: Path) -> int | None:
    """Read the server PID, None if absent or unreadable"""
    pid_file = get_pid_file(instance_path)
    try:
        return int(pid_file.read_text().strip())
    except (FileNotFoundError, ValueError):
        return None


def is_running(instance_path: Path) -> bool:
    """Check if instance is running by checking PID file existence

    Args:
        instance_path: Instance directory path

    Returns:
        True if PID file exists, False otherwise
    """
    return get_pid_file(instance_path).exists()
