"""Set-role command implementation"""

import click
from rich.console import Console

from ..util import get_instance_path, get_sync_engine, is_initialized

console = Console()


@click.command(name="set-role", help="Change the role of a user")
@click.argument("email")
@click.argument(
    "role",
    type=click.Choice(["user", "manager", "admin"], case_sensitive=False),
)
@click.argument(
    "path",
    type=click.Path(),
    required=False,
)
def set_role(email: str, role: str, path: str = None):
    """Promote or demote a user

    Managers and admins can only be created this way.

    Args:
        email: Email address of the user
        role: New role (user, manager, admin)
        path: Instance directory path (default: ~/.shopfront)
    """
    instance_path = get_instance_path(path)

    if not is_initialized(instance_path):
        console.print(
            f"[red]Error: Not initialized at {instance_path}[/red]"
        )
        raise click.Abort()

    from sqlmodel import Session, select

    from ...backend.config import load_settings
    from ...backend.enum import UserRole
    from ...backend.model import User

    settings = load_settings(instance_path)
    engine = get_sync_engine(settings.database_url(instance_path))
    try:
        with Session(engine) as session:
            user = session.exec(select(User).where(User.email == email.strip().lower())).first()
            if user is None:
                console.print(f"[red]Error: No user with email {email}[/red]")
                raise click.Abort()

            user.role = UserRole(role.lower())
            user.touch()
            session.add(user)
            session.commit()
            console.print(f"[green]✓ {user.username} is now {user.role.value}[/green]")
    finally:
        engine.dispose()
