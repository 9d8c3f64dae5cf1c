"""Init command implementation"""

import json
import secrets
from datetime import datetime

import click
from rich.console import Console

from ..util import FLAG_FILE, get_instance_path, get_sync_engine, is_initialized

console = Console()

CONFIG_TEMPLATE = """public_url = "http://localhost:18888"

[server]
host = "0.0.0.0"
port = 18888

[cors]
allow_origins = ["http://localhost:3000", "http://localhost:3001"]
allow_credentials = true
allow_methods = ["*"]
allow_headers = ["*"]

[jwt]
access_secret = "{access_secret}"
refresh_secret = "{refresh_secret}"
algorithm = "HS256"
access_token_expire_minutes = 15
refresh_token_expire_days = 7
password_reset_expire_minutes = 60

[email]
# "console" logs outgoing mail instead of sending it
backend = "console"
smtp_host = "smtp.example.com"
smtp_port = 465
use_ssl = true
sender_email = "noreply@example.com"
sender_password = "your-auth-code-here"
sender_name = "Shopfront"
verification_token_expire_hours = 24

[security]
bcrypt_rounds = 12

[orders]
transaction_timeout_seconds = 10
"""


@click.command(name="init", help="Initialize a new Shopfront instance")
@click.argument(
    "path",
    type=click.Path(),
    required=False,
)
@click.option(
    "--no-seed",
    is_flag=True,
    help="Do not insert the sample catalog",
)
def init(path: str = None, no_seed: bool = False):
    """Initialize a new Shopfront instance

    Args:
        path: Instance directory path (default: ~/.shopfront)
        no_seed: Skip inserting the sample catalog
    """
    # Get instance path
    instance_path = get_instance_path(path)

    # Check if already initialized
    if is_initialized(instance_path):
        console.print(
            f"[red]Error: Already initialized at {instance_path}[/red]"
        )
        raise click.Abort()

    # Check if directory exists and is not empty
    if instance_path.exists() and any(instance_path.iterdir()):
        console.print(
            f"[red]Error: Directory is not empty: {instance_path}[/red]"
        )
        raise click.Abort()

    # 1. Create directory structure
    console.print(f"Initializing Shopfront instance at {instance_path}")
    console.print("")

    instance_path.mkdir(parents=True, exist_ok=True)
    (instance_path / "data").mkdir(exist_ok=True)
    (instance_path / "logs").mkdir(exist_ok=True)

    # 2. Generate config.toml with fresh signing secrets
    console.print("Generating configuration...")

    config_file = instance_path / "config.toml"
    config_file.write_text(CONFIG_TEMPLATE.format(
        access_secret=secrets.token_urlsafe(48),
        refresh_secret=secrets.token_urlsafe(48),
    ))

    # 3. Create .shopfront_instance flag file
    db_path = instance_path / "data" / "shopfront.db"
    flag_data = {
        "initialized_at": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        "instance_path": str(instance_path),
        "database_path": str(db_path),
    }
    with open(instance_path / FLAG_FILE, "w") as f:
        json.dump(flag_data, f, indent=2)

    # 4. Initialize database
    console.print("Initializing database...")

    from sqlmodel import SQLModel, Session

    from ...backend import model  # noqa: F401
    from ...backend.seed import seed_catalog

    engine = get_sync_engine(f"sqlite+aiosqlite:///{db_path}")
    try:
        SQLModel.metadata.create_all(engine)
        if not no_seed:
            with Session(engine) as session:
                count = seed_catalog(session)
            console.print(f"Inserted {count} sample products")
    finally:
        engine.dispose()

    # 5. Display success message
    console.print("")
    console.print("[green]✓ Shopfront instance initialized successfully![/green]")
    console.print("")
    console.print(f"Location: {instance_path}")
    console.print("")
    console.print("Next steps:")
    console.print("  1. (Optional) Edit configuration (SMTP settings, CORS origins):")
    console.print(f"     {config_file}")
    console.print("")
    console.print("  2. Start the backend server:")
    console.print(f"     shopfront start {path}" if path else "     shopfront start")
    console.print("")
    console.print(f"Database: {db_path}")
    console.print(f"Logs: {instance_path / 'logs'}/")
