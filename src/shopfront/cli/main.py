"""Shopfront CLI entry point"""

import click

from .command.init import init
from .command.start import start
from .command.stop import stop
from .command.set_role import set_role


@click.group(
    name="shopfront",
    help="Shopfront - product catalog and ordering service",
)
def main():
    """Main CLI entry point"""
    pass


# Register commands
main.add_command(init)
main.add_command(start)
main.add_command(stop)
main.add_command(set_role)


if __name__ == "__main__":
    main()
