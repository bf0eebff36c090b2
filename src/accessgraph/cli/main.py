"""
accessgraph CLI - Main entry point.

This module registers all CLI commands. Each command is implemented
in its own module under cli/commands/.
"""

import logging
from pathlib import Path

import click

from ..config import load_settings
from .commands import pages, user, users


@click.group()
@click.version_option(package_name="accessgraph")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Config file (default: .accessgraph/config.yaml)",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_path: str | None):
    """accessgraph: Access Graph Visualization Engine.

    Explore who can reach which UI pages, actions and endpoints through
    the Access Directory Service's role and policy model.

    \b
    Quick Start:
      accessgraph users
      accessgraph pages --search users
      accessgraph pages --select 12 --direction LR
      accessgraph user 7 --expand role-7-0
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(message)s",
        datefmt="[%X]",
    )
    ctx.ensure_object(dict)
    ctx.obj["settings"] = load_settings(Path(config_path) if config_path else None)


# Register commands
main.add_command(users.users)
main.add_command(pages.pages)
main.add_command(user.user)

if __name__ == "__main__":
    main()
