"""
Users Command - List users known to the Access Directory.

Usage:
    accessgraph users
    accessgraph users --json
"""

import asyncio
import json
import sys

import click
from rich.table import Table

from ...controller import UserAccessController
from ...core.exceptions import SessionExpiredError
from ..utils import console, echo_error, make_client, report_failure


@click.command()
@click.option("-i", "--input", "input_file", type=click.Path(exists=True, dir_okay=False),
              help="Read a saved response instead of calling the service")
@click.option("--json", "json_mode", is_flag=True, help="Output users as JSON")
@click.pass_context
def users(ctx: click.Context, input_file: str | None, json_mode: bool):
    """
    List users available for access inspection.
    """
    settings = ctx.obj["settings"]
    controller = UserAccessController(make_client(settings, input_file))

    try:
        found = asyncio.run(controller.load_users())
    except SessionExpiredError as e:
        echo_error(e.message)
        sys.exit(1)

    if controller.state.is_failure:
        report_failure(controller.state, json_mode)

    if json_mode:
        click.echo(json.dumps({
            "meta": {"status": "success", "count": len(found)},
            "data": [u.model_dump(mode="json") for u in found],
        }))
        return

    if not found:
        console.print("[dim]No users found[/dim]")
        return

    table = Table(title="Users")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Username", style="bold")
    table.add_column("Full name")
    table.add_column("Email", style="dim")
    for u in found:
        table.add_row(str(u.id), u.username, u.full_name or "", u.email or "")
    console.print(table)
