"""
User Command - Render one user's access graph.

Shows the user -> role -> policy -> endpoint -> page action -> page chain
for a single user. Only the user node starts expanded; use --expand with
node ids from a previous run (or --json) to drill down.

Usage:
    accessgraph user 7
    accessgraph user 7 --expand role-7-0 --expand policy-7-0-0
    accessgraph user 7 --search orders --tree
"""

import asyncio
import sys

import click

from ...controller import UserAccessController
from ...core.exceptions import SessionExpiredError
from ...core.types import LayoutDirection
from ...graph.tree import build_user_tree
from ..utils import (
    build_graph_tree,
    build_item_tree,
    console,
    echo_error,
    emit_json,
    make_client,
    parse_expand,
    print_summary,
    report_failure,
)


async def _load(controller: UserAccessController, user_id: str):
    # A failed user list only costs display names; select_user resets the state.
    await controller.load_users()
    return await controller.select_user(user_id)


@click.command()
@click.argument("user_id")
@click.option("-q", "--search", "query", default="", help="Highlight nodes matching this text")
@click.option("-e", "--expand", "expand", multiple=True, help="Node id to expand (repeatable)")
@click.option("-d", "--direction", type=click.Choice(["TB", "LR"], case_sensitive=False), default=None,
              help="Layout direction (default from config)")
@click.option("-i", "--input", "input_file", type=click.Path(exists=True, dir_okay=False),
              help="Read a saved user access matrix instead of calling the service")
@click.option("--tree", "tree_mode", is_flag=True, help="Show the tree explorer instead of the graph")
@click.option("--json", "json_mode", is_flag=True, help="Output graph data as JSON to stdout")
@click.pass_context
def user(ctx: click.Context, user_id: str, query: str, expand: tuple, direction: str | None,
         input_file: str | None, tree_mode: bool, json_mode: bool):
    """
    Render USER_ID's access graph.
    """
    settings = ctx.obj["settings"]
    layout_direction = LayoutDirection(direction.upper()) if direction else settings.direction
    controller = UserAccessController(make_client(settings, input_file), direction=layout_direction)

    try:
        asyncio.run(_load(controller, int(user_id) if user_id.isdigit() else user_id))
    except SessionExpiredError as e:
        echo_error(e.message)
        sys.exit(1)

    if controller.state.is_failure:
        report_failure(controller.state, json_mode)

    for node_id in parse_expand(expand):
        controller.expand(node_id)
    if query:
        controller.set_query(query)

    state = controller.state
    summary = controller.summary

    if json_mode:
        emit_json(state, summary, layout_direction.value)
        return

    if tree_mode and controller.record is not None:
        items = build_user_tree(controller.record)
        console.print(build_item_tree(items, state.query, "User Access Tree", expand_all=True))
    else:
        console.print(build_graph_tree(state, "User Access Graph"))

    print_summary(summary)
