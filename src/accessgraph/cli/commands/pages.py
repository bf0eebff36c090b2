"""
Pages Command - Render the UI page access graph.

Fetches the full UI access matrix, rebuilds the page hierarchy from routes
and prints the visible graph. Selection, expansion and search are applied
in the same order a user would perform them in the console.

Usage:
    accessgraph pages
    accessgraph pages --select 12 --search create
    accessgraph pages --expand page-1 --expand page-action-1-0 --json
    accessgraph pages --input matrix.json --tree
"""

import asyncio
import sys

import click

from ...controller import PageAccessController
from ...core.exceptions import SessionExpiredError
from ...core.types import LayoutDirection
from ...graph.tree import build_page_tree
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


@click.command()
@click.option("-s", "--select", "select_id", default=None, help="Focus on one page id")
@click.option("-q", "--search", "query", default="", help="Highlight nodes matching this text")
@click.option("-e", "--expand", "expand", multiple=True, help="Node id to expand (repeatable)")
@click.option("-d", "--direction", type=click.Choice(["TB", "LR"], case_sensitive=False), default=None,
              help="Layout direction (default from config)")
@click.option("-i", "--input", "input_file", type=click.Path(exists=True, dir_okay=False),
              help="Read a saved UI access matrix instead of calling the service")
@click.option("--tree", "tree_mode", is_flag=True, help="Show the tree explorer instead of the graph")
@click.option("--json", "json_mode", is_flag=True, help="Output graph data as JSON to stdout")
@click.pass_context
def pages(ctx: click.Context, select_id: str | None, query: str, expand: tuple, direction: str | None,
          input_file: str | None, tree_mode: bool, json_mode: bool):
    """
    Render the UI page access graph.
    """
    settings = ctx.obj["settings"]
    layout_direction = LayoutDirection(direction.upper()) if direction else settings.direction
    controller = PageAccessController(make_client(settings, input_file), direction=layout_direction)

    try:
        asyncio.run(controller.load())
    except SessionExpiredError as e:
        echo_error(e.message)
        sys.exit(1)

    if controller.state.is_failure:
        report_failure(controller.state, json_mode)

    if select_id is not None:
        controller.select_page(select_id)
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

    if tree_mode:
        roots = [controller.focused] if controller.focused is not None else controller.pages
        items = build_page_tree(roots)
        console.print(build_item_tree(items, state.query, "UI Access Tree", expand_all=controller.focused is not None))
    else:
        console.print(build_graph_tree(state, "UI Access Graph"))

    print_summary(summary)
