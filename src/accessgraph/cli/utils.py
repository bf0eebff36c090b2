"""
CLI Utilities - Shared helper functions for command line operations.

This module provides the message helpers, client construction, and the
rich/JSON renderers shared by the ``pages`` and ``user`` commands.
"""

import json
import sys
from pathlib import Path
from typing import Any, Dict, List

import click
from rich.console import Console
from rich.markup import escape
from rich.text import Text
from rich.tree import Tree

from ..client.directory import AccessDirectoryClient, SnapshotDirectoryClient
from ..config import Settings
from ..controller.state import SelectionSummary, ViewState, ViewStatus
from ..core.types import VisualizationNode
from ..graph.tree import TreeItem, default_expanded_keys, highlight_segments, method_color

console = Console()

# Tag colour names from the tree model that rich does not know.
RICH_COLOR_NAMES = {
    "orange": "orange1",
    "geekblue": "blue",
}


def rich_color(name: str) -> str:
    return RICH_COLOR_NAMES.get(name, name)


def echo_error(message: str) -> None:
    """
    Print an error message with a red cross.

    Args:
        message (str): The error message to display.
    """
    click.echo(click.style(f"❌ {message}", fg="red"), err=True)


def echo_warning(message: str) -> None:
    """
    Print a warning message with a yellow alert symbol.

    Args:
        message (str): The warning message to display.
    """
    click.echo(click.style(f"⚠️  {message}", fg="yellow"))


def echo_info(message: str) -> None:
    """
    Print an informational message, dimmed.

    Args:
        message (str): The info message to display.
    """
    click.echo(click.style(f"   {message}", dim=True))


def make_client(settings: Settings, input_file: str | None):
    """
    Build the client for a command.

    With ``input_file`` the saved JSON response is served instead of
    calling the service.
    """
    if input_file:
        payload = json.loads(Path(input_file).read_text())
        return SnapshotDirectoryClient(payload)
    return AccessDirectoryClient.from_settings(settings)


# =============================================================================
# State reporting
# =============================================================================


def report_failure(state: ViewState, json_mode: bool) -> None:
    """Print the failure for ``state`` and exit with status 1."""
    if json_mode:
        click.echo(json.dumps({
            "meta": {"status": "error", "view": state.status.value},
            "error": {"message": state.message},
        }))
        sys.exit(1)

    if state.status == ViewStatus.FORBIDDEN:
        echo_error(f"Access denied: {state.message}")
        echo_info("Ask an administrator for permission to view access data.")
    elif state.status == ViewStatus.NOT_FOUND:
        echo_warning(state.message or "Not found")
    else:
        echo_error(state.message or "Failed to load access data")
        echo_info("Check the service URL and retry.")
    sys.exit(1)


def emit_json(state: ViewState, summary: SelectionSummary | None, direction: str) -> None:
    """Print the graph envelope consumed by editor integrations."""
    click.echo(json.dumps({
        "meta": {
            "status": "success",
            "view": state.status.value,
            "direction": direction,
            "query": state.query,
            "selection": state.selection,
        },
        "data": {
            "nodes": [node.model_dump(mode="json") for node in state.nodes],
            "edges": [edge.model_dump(mode="json") for edge in state.edges],
            "summary": summary.model_dump() if summary else None,
        },
    }))


# =============================================================================
# Rich renderers
# =============================================================================


def _node_label(node: VisualizationNode, edge_label: str | None) -> str:
    marker = ""
    if node.collapsible:
        marker = "▾ " if node.expanded else "▸ "
    parts = []
    if edge_label:
        parts.append(f"[dim]{escape(edge_label)} →[/dim]")
    title = escape(node.title)
    parts.append(f"{marker}[bold]{title}[/bold]" if not node.highlight else f"{marker}[bold yellow]{title}[/bold yellow]")
    if node.subtitle:
        parts.append(f"[dim]{escape(node.subtitle)}[/dim]")
    parts.append(f"[cyan]({node.category.value})[/cyan]")
    if node.badges:
        parts.append("[magenta]" + escape(" | ".join(b.text for b in node.badges)) + "[/magenta]")
    if node.selected:
        parts.append("[green]◀ selected[/green]")
    return " ".join(parts)


def build_graph_tree(state: ViewState, heading: str) -> Tree:
    """Render the visible graph as a rich tree following edge order."""
    tree = Tree(f"🔐 [bold]{escape(heading)}[/bold]")
    if not state.nodes:
        tree.add("[dim]Nothing to display[/dim]")
        return tree

    by_id: Dict[str, VisualizationNode] = {node.id: node for node in state.nodes}
    children: Dict[str, List[tuple]] = {}
    targets = set()
    for edge in state.edges:
        if edge.source in by_id and edge.target in by_id:
            children.setdefault(edge.source, []).append((edge.target, edge.label))
            targets.add(edge.target)

    def add(branch: Tree, node_id: str, edge_label: str | None, seen: set) -> None:
        node = by_id[node_id]
        child_branch = branch.add(_node_label(node, edge_label))
        if node_id in seen:
            return
        seen = seen | {node_id}
        for target, label in children.get(node_id, []):
            add(child_branch, target, label, seen)

    for node in state.nodes:
        if node.id not in targets:
            add(tree, node.id, None, set())
    return tree


def _highlighted(text: str, query: str) -> Text:
    rendered = Text()
    for segment, matched in highlight_segments(text, query):
        rendered.append(segment, style="bold black on yellow" if matched else "bold")
    return rendered


def build_item_tree(items: List[TreeItem], query: str, heading: str, expand_all: bool) -> Tree:
    """Render tree explorer items; collapsed branches show only their label."""
    expanded = set(default_expanded_keys(items, expand_all))
    tree = Tree(f"🌳 [bold]{escape(heading)}[/bold]")

    def add(branch: Tree, item: TreeItem) -> None:
        label = Text()
        if item.method:
            label.append(f"{item.method} ", style=rich_color(method_color(item.method)))
        label.append_text(_highlighted(item.title, query))
        label.append(f" [{item.kind.value}]", style=rich_color(item.tag_color))
        if item.count_label:
            label.append(f" ({item.count_label})", style="dim")
        if item.description:
            label.append(" ")
            label.append_text(_highlighted(item.description, query))
        child = branch.add(label)
        if item.key in expanded:
            for sub in item.children:
                add(child, sub)
        elif item.children:
            child.add(Text("…", style="dim"))

    for item in items:
        add(tree, item)
    return tree


def print_summary(summary: SelectionSummary | None) -> None:
    if summary is None:
        return
    console.print(f"[bold]{escape(summary.label)}[/bold]")
    console.print("  " + "  ".join(f"[cyan]{escape(v)}[/cyan]" for v in summary.counts.values()))


def parse_expand(values: Any) -> List[str]:
    """Flatten repeated or comma-separated ``--expand`` values."""
    ids: List[str] = []
    for value in values or ():
        ids.extend(part.strip() for part in value.split(",") if part.strip())
    return ids
