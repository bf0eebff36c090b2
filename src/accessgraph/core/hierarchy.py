"""
Hierarchy Reconstructor.

The UI access matrix often arrives as a flat list of pages, or with only some
parent links filled in. ``build_hierarchy`` infers the missing links from the
route strings: ``/admin/users`` becomes a child of ``/admin`` when such a page
exists. Matching is per full path segment, so ``/reports`` is never a child
of ``/report``.

Tie-break: when two pages normalize to the same route, the first one seen
(depth-first, in input order) owns the route. A later top-level page with the
same route is folded into it, so both spellings (``/settings`` and
``/settings/``) resolve to a single node.

The module also hosts the read-only snapshot lookups used by the controller.
"""

import logging
from typing import Dict, Iterator, List, Set

from .exceptions import PageNotFoundError
from .types import PageAction, PageNode

logger = logging.getLogger(__name__)


def get_parent_route(route: str) -> str | None:
    """
    Drop the final ``/``-delimited segment of a route.

    Returns None for the root route, for single top-level segments
    and for empty input.
    """
    if not route:
        return None
    index = route.rfind("/")
    if index <= 0:
        return None
    return route[:index]


def _subtree_contains(node: PageNode, target: PageNode) -> bool:
    if node is target:
        return True
    return any(_subtree_contains(child, target) for child in node.children)


def _action_signature(action: PageAction) -> tuple:
    return (action.label, action.action, action.endpoint)


class _Reconstruction:
    """Working state for one ``build_hierarchy`` call."""

    def __init__(self) -> None:
        self.route_map: Dict[str, PageNode] = {}
        self.all_nodes: List[PageNode] = []
        self.has_parent: Set[int] = set()

    def clone(self, node: PageNode, nested: bool) -> PageNode:
        copy = PageNode(
            id=node.id,
            key=node.key,
            label=node.label,
            route=node.route,
            is_requested=node.is_requested,
            actions=[action.model_copy(deep=True) for action in node.actions],
            children=[],
        )
        self.all_nodes.append(copy)
        if nested:
            self.has_parent.add(id(copy))

        if copy.route:
            if copy.route in self.route_map:
                logger.debug(f"Duplicate route {copy.route!r} on page {copy.id}; keeping page {self.route_map[copy.route].id}")
            else:
                self.route_map[copy.route] = copy

        copy.children = [self.clone(child, nested=True) for child in node.children]
        return copy

    def fold_duplicate(self, duplicate: PageNode, owner: PageNode) -> None:
        """Merge a top-level page into the page that owns its route."""
        known_actions = {_action_signature(a) for a in owner.actions}
        for action in duplicate.actions:
            if _action_signature(action) not in known_actions:
                owner.actions.append(action)
                known_actions.add(_action_signature(action))
        known_children = {child.id for child in owner.children}
        for child in duplicate.children:
            if child.id not in known_children and not _subtree_contains(child, owner):
                owner.children.append(child)
                known_children.add(child.id)
        self.all_nodes = [node for node in self.all_nodes if node is not duplicate]


def build_hierarchy(pages: List[PageNode]) -> List[PageNode]:
    """
    Rebuild the page forest from route paths.

    The input is never mutated; every node in the output is a fresh copy.
    Pages that already sit under an explicit parent keep it. Calling this
    on its own output returns a structurally identical forest.

    Args:
        pages: Normalized pages, flat or partially nested.

    Returns:
        List[PageNode]: The root pages, in input order.
    """
    state = _Reconstruction()
    roots = [state.clone(page, nested=False) for page in pages]

    # Top-level pages that lost their route to an earlier page merge into it.
    kept_roots: List[PageNode] = []
    for root in roots:
        owner = state.route_map.get(root.route) if root.route else None
        if owner is not None and owner is not root and not _subtree_contains(root, owner):
            state.fold_duplicate(root, owner)
            continue
        kept_roots.append(root)
    roots = kept_roots

    for node in list(state.all_nodes):
        if id(node) in state.has_parent:
            continue
        parent_route = get_parent_route(node.route)
        if parent_route is None:
            continue
        parent = state.route_map.get(parent_route)
        if parent is None or parent is node or _subtree_contains(node, parent):
            continue

        if not any(child is node or child.id == node.id for child in parent.children):
            parent.children.append(node)
        state.has_parent.add(id(node))
        roots = [root for root in roots if root is not node]

    logger.debug(f"Reconstructed {len(state.all_nodes)} pages into {len(roots)} roots")
    return roots


# =============================================================================
# Snapshot lookups
# =============================================================================


def iter_pages(pages: List[PageNode]) -> Iterator[PageNode]:
    """Depth-first walk over a page forest."""
    for page in pages:
        yield page
        yield from iter_pages(page.children)


def find_page_by_id(pages: List[PageNode], page_id) -> PageNode | None:
    """Find a page anywhere in the forest. Ids compare by their string form."""
    target = str(page_id)
    for page in iter_pages(pages):
        if str(page.id) == target:
            return page
    return None


def require_page(pages: List[PageNode], page_id) -> PageNode:
    """Like ``find_page_by_id`` but raises ``PageNotFoundError``."""
    page = find_page_by_id(pages, page_id)
    if page is None:
        raise PageNotFoundError(page_id)
    return page


def collect_page_node_ids(page: PageNode) -> List[str]:
    """Graph ids of a page and all of its descendant pages."""
    return [node.node_id for node in iter_pages([page])]


def collect_endpoint_ids(page: PageNode) -> List[str]:
    """Graph ids of every action and linked endpoint in a page subtree."""
    ids: List[str] = []
    for node in iter_pages([page]):
        for index, action in enumerate(node.actions):
            ids.append(f"page-action-{node.id}-{index}")
            if action.has_endpoint:
                ids.append(f"endpoint-{node.id}-{index}")
    return ids


def collect_subtree_ids(page: PageNode) -> Set[str]:
    """Every expandable graph id in a page subtree."""
    return set(collect_page_node_ids(page)) | set(collect_endpoint_ids(page))
