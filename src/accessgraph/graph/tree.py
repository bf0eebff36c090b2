"""
Tree explorer view model.

A collapsible-tree alternative to the graph view. Unlike the graph builder
the whole tree is produced up front; expansion is a presentation concern
handled through ``default_expanded_keys``.
"""

import re
from typing import List, Tuple

from pydantic import BaseModel, Field

from ..core.counts import format_count_label, summary_count_label
from ..core.types import NodeCategory, PageNode, UserAccessRecord
from .builder import format_endpoint_label

TAG_COLORS = {
    NodeCategory.USER: "blue",
    NodeCategory.ROLE: "green",
    NodeCategory.POLICY: "orange",
    NodeCategory.ENDPOINT: "red",
    NodeCategory.ACTION: "purple",
    NodeCategory.PAGE: "cyan",
}

METHOD_COLORS = {
    "GET": "green",
    "POST": "blue",
    "PUT": "orange",
    "PATCH": "purple",
    "DELETE": "red",
}
DEFAULT_METHOD_COLOR = "geekblue"


def method_color(method: str | None) -> str:
    if not method:
        return DEFAULT_METHOD_COLOR
    return METHOD_COLORS.get(method.upper(), DEFAULT_METHOD_COLOR)


class TreeItem(BaseModel):
    key: str
    title: str
    kind: NodeCategory
    tag_color: str
    count_label: str | None = None
    description: str | None = None
    method: str | None = None
    children: List["TreeItem"] = Field(default_factory=list)


def _join(*parts: str | None, sep: str = " • ") -> str:
    return sep.join(part for part in parts if part)


# =============================================================================
# Page tree
# =============================================================================


def _page_item(page: PageNode) -> TreeItem:
    page_key = f"page-{page.id}"
    action_items: List[TreeItem] = []
    for index, action in enumerate(page.actions):
        action_key = f"{page_key}-action-{index}"
        details = action.endpoint_details
        children: List[TreeItem] = []
        if details is not None and (details.method or details.path):
            title, _ = format_endpoint_label(details, action.endpoint)
            children.append(
                TreeItem(
                    key=f"{action_key}-endpoint",
                    title=details.path or title,
                    kind=NodeCategory.ENDPOINT,
                    tag_color=TAG_COLORS[NodeCategory.ENDPOINT],
                    description=_join(details.service, details.version) or None,
                    method=details.method,
                )
            )
        action_items.append(
            TreeItem(
                key=action_key,
                title=action.label or action.action or "Action",
                kind=NodeCategory.ACTION,
                tag_color=TAG_COLORS[NodeCategory.ACTION],
                count_label=format_count_label(len(children), "endpoint") or None,
                description=action.action if action.action and action.action != action.label else None,
                children=children,
            )
        )

    child_items = [_page_item(child) for child in page.children]
    count_label = ", ".join(
        label
        for label in (
            format_count_label(len(child_items), "child page"),
            format_count_label(len(action_items), "action"),
        )
        if label
    )
    return TreeItem(
        key=page_key,
        title=page.label,
        kind=NodeCategory.PAGE,
        tag_color=TAG_COLORS[NodeCategory.PAGE],
        count_label=count_label or None,
        description=page.route or None,
        children=child_items + action_items,
    )


def build_page_tree(pages: List[PageNode]) -> List[TreeItem]:
    """Tree items for a page forest: child pages first, then actions."""
    return [_page_item(page) for page in pages]


# =============================================================================
# User tree
# =============================================================================


def build_user_tree(user: UserAccessRecord) -> List[TreeItem]:
    """Single-root tree: user -> role -> policy -> endpoint -> action -> page."""
    user_key = user.node_id
    role_items: List[TreeItem] = []
    for r, role in enumerate(user.roles):
        role_key = f"role-{user.id}-{r}"
        policy_items: List[TreeItem] = []
        for p, policy in enumerate(role.policies):
            policy_key = f"{role_key}-policy-{p}"
            endpoint_items: List[TreeItem] = []
            for e, endpoint in enumerate(policy.endpoints):
                endpoint_key = f"{policy_key}-endpoint-{e}"
                action_items: List[TreeItem] = []
                for a, action in enumerate(endpoint.page_actions):
                    action_key = f"{endpoint_key}-action-{a}"
                    page_items: List[TreeItem] = []
                    page_text = ""
                    if action.page is not None:
                        page = action.page
                        page_text = _join(page.label or page.key, page.route, sep=" ")
                        page_items.append(
                            TreeItem(
                                key=f"{action_key}-page",
                                title=page.label or page.key or page.route or "Page",
                                kind=NodeCategory.PAGE,
                                tag_color=TAG_COLORS[NodeCategory.PAGE],
                                description=page.route or None,
                            )
                        )
                    action_items.append(
                        TreeItem(
                            key=action_key,
                            title=action.label or action.action or "Action",
                            kind=NodeCategory.ACTION,
                            tag_color=TAG_COLORS[NodeCategory.ACTION],
                            description=page_text or None,
                            children=page_items,
                        )
                    )
                service_info = _join(endpoint.service, endpoint.version)
                endpoint_items.append(
                    TreeItem(
                        key=endpoint_key,
                        title=endpoint.path or f"{endpoint.method} {endpoint.path}".strip() or "Endpoint",
                        kind=NodeCategory.ENDPOINT,
                        tag_color=TAG_COLORS[NodeCategory.ENDPOINT],
                        count_label=summary_count_label(len(endpoint.page_actions), "action"),
                        description=endpoint.description or service_info or None,
                        method=endpoint.method or None,
                        children=action_items,
                    )
                )
            policy_items.append(
                TreeItem(
                    key=policy_key,
                    title=policy.name,
                    kind=NodeCategory.POLICY,
                    tag_color=TAG_COLORS[NodeCategory.POLICY],
                    count_label=summary_count_label(len(policy.endpoints), "endpoint"),
                    description=policy.description,
                    children=endpoint_items,
                )
            )
        role_items.append(
            TreeItem(
                key=role_key,
                title=role.name,
                kind=NodeCategory.ROLE,
                tag_color=TAG_COLORS[NodeCategory.ROLE],
                count_label=summary_count_label(len(role.policies), "policy", "policies"),
                description=role.description,
                children=policy_items,
            )
        )

    return [
        TreeItem(
            key=user_key,
            title=user.display_name,
            kind=NodeCategory.USER,
            tag_color=TAG_COLORS[NodeCategory.USER],
            count_label=summary_count_label(len(user.roles), "role"),
            description=user.email,
            children=role_items,
        )
    ]


# =============================================================================
# Helpers
# =============================================================================


def flatten_keys(items: List[TreeItem]) -> List[str]:
    keys: List[str] = []
    for item in items:
        keys.append(item.key)
        keys.extend(flatten_keys(item.children))
    return keys


def default_expanded_keys(items: List[TreeItem], expand_all: bool = False) -> List[str]:
    """Root keys, or every key when ``expand_all`` is set."""
    if expand_all:
        return flatten_keys(items)
    return [item.key for item in items]


def highlight_segments(text: str, query: str) -> List[Tuple[str, bool]]:
    """
    Split ``text`` into ``(segment, matched)`` pieces.

    Matching is case-insensitive and literal; regex metacharacters in the
    query have no special meaning.
    """
    if not text:
        return []
    if not query:
        return [(text, False)]
    pattern = re.compile(re.escape(query), re.IGNORECASE)
    segments: List[Tuple[str, bool]] = []
    cursor = 0
    for match in pattern.finditer(text):
        if match.start() > cursor:
            segments.append((text[cursor:match.start()], False))
        segments.append((match.group(0), True))
        cursor = match.end()
    if cursor < len(text):
        segments.append((text[cursor:], False))
    return segments
