"""
Graph Builder.

Pure functions from (canonical tree, expanded ids, query) to a fresh
``GraphBuild``. Nothing is cached between calls; every badge and highlight
is recomputed from the live subtree.

Node id scheme:

    Page flow:
        page-<pageId>
        page-action-<pageId>-<actionIndex>
        endpoint-<pageId>-<actionIndex>

    User flow:
        user-<uid>
        role-<uid>-<r>
        policy-<uid>-<r>-<p>
        endpoint-<uid>-<r>-<p>-<e>
        page-action-<uid>-<r>-<p>-<e>-<a>
        user-page-<uid>-<r>-<p>-<e>-<a>-<pg>

Children of a node are emitted only while that node is expanded, so the
output is bounded by the expansion state rather than the data volume.
"""

import logging
from typing import AbstractSet, List, Union

from ..core.counts import (
    endpoint_counts,
    format_count_label,
    policy_counts,
    role_counts,
    summary_count_label,
    user_counts,
)
from ..core.types import (
    Badge,
    GraphBuild,
    NodeCategory,
    PageAction,
    PageActionEndpoint,
    PageNode,
    UserAccessRecord,
    VisualizationEdge,
    VisualizationNode,
)
from .search import SearchMatcher

logger = logging.getLogger(__name__)

# Edge styles: label -> colour
CHILD_PAGE = ("Child Page", "#b37feb")
HAS_ACTION = ("Has Action", "#13c2c2")
CALLS_ENDPOINT = ("Calls Endpoint", "#ff7875")
ASSIGNED_ROLE = ("Assigned Role", "#52c41a")
INCLUDES_POLICY = ("Includes Policy", "#faad14")
GRANTS_ENDPOINT = ("Grants Endpoint", "#ff7875")
ENABLES_ACTION = ("Enables Action", "#597ef7")
REFERENCES_PAGE = ("References Page", "#9254de")

SERVICE_BADGE_COLOR = "#a8071a"


def format_endpoint_label(details: PageActionEndpoint | None, endpoint: str | None) -> tuple[str, str | None]:
    """
    Title and subtitle for a page-flow endpoint node.

    Structured details win over the endpoint string.
    """
    if details is not None:
        method, path, service = details.method, details.path, details.service
        if method and path:
            return method, path
        if path:
            return path, method or service
        if method:
            return method, service
        if service:
            return service, None

    if endpoint:
        method, _, rest = endpoint.partition(" ")
        if rest:
            return method, rest
        return endpoint, None

    return "Endpoint", None


def _badges(*texts: str) -> List[Badge]:
    return [Badge(text=text) for text in texts if text]


class _Emitter:
    """Output buffer for a single build pass."""

    def __init__(self) -> None:
        self.nodes: List[VisualizationNode] = []
        self.edges: List[VisualizationEdge] = []

    def node(self, node: VisualizationNode) -> VisualizationNode:
        self.nodes.append(node)
        return node

    def edge(
        self,
        edge_id: str,
        source: VisualizationNode,
        target: VisualizationNode,
        style: tuple[str, str],
        animated: bool = False,
    ) -> None:
        label, color = style
        self.edges.append(
            VisualizationEdge(
                id=edge_id,
                source=source.id,
                target=target.id,
                label=label,
                color=color,
                animated=animated,
                highlight=source.highlight and target.highlight,
            )
        )

    def result(self) -> GraphBuild:
        return GraphBuild(nodes=self.nodes, edges=self.edges)


# =============================================================================
# Page flow
# =============================================================================


class _PageGraphBuilder:
    def __init__(
        self,
        expanded: AbstractSet[str],
        matcher: SearchMatcher,
        force_expand: bool,
        selected_id,
    ):
        self.expanded = expanded
        self.matcher = matcher
        self.force_expand = force_expand
        self.selected_id = None if selected_id is None else str(selected_id)
        self.out = _Emitter()

    def build_page(self, page: PageNode, parent: VisualizationNode | None) -> None:
        node_id = page.node_id
        is_expanded = self.force_expand or node_id in self.expanded
        has_content = bool(page.children or page.actions)

        node = self.out.node(
            VisualizationNode(
                id=node_id,
                category=NodeCategory.PAGE,
                title=page.label,
                subtitle=page.route or None,
                badges=_badges(
                    format_count_label(len(page.actions), "action"),
                    format_count_label(len(page.children), "child", "children"),
                ),
                highlight=self.matcher.page_matches(page),
                collapsible=has_content,
                expanded=is_expanded and has_content,
                selected=self.selected_id is not None and str(page.id) == self.selected_id,
            )
        )
        if parent is not None:
            self.out.edge(f"edge-{parent.id}-{node_id}", parent, node, CHILD_PAGE)

        if not is_expanded:
            return

        for index, action in enumerate(page.actions):
            self.build_action(page, node, action, index)
        for child in page.children:
            self.build_page(child, node)

    def build_action(self, page: PageNode, page_node: VisualizationNode, action: PageAction, index: int) -> None:
        action_id = f"page-action-{page.id}-{index}"
        has_endpoint = action.has_endpoint
        is_expanded = has_endpoint and (self.force_expand or action_id in self.expanded)

        action_node = self.out.node(
            VisualizationNode(
                id=action_id,
                category=NodeCategory.ACTION,
                title=action.label or action.action or "Action",
                subtitle=action.action or None,
                badges=_badges("Endpoint" if has_endpoint else ""),
                highlight=self.matcher.page_action_matches(action),
                collapsible=has_endpoint,
                expanded=is_expanded,
            )
        )
        self.out.edge(f"edge-{page_node.id}-{action_id}", page_node, action_node, HAS_ACTION)

        if not is_expanded:
            return

        endpoint_id = f"endpoint-{page.id}-{index}"
        title, subtitle = format_endpoint_label(action.endpoint_details, action.endpoint)
        details = action.endpoint_details
        endpoint_node = self.out.node(
            VisualizationNode(
                id=endpoint_id,
                category=NodeCategory.ENDPOINT,
                title=title,
                subtitle=subtitle,
                badges=[Badge(text=details.service, color=SERVICE_BADGE_COLOR)] if details and details.service else [],
                highlight=self.matcher.endpoint_details_match(details, action.endpoint),
            )
        )
        self.out.edge(f"edge-{action_id}-{endpoint_id}", action_node, endpoint_node, CALLS_ENDPOINT)


def build_page_graph(
    pages: List[PageNode],
    expanded: AbstractSet[str],
    query: str = "",
    force_expand: bool = False,
    selected_id=None,
) -> GraphBuild:
    """
    Build the page-flow graph.

    Args:
        pages: Root pages to draw. For a focused view this is the selected
            page alone.
        expanded: Ids of nodes whose children are visible.
        query: Search text; empty means no highlights.
        force_expand: Expand every page and action regardless of
            ``expanded``. Used on the first render after a selection.
        selected_id: Page id to flag as selected.

    Returns:
        GraphBuild: Fresh nodes and edges.
    """
    builder = _PageGraphBuilder(expanded, SearchMatcher(query), force_expand, selected_id)
    for page in pages:
        builder.build_page(page, None)
    result = builder.out.result()
    logger.debug(f"Built page graph: {len(result.nodes)} nodes, {len(result.edges)} edges")
    return result


# =============================================================================
# User flow
# =============================================================================


def build_user_graph(
    user: UserAccessRecord,
    expanded: AbstractSet[str],
    query: str = "",
    force_expand: bool = False,
) -> GraphBuild:
    """
    Build the user -> role -> policy -> endpoint -> action -> page graph.

    Every node carries transitive count badges computed from its full data
    subtree, not just the visible part.
    """
    matcher = SearchMatcher(query)
    out = _Emitter()
    uid = user.id

    def is_open(node_id: str) -> bool:
        return force_expand or node_id in expanded

    counts = user_counts(user)
    user_summary = [
        summary_count_label(counts.roles, "role"),
        summary_count_label(counts.policies, "policy", "policies"),
        summary_count_label(counts.endpoints, "endpoint"),
        summary_count_label(counts.pages, "page"),
        summary_count_label(counts.actions, "action"),
    ]
    has_user_hierarchy = any((counts.roles, counts.policies, counts.endpoints, counts.pages, counts.actions))
    user_open = bool(user.roles) and is_open(user.node_id)

    user_node = out.node(
        VisualizationNode(
            id=user.node_id,
            category=NodeCategory.USER,
            title=user.display_name,
            subtitle=user.email,
            badges=_badges(summary_count_label(counts.roles, "role")),
            summary_items=user_summary if has_user_hierarchy else [],
            highlight=matcher.user_matches(user),
            collapsible=bool(user.roles),
            expanded=user_open,
        )
    )
    if not user_open:
        return out.result()

    for r, role in enumerate(user.roles):
        role_id = f"role-{uid}-{r}"
        rc = role_counts(role)
        role_open = bool(role.policies) and is_open(role_id)
        has_role_hierarchy = any((rc.policies, rc.endpoints, rc.pages, rc.actions))
        role_node = out.node(
            VisualizationNode(
                id=role_id,
                category=NodeCategory.ROLE,
                title=role.name,
                description=role.description,
                badges=_badges(
                    format_count_label(rc.policies, "policy", "policies"),
                    format_count_label(rc.endpoints, "endpoint"),
                    format_count_label(rc.actions, "action"),
                    format_count_label(rc.pages, "page"),
                ),
                summary_items=[
                    summary_count_label(rc.policies, "policy", "policies"),
                    summary_count_label(rc.endpoints, "endpoint"),
                    summary_count_label(rc.pages, "page"),
                    summary_count_label(rc.actions, "action"),
                ] if has_role_hierarchy else [],
                highlight=matcher.role_matches(role),
                collapsible=bool(role.policies),
                expanded=role_open,
            )
        )
        out.edge(f"edge-user-role-{uid}-{r}", user_node, role_node, ASSIGNED_ROLE, animated=True)
        if not role_open:
            continue

        for p, policy in enumerate(role.policies):
            policy_id = f"policy-{uid}-{r}-{p}"
            pc = policy_counts(policy)
            policy_open = bool(policy.endpoints) and is_open(policy_id)
            policy_node = out.node(
                VisualizationNode(
                    id=policy_id,
                    category=NodeCategory.POLICY,
                    title=policy.name,
                    description=policy.description,
                    badges=_badges(
                        format_count_label(pc.endpoints, "endpoint"),
                        format_count_label(pc.actions, "action"),
                        format_count_label(pc.pages, "page"),
                    ),
                    summary_items=[
                        summary_count_label(pc.endpoints, "endpoint"),
                        summary_count_label(pc.pages, "page"),
                        summary_count_label(pc.actions, "action"),
                    ] if any((pc.endpoints, pc.pages, pc.actions)) else [],
                    highlight=matcher.policy_matches(policy),
                    collapsible=bool(policy.endpoints),
                    expanded=policy_open,
                )
            )
            out.edge(f"edge-role-policy-{uid}-{r}-{p}", role_node, policy_node, INCLUDES_POLICY, animated=True)
            if not policy_open:
                continue

            for e, endpoint in enumerate(policy.endpoints):
                endpoint_id = f"endpoint-{uid}-{r}-{p}-{e}"
                ec = endpoint_counts(endpoint)
                endpoint_open = bool(endpoint.page_actions) and is_open(endpoint_id)
                badges = _badges(format_count_label(ec.actions, "action"))
                if endpoint.service:
                    badges.append(Badge(text=endpoint.service, color=SERVICE_BADGE_COLOR))
                endpoint_node = out.node(
                    VisualizationNode(
                        id=endpoint_id,
                        category=NodeCategory.ENDPOINT,
                        title=endpoint.method or "Endpoint",
                        subtitle=endpoint.path or None,
                        description=endpoint.description,
                        badges=badges,
                        summary_items=[
                            summary_count_label(ec.pages, "page"),
                            summary_count_label(ec.actions, "action"),
                        ] if (ec.pages or ec.actions) else [],
                        highlight=matcher.endpoint_matches(endpoint),
                        collapsible=bool(endpoint.page_actions),
                        expanded=endpoint_open,
                    )
                )
                out.edge(f"edge-policy-endpoint-{uid}-{r}-{p}-{e}", policy_node, endpoint_node, GRANTS_ENDPOINT)
                if not endpoint_open:
                    continue

                for a, action in enumerate(endpoint.page_actions):
                    action_id = f"page-action-{uid}-{r}-{p}-{e}-{a}"
                    pages = [action.page] if action.page is not None else []
                    action_open = bool(pages) and is_open(action_id)
                    action_node = out.node(
                        VisualizationNode(
                            id=action_id,
                            category=NodeCategory.ACTION,
                            title=action.label or action.action or "Action",
                            subtitle=action.action or None,
                            badges=_badges(format_count_label(len(pages), "page")),
                            summary_items=[summary_count_label(len(pages), "page")] if pages else [],
                            highlight=matcher.user_action_matches(action),
                            collapsible=bool(pages),
                            expanded=action_open,
                        )
                    )
                    out.edge(
                        f"edge-endpoint-action-{uid}-{r}-{p}-{e}-{a}",
                        endpoint_node,
                        action_node,
                        ENABLES_ACTION,
                    )
                    if not action_open:
                        continue

                    for pg, page in enumerate(pages):
                        page_id = f"user-page-{uid}-{r}-{p}-{e}-{a}-{pg}"
                        page_node = out.node(
                            VisualizationNode(
                                id=page_id,
                                category=NodeCategory.PAGE,
                                title=page.label or page.key or page.route or "Page",
                                subtitle=page.route or None,
                                highlight=matcher.page_reference_matches(page),
                            )
                        )
                        out.edge(
                            f"edge-action-page-{uid}-{r}-{p}-{e}-{a}-{pg}",
                            action_node,
                            page_node,
                            REFERENCES_PAGE,
                        )

    result = out.result()
    logger.debug(f"Built user graph for {user.node_id}: {len(result.nodes)} nodes, {len(result.edges)} edges")
    return result


def build_graph(
    roots: Union[List[PageNode], UserAccessRecord],
    expanded: AbstractSet[str],
    query: str = "",
    force_expand: bool = False,
) -> GraphBuild:
    """Dispatch to the page or user builder based on the input shape."""
    if isinstance(roots, UserAccessRecord):
        return build_user_graph(roots, expanded, query, force_expand=force_expand)
    return build_page_graph(list(roots), expanded, query, force_expand=force_expand)
