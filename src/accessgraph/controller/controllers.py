"""
Interaction/State Controllers.

Each controller owns one ``ViewState`` and the fetched snapshot behind it.
Every mutation (selection, toggle, search, clear) re-runs the graph builder
and the layout adapter synchronously on the snapshot; only selections that
need new data go to the Access Directory Service.

Fetches run in a worker thread via ``asyncio.to_thread``. A generation
counter is bumped whenever a fetch starts; a response whose generation is
no longer current is discarded on arrival, so a slow answer for an old
selection never overwrites a newer one.
"""

import asyncio
import logging
from typing import Any, Callable, List

from ..core.counts import page_summary, summary_count_label, user_counts
from ..core.exceptions import AccessDeniedError, DirectoryError, PageNotFoundError, SessionExpiredError
from ..core.hierarchy import build_hierarchy, collect_subtree_ids, require_page
from ..core.normalize import build_user_record, normalize_pages, normalize_roles, normalize_users
from ..core.result import Err, Ok, Result
from ..core.types import GraphBuild, LayoutDirection, PageNode, UserAccessRecord, UserSummary
from ..graph.builder import build_page_graph, build_user_graph
from ..graph.layout import layout_nodes
from .state import SelectionSummary, ViewState, ViewStatus

logger = logging.getLogger(__name__)

PAGE_NOT_FOUND_MESSAGE = "Page not found in visualization"
NO_USER_ACCESS_MESSAGE = "No access data found for this user"


class _AccessController:
    """Shared fetch guard, failure handling and re-render plumbing."""

    def __init__(
        self,
        client,
        direction: LayoutDirection | str = LayoutDirection.TOP_BOTTOM,
        on_change: Callable[[ViewState], None] | None = None,
    ):
        self.client = client
        self.direction = LayoutDirection(direction)
        self.on_change = on_change
        self.state = ViewState()
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def _begin_fetch(self, label: str) -> int:
        self._generation += 1
        self.state.status = ViewStatus.LOADING
        self.state.message = None
        logger.debug(f"Fetch {label} started (generation {self._generation})")
        self._notify()
        return self._generation

    def _is_stale(self, generation: int, label: str) -> bool:
        if generation != self._generation:
            logger.debug(f"Discarding stale {label} response (generation {generation}, current {self._generation})")
            return True
        logger.debug(f"Fetch {label} finished (generation {generation})")
        return False

    async def _fetch(self, func: Callable[..., Any], *args) -> Result:
        """Run a blocking client call off the event loop; session expiry propagates."""
        try:
            value = await asyncio.to_thread(func, *args)
        except SessionExpiredError:
            raise
        except DirectoryError as e:
            return Err(e)
        return Ok(value)

    def _fail(self, error: DirectoryError) -> None:
        if isinstance(error, AccessDeniedError):
            logger.error(f"Access denied: {error.message}")
            self.state.status = ViewStatus.FORBIDDEN
        else:
            logger.warning(f"Fetch failed: {error}")
            self.state.status = ViewStatus.ERROR
        self.state.message = error.message
        self.state.nodes = []
        self.state.edges = []
        self._on_failure()
        self._notify()

    def _on_failure(self) -> None:
        """Drop the snapshot after a failed fetch."""

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self.state)

    def _build(self) -> GraphBuild:
        raise NotImplementedError

    def render(self) -> ViewState:
        """Rebuild and lay out the visible graph from the current snapshot."""
        result = self._build()
        self.state.nodes = layout_nodes(result.nodes, result.edges, self.direction)
        self.state.edges = result.edges
        logger.debug(f"Rendered {len(self.state.nodes)} nodes and {len(self.state.edges)} edges")
        self._notify()
        return self.state

    def toggle(self, node_id: str) -> ViewState:
        """Expand or collapse one node. Never re-fetches."""
        expanded = self.state.expanded_ids
        if node_id in expanded:
            expanded.discard(node_id)
        else:
            expanded.add(node_id)
        return self.render()

    def expand(self, node_id: str) -> ViewState:
        """Make one node expanded; already-expanded nodes stay open."""
        self.state.expanded_ids.add(node_id)
        return self.render()

    def set_query(self, query: str) -> ViewState:
        self.state.query = query or ""
        return self.render()

    def set_direction(self, direction: LayoutDirection | str) -> ViewState:
        self.direction = LayoutDirection(direction)
        return self.render()


# =============================================================================
# Page flow
# =============================================================================


class PageAccessController(_AccessController):
    """
    Drives the UI page access view.

    The full matrix is fetched once by ``load``; selecting a page is a local
    operation on that snapshot.
    """

    def __init__(self, client, direction=LayoutDirection.TOP_BOTTOM, on_change=None):
        super().__init__(client, direction, on_change)
        self.pages: List[PageNode] = []
        self.focused: PageNode | None = None
        self._force_expand = False

    async def load(self) -> ViewState:
        generation = self._begin_fetch("ui-access-matrix")
        result = await self._fetch(self.client.get_ui_access_matrix)
        if self._is_stale(generation, "ui-access-matrix"):
            return self.state
        if result.is_err():
            self._fail(result.error)
            return self.state

        self.pages = build_hierarchy(normalize_pages(result.unwrap()))
        self.focused = None
        self._force_expand = False
        self.state.selection = None
        self.state.query = ""
        self.state.expanded_ids = set()
        self.state.status = ViewStatus.READY
        return self.render()

    def _on_failure(self) -> None:
        self.pages = []
        self.focused = None
        self._force_expand = False

    def _build(self) -> GraphBuild:
        if self.focused is not None:
            force = self._force_expand
            self._force_expand = False
            return build_page_graph(
                [self.focused],
                self.state.expanded_ids,
                self.state.query,
                force_expand=force,
                selected_id=self.focused.id,
            )
        return build_page_graph(self.pages, self.state.expanded_ids, self.state.query)

    def select_page(self, page_id) -> ViewState:
        """
        Focus one page of the snapshot, or return to all pages with None.

        The selected subtree is fully expanded on the next render. An id
        missing from the snapshot yields NOT_FOUND without re-fetching.
        """
        self.state.query = ""
        if page_id is None:
            self.focused = None
            self._force_expand = False
            self.state.selection = None
            self.state.expanded_ids = set()
            self.state.status = ViewStatus.READY
            self.state.message = None
            return self.render()

        try:
            found = require_page(self.pages, page_id)
        except PageNotFoundError as e:
            logger.debug(str(e))
            self.state.status = ViewStatus.NOT_FOUND
            self.state.message = PAGE_NOT_FOUND_MESSAGE
            self._notify()
            return self.state

        self.focused = found
        self._force_expand = True
        self.state.selection = found.id
        self.state.expanded_ids = collect_subtree_ids(found)
        self.state.status = ViewStatus.READY
        self.state.message = None
        return self.render()

    def clear(self) -> ViewState:
        self.focused = None
        self._force_expand = False
        self.state.selection = None
        self.state.query = ""
        self.state.expanded_ids = set()
        if self.state.status == ViewStatus.NOT_FOUND:
            self.state.status = ViewStatus.READY
            self.state.message = None
        return self.render()

    @property
    def summary(self) -> SelectionSummary | None:
        if self.focused is None:
            return None
        totals = page_summary(self.focused)
        return SelectionSummary(
            label=self.focused.display_label,
            counts={
                "actions": summary_count_label(totals.actions, "action"),
                "endpoints": summary_count_label(totals.endpoints, "endpoint"),
                "pages": summary_count_label(totals.pages, "page"),
            },
        )


# =============================================================================
# User flow
# =============================================================================


class UserAccessController(_AccessController):
    """Drives the per-user access view; every selection fetches."""

    def __init__(self, client, direction=LayoutDirection.TOP_BOTTOM, on_change=None):
        super().__init__(client, direction, on_change)
        self.users: List[UserSummary] = []
        self.record: UserAccessRecord | None = None

    async def load_users(self) -> List[UserSummary]:
        """
        Fetch the user list used for the selector and display names.

        Not generation-guarded: it does not compete with user selections.
        """
        logger.debug("Fetch users started")
        result = await self._fetch(self.client.list_users)
        if result.is_err():
            self.users = []
            self._fail(result.error)
            return self.users

        self.users = normalize_users(result.unwrap())
        logger.debug(f"Fetch users finished: {len(self.users)} users")
        self._notify()
        return self.users

    def _on_failure(self) -> None:
        self.record = None

    def _build(self) -> GraphBuild:
        if self.record is None:
            return GraphBuild()
        return build_user_graph(self.record, self.state.expanded_ids, self.state.query)

    async def select_user(self, user_id) -> ViewState:
        """
        Fetch and render one user's access graph.

        If another selection starts before this fetch returns, this
        response is discarded.
        """
        self.state.query = ""
        if user_id is None:
            return self.clear()

        self.state.selection = user_id
        generation = self._begin_fetch(f"user-access-matrix/{user_id}")
        result = await self._fetch(self.client.get_user_access_matrix, user_id)
        if self._is_stale(generation, f"user-access-matrix/{user_id}"):
            return self.state
        if result.is_err():
            self._fail(result.error)
            return self.state

        roles = normalize_roles(result.unwrap())
        if not roles:
            self.record = None
            self.state.status = ViewStatus.ERROR
            self.state.message = NO_USER_ACCESS_MESSAGE
            self.state.nodes = []
            self.state.edges = []
            self.state.expanded_ids = set()
            self._notify()
            return self.state

        self.record = build_user_record(user_id, roles, self.users)
        self.state.expanded_ids = {self.record.node_id}
        self.state.status = ViewStatus.READY
        self.state.message = None
        return self.render()

    def clear(self) -> ViewState:
        # Invalidate any fetch still in flight.
        self._generation += 1
        self.record = None
        self.state.selection = None
        self.state.query = ""
        self.state.expanded_ids = set()
        self.state.status = ViewStatus.READY if self.users else ViewStatus.IDLE
        self.state.message = None
        return self.render()

    @property
    def summary(self) -> SelectionSummary | None:
        if self.record is None:
            return None
        counts = user_counts(self.record)
        return SelectionSummary(
            label=self.record.display_name,
            counts={
                "roles": summary_count_label(counts.roles, "role"),
                "policies": summary_count_label(counts.policies, "policy", "policies"),
                "endpoints": summary_count_label(counts.endpoints, "endpoint"),
                "actions": summary_count_label(counts.actions, "action"),
                "pages": summary_count_label(counts.pages, "page"),
            },
        )
