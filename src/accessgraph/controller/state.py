"""
View state owned by the interaction controllers.

All mutable UI state (expanded ids, query, selection, the rendered graph)
lives in one ``ViewState`` per controller; nothing is kept at module level.
"""

from enum import StrEnum
from typing import Dict, List, Set

from pydantic import BaseModel, Field

from ..core.types import VisualizationEdge, VisualizationNode


class ViewStatus(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


FAILURE_STATUSES = frozenset({ViewStatus.ERROR, ViewStatus.FORBIDDEN, ViewStatus.NOT_FOUND})


class ViewState(BaseModel):
    """
    Snapshot of what a front end should display.

    Attributes:
        status: Lifecycle state of the view.
        message: Error or informational text for the current status.
        nodes: Positioned nodes from the last render.
        edges: Edges from the last render.
        expanded_ids: Node ids whose children are visible.
        query: Current search text.
        selection: Selected page or user id, if any.
    """
    status: ViewStatus = ViewStatus.IDLE
    message: str | None = None
    nodes: List[VisualizationNode] = Field(default_factory=list)
    edges: List[VisualizationEdge] = Field(default_factory=list)
    expanded_ids: Set[str] = Field(default_factory=set)
    query: str = ""
    selection: int | str | None = None

    @property
    def is_failure(self) -> bool:
        return self.status in FAILURE_STATUSES


class SelectionSummary(BaseModel):
    """Headline plus count labels for the current selection."""
    label: str
    counts: Dict[str, str] = Field(default_factory=dict)
