"""
Core type definitions for accessgraph.

Two families of models live here:

- The canonical permission model (pages, actions, users, roles, policies,
  endpoints) produced by the normalizer from Access Directory payloads.
- The visualization model (nodes and edges) produced fresh by the graph
  builder on every render pass.
"""

from enum import StrEnum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, model_validator


class NodeCategory(StrEnum):
    """Categories of nodes in the access graph."""
    USER = "user"
    ROLE = "role"
    POLICY = "policy"
    ENDPOINT = "endpoint"
    ACTION = "action"
    PAGE = "page"


class LayoutDirection(StrEnum):
    """Rank direction for the layered layout."""
    TOP_BOTTOM = "TB"
    LEFT_RIGHT = "LR"


# =============================================================================
# Canonical page model
# =============================================================================


class PageActionEndpoint(BaseModel):
    """
    Endpoint linked to a page action.

    All fields are optional; a descriptor with no values means
    "no linked endpoint" and is never stored on a PageAction.
    """
    service: str | None = None
    version: str | None = None
    method: str | None = None
    path: str | None = None

    model_config = ConfigDict(extra="ignore")

    def is_empty(self) -> bool:
        return not any((self.service, self.version, self.method, self.path))

    def request_line(self) -> str:
        """Render as '<method> <path>', skipping missing parts."""
        return " ".join(part for part in (self.method, self.path) if part)


class PageAction(BaseModel):
    """An action a UI page exposes, optionally backed by an endpoint."""
    label: str = ""
    action: str = ""
    endpoint: str | None = None
    endpoint_details: PageActionEndpoint | None = None

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def _reconcile_endpoint(self) -> "PageAction":
        # Structured details are authoritative for the request line.
        details = self.endpoint_details
        if details is not None and details.is_empty():
            self.endpoint_details = details = None
        if details is not None and (details.method or details.path):
            self.endpoint = details.request_line()
        return self

    @property
    def has_endpoint(self) -> bool:
        return bool(self.endpoint or self.endpoint_details)


class PageNode(BaseModel):
    """
    A UI page with its actions and child pages.

    The normalized ``route`` doubles as the hierarchy key during
    reconstruction (see ``accessgraph.core.hierarchy``).
    """
    id: int | str = 0
    key: str = ""
    label: str = ""
    route: str = ""
    is_requested: bool | None = None
    actions: List[PageAction] = Field(default_factory=list)
    children: List["PageNode"] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @property
    def node_id(self) -> str:
        return f"page-{self.id}"

    @property
    def display_label(self) -> str:
        return f"{self.label} ({self.route})" if self.route else self.label


# =============================================================================
# Canonical user access model
# =============================================================================


class PageReference(BaseModel):
    """Summary of the page a user-side page action points back to."""
    key: str | None = None
    label: str | None = None
    route: str | None = None

    model_config = ConfigDict(extra="ignore")


class UserPageAction(BaseModel):
    action: str = ""
    label: str = ""
    page: PageReference | None = None

    model_config = ConfigDict(extra="ignore")


class Endpoint(BaseModel):
    service: str = ""
    version: str = ""
    method: str = ""
    path: str = ""
    description: str | None = None
    page_actions: List[UserPageAction] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class Policy(BaseModel):
    name: str = ""
    description: str | None = None
    endpoints: List[Endpoint] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class Role(BaseModel):
    name: str = ""
    description: str | None = None
    policies: List[Policy] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class UserSummary(BaseModel):
    """Entry of the Access Directory user list."""
    id: int | str
    username: str = ""
    full_name: str | None = None
    email: str | None = None

    model_config = ConfigDict(extra="ignore")

    @property
    def display_name(self) -> str:
        if self.full_name:
            return f"{self.full_name} ({self.username})"
        return self.username


class UserAccessRecord(BaseModel):
    """
    A user with the full role -> policy -> endpoint -> action -> page fan-out.

    This is a tree, not a DAG: a policy shared by two roles appears twice.
    """
    id: int | str
    username: str = ""
    full_name: str | None = None
    email: str | None = None
    roles: List[Role] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @property
    def node_id(self) -> str:
        return f"user-{self.id}"

    @property
    def display_name(self) -> str:
        if self.full_name:
            return f"{self.full_name} ({self.username})"
        return self.username


# =============================================================================
# Visualization model
# =============================================================================


class Dimensions(BaseModel):
    width: float
    height: float

    model_config = ConfigDict(frozen=True)


class Position(BaseModel):
    x: float = 0.0
    y: float = 0.0


DEFAULT_NODE_DIMENSIONS: Dict[NodeCategory, Dimensions] = {
    NodeCategory.USER: Dimensions(width=300, height=150),
    NodeCategory.ROLE: Dimensions(width=260, height=136),
    NodeCategory.POLICY: Dimensions(width=260, height=136),
    NodeCategory.ENDPOINT: Dimensions(width=300, height=156),
    NodeCategory.ACTION: Dimensions(width=240, height=124),
    NodeCategory.PAGE: Dimensions(width=240, height=120),
}


class Badge(BaseModel):
    text: str
    color: str | None = None


class VisualizationNode(BaseModel):
    """
    Renderable unit emitted by the graph builder.

    Never persisted; a new set is produced on every build.
    """
    id: str
    category: NodeCategory
    title: str
    subtitle: str | None = None
    description: str | None = None
    badges: List[Badge] = Field(default_factory=list)
    summary_items: List[str] = Field(default_factory=list)
    highlight: bool = False
    collapsible: bool = False
    expanded: bool = False
    selected: bool = False
    dimensions: Dimensions | None = None
    position: Position | None = None

    def model_post_init(self, __context) -> None:
        if self.dimensions is None:
            object.__setattr__(self, "dimensions", DEFAULT_NODE_DIMENSIONS[self.category])


class VisualizationEdge(BaseModel):
    id: str
    source: str
    target: str
    label: str | None = None
    color: str | None = None
    animated: bool = False
    highlight: bool = False


class GraphBuild(BaseModel):
    """Output buffer of one build pass."""
    nodes: List[VisualizationNode] = Field(default_factory=list)
    edges: List[VisualizationEdge] = Field(default_factory=list)

    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def edge_ids(self) -> List[str]:
        return [edge.id for edge in self.edges]

    def get_node(self, node_id: str) -> VisualizationNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def highlighted_nodes(self) -> List[VisualizationNode]:
        return [node for node in self.nodes if node.highlight]

    def highlighted_edges(self) -> List[VisualizationEdge]:
        return [edge for edge in self.edges if edge.highlight]

    @property
    def is_empty(self) -> bool:
        return not self.nodes
