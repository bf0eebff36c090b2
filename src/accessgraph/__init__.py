"""
accessgraph - Access Graph Visualization Engine.

Turns role/policy/endpoint/page permission data from the Access Directory
Service into a browsable, searchable, incrementally expandable graph with
a deterministic layered layout.

Key Components:
- core: Canonical model, normalizer, hierarchy reconstruction, counts
- graph: Graph builder, search highlighting, layout, tree explorer
- client: Access Directory HTTP client
- controller: Interaction/state controllers with stale-fetch protection

Usage:
    from accessgraph import build_hierarchy, normalize_pages, build_page_graph, layout_nodes

    pages = build_hierarchy(normalize_pages(payload))
    graph = build_page_graph(pages, expanded=set(), query="users")
    positioned = layout_nodes(graph.nodes, graph.edges)
"""

__version__ = "0.1.0"

from .core.hierarchy import build_hierarchy
from .core.normalize import normalize_pages, normalize_roles
from .core.types import (
    GraphBuild, LayoutDirection, NodeCategory, PageNode,
    UserAccessRecord, VisualizationEdge, VisualizationNode,
)
from .graph.builder import build_graph, build_page_graph, build_user_graph
from .graph.layout import layout_nodes

__all__ = [
    "__version__",
    "build_hierarchy",
    "normalize_pages",
    "normalize_roles",
    "GraphBuild",
    "LayoutDirection",
    "NodeCategory",
    "PageNode",
    "UserAccessRecord",
    "VisualizationEdge",
    "VisualizationNode",
    "build_graph",
    "build_page_graph",
    "build_user_graph",
    "layout_nodes",
]
