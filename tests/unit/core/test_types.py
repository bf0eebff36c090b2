"""
Unit tests for the canonical and visualization models.
"""

from accessgraph.core.types import (
    DEFAULT_NODE_DIMENSIONS,
    Dimensions,
    GraphBuild,
    NodeCategory,
    PageAction,
    PageActionEndpoint,
    PageNode,
    UserSummary,
    VisualizationEdge,
    VisualizationNode,
)


class TestPageAction:
    def test_details_derive_endpoint(self):
        action = PageAction(label="Go", endpoint_details=PageActionEndpoint(method="GET", path="/x"))
        assert action.endpoint == "GET /x"

    def test_empty_details_dropped(self):
        action = PageAction(label="Go", endpoint_details=PageActionEndpoint())
        assert action.endpoint_details is None
        assert not action.has_endpoint

    def test_ignores_unknown_fields(self):
        action = PageAction.model_validate({"label": "Go", "extra": 1})
        assert action.label == "Go"


class TestPageNode:
    def test_ids_and_labels(self):
        page = PageNode(id=4, label="Users", route="/users")
        assert page.node_id == "page-4"
        assert page.display_label == "Users (/users)"
        assert PageNode(id=5, label="Home").display_label == "Home"


class TestUserSummary:
    def test_display_name(self):
        assert UserSummary(id=1, username="ana", full_name="Ana").display_name == "Ana (ana)"
        assert UserSummary(id=1, username="ana").display_name == "ana"


class TestVisualizationNode:
    def test_default_dimensions_by_category(self):
        node = VisualizationNode(id="user-1", category=NodeCategory.USER, title="Ana")
        assert node.dimensions == Dimensions(width=300, height=150)
        page = VisualizationNode(id="page-1", category="page", title="P")
        assert page.dimensions == DEFAULT_NODE_DIMENSIONS[NodeCategory.PAGE]

    def test_explicit_dimensions_kept(self):
        node = VisualizationNode(id="x", category="role", title="R", dimensions=Dimensions(width=10, height=20))
        assert node.dimensions.width == 10

    def test_flags_default_off(self):
        node = VisualizationNode(id="x", category="action", title="A")
        assert not (node.highlight or node.collapsible or node.expanded or node.selected)
        assert node.position is None


class TestGraphBuild:
    def test_helpers(self):
        build = GraphBuild(
            nodes=[
                VisualizationNode(id="a", category="page", title="A", highlight=True),
                VisualizationNode(id="b", category="page", title="B"),
            ],
            edges=[VisualizationEdge(id="e", source="a", target="b")],
        )
        assert build.node_ids() == ["a", "b"]
        assert build.edge_ids() == ["e"]
        assert build.get_node("b").title == "B"
        assert build.get_node("zzz") is None
        assert [n.id for n in build.highlighted_nodes()] == ["a"]
        assert build.highlighted_edges() == []
        assert not build.is_empty
        assert GraphBuild().is_empty
