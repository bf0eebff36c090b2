"""
Unit tests for the layered layout.
"""

from itertools import combinations

import pytest

from accessgraph.config import MARGIN_X, MARGIN_Y, RANK_SEP
from accessgraph.core.types import LayoutDirection, VisualizationEdge, VisualizationNode
from accessgraph.graph.builder import build_page_graph, build_user_graph
from accessgraph.graph.layout import (
    assign_ranks,
    build_layering_graph,
    count_crossings,
    layout_nodes,
    minimise_crossings,
)


def _node(node_id, category="page"):
    return VisualizationNode(id=node_id, category=category, title=node_id)


def _edge(source, target):
    return VisualizationEdge(id=f"edge-{source}-{target}", source=source, target=target)


def _overlaps(a, b):
    return (
        a.position.x < b.position.x + b.dimensions.width
        and b.position.x < a.position.x + a.dimensions.width
        and a.position.y < b.position.y + b.dimensions.height
        and b.position.y < a.position.y + a.dimensions.height
    )


class TestLayeringGraph:
    def test_skips_bad_edges(self):
        nodes = [_node("a"), _node("b")]
        edges = [_edge("a", "b"), _edge("a", "b"), _edge("a", "a"), _edge("a", "zzz"), _edge("b", "a")]
        graph = build_layering_graph(nodes, edges)
        assert list(graph.edges) == [("a", "b")]

    def test_ranks_use_longest_path(self):
        nodes = [_node("a"), _node("b"), _node("c")]
        graph = build_layering_graph(nodes, [_edge("a", "b"), _edge("b", "c"), _edge("a", "c")])
        assert assign_ranks(graph) == {"a": 0, "b": 1, "c": 2}


class TestCrossings:
    def test_barycenter_removes_crossing(self):
        nodes = [_node("a"), _node("b"), _node("c"), _node("d")]
        graph = build_layering_graph(nodes, [_edge("a", "d"), _edge("b", "c")])
        assert count_crossings([["a", "b"], ["c", "d"]], graph) == 1

        ordering = minimise_crossings(graph, assign_ranks(graph))
        assert count_crossings(ordering, graph) == 0
        assert ordering == [["a", "b"], ["d", "c"]]


class TestLayoutNodes:
    def test_empty(self):
        nodes = []
        assert layout_nodes(nodes, []) is nodes

    def test_single_node_sits_at_margin(self):
        (placed,) = layout_nodes([_node("a")], [])
        assert (placed.position.x, placed.position.y) == (MARGIN_X, MARGIN_Y)

    def test_input_untouched(self):
        nodes = [_node("a"), _node("b")]
        layout_nodes(nodes, [_edge("a", "b")])
        assert all(node.position is None for node in nodes)

    def test_chain_top_bottom(self):
        nodes = [_node("a"), _node("b"), _node("c")]
        placed = layout_nodes(nodes, [_edge("a", "b"), _edge("b", "c")])
        assert [n.id for n in placed] == ["a", "b", "c"]
        xs = {n.position.x for n in placed}
        assert xs == {MARGIN_X}
        height = nodes[0].dimensions.height
        assert [n.position.y for n in placed] == [
            MARGIN_Y,
            MARGIN_Y + height + RANK_SEP,
            MARGIN_Y + 2 * (height + RANK_SEP),
        ]

    def test_left_right_swaps_axes(self):
        nodes = [_node("a"), _node("b")]
        edges = [_edge("a", "b")]
        tb = {n.id: n.position for n in layout_nodes(nodes, edges, LayoutDirection.TOP_BOTTOM)}
        lr = {n.id: n.position for n in layout_nodes(nodes, edges, "LR")}
        assert tb["a"].x == tb["b"].x
        assert tb["a"].y < tb["b"].y
        assert lr["a"].y == lr["b"].y
        assert lr["a"].x < lr["b"].x

    def test_cycle_does_not_fail(self):
        nodes = [_node("a"), _node("b"), _node("c")]
        placed = layout_nodes(nodes, [_edge("a", "b"), _edge("b", "c"), _edge("c", "a")])
        by_id = {n.id: n.position for n in placed}
        assert by_id["a"].y < by_id["b"].y < by_id["c"].y

    def test_deterministic(self, pages):
        build = build_page_graph(pages, {"page-1", "page-2", "page-action-2-0", "page-action-2-1"})
        first = layout_nodes(build.nodes, build.edges)
        second = layout_nodes(build.nodes, build.edges)
        assert [n.position for n in first] == [n.position for n in second]

    @pytest.mark.parametrize("direction", ["TB", "LR"])
    def test_no_overlap(self, user_record, direction):
        build = build_user_graph(user_record, set(), force_expand=True)
        placed = layout_nodes(build.nodes, build.edges, direction)
        for a, b in combinations(placed, 2):
            assert not _overlaps(a, b), (a.id, b.id)
        assert min(n.position.x for n in placed) >= 0
        assert min(n.position.y for n in placed) >= 0
