"""
Layout Adapter.

Positions visualization nodes with a deterministic layered (Sugiyama-style)
layout built on networkx:

1. Cycle handling: edges that would close a cycle are left out of the
   layering graph.
2. Rank assignment: longest path from the sources.
3. Crossing minimisation: barycenter sweeps, keeping the best ordering seen.
4. Coordinate assignment: ranks are stacked along the main axis using the
   tallest node of each rank; nodes in a rank are centred on the widest
   rank and nudged toward their neighbours.

``LR`` runs the same pipeline with the axes swapped. The layout is always
recomputed from scratch for the current node and edge set.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence

import networkx as nx

from ..config import MARGIN_X, MARGIN_Y, MAX_CROSSING_PASSES, NODE_SEP, RANK_SEP
from ..core.types import (
    DEFAULT_NODE_DIMENSIONS,
    Dimensions,
    LayoutDirection,
    Position,
    VisualizationEdge,
    VisualizationNode,
)

logger = logging.getLogger(__name__)


@dataclass
class _Placed:
    """A node placed in rank/cross coordinates before axis mapping."""
    id: str
    rank: int
    cross: float
    main: float
    cross_size: float
    main_size: float


def _dimensions(node: VisualizationNode) -> Dimensions:
    return node.dimensions or DEFAULT_NODE_DIMENSIONS[node.category]


def build_layering_graph(nodes: Sequence[VisualizationNode], edges: Sequence[VisualizationEdge]) -> nx.DiGraph:
    """
    Acyclic graph over the node ids.

    Edges with unknown endpoints, self-loops, duplicates, and edges that
    would close a cycle are skipped.
    """
    graph = nx.DiGraph()
    for index, node in enumerate(nodes):
        graph.add_node(node.id, index=index)

    for edge in edges:
        source, target = edge.source, edge.target
        if source not in graph or target not in graph or source == target:
            continue
        if graph.has_edge(source, target):
            continue
        if nx.has_path(graph, target, source):
            logger.debug(f"Skipping cycle-closing edge {edge.id} for layering")
            continue
        graph.add_edge(source, target)
    return graph


def assign_ranks(graph: nx.DiGraph) -> Dict[str, int]:
    """Longest-path ranking; sources get rank 0."""
    index = nx.get_node_attributes(graph, "index")
    ranks: Dict[str, int] = {}
    for node_id in nx.lexicographical_topological_sort(graph, key=lambda n: index[n]):
        preds = list(graph.predecessors(node_id))
        ranks[node_id] = max((ranks[p] + 1 for p in preds), default=0)
    return ranks


def count_crossings(ordering: List[List[str]], graph: nx.DiGraph) -> int:
    """Count edge crossings between consecutive ranks (inversion count)."""
    total = 0
    for rank in range(len(ordering) - 1):
        target_pos = {node_id: i for i, node_id in enumerate(ordering[rank + 1])}
        segments: List[tuple[int, int]] = []
        for source_pos, source in enumerate(ordering[rank]):
            for target in graph.successors(source):
                if target in target_pos:
                    segments.append((source_pos, target_pos[target]))
        for i in range(len(segments)):
            for j in range(i + 1, len(segments)):
                (a0, a1), (b0, b1) = segments[i], segments[j]
                if (a0 < b0 and a1 > b1) or (a0 > b0 and a1 < b1):
                    total += 1
    return total


def _barycenter(neighbours: List[str], positions: Dict[str, float], fallback: float) -> float:
    known = [positions[n] for n in neighbours if n in positions]
    if not known:
        return fallback
    return sum(known) / len(known)


def minimise_crossings(graph: nx.DiGraph, ranks: Dict[str, int]) -> List[List[str]]:
    """
    Order nodes within each rank using the barycenter heuristic.

    The initial order is insertion order. Nodes without neighbours in the
    adjacent rank keep their current position as their weight, and sorting
    is stable, so equal inputs always give equal output.
    """
    rank_count = max(ranks.values(), default=-1) + 1
    ordering: List[List[str]] = [[] for _ in range(rank_count)]
    index = nx.get_node_attributes(graph, "index")
    for node_id in sorted(ranks, key=lambda n: index[n]):
        ordering[ranks[node_id]].append(node_id)

    best = [list(layer) for layer in ordering]
    best_crossings = count_crossings(ordering, graph)
    if best_crossings == 0:
        return best

    for _ in range(MAX_CROSSING_PASSES):
        for rank in range(1, rank_count):
            upper = {n: float(i) for i, n in enumerate(ordering[rank - 1])}
            current = {n: float(i) for i, n in enumerate(ordering[rank])}
            ordering[rank].sort(
                key=lambda n: _barycenter(list(graph.predecessors(n)), upper, current[n])
            )
        for rank in range(rank_count - 2, -1, -1):
            lower = {n: float(i) for i, n in enumerate(ordering[rank + 1])}
            current = {n: float(i) for i, n in enumerate(ordering[rank])}
            ordering[rank].sort(
                key=lambda n: _barycenter(list(graph.successors(n)), lower, current[n])
            )

        crossings = count_crossings(ordering, graph)
        if crossings >= best_crossings:
            break
        best = [list(layer) for layer in ordering]
        best_crossings = crossings
        if crossings == 0:
            break

    return best


def _centre(placed: _Placed) -> float:
    return placed.cross + placed.cross_size / 2


def assign_coordinates(
    ordering: List[List[str]],
    graph: nx.DiGraph,
    sizes: Dict[str, Dimensions],
    direction: LayoutDirection,
) -> Dict[str, Position]:
    """
    Top-left positions for every ordered node, including margins.

    For ``TB`` ranks grow along y; for ``LR`` they grow along x.
    """
    horizontal = direction == LayoutDirection.LEFT_RIGHT

    def cross_size(node_id: str) -> float:
        dims = sizes[node_id]
        return dims.height if horizontal else dims.width

    def main_size(node_id: str) -> float:
        dims = sizes[node_id]
        return dims.width if horizontal else dims.height

    rank_thickness = [max((main_size(n) for n in layer), default=0.0) for layer in ordering]
    rank_offsets: List[float] = []
    offset = 0.0
    for thickness in rank_thickness:
        rank_offsets.append(offset)
        offset += thickness + RANK_SEP

    rank_spans = [
        sum(cross_size(n) for n in layer) + max(len(layer) - 1, 0) * NODE_SEP
        for layer in ordering
    ]
    widest = max(rank_spans, default=0.0)

    placed: Dict[str, _Placed] = {}
    for rank, layer in enumerate(ordering):
        cursor = (widest - rank_spans[rank]) / 2
        for node_id in layer:
            placed[node_id] = _Placed(
                id=node_id,
                rank=rank,
                cross=cursor,
                # Centre each node within its rank band.
                main=rank_offsets[rank] + (rank_thickness[rank] - main_size(node_id)) / 2,
                cross_size=cross_size(node_id),
                main_size=main_size(node_id),
            )
            cursor += cross_size(node_id) + NODE_SEP

    # Shift whole ranks toward their parents, then toward their children.
    # Shifts larger than one gap are skipped so ranks keep their centring.
    for rank in range(1, len(ordering)):
        _shift_rank(ordering[rank], placed, graph, rank - 1, upstream=True)
    for rank in range(len(ordering) - 2, -1, -1):
        _shift_rank(ordering[rank], placed, graph, rank + 1, upstream=False)

    min_cross = min((p.cross for p in placed.values()), default=0.0)

    positions: Dict[str, Position] = {}
    for node_id, p in placed.items():
        cross = p.cross - min_cross
        if horizontal:
            positions[node_id] = Position(x=p.main + MARGIN_X, y=cross + MARGIN_Y)
        else:
            positions[node_id] = Position(x=cross + MARGIN_X, y=p.main + MARGIN_Y)
    return positions


def _shift_rank(layer: List[str], placed: Dict[str, _Placed], graph: nx.DiGraph, other_rank: int, upstream: bool) -> None:
    own_sum = 0.0
    other_sum = 0.0
    count = 0
    for node_id in layer:
        neighbours = graph.predecessors(node_id) if upstream else graph.successors(node_id)
        for neighbour in neighbours:
            other = placed.get(neighbour)
            if other is None or other.rank != other_rank:
                continue
            own_sum += _centre(placed[node_id])
            other_sum += _centre(other)
            count += 1
    if count == 0:
        return
    shift = (other_sum - own_sum) / count
    if abs(shift) > NODE_SEP:
        return
    for node_id in layer:
        placed[node_id].cross += shift


def layout_nodes(
    nodes: List[VisualizationNode],
    edges: List[VisualizationEdge],
    direction: LayoutDirection | str = LayoutDirection.TOP_BOTTOM,
) -> List[VisualizationNode]:
    """
    Return copies of ``nodes`` with ``position`` set.

    Positions are top-left corners. An empty node list is returned as is.

    Args:
        nodes: Nodes from one build pass.
        edges: Edges from the same pass.
        direction: ``TB`` or ``LR``.

    Returns:
        List[VisualizationNode]: Positioned nodes, in input order.
    """
    if not nodes:
        return nodes

    direction = LayoutDirection(direction)
    graph = build_layering_graph(nodes, edges)
    ranks = assign_ranks(graph)
    ordering = minimise_crossings(graph, ranks)

    # Duplicate ids collapse onto one graph node; every copy gets its position.
    sizes = {node.id: _dimensions(node) for node in nodes}
    positions = assign_coordinates(ordering, graph, sizes, direction)

    logger.debug(f"Laid out {len(nodes)} nodes in {len(ordering)} ranks ({direction.value})")
    return [node.model_copy(update={"position": positions[node.id]}) for node in nodes]
