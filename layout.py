"""Hierarchical layout of flow graph nodes.

A layout oracle takes node footprints, directed edges and a LayoutConfig and
returns the center of every node. Two oracles are provided:

    layered_layout   pure Python layered layout (networkx), the default
    graphviz_layout  delegates to the Graphviz dot engine

Both are memoized on the frozen content of their arguments.
"""

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Mapping, Sequence

import graphviz
import networkx as nx
from frozendict import frozendict

from freezeargs import freezeargs

_LOGGER = logging.getLogger("flowplanner")

_RANKDIRS = ("LR", "RL", "TB", "BT")

# Barycenter passes, each one sweep forward and one backward
_ORDERING_PASSES = 4

# Graphviz works in inches, positions come back in points
_POINTS_PER_INCH = 72.0


@dataclass(frozen=True)
class LayoutConfig:
    """direction, spacing and default node footprint of a layout"""

    rankdir: str = "LR"
    ranksep: float = 150
    nodesep: float = 100
    width: float = 200
    height: float = 120

    @property
    def node_size(self) -> tuple[float, float]:
        return self.width, self.height


Size = tuple[float, float]
Point = tuple[float, float]
LayoutOracle = Callable[[Mapping[str, Size], Sequence[tuple[str, str]], LayoutConfig], Mapping[str, Point]]


def _check_rankdir(config: LayoutConfig) -> None:
    if config.rankdir not in _RANKDIRS:
        raise ValueError(f"Invalid rankdir '{config.rankdir}'. Must be one of {', '.join(_RANKDIRS)}.")


def _build_graph(node_sizes: Mapping[str, Size], edges: Sequence[tuple[str, str]]) -> nx.DiGraph:
    """Build a DiGraph of the nodes, ignoring edges to unknown nodes."""
    graph = nx.DiGraph()
    graph.add_nodes_from(node_sizes)
    graph.add_edges_from((source, target) for source, target in edges if source in node_sizes and target in node_sizes)
    return graph


def _assign_ranks(graph: nx.DiGraph) -> dict[str, int]:
    """Assign every node the length of the longest path reaching it.

    Precondition:
        graph is a DiGraph, possibly cyclic

    Postcondition:
        nodes without incoming edges from outside their strongly connected
        component get rank 0
        for every edge between different components, rank(target) > rank(source)
        nodes of one strongly connected component share a rank

    Args:
        graph: layout graph

    Returns:
        dict mapping node to rank
    """
    condensed = nx.condensation(graph)
    component_rank = {}
    for component in nx.topological_sort(condensed):
        component_rank[component] = max(
            (component_rank[predecessor] + 1 for predecessor in condensed.predecessors(component)),
            default=0,
        )
    mapping = condensed.graph["mapping"]
    return {node: component_rank[mapping[node]] for node in graph}


def _barycenter(neighbors: list[str], slot: dict[str, float]) -> float | None:
    if not neighbors:
        return None
    return sum(slot[neighbor] for neighbor in neighbors) / len(neighbors)


def _reorder_layer(layer: list[str], neighbors_of, slot: dict[str, float]) -> list[str]:
    """Sort a layer by the barycenter of each node's neighbors.

    Nodes without neighbors keep their current slot as their sort key.
    """
    keyed = []
    for index, node in enumerate(layer):
        center = _barycenter(neighbors_of(node), slot)
        keyed.append((slot[node] if center is None else center, index, node))
    return [node for _, _, node in sorted(keyed)]


def _centered_slots(layer: list[str]) -> dict[str, float]:
    offset = (len(layer) - 1) / 2
    return {node: index - offset for index, node in enumerate(layer)}


def _order_layers(graph: nx.DiGraph, ranks: dict[str, int], node_order: list[str]) -> list[list[str]]:
    """Group nodes into layers and reduce crossings with barycenter sweeps.

    Precondition:
        ranks covers every node of graph
        node_order lists every node once

    Postcondition:
        returns one list per rank, from rank 0 upward
        each node appears in exactly one layer
        the result depends only on the inputs

    Args:
        graph: layout graph
        ranks: node -> rank
        node_order: initial order of nodes within their layer

    Returns:
        list of layers
    """
    layer_count = max(ranks.values()) + 1
    layers = [[] for _ in range(layer_count)]
    for node in node_order:
        layers[ranks[node]].append(node)

    def lower(node):
        return [n for n in graph.predecessors(node) if ranks[n] < ranks[node]]

    def upper(node):
        return [n for n in graph.successors(node) if ranks[n] > ranks[node]]

    for _ in range(_ORDERING_PASSES):
        slot = {}
        for layer in layers:
            slot.update(_centered_slots(layer))
        for rank in range(1, layer_count):
            layers[rank] = _reorder_layer(layers[rank], lower, slot)
            slot.update(_centered_slots(layers[rank]))
        for rank in range(layer_count - 2, -1, -1):
            layers[rank] = _reorder_layer(layers[rank], upper, slot)
            slot.update(_centered_slots(layers[rank]))
    return layers


def _assign_coordinates(layers: list[list[str]], node_sizes: Mapping[str, Size], config: LayoutConfig) -> dict[str, Point]:
    """Turn ordered layers into node centers.

    Precondition:
        every node in layers has a size in node_sizes

    Postcondition:
        layers are placed along the primary axis in rank order, separated by
        config.ranksep; nodes of one layer are stacked along the secondary
        axis separated by config.nodesep and centered on the longest layer
        RL and BT mirror LR and TB along the primary axis

    Args:
        layers: ordered layers
        node_sizes: node -> (width, height)
        config: layout configuration

    Returns:
        dict mapping node to (center_x, center_y)
    """
    horizontal = config.rankdir in ("LR", "RL")

    def primary(node):
        width, height = node_sizes[node]
        return width if horizontal else height

    def secondary(node):
        width, height = node_sizes[node]
        return height if horizontal else width

    extents = [max(primary(node) for node in layer) for layer in layers]
    lengths = [sum(secondary(node) for node in layer) + config.nodesep * (len(layer) - 1) for layer in layers]
    longest = max(lengths)
    total_primary = sum(extents) + config.ranksep * (len(layers) - 1)

    positions = {}
    rank_start = 0.0
    for layer, extent, length in zip(layers, extents, lengths):
        center_primary = rank_start + extent / 2
        if config.rankdir in ("RL", "BT"):
            center_primary = total_primary - center_primary
        cursor = (longest - length) / 2
        for node in layer:
            center_secondary = cursor + secondary(node) / 2
            cursor += secondary(node) + config.nodesep
            positions[node] = (center_primary, center_secondary) if horizontal else (center_secondary, center_primary)
        rank_start += extent + config.ranksep
    return positions


@freezeargs
@lru_cache(maxsize=32)
def layered_layout(
    node_sizes: Mapping[str, Size], edges: Sequence[tuple[str, str]], config: LayoutConfig = LayoutConfig()
) -> Mapping[str, Point]:
    """Compute a layered layout of a directed graph.

    Precondition:
        node_sizes maps node ids to (width, height)
        edges are (source_id, target_id) pairs; pairs naming unknown ids
        are ignored

    Postcondition:
        returns exactly one center per node id
        nodes without incoming edges are placed in the first layer
        along every edge outside a cycle, flow advances along the primary
        axis given by config.rankdir
        nodes of the same layer do not overlap
        equal inputs return the same (cached) result

    Args:
        node_sizes: node footprints
        edges: directed edges
        config: layout configuration

    Returns:
        frozen mapping of node id to (center_x, center_y)

    Raises:
        ValueError: if config.rankdir is not recognized
    """
    _check_rankdir(config)
    if not node_sizes:
        return frozendict()
    _LOGGER.debug("Computing layered layout for %s nodes and %s edges", len(node_sizes), len(edges))
    graph = _build_graph(node_sizes, edges)
    ranks = _assign_ranks(graph)
    layers = _order_layers(graph, ranks, list(node_sizes))
    return frozendict(_assign_coordinates(layers, node_sizes, config))


def _inches(pixels: float) -> str:
    return f"{pixels / _POINTS_PER_INCH:.4f}"


def _build_digraph(node_sizes: Mapping[str, Size], edges: Sequence[tuple[str, str]], config: LayoutConfig) -> graphviz.Digraph:
    """Build the graphviz digraph handed to the dot engine."""
    dot = graphviz.Digraph(comment="Flow Layout")
    dot.attr(rankdir=config.rankdir, ranksep=_inches(config.ranksep), nodesep=_inches(config.nodesep))
    for node_id, (width, height) in node_sizes.items():
        dot.node(node_id, "", shape="box", fixedsize="true", width=_inches(width), height=_inches(height))
    for source, target in edges:
        if source in node_sizes and target in node_sizes:
            dot.edge(source, target)
    return dot


def _read_positions(layout: dict, node_sizes: Mapping[str, Size]) -> dict[str, Point]:
    """Extract node centers from dot's JSON output, with y growing downward.

    Precondition:
        layout is decoded "json" output of the dot engine

    Postcondition:
        returns a center for every object named in node_sizes
    """
    top = float(layout["bb"].split(",")[3])
    positions = {}
    for obj in layout.get("objects", []):
        if obj.get("name") in node_sizes and "pos" in obj:
            x, y = (float(value) for value in obj["pos"].split(","))
            positions[obj["name"]] = (x, top - y)
    return positions


@freezeargs
@lru_cache(maxsize=32)
def graphviz_layout(
    node_sizes: Mapping[str, Size], edges: Sequence[tuple[str, str]], config: LayoutConfig = LayoutConfig()
) -> Mapping[str, Point]:
    """Compute a layout with the Graphviz dot engine.

    Precondition:
        the Graphviz "dot" executable is installed
        node_sizes maps node ids to (width, height) in pixels

    Postcondition:
        returns exactly one center per node id, in pixels, y growing downward

    Args:
        node_sizes: node footprints
        edges: directed edges
        config: layout configuration

    Returns:
        frozen mapping of node id to (center_x, center_y)

    Raises:
        ValueError: if config.rankdir is not recognized
        graphviz.ExecutableNotFound: if dot is not installed
    """
    _check_rankdir(config)
    if not node_sizes:
        return frozendict()
    dot = _build_digraph(node_sizes, edges, config)
    layout = json.loads(dot.pipe(format="json"))
    return frozendict(_read_positions(layout, node_sizes))
