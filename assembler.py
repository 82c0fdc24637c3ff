"""Assemble expanded nodes, their positions and edges into a flow graph."""

import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Sequence

from distribution import ExpandedEdge
from expansion import ExpandedNode
from layout import LayoutConfig

_LOGGER = logging.getLogger("flowplanner")


def flow_node_id(index: int) -> str:
    """Get the flow graph id of the expanded node at index."""
    return f"node_{index}"


def flow_edge_id(from_index: int, to_index: int, item_id: str) -> str:
    """Get the flow graph id of an edge; unique per (source, target, item)."""
    return f"{flow_node_id(from_index)}-{flow_node_id(to_index)}-{item_id}"


@dataclass(frozen=True)
class FlowNode:
    """a positioned node of the flow graph

    position is the top-left corner of the node's footprint.
    total_power_consumption is the graph-wide power draw, carried on every
    node for display.
    """

    id: str
    position: tuple[float, float]
    expanded: ExpandedNode
    total_power_consumption: float

    @property
    def can_remove_source(self) -> bool:
        return self.expanded.node.extractor and (self.expanded.source_count or 0) > 1


@dataclass(frozen=True)
class FlowEdge:
    """a labeled edge of the flow graph"""

    id: str
    source: str
    target: str
    item_id: str
    amount: float
    label: str


@dataclass(frozen=True)
class FlowGraph:
    """the final, renderable flow graph

    node_size is the (width, height) footprint the positions were laid out
    with.
    """

    nodes: tuple[FlowNode, ...]
    edges: tuple[FlowEdge, ...]
    total_power_consumption: float
    node_size: tuple[float, float] = LayoutConfig().node_size


def total_power_consumption(nodes: Sequence[ExpandedNode]) -> float:
    """Sum the power draw of all expanded nodes."""
    return sum(entry.node.total_power for entry in nodes)


def _edge_label(item_name: str, amount: float) -> str:
    return f"{item_name} ({amount:.1f}/min)"


def _create_edges(edges: Sequence[ExpandedEdge], item_name: Callable[[str], str]) -> tuple[FlowEdge, ...]:
    """Convert expanded edges into flow edges, keeping the first of each id.

    Precondition:
        edges is in emission order

    Postcondition:
        returns at most one FlowEdge per (source, target, item)
        on a collision the earliest edge is kept with its own amount; the
        amounts of dropped edges are not added to it

    Args:
        edges: expanded edges
        item_name: item id -> display name

    Returns:
        tuple of FlowEdge
    """
    flow_edges = []
    seen = set()
    for edge in edges:
        edge_id = flow_edge_id(edge.from_index, edge.to_index, edge.item_id)
        if edge_id in seen:
            _LOGGER.debug("Dropping duplicate edge %s", edge_id)
            continue
        seen.add(edge_id)
        flow_edges.append(FlowEdge(
            id=edge_id,
            source=flow_node_id(edge.from_index),
            target=flow_node_id(edge.to_index),
            item_id=edge.item_id,
            amount=edge.amount,
            label=_edge_label(item_name(edge.item_id), edge.amount),
        ))
    return tuple(flow_edges)


def assemble_flow_graph(
    nodes: Sequence[ExpandedNode],
    positions: Mapping[str, tuple[float, float]],
    edges: Sequence[ExpandedEdge],
    node_size: tuple[float, float] = LayoutConfig().node_size,
    item_names: Mapping[str, str] | None = None,
) -> FlowGraph:
    """Merge expanded nodes, layout positions and edges into a FlowGraph.

    Precondition:
        positions maps flow_node_id(i) to the center of node i for every
        index of nodes
        edges reference indexes of nodes

    Postcondition:
        node i gets id flow_node_id(i) and its top-left corner as position
        every node carries the graph-wide power total
        the graph records node_size for exporters
        edge ids are unique; later duplicates are dropped
        the result depends only on the arguments

    Args:
        nodes: expanded nodes
        positions: node id -> (center_x, center_y)
        edges: expanded edges in emission order
        node_size: (width, height) footprint used by the layout
        item_names: optional item id -> display name for edge labels

    Returns:
        FlowGraph

    Raises:
        KeyError: if a node has no position
    """
    names = item_names or {}
    width, height = node_size
    total_power = total_power_consumption(nodes)

    flow_nodes = []
    for index, entry in enumerate(nodes):
        node_id = flow_node_id(index)
        center_x, center_y = positions[node_id]
        flow_nodes.append(FlowNode(node_id, (center_x - width / 2, center_y - height / 2), entry, total_power))

    flow_edges = _create_edges(edges, lambda item_id: names.get(item_id, item_id))
    return FlowGraph(tuple(flow_nodes), flow_edges, total_power, (width, height))
