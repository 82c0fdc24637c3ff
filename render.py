"""Export a flow graph as positioned Graphviz source or plain JSON data."""

import graphviz

from assembler import FlowGraph, FlowNode
from sources import ORE_QUALITY_LABELS

# The capacities of the conveyors, items per minute
_CONVEYORS = [60, 120, 270, 480]

# Graphviz positions are in points
_POINTS_PER_INCH = 72.0


def _get_conveyor_mark(flow_rate: float) -> int:
    """Determine which conveyor mark is needed for a given flow rate.

    Precondition:
        flow_rate is a non-negative float

    Postcondition:
        returns the lowest mark (1-4) whose capacity covers flow_rate
        returns 4 for rates exceeding the fastest conveyor

    Args:
        flow_rate: items per minute to transport

    Returns:
        conveyor mark number (1-4)
    """
    for mark, speed in enumerate(_CONVEYORS, start=1):
        if flow_rate <= speed:
            return mark
    return len(_CONVEYORS)


def _get_conveyor_stripe_color(mark: int) -> str:
    """Generate graphviz color string with one black stripe per conveyor mark.

    Precondition:
        mark is a positive integer

    Postcondition:
        Mark 1: "black"
        Mark 2: "black:white:black", and so on

    Args:
        mark: conveyor mark number

    Returns:
        graphviz color specification string
    """
    return ":white:".join(["black"] * mark)


def _node_label(node: FlowNode, item_name: str) -> str:
    """Build the multi-line label of a node."""
    entry = node.expanded
    production = entry.node
    lines = [
        f"x{production.building_count:.2f}",
        production.building_name,
        f"{item_name} {production.output_amount:.1f}/min",
        f"Power: {production.total_power:g}",
    ]
    if entry.source_quality is not None:
        source = ORE_QUALITY_LABELS[entry.source_quality]
        if (entry.source_count or 0) > 1:
            source += f" (source {entry.source_index + 1} of {entry.source_count})"
        lines.append(source)
    return "\n".join(lines)


def to_graphviz(flow_graph: FlowGraph, item_names: dict[str, str] | None = None) -> graphviz.Digraph:
    """Build a Graphviz digraph pinning every node at its flow graph position.

    Precondition:
        flow_graph comes from assemble_flow_graph

    Postcondition:
        one box node per flow node, sized by flow_graph.node_size, with a
        pinned "pos" attribute (neato, y flipped so the graph reads top-down
        as laid out)
        one edge per flow edge, labeled with its label and striped by the
        conveyor mark its amount needs
        graph label carries the total power consumption

    Args:
        flow_graph: graph to export
        item_names: optional item id -> display name

    Returns:
        graphviz Digraph
    """
    names = item_names or {}
    width, height = flow_graph.node_size
    dot = graphviz.Digraph(comment="Production Flow", engine="neato")
    dot.attr(label=f"Total power: {flow_graph.total_power_consumption:g}", splines="true")

    for node in flow_graph.nodes:
        x, y = node.position
        output_item = node.expanded.node.output_item
        dot.node(
            node.id,
            _node_label(node, names.get(output_item, output_item)),
            shape="box",
            style="rounded",
            width=f"{width / _POINTS_PER_INCH:.4f}",
            height=f"{height / _POINTS_PER_INCH:.4f}",
            pos=f"{x + width / 2:.1f},{-(y + height / 2):.1f}!",
        )

    for edge in flow_graph.edges:
        color = _get_conveyor_stripe_color(_get_conveyor_mark(edge.amount))
        dot.edge(edge.source, edge.target, label=edge.label, color=color, penwidth="2")

    return dot


def to_dict(flow_graph: FlowGraph) -> dict:
    """Convert a flow graph into JSON-ready plain data.

    Precondition:
        flow_graph is a FlowGraph

    Postcondition:
        returns {"nodes": [...], "edges": [...], "total_power_consumption": float,
        "node_size": {"width": float, "height": float}}
        ore qualities are written by name; absent source fields are None

    Args:
        flow_graph: graph to convert

    Returns:
        dict of plain lists, strings and numbers
    """
    nodes = []
    for node in flow_graph.nodes:
        entry = node.expanded
        production = entry.node
        nodes.append({
            "id": node.id,
            "position": {"x": node.position[0], "y": node.position[1]},
            "building_id": production.building_id,
            "building_name": production.building_name,
            "recipe_index": production.recipe_index,
            "output_item": production.output_item,
            "output_amount": production.output_amount,
            "building_count": production.building_count,
            "total_power": production.total_power,
            "original_key": entry.original_key,
            "source_index": entry.source_index,
            "source_count": entry.source_count,
            "source_quality": entry.source_quality.name if entry.source_quality is not None else None,
        })
    edges = [
        {
            "id": edge.id,
            "source": edge.source,
            "target": edge.target,
            "item_id": edge.item_id,
            "amount": edge.amount,
            "label": edge.label,
        }
        for edge in flow_graph.edges
    ]
    width, height = flow_graph.node_size
    return {
        "nodes": nodes,
        "edges": edges,
        "total_power_consumption": flow_graph.total_power_consumption,
        "node_size": {"width": width, "height": height},
    }
