"""Production flow planning: from a target item to a positioned flow graph."""

import logging
from dataclasses import dataclass, field
from typing import Mapping

from frozendict import frozendict

from assembler import FlowGraph, assemble_flow_graph, flow_node_id
from catalog import Catalog
from distribution import distribute_edges
from expansion import expand_sources
from layout import LayoutConfig, LayoutOracle, layered_layout
from production import ProductionGraphProvider, build_production_graph
from sources import OreQuality, SourceMapping, freeze_sources, selected_qualities

_LOGGER = logging.getLogger("flowplanner")


@dataclass(frozen=True)
class FlowDataParams:
    """Configuration for flow graph generation"""
    target_item_id: str
    target_amount: float
    catalog: Catalog
    ore_sources_by_item: SourceMapping = field(default_factory=frozendict)
    quality_rates: Mapping[OreQuality, float] | None = None


def valid_target_amount(target_amount: float) -> float:
    """Replace a non-positive target amount with 1.

    An empty or zero amount is a transient editing state, not an error.
    """
    return target_amount if target_amount > 0 else 1


def generate_flow_data(
    params: FlowDataParams,
    provider: ProductionGraphProvider = build_production_graph,
    layout: LayoutOracle = layered_layout,
    layout_config: LayoutConfig = LayoutConfig(),
) -> FlowGraph:
    """Build the positioned flow graph for a production target.

    Precondition:
        params.catalog contains params.target_item_id
        provider returns a finite acyclic ProductionGraph with unique keys
        layout returns a center for every node id it is given

    Postcondition:
        the base graph is built for the amount from valid_target_amount,
        with each raw item sized against its first configured ore source
        extractor nodes are split per ore source, edges are fanned out,
        positions come from a single layout call
        the result depends only on the arguments

    Args:
        params: generation configuration
        provider: production graph provider
        layout: layout oracle
        layout_config: direction, spacing and node footprint

    Returns:
        FlowGraph

    Raises:
        ValueError: if the provider rejects the target or catalog
    """
    amount = valid_target_amount(params.target_amount)
    ore_sources = freeze_sources(params.ore_sources_by_item)

    base = provider(
        params.catalog,
        params.target_item_id,
        amount,
        selected_qualities(ore_sources),
        params.quality_rates,
    )
    expanded_nodes, key_to_indexes = expand_sources(base.nodes, ore_sources, params.quality_rates)
    expanded_edges = distribute_edges(base.edges, key_to_indexes)

    node_sizes = {flow_node_id(index): layout_config.node_size for index in range(len(expanded_nodes))}
    layout_edges = [(flow_node_id(edge.from_index), flow_node_id(edge.to_index)) for edge in expanded_edges]
    positions = layout(node_sizes, layout_edges, layout_config)

    flow_graph = assemble_flow_graph(
        expanded_nodes,
        positions,
        expanded_edges,
        node_size=layout_config.node_size,
        item_names=params.catalog.items,
    )
    _LOGGER.info(
        "Flow graph for %s at %s/min: %s nodes, %s edges",
        params.target_item_id,
        amount,
        len(flow_graph.nodes),
        len(flow_graph.edges),
    )
    return flow_graph
