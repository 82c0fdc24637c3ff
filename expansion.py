"""Split extractor nodes into one node per configured ore source."""

import math
from dataclasses import dataclass, replace
from typing import Iterable, Mapping

from frozendict import frozendict

from production import ProductionNode
from sources import OreQuality, SourceMapping, get_ore_quality_rate, get_ore_sources


@dataclass(frozen=True)
class ExpandedNode:
    """a production node after source expansion

    source_index, source_count and source_quality are None for nodes that
    were passed through unchanged.
    """

    node: ProductionNode
    original_key: str
    source_index: int | None = None
    source_count: int | None = None
    source_quality: OreQuality | None = None

    @property
    def is_split(self) -> bool:
        return self.source_index is not None


def _split_extractor(
    node: ProductionNode,
    sources: tuple[OreQuality, ...],
    quality_rates: Mapping[OreQuality, float] | None,
) -> list[ExpandedNode]:
    """Divide an extractor's demand equally across its ore sources.

    Precondition:
        sources is non-empty

    Postcondition:
        returns one ExpandedNode per source, in source order
        each source serves node.demand / len(sources), falling back to
        building_count * output_amount for nodes without a recorded demand
        a source with rate r > 0 needs (its demand / r) buildings
        a source with rate 0 needs 0 buildings and draws 0 power
        each split node reports its own rate as output_amount

    Args:
        node: extractor node from the base graph
        sources: ordered qualities configured for the node's output item
        quality_rates: optional rate table override

    Returns:
        list of ExpandedNode
    """
    total_demand = node.demand
    if total_demand is None:
        total_demand = node.building_count * node.output_amount
    share = 1 / len(sources)
    expanded = []
    for source_index, quality in enumerate(sources):
        output_rate = get_ore_quality_rate(quality, quality_rates)
        building_count = (total_demand * share) / output_rate if output_rate > 0 else 0.0
        split_node = replace(
            node,
            output_amount=output_rate,
            building_count=building_count,
            total_power=math.ceil(building_count) * node.power_per_building,
            demand=total_demand * share,
        )
        expanded.append(ExpandedNode(split_node, node.key, source_index, len(sources), quality))
    return expanded


def expand_sources(
    nodes: Iterable[ProductionNode],
    ore_sources_by_item: SourceMapping,
    quality_rates: Mapping[OreQuality, float] | None = None,
) -> tuple[tuple[ExpandedNode, ...], Mapping[str, tuple[int, ...]]]:
    """Replace every extractor node with one node per ore source.

    Precondition:
        node keys are unique among nodes
        ore_sources_by_item maps item ids to ordered quality lists; a
        missing or empty list means a single NORMAL source

    Postcondition:
        returns (expanded_nodes, key_to_indexes)
        non-extractor nodes appear once, unchanged, in input order
        extractor nodes are replaced by their splits, in source order
        len(expanded_nodes) is the sum of source counts over all nodes
        key_to_indexes maps each original key to the ordered indexes of
        the expanded nodes it produced

    Args:
        nodes: base production nodes
        ore_sources_by_item: ore source configuration
        quality_rates: optional rate table override

    Returns:
        tuple of (expanded nodes, original key -> expanded indexes)
    """
    expanded_nodes = []
    key_to_indexes = {}
    for node in nodes:
        if node.extractor:
            sources = get_ore_sources(ore_sources_by_item, node.output_item)
            produced = _split_extractor(node, sources, quality_rates)
        else:
            produced = [ExpandedNode(node, node.key)]
        start = len(expanded_nodes)
        expanded_nodes.extend(produced)
        key_to_indexes[node.key] = tuple(range(start, len(expanded_nodes)))
    return tuple(expanded_nodes), frozendict(key_to_indexes)
