"""Re-route base edges across expanded nodes."""

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping

from production import ProductionEdge

_LOGGER = logging.getLogger("flowplanner")


@dataclass(frozen=True)
class ExpandedEdge:
    """flow between two expanded nodes, addressed by index"""

    from_index: int
    to_index: int
    item_id: str
    amount: float


def distribute_edges(
    edges: Iterable[ProductionEdge], key_to_indexes: Mapping[str, tuple[int, ...]]
) -> tuple[ExpandedEdge, ...]:
    """Fan every base edge out over the expansions of its endpoints.

    Precondition:
        key_to_indexes comes from expand_sources for the same base graph

    Postcondition:
        an edge with an endpoint missing from key_to_indexes is dropped
        otherwise one edge per (from_index, to_index) pair is emitted, in
        from-major order, each with amount / len(from_indexes)
        the emitted amounts reaching any one to_index sum to the base amount;
        a split target therefore multiplies the apparent total flow

    Args:
        edges: base production edges
        key_to_indexes: original node key -> expanded node indexes

    Returns:
        tuple of ExpandedEdge
    """
    expanded_edges = []
    for edge in edges:
        from_indexes = key_to_indexes.get(edge.from_key, ())
        to_indexes = key_to_indexes.get(edge.to_key, ())
        if not from_indexes or not to_indexes:
            _LOGGER.debug("Dropping %s edge with dangling endpoint: %s -> %s", edge.item_id, edge.from_key, edge.to_key)
            continue

        # Divided by source-side count only; a split target sees every source
        share = 1 / len(from_indexes)
        for from_index in from_indexes:
            for to_index in to_indexes:
                expanded_edges.append(ExpandedEdge(from_index, to_index, edge.item_id, edge.amount * share))
    return tuple(expanded_edges)
