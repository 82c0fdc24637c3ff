"""Base production graph built from a catalog for a single target item."""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Mapping

from tarjan import tarjan

from catalog import Building, Catalog, Recipe
from sources import OreQuality, get_ore_quality_rate

_LOGGER = logging.getLogger("flowplanner")


def node_key(building_id: str, recipe_index: int, output_item: str) -> str:
    """Build the identity key of a production node."""
    return f"{building_id}_{recipe_index}_{output_item}"


@dataclass(frozen=True)
class ProductionNode:
    """one building/recipe instance producing a single output item

    demand is the output per minute the node was sized for. It is kept
    separately because a zero rate leaves building_count at 0.
    """

    building_id: str
    building_name: str
    recipe_index: int
    output_item: str
    output_amount: float
    building_count: float
    power_per_building: float
    total_power: float
    extractor: bool = False
    demand: float | None = None

    @property
    def key(self) -> str:
        return node_key(self.building_id, self.recipe_index, self.output_item)


@dataclass(frozen=True)
class ProductionEdge:
    """flow of one item from a producing node to a consuming node"""

    from_key: str
    to_key: str
    item_id: str
    amount: float


@dataclass(frozen=True)
class ProductionGraph:
    """the base graph handed to source expansion"""

    nodes: tuple[ProductionNode, ...]
    edges: tuple[ProductionEdge, ...]


# (catalog, target_item_id, target_amount, ore_quality_by_item, quality_rates) -> ProductionGraph
ProductionGraphProvider = Callable[..., ProductionGraph]


def _collect_producers(
    catalog: Catalog, target_item_id: str
) -> tuple[dict[str, tuple[Building, int, Recipe]], dict[str, list[str]]]:
    """Pick a producer for every item reachable from the target.

    Precondition:
        target_item_id is a catalog item

    Postcondition:
        returns (producers, dependencies)
        producers maps each producible item to (building, recipe_index, recipe)
        dependencies maps every reached item, raw inputs included, to the
        input items of its chosen recipe

    Args:
        catalog: item and building catalog
        target_item_id: item at the end of the chain

    Returns:
        tuple of (producers, dependencies)
    """
    producers = {}
    dependencies = {}
    pending = [target_item_id]
    while pending:
        item_id = pending.pop()
        if item_id in dependencies:
            continue
        producer = catalog.find_producer(item_id)
        if producer is None:
            dependencies[item_id] = []
            continue
        producers[item_id] = producer
        dependencies[item_id] = list(producer[2].inputs)
        pending.extend(dependencies[item_id])
    return producers, dependencies


def _consumers_first_order(dependencies: dict[str, list[str]]) -> list[str]:
    """Order items so that every consumer comes before the items it consumes.

    Precondition:
        every item referenced in a dependency list is also a key

    Postcondition:
        returns all keys of dependencies, consumers before producers

    Args:
        dependencies: item -> input items

    Returns:
        ordered list of item ids

    Raises:
        ValueError: if the recipe chain contains a cycle
    """
    # tarjan emits components with their dependencies first
    components = tarjan(dependencies)
    for component in components:
        if len(component) > 1 or component[0] in dependencies[component[0]]:
            raise ValueError(f"Cyclic production chain between: {', '.join(sorted(component))}")
    return [component[0] for component in reversed(components)]


def _create_node(
    building: Building,
    recipe_index: int,
    recipe: Recipe,
    demand: float,
    ore_quality: OreQuality,
    quality_rates: Mapping[OreQuality, float] | None,
) -> ProductionNode:
    """Size a production node for the demand placed on its output.

    Precondition:
        demand >= 0

    Postcondition:
        extractor nodes produce at the rate of ore_quality, others at the
        recipe amount
        building_count = demand / output_amount, or 0 for a zero rate
        total_power = ceil(building_count) * building power

    Args:
        building: producing building
        recipe_index: index of recipe within building.recipes
        recipe: recipe run by the node
        demand: required output per minute
        ore_quality: quality used when building is an extractor
        quality_rates: optional rate table override

    Returns:
        ProductionNode
    """
    output_amount = recipe.amount
    if building.extractor:
        output_amount = get_ore_quality_rate(ore_quality, quality_rates)
    building_count = demand / output_amount if output_amount > 0 else 0.0
    return ProductionNode(
        building_id=building.id,
        building_name=building.name,
        recipe_index=recipe_index,
        output_item=recipe.output,
        output_amount=output_amount,
        building_count=building_count,
        power_per_building=building.power,
        total_power=math.ceil(building_count) * building.power,
        extractor=building.extractor,
        demand=demand,
    )


def build_production_graph(
    catalog: Catalog,
    target_item_id: str,
    target_amount: float,
    ore_quality_by_item: Mapping[str, OreQuality],
    quality_rates: Mapping[OreQuality, float] | None = None,
) -> ProductionGraph:
    """Build the base production graph for a target item and rate.

    Precondition:
        target_amount > 0
        ore_quality_by_item maps raw item ids to the quality their
        extractors are sized for; missing items use NORMAL

    Postcondition:
        one node per chosen recipe; node keys are unique
        the first node produces the target item
        demand from every consumer of an item is summed into its producer
        one edge per (producer, consumer, item) with the consumed amount
        items without a producing recipe get no node and no edge

    Args:
        catalog: item and building catalog
        target_item_id: item to produce
        target_amount: items per minute of the target
        ore_quality_by_item: selected quality per raw item
        quality_rates: optional extraction rate override

    Returns:
        ProductionGraph

    Raises:
        ValueError: if the target is unknown or the recipe chain is cyclic
    """
    if target_item_id not in catalog.items and catalog.find_producer(target_item_id) is None:
        raise ValueError(f"Unknown item '{target_item_id}'")

    producers, dependencies = _collect_producers(catalog, target_item_id)
    demand = defaultdict(float)
    demand[target_item_id] = target_amount

    nodes = []
    consumption = []  # (input_item, consumer_key, amount)
    for item_id in _consumers_first_order(dependencies):
        if item_id not in producers:
            continue
        building, recipe_index, recipe = producers[item_id]
        node = _create_node(
            building,
            recipe_index,
            recipe,
            demand[item_id],
            ore_quality_by_item.get(item_id, OreQuality.NORMAL),
            quality_rates,
        )
        nodes.append(node)
        for input_item, input_rate in recipe.inputs.items():
            flow = node.building_count * input_rate
            demand[input_item] += flow
            consumption.append((input_item, node.key, flow))

    edges = []
    for input_item, consumer_key, amount in consumption:
        if input_item not in producers:
            _LOGGER.debug("No recipe produces %s, treating it as a raw input", input_item)
            continue
        building, recipe_index, _ = producers[input_item]
        edges.append(ProductionEdge(node_key(building.id, recipe_index, input_item), consumer_key, input_item, amount))

    return ProductionGraph(tuple(nodes), tuple(edges))
