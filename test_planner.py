"""Tests for the end-to-end flow planning pipeline"""

import pytest

from catalog import Catalog, get_default_catalog
from planner import FlowDataParams, generate_flow_data, valid_target_amount
from production import ProductionEdge, ProductionGraph, ProductionNode
from sources import OreQuality

_EMPTY_CATALOG = Catalog({}, ())


def _node(building_id, output_item, extractor=False, building_count=1.0, output_amount=10.0):
    return ProductionNode(
        building_id=building_id,
        building_name=building_id.title(),
        recipe_index=0,
        output_item=output_item,
        output_amount=output_amount,
        building_count=building_count,
        power_per_building=1.0,
        total_power=1.0,
        extractor=extractor,
    )


class _FixedProvider:
    """returns a fixed base graph and records how it was called"""

    def __init__(self, nodes, edges):
        self.graph = ProductionGraph(tuple(nodes), tuple(edges))
        self.calls = []

    def __call__(self, catalog, target_item_id, target_amount, ore_quality_by_item, quality_rates=None):
        self.calls.append((target_item_id, target_amount, dict(ore_quality_by_item)))
        return self.graph


def test_valid_target_amount():
    """non-positive target amounts should become 1"""
    assert valid_target_amount(5) == 5
    assert valid_target_amount(0.5) == 0.5
    assert valid_target_amount(0) == 1
    assert valid_target_amount(-3) == 1


def test_two_node_chain():
    """a plain A -> B chain should give 2 nodes and 1 edge of 10"""
    a, b = _node("miner", "a"), _node("press", "b")
    provider = _FixedProvider([a, b], [ProductionEdge(a.key, b.key, "a", 10)])

    graph = generate_flow_data(FlowDataParams("b", 10, _EMPTY_CATALOG), provider=provider)

    assert len(graph.nodes) == 2
    assert len(graph.edges) == 1
    assert graph.edges[0].amount == 10
    assert graph.edges[0].source == "node_0"
    assert graph.edges[0].target == "node_1"


def test_non_positive_amount_is_coerced():
    """the provider should be called with 1 for a zero target"""
    provider = _FixedProvider([], [])

    generate_flow_data(FlowDataParams("b", 0, _EMPTY_CATALOG), provider=provider)

    assert provider.calls[0][1] == 1


def test_provider_receives_first_source_quality():
    """each item should be sized against its first configured source"""
    provider = _FixedProvider([], [])
    params = FlowDataParams(
        "b", 10, _EMPTY_CATALOG, {"ore": [OreQuality.PURE, OreQuality.IMPURE], "rock": []}
    )

    generate_flow_data(params, provider=provider)

    assert provider.calls[0][2] == {"ore": OreQuality.PURE, "rock": OreQuality.NORMAL}


def test_colliding_edges_are_reduced_to_one():
    """two base edges with the same expanded identity should leave one edge"""
    a, b = _node("miner", "a"), _node("press", "b")
    provider = _FixedProvider(
        [a, b],
        [ProductionEdge(a.key, b.key, "a", 4), ProductionEdge(a.key, b.key, "a", 6)],
    )

    graph = generate_flow_data(FlowDataParams("b", 10, _EMPTY_CATALOG), provider=provider)

    assert len(graph.edges) == 1
    assert graph.edges[0].amount == 4


def test_split_source_fans_out_edges():
    """a 3-way split extractor should send a third of the flow on each edge"""
    ore = _node("ore_excavator", "ore", extractor=True, building_count=3, output_amount=60)
    bar = _node("smelter", "bar")
    provider = _FixedProvider([ore, bar], [ProductionEdge(ore.key, bar.key, "ore", 9)])
    params = FlowDataParams(
        "bar", 10, _EMPTY_CATALOG, {"ore": [OreQuality.PURE, OreQuality.NORMAL, OreQuality.IMPURE]}
    )

    graph = generate_flow_data(params, provider=provider)

    assert len(graph.nodes) == 4
    assert len(graph.edges) == 3
    assert all(edge.target == "node_3" for edge in graph.edges)
    assert all(edge.amount == pytest.approx(3) for edge in graph.edges)


def test_layout_receives_whole_graph_once():
    """the layout should be called once with every node and edge"""
    calls = []

    def layout(node_sizes, edges, config):
        calls.append((dict(node_sizes), list(edges)))
        return {node_id: (0.0, 0.0) for node_id in node_sizes}

    a, b = _node("miner", "a"), _node("press", "b")
    provider = _FixedProvider([a, b], [ProductionEdge(a.key, b.key, "a", 10)])

    graph = generate_flow_data(FlowDataParams("b", 10, _EMPTY_CATALOG), provider=provider, layout=layout)

    assert len(calls) == 1
    assert calls[0] == ({"node_0": (200, 120), "node_1": (200, 120)}, [("node_0", "node_1")])
    assert graph.nodes[0].position == (-100, -60)


def test_default_catalog_chain():
    """the bundled catalog should plan a titanium beam chain"""
    graph = generate_flow_data(FlowDataParams("titanium_beam", 40, get_default_catalog()))

    assert len(graph.nodes) == 3
    assert len(graph.edges) == 2
    assert graph.total_power_consumption == 115
    assert graph.edges[0].label == "Titanium Bar (80.0/min)"


def test_default_catalog_with_two_sources():
    """two ore sources should split the excavator and its outgoing edge"""
    params = FlowDataParams(
        "titanium_beam", 40, get_default_catalog(),
        {"titanium_ore": [OreQuality.PURE, OreQuality.IMPURE]},
    )

    graph = generate_flow_data(params)

    assert len(graph.nodes) == 4
    pure, impure = graph.nodes[2].expanded, graph.nodes[3].expanded
    assert pure.source_quality == OreQuality.PURE
    assert pure.node.building_count == pytest.approx(80 / 120)
    assert impure.source_quality == OreQuality.IMPURE
    assert impure.node.building_count == pytest.approx(80 / 30)
    assert graph.total_power_consumption == 40 + 30 + 15 + 45
    ore_edges = [edge for edge in graph.edges if edge.item_id == "titanium_ore"]
    assert [(edge.source, edge.target) for edge in ore_edges] == [("node_2", "node_1"), ("node_3", "node_1")]
    assert sum(edge.amount for edge in ore_edges) == pytest.approx(160)


def test_default_layout_positions():
    """extractors should be laid out first, the target last"""
    params = FlowDataParams(
        "titanium_beam", 40, get_default_catalog(),
        {"titanium_ore": [OreQuality.PURE, OreQuality.IMPURE]},
    )

    graph = generate_flow_data(params)

    positions = {node.id: node.position for node in graph.nodes}
    assert positions["node_2"] == (0, 0)
    assert positions["node_3"] == (0, 220)
    assert positions["node_1"] == (350, 110)
    assert positions["node_0"] == (700, 110)


def test_generation_is_idempotent():
    """generating twice from equal inputs should give equal graphs"""
    params = FlowDataParams(
        "reinforced_frame", 5, get_default_catalog(),
        {"wolfram_ore": [OreQuality.NORMAL, OreQuality.PURE]},
    )

    assert generate_flow_data(params) == generate_flow_data(params)


def test_zero_rate_first_source_keeps_other_shares():
    """a zero-rate first source should not take the demand of the other sources"""
    params = FlowDataParams(
        "titanium_bar", 30, get_default_catalog(),
        {"titanium_ore": [OreQuality.IMPURE, OreQuality.NORMAL]},
        {OreQuality.IMPURE: 0, OreQuality.NORMAL: 60, OreQuality.PURE: 120},
    )

    graph = generate_flow_data(params)

    impure, normal = graph.nodes[1].expanded, graph.nodes[2].expanded
    assert impure.source_quality == OreQuality.IMPURE
    assert impure.node.building_count == 0
    assert impure.node.total_power == 0
    assert normal.source_quality == OreQuality.NORMAL
    assert normal.node.building_count == pytest.approx(0.5)
    assert normal.node.demand == pytest.approx(30)
    assert graph.total_power_consumption == 10 + 15
