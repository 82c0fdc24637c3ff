"""Tests for the layout oracles"""

import shutil

import pytest
from pytest import raises

from layout import LayoutConfig, graphviz_layout, layered_layout

_SIZE = (200, 120)


def _sizes(*names):
    return {name: _SIZE for name in names}


def test_empty_graph():
    """an empty graph should have an empty layout"""
    assert dict(layered_layout({}, [])) == {}


def test_chain_left_to_right():
    """a chain should advance along x, one rank per node"""
    positions = layered_layout(_sizes("a", "b", "c"), [("a", "b"), ("b", "c")])

    assert positions["a"] == (100, 60)
    assert positions["b"] == (450, 60)
    assert positions["c"] == (800, 60)


def test_chain_top_to_bottom():
    """TB should advance along y"""
    positions = layered_layout(_sizes("a", "b", "c"), [("a", "b"), ("b", "c")], LayoutConfig(rankdir="TB"))

    assert positions["a"] == (100, 60)
    assert positions["b"] == (100, 330)
    assert positions["c"] == (100, 600)


def test_right_to_left_mirrors():
    """RL should place sources at the right end"""
    positions = layered_layout(_sizes("a", "b", "c"), [("a", "b"), ("b", "c")], LayoutConfig(rankdir="RL"))

    assert positions["a"][0] == 800
    assert positions["c"][0] == 100


def test_sources_start_the_primary_axis():
    """nodes without incoming edges should sit in the first rank"""
    edges = [("ore1", "bar"), ("ore2", "bar"), ("bar", "beam"), ("ore3", "beam")]

    positions = layered_layout(_sizes("beam", "bar", "ore1", "ore2", "ore3"), edges)

    for source in ("ore1", "ore2", "ore3"):
        assert positions[source][0] == 100
    assert positions["bar"][0] > positions["ore1"][0]
    assert positions["beam"][0] > positions["bar"][0]


def test_same_rank_nodes_do_not_overlap():
    """nodes of one rank should be separated by at least height + nodesep"""
    config = LayoutConfig()
    positions = layered_layout(_sizes("a", "b", "c", "d"), [("a", "b"), ("a", "c"), ("a", "d")], config)

    ys = sorted(positions[name][1] for name in ("b", "c", "d"))
    assert all(positions[name][0] == positions["b"][0] for name in ("c", "d"))
    for upper, lower in zip(ys, ys[1:]):
        assert lower - upper >= config.height + config.nodesep


def test_layers_are_centered():
    """a single node should be centered against a longer rank"""
    positions = layered_layout(_sizes("a", "b", "c"), [("a", "c"), ("b", "c")])

    assert positions["c"][1] == pytest.approx((positions["a"][1] + positions["b"][1]) / 2)


def test_barycenter_ordering_uncrosses_edges():
    """targets should be ordered after the positions of their sources"""
    positions = layered_layout(_sizes("a", "b", "c", "d"), [("a", "d"), ("b", "c")])

    assert positions["a"][1] < positions["b"][1]
    assert positions["d"][1] < positions["c"][1]


def test_one_position_per_node_with_cycle():
    """a cycle should still produce one non-overlapping position per node"""
    positions = layered_layout(_sizes("a", "b"), [("a", "b"), ("b", "a"), ("a", "a")])

    assert set(positions) == {"a", "b"}
    assert positions["a"] != positions["b"]


def test_unknown_edges_are_ignored():
    """edges naming unknown nodes should not add positions"""
    positions = layered_layout(_sizes("a"), [("a", "ghost")])

    assert set(positions) == {"a"}


def test_invalid_rankdir():
    """an unknown rankdir should raise ValueError"""
    with raises(ValueError, match="Invalid rankdir"):
        layered_layout(_sizes("a"), [], LayoutConfig(rankdir="XY"))


def test_layout_is_memoized():
    """equal inputs should return the cached result"""
    first = layered_layout(_sizes("a", "b"), [("a", "b")])
    second = layered_layout(_sizes("a", "b"), [["a", "b"]])

    assert first is second


@pytest.mark.skipif(shutil.which("dot") is None, reason="Graphviz is not installed")
def test_graphviz_layout_chain():
    """the dot engine should place every node and advance along x"""
    positions = graphviz_layout(_sizes("a", "b", "c"), [("a", "b"), ("b", "c")])

    assert set(positions) == {"a", "b", "c"}
    assert positions["a"][0] < positions["b"][0] < positions["c"][0]
