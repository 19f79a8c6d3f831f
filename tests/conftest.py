"""
Shared fixtures for the sankey_flow tests.
"""
import pytest

from sankey_flow import Extent, GraphBuilder, LayoutAdapter, Scene, SceneReconciler, Spacing


# {A: {X: 10, Y: 5}, B: {X: 3}} lays out as two columns, A/B then X/Y
SIMPLE_FRAME = {"A": {"X": 10, "Y": 5}, "B": {"X": 3}}

ENERGY_FRAMES = {
    2000: {
        "Coal imports": {"Coal": 40},
        "Coal": {"Electricity": 30, "Industry": 10},
        "Gas": {"Electricity": 20, "Heating": 15},
        "Electricity": {"Homes": 35, "Losses": 15},
    },
    2010: {
        "Coal imports": {"Coal": 25},
        "Coal": {"Electricity": 25},
        "Gas": {"Electricity": 30, "Heating": 20},
        "Solar": {"Electricity": 5},
        "Electricity": {"Homes": 40, "Losses": 20},
    },
}


@pytest.fixture
def extent():
    return Extent(0, 0, 200, 100)


@pytest.fixture
def adapter():
    return LayoutAdapter(Spacing(node_width=15, node_padding=15))


@pytest.fixture
def laid_out(adapter, extent):
    """Factory: build and lay out a frame in the default extent."""
    def _make(frame, ext=None):
        graph = GraphBuilder().build(frame)
        return adapter.layout(graph, ext or extent)
    return _make


@pytest.fixture
def scene():
    return Scene(width=200, height=100)


@pytest.fixture
def reconciler():
    return SceneReconciler()
