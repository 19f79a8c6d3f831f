import plotly.graph_objects as go

from sankey_flow import PlotlyExporter, Scene, SceneReconciler

from conftest import SIMPLE_FRAME


def test_plotly_export_draws_every_element(laid_out, scene, reconciler):
    graph = laid_out(SIMPLE_FRAME)
    reconciler.reconcile(graph.nodes, graph.links, scene)

    fig = PlotlyExporter().export(scene, title="Flows")

    assert isinstance(fig, go.Figure)
    kinds = [shape.type for shape in fig.layout.shapes]
    assert kinds.count("path") == 3
    assert kinds.count("rect") == 4
    assert [a.text for a in fig.layout.annotations] == ["A", "X", "Y", "B"]
    assert [a.xanchor for a in fig.layout.annotations] == ["left", "right", "right", "left"]
    assert tuple(fig.layout.yaxis.range) == (100, 0)
    assert fig.layout.width == 200


def test_plotly_export_of_empty_scene():
    fig = PlotlyExporter().export(Scene())
    assert len(fig.layout.shapes) == 0
    assert fig.layout.width is None
