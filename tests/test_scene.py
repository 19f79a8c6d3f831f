import pytest

from sankey_flow import (
    Extent,
    Graph,
    Link,
    Node,
    OrdinalColorScale,
    PairColorScale,
    Scene,
    SceneReconciler,
    ValueFormatter,
    build_graph,
    link_keys,
    node_color_key,
)

from conftest import ENERGY_FRAMES, SIMPLE_FRAME


def _node(name, x0, y0=0.0, width=15.0, height=10.0, value=1.0):
    return Node(name, x0=x0, x1=x0 + width, y0=y0, y1=y0 + height, value=value)


def test_first_reconcile_enters_everything(laid_out, scene, reconciler):
    graph = laid_out(SIMPLE_FRAME)
    stats = reconciler.reconcile(graph.nodes, graph.links, scene)
    assert stats.entered == 7
    assert stats.exited == stats.updated == stats.unchanged == 0
    assert scene.keys("nodes") == ["A", "X", "Y", "B"]
    assert scene.keys("links") == [("A", "X", 0), ("A", "Y", 0), ("B", "X", 0)]
    assert len(scene) == 7


def test_reconcile_is_idempotent(laid_out, scene, reconciler):
    graph = laid_out(SIMPLE_FRAME)
    reconciler.reconcile(graph.nodes, graph.links, scene)
    revisions = [el.revision for el in scene]

    stats = reconciler.reconcile(graph.nodes, graph.links, scene)
    assert stats.entered == 0
    assert stats.exited == 0
    assert stats.updated == 0
    assert stats.unchanged == 7
    assert [el.revision for el in scene] == revisions


def test_resize_updates_geometry_in_place(adapter, scene, reconciler):
    graph = build_graph(SIMPLE_FRAME)
    adapter.layout(graph, Extent(0, 0, 200, 100))
    reconciler.reconcile(graph.nodes, graph.links, scene)
    handles = {el.key: el for el in scene}
    x_before = scene.get("nodes", "X").attrs["x"]

    scene.width = 400
    adapter.layout(graph, Extent(0, 0, 400, 100))
    stats = reconciler.reconcile(graph.nodes, graph.links, scene)

    assert stats.churn == 0
    assert stats.updated > 0
    assert {el.key: el for el in scene} == handles
    assert scene.get("nodes", "X") is handles["X"]
    assert scene.get("nodes", "X").attrs["x"] != x_before


def test_time_change_enters_and_exits_by_identity(laid_out, scene, reconciler):
    old = laid_out(ENERGY_FRAMES[2000])
    reconciler.reconcile(old.nodes, old.links, scene)
    coal = scene.get("nodes", "Coal")

    new = laid_out(ENERGY_FRAMES[2010])
    stats = reconciler.reconcile(new.nodes, new.links, scene)

    assert stats.entered == 2  # Solar node, Solar -> Electricity link
    assert stats.exited == 2  # Industry node, Coal -> Industry link
    assert scene.get("nodes", "Coal") is coal
    assert scene.get("nodes", "Industry") is None
    assert scene.get("links", ("Solar", "Electricity", 0)) is not None
    assert scene.get("links", ("Coal", "Industry", 0)) is None


def test_empty_graph_clears_scene(laid_out, scene, reconciler):
    graph = laid_out(SIMPLE_FRAME)
    reconciler.reconcile(graph.nodes, graph.links, scene)

    empty = build_graph({})
    stats = reconciler.reconcile(empty.nodes, empty.links, scene)
    assert stats.entered == 0
    assert stats.exited == 7
    assert len(scene) == 0


def test_labels_flip_at_viewport_midpoint(laid_out, scene, reconciler):
    graph = laid_out(SIMPLE_FRAME)
    reconciler.reconcile(graph.nodes, graph.links, scene)

    left = scene.get("nodes", "A").attrs
    assert left["text_anchor"] == "start"
    assert left["label_x"] == 20  # x1 + label padding

    right = scene.get("nodes", "X").attrs
    assert right["text_anchor"] == "end"
    assert right["label_x"] == pytest.approx(180)


def test_label_boundary_at_exact_midpoint(reconciler):
    at_mid = reconciler.node_attrs(_node("M", x0=100), width=200)
    assert at_mid["text_anchor"] == "end"
    assert at_mid["label_x"] == 95

    just_left = reconciler.node_attrs(_node("L", x0=99.5), width=200)
    assert just_left["text_anchor"] == "start"
    assert just_left["label_x"] == pytest.approx(119.5)


def test_node_fill_groups_on_name_prefix(reconciler):
    oil_imports = reconciler.node_attrs(_node("Oil imports", 0), 200)["fill"]
    oil_reserves = reconciler.node_attrs(_node("Oil reserves", 0), 200)["fill"]
    gas = reconciler.node_attrs(_node("Gas", 0), 200)["fill"]
    assert oil_imports == oil_reserves
    assert gas != oil_imports
    assert node_color_key("Oil imports") == "Oil"
    assert node_color_key("Gas") == "Gas"


def test_link_colour_lookup_uses_names(laid_out, scene):
    calls = []

    def colors(source, target):
        calls.append((source, target))
        return "#123456"

    graph = laid_out(SIMPLE_FRAME)
    SceneReconciler(link_colors=colors).reconcile(graph.nodes, graph.links, scene)
    assert calls == [("A", "X"), ("A", "Y"), ("B", "X")]
    assert {el.attrs["stroke"] for el in scene.elements("links")} == {"#123456"}


def test_pair_colour_scale_maps_colour_frame():
    scale = PairColorScale({"A": {"X": "fossil", "Y": "fossil"}}, OrdinalColorScale(["red", "blue"]))
    assert scale("A", "X") == "red"
    assert scale("A", "Y") == "red"
    # missing pair falls back to the source name
    assert scale("B", "X") == "blue"


def test_duplicate_links_get_ordinals(adapter, extent, scene, reconciler):
    nodes = [Node("A"), Node("X")]
    links = [Link(0, 1, 4, "A", "X"), Link(0, 1, 6, "A", "X")]
    graph = adapter.layout(Graph(nodes, links), extent)
    assert link_keys(graph.links) == [("A", "X", 0), ("A", "X", 1)]

    stats = reconciler.reconcile(graph.nodes, graph.links, scene)
    assert stats.entered == 4
    assert len(scene.elements("links")) == 2

    single = adapter.layout(Graph([Node("A"), Node("X")], [Link(0, 1, 10, "A", "X")]), extent)
    stats = reconciler.reconcile(single.nodes, single.links, scene)
    assert stats.exited == 1
    assert scene.keys("links") == [("A", "X", 0)]


def test_link_keys_fall_back_to_node_list():
    nodes = [Node("A"), Node("B")]
    assert link_keys([Link(0, 1, 1)], nodes) == [("A", "B", 0)]
    with pytest.raises(ValueError):
        link_keys([Link(0, 1, 1)])


def test_thin_links_keep_a_visible_stroke(reconciler):
    a, b = _node("A", 0), _node("B", 100)
    link = Link(a, b, 0.01, width=0.2, y0=5, y1=5)
    assert reconciler.link_attrs(link)["stroke_width"] == 1.0


def test_titles_use_formatter(laid_out, scene):
    graph = laid_out(SIMPLE_FRAME)
    SceneReconciler(formatter=ValueFormatter("PJ")).reconcile(graph.nodes, graph.links, scene)
    assert scene.get("nodes", "A").attrs["title"] == "A\n15 PJ"
    assert scene.get("links", ("A", "X", 0)).attrs["title"] == "A → X\n10 PJ"


def test_duplicate_node_names_are_rejected(reconciler, scene):
    with pytest.raises(ValueError, match="duplicate"):
        reconciler.reconcile([_node("A", 0), _node("A", 50)], [], scene)


def test_nodes_without_geometry_are_rejected(reconciler, scene):
    with pytest.raises(ValueError, match="layout"):
        reconciler.reconcile([Node("A")], [], scene)


def test_snapshot(laid_out, scene, reconciler):
    graph = laid_out(SIMPLE_FRAME)
    reconciler.reconcile(graph.nodes, graph.links, scene)
    snap = scene.snapshot()
    assert snap["width"] == 200
    assert snap["layers"]["links"]["defaults"]["stroke_opacity"] == 0.2
    assert snap["layers"]["links"]["elements"][0]["key"] == ["A", "X", 0]
    assert [e["key"] for e in snap["layers"]["nodes"]["elements"]] == ["A", "X", "Y", "B"]
