# -*- coding: utf-8 -*-
"""
sankey_flow.scene
~~~~~~~~~~~~~~~~~

A backend-independent visual scene and the reconciler that keeps it in step
with successive laid-out graphs.

Elements are keyed by identity, not by position: nodes by ``name`` and links
by ``(source_name, target_name, ordinal)``, where ``ordinal`` tells apart
repeated pairs. On every redraw the reconciler

* creates elements for keys it has not seen (enter),
* rewrites the attributes of elements it already holds, keeping the same
  handle object (update),
* drops elements whose key disappeared (exit).

Quickstart
----------
>>> from sankey_flow import GraphBuilder, LayoutAdapter, Extent, Scene, SceneReconciler
>>> graph = GraphBuilder().build({"A": {"X": 10}})
>>> LayoutAdapter().layout(graph, Extent(0, 0, 200, 100))    # doctest: +ELLIPSIS
Graph(...)
>>> scene = Scene(width=200)
>>> SceneReconciler().reconcile(graph.nodes, graph.links, scene).entered
3
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Hashable, Iterable, Iterator, List, Optional, Sequence, Tuple

from .colors import ColorScale, OrdinalColorScale, PairColorScale, ValueFormatter, node_color_key
from .graph import Link, Node
from .layout import link_horizontal

logger = logging.getLogger(__name__)

LinkKey = Tuple[str, str, int]

# Attributes shared by every element of a layer (the group-level attributes).
LAYER_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "links": {"fill": "none", "stroke": "#000", "stroke_opacity": 0.2},
    "nodes": {"font_family": "sans-serif", "font_size": 10},
}


# --------------------------------------------------------------------------- #
# Scene
# --------------------------------------------------------------------------- #
@dataclass(eq=False)
class SceneElement:
    """Opaque handle for one drawn item. Identity survives updates."""

    kind: str
    key: Hashable
    attrs: Dict[str, Any] = field(default_factory=dict)
    revision: int = 0

    def apply(self, attrs: Dict[str, Any]) -> bool:
        """Replace attributes; return True if anything changed."""
        if attrs == self.attrs:
            return False
        self.attrs = dict(attrs)
        self.revision += 1
        return True


class Scene:
    """Persistent element store, one ordered layer per element kind.

    Links are drawn below nodes. ``width`` is the viewport width used for
    label placement.
    """

    LAYERS = ("links", "nodes")

    def __init__(self, width: float = 0.0, height: float = 0.0):
        self.width = width
        self.height = height
        self.layers: Dict[str, Dict[Hashable, SceneElement]] = {name: {} for name in self.LAYERS}

    def __len__(self) -> int:
        return sum(len(layer) for layer in self.layers.values())

    def __iter__(self) -> Iterator[SceneElement]:
        for name in self.LAYERS:
            yield from self.layers[name].values()

    def elements(self, layer: str) -> List[SceneElement]:
        return list(self.layers[layer].values())

    def get(self, layer: str, key: Hashable) -> Optional[SceneElement]:
        return self.layers[layer].get(key)

    def keys(self, layer: str) -> List[Hashable]:
        return list(self.layers[layer])

    def clear(self) -> None:
        for layer in self.layers.values():
            layer.clear()

    def snapshot(self) -> Dict[str, Any]:
        """Plain-dict dump of the scene, e.g. for a test or a JSON view."""
        return {
            "width": self.width,
            "height": self.height,
            "layers": {
                name: {
                    "defaults": dict(LAYER_DEFAULTS.get(name, {})),
                    "elements": [
                        {"key": list(el.key) if isinstance(el.key, tuple) else el.key, **el.attrs}
                        for el in layer.values()
                    ],
                }
                for name, layer in self.layers.items()
            },
        }


@dataclass
class ReconcileStats:
    """Element churn of one reconcile pass."""

    entered: int = 0
    updated: int = 0
    unchanged: int = 0
    exited: int = 0

    def __add__(self, other: ReconcileStats) -> ReconcileStats:
        return ReconcileStats(
            entered=self.entered + other.entered,
            updated=self.updated + other.updated,
            unchanged=self.unchanged + other.unchanged,
            exited=self.exited + other.exited,
        )

    @property
    def churn(self) -> int:
        return self.entered + self.exited


# --------------------------------------------------------------------------- #
# Reconciler
# --------------------------------------------------------------------------- #
def link_keys(links: Sequence[Link], nodes: Optional[Sequence[Node]] = None) -> List[LinkKey]:
    """Identity keys for ``links``; repeats of a pair get increasing ordinals."""
    seen: Dict[Tuple[str, str], int] = {}
    keys: List[LinkKey] = []
    for link in links:
        pair = _endpoint_names(link, nodes)
        ordinal = seen.get(pair, 0)
        seen[pair] = ordinal + 1
        keys.append((pair[0], pair[1], ordinal))
    return keys


def _endpoint_names(link: Link, nodes: Optional[Sequence[Node]]) -> Tuple[str, str]:
    source, target = link.endpoints
    if source is None or target is None:
        if nodes is None:
            raise ValueError("link carries no endpoint names and no node list was given")
        source = source if source is not None else _node_of(link.source, nodes).name
        target = target if target is not None else _node_of(link.target, nodes).name
    return source, target


def _node_of(end: Any, nodes: Sequence[Node]) -> Node:
    return end if isinstance(end, Node) else nodes[end]


class SceneReconciler:
    """
    Binds laid-out nodes and links to :class:`Scene` elements.

    Parameters
    ----------
    link_colors : ColorScale, optional
        ``(source_name, target_name) -> colour`` lookup for link strokes.
    node_colors : OrdinalColorScale, optional
        Palette for node fills, keyed by :func:`node_color_key`.
    formatter : callable, optional
        Number formatter for tooltips.
    label_padding : float
        Gap between a node box and its label.
    link_path : callable
        Path generator for links, :func:`link_horizontal` by default.
    """

    def __init__(
        self,
        link_colors: Optional[ColorScale] = None,
        node_colors: Optional[OrdinalColorScale] = None,
        formatter: Optional[Callable[[Optional[float]], str]] = None,
        label_padding: float = 5.0,
        link_path: Callable[[Link], str] = link_horizontal,
    ):
        self.link_colors = link_colors or PairColorScale()
        self.node_colors = node_colors or OrdinalColorScale()
        self.formatter = formatter or ValueFormatter()
        self.label_padding = label_padding
        self.link_path = link_path

    def reconcile(self, nodes: Sequence[Node], links: Sequence[Link], scene: Scene) -> ReconcileStats:
        """Bring ``scene`` in line with ``nodes``/``links``; only the scene is mutated."""
        keys = link_keys(links, nodes)
        stats = self._join(scene, "links", ((k, self.link_attrs(l)) for k, l in zip(keys, links)))
        stats += self._join(scene, "nodes", ((n.name, self.node_attrs(n, scene.width)) for n in nodes))
        logger.debug(
            "Reconciled scene: %d entered, %d updated, %d unchanged, %d exited",
            stats.entered, stats.updated, stats.unchanged, stats.exited,
        )
        return stats

    def _join(self, scene: Scene, layer: str, entries: Iterable[Tuple[Hashable, Dict[str, Any]]]) -> ReconcileStats:
        stats = ReconcileStats()
        current = scene.layers[layer]
        fresh: Dict[Hashable, SceneElement] = {}

        for key, attrs in entries:
            if key in fresh:
                raise ValueError(f"duplicate {layer} key {key!r}")
            element = current.get(key)
            if element is None:
                element = SceneElement(kind=layer, key=key)
                element.apply(attrs)
                stats.entered += 1
            elif element.apply(attrs):
                stats.updated += 1
            else:
                stats.unchanged += 1
            fresh[key] = element

        stats.exited = sum(1 for key in current if key not in fresh)
        scene.layers[layer] = fresh
        return stats

    # ------------------------------------------------------------------ #
    # Attribute rules
    # ------------------------------------------------------------------ #
    def node_attrs(self, node: Node, width: float) -> Dict[str, Any]:
        if not node.is_laid_out:
            raise ValueError(f"node {node.name!r} has no geometry; run the layout first")
        if node.x0 < width / 2:
            label_x, anchor = node.x1 + self.label_padding, "start"
        else:
            label_x, anchor = node.x0 - self.label_padding, "end"
        return {
            "x": node.x0,
            "y": node.y0,
            "width": node.x1 - node.x0,
            "height": node.y1 - node.y0,
            "fill": self.node_colors(node_color_key(node.name)),
            "stroke": "#000",
            "text": node.name,
            "label_x": label_x,
            "label_y": (node.y0 + node.y1) / 2,
            "dy": "0.35em",
            "text_anchor": anchor,
            "title": f"{node.name}\n{self.formatter(node.value)}",
        }

    def link_attrs(self, link: Link) -> Dict[str, Any]:
        source, target = link.endpoints
        return {
            "d": self.link_path(link),
            "stroke_width": max(1.0, link.width or 0.0),
            "stroke": self.link_colors(source, target),
            "title": f"{source} → {target}\n{self.formatter(link.value)}",
        }
