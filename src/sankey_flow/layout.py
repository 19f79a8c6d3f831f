# -*- coding: utf-8 -*-
"""
sankey_flow.layout
~~~~~~~~~~~~~~~~~~

Geometry for a :class:`~sankey_flow.graph.Graph`.

:class:`LayoutAdapter` runs a layout function against the current extent and
spacing. Any callable with the d3-sankey contract can be plugged in; the
bundled :func:`sankey_layout` is a plain column layout:

* link ``source``/``target`` indices are resolved to :class:`Node` objects;
* a node's ``value`` is the larger of its inflow and outflow;
* columns follow the longest path from the sources, sinks are pushed to the
  last column;
* nodes are stacked top-down in input order, scaled so the fullest column
  fits the extent;
* links get a ``width`` proportional to their value and ``y0``/``y1``
  attachment points on their endpoints.

Ordering heuristics and iterative relaxation are not attempted.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import networkx as nx
import numpy as np

from .graph import Graph, Link, Node, SankeyError

logger = logging.getLogger(__name__)


class LayoutError(SankeyError, RuntimeError):
    """The graph cannot be laid out (bad extent, cycle, dangling index)."""


# --------------------------------------------------------------------------- #
# Parameters
# --------------------------------------------------------------------------- #
@dataclass(frozen=True)
class Extent:
    """Rectangular pixel region ``[[x0, y0], [x1, y1]]`` available to the layout."""

    x0: float
    y0: float
    x1: float
    y1: float

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    @classmethod
    def from_corners(cls, corners: Sequence[Sequence[float]]) -> Extent:
        (x0, y0), (x1, y1) = corners
        return cls(float(x0), float(y0), float(x1), float(y1))

    @classmethod
    def from_viewport(cls, width: float, height: float, padding: float = 0.0) -> Extent:
        """Extent inset by ``padding`` on every side of a ``width`` x ``height`` viewport."""
        return cls(padding, padding, width - padding, height - padding)

    def as_corners(self) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        return (self.x0, self.y0), (self.x1, self.y1)


@dataclass(frozen=True)
class Spacing:
    """Node column thickness and minimum vertical gap between sibling nodes."""

    node_width: float = 15.0
    node_padding: float = 15.0


LayoutFunc = Callable[[Graph, Extent, Spacing], Any]


# --------------------------------------------------------------------------- #
# Default layout
# --------------------------------------------------------------------------- #
def sankey_layout(graph: Graph, extent: Extent, spacing: Spacing) -> Graph:
    """Lay out ``graph`` in place inside ``extent`` and return it."""
    if not graph.nodes:
        return graph

    _compute_node_links(graph)
    _compute_node_values(graph.nodes)
    columns = _compute_node_depths(graph)
    _compute_node_breadths(columns, extent, spacing)
    _compute_link_breadths(graph.nodes)
    return graph


def _resolve(end: Any, nodes: List[Node]) -> Node:
    if isinstance(end, Node):
        return end
    try:
        idx = int(end)
    except (TypeError, ValueError):
        raise LayoutError(f"link endpoint must be a node index, got {end!r}") from None
    if not 0 <= idx < len(nodes):
        raise LayoutError(f"missing node: index {idx} out of range for {len(nodes)} nodes")
    return nodes[idx]


def _compute_node_links(graph: Graph) -> None:
    for i, node in enumerate(graph.nodes):
        node.index = i
        node.source_links = []
        node.target_links = []
    for i, link in enumerate(graph.links):
        link.index = i
        link.source = _resolve(link.source, graph.nodes)
        link.target = _resolve(link.target, graph.nodes)
        link.source_name = link.source.name
        link.target_name = link.target.name
        link.source.source_links.append(link)
        link.target.target_links.append(link)


def _compute_node_values(nodes: List[Node]) -> None:
    for node in nodes:
        outflow = sum(l.value for l in node.source_links)
        inflow = sum(l.value for l in node.target_links)
        node.value = max(outflow, inflow)


def _compute_node_depths(graph: Graph) -> List[List[Node]]:
    """Assign depth/height and return nodes grouped into columns."""
    g = nx.MultiDiGraph()
    g.add_nodes_from(range(len(graph.nodes)))
    g.add_edges_from((l.source.index, l.target.index) for l in graph.links)

    try:
        order = list(nx.topological_sort(g))
    except nx.NetworkXUnfeasible:
        cycle = [graph.nodes[u].name for u, _v, *_ in nx.find_cycle(g)]
        raise LayoutError(f"circular link: {' -> '.join(cycle)}") from None

    depth: Dict[int, int] = {}
    for u in order:
        depth[u] = max((depth[p] + 1 for p in g.predecessors(u)), default=0)
    height: Dict[int, int] = {}
    for u in reversed(order):
        height[u] = max((height[s] + 1 for s in g.successors(u)), default=0)

    n_columns = max(depth.values()) + 1
    columns: Dict[int, List[Node]] = defaultdict(list)
    for node in graph.nodes:
        node.depth = depth[node.index]
        node.height = height[node.index]
        # justify: sinks go to the last column
        layer = node.depth if node.source_links else n_columns - 1
        columns[layer].append(node)
    return [columns[k] for k in sorted(columns)]


def _compute_node_breadths(columns: List[List[Node]], extent: Extent, spacing: Spacing) -> None:
    dx = spacing.node_width
    n = len(columns)
    kx = (extent.width - dx) / (n - 1) if n > 1 else 0.0

    longest = max(len(c) for c in columns)
    py = spacing.node_padding
    if longest > 1:
        py = min(py, extent.height / (longest - 1))

    ky_candidates = []
    for column in columns:
        total = sum(node.value for node in column)
        if total > 0:
            ky_candidates.append((extent.height - (len(column) - 1) * py) / total)
    ky = min(ky_candidates) if ky_candidates else 0.0

    for layer, column in enumerate(columns):
        x0 = extent.x0 + layer * kx
        heights = np.array([node.value for node in column], dtype=float) * ky
        offsets = np.concatenate(([0.0], np.cumsum(heights + py)[:-1]))
        y0s = extent.y0 + offsets
        # spread the leftover space evenly around the stacked nodes
        leftover = extent.y1 - (y0s[-1] + heights[-1])
        y0s = y0s + leftover / (len(column) + 1) * np.arange(1, len(column) + 1)
        for node, top, h in zip(column, y0s, heights):
            node.x0 = float(x0)
            node.x1 = float(x0 + dx)
            node.y0 = float(top)
            node.y1 = float(top + h)
        for node in column:
            for link in node.source_links:
                link.width = float(link.value * ky)


def _compute_link_breadths(nodes: List[Node]) -> None:
    for node in nodes:
        node.source_links.sort(key=lambda l: (l.target.y0, l.index))
        node.target_links.sort(key=lambda l: (l.source.y0, l.index))
    for node in nodes:
        y0 = node.y0
        y1 = y0
        for link in node.source_links:
            link.y0 = y0 + link.width / 2
            y0 += link.width
        for link in node.target_links:
            link.y1 = y1 + link.width / 2
            y1 += link.width


def link_horizontal(link: Link) -> str:
    """SVG path for a link: a cubic curve with horizontal tangents at both ends."""
    sx = link.source.x1
    tx = link.target.x0
    xm = (sx + tx) / 2
    return (
        f"M{_num(sx)},{_num(link.y0)}"
        f"C{_num(xm)},{_num(link.y0)},{_num(xm)},{_num(link.y1)},{_num(tx)},{_num(link.y1)}"
    )


def _num(v: float) -> str:
    return format(float(v), ".6g")


# --------------------------------------------------------------------------- #
# Adapter
# --------------------------------------------------------------------------- #
class LayoutAdapter:
    """Runs a layout function with the current extent and spacing."""

    def __init__(self, spacing: Optional[Spacing] = None, layout_func: LayoutFunc = sankey_layout):
        self.spacing = spacing or Spacing()
        self.layout_func = layout_func

    def layout(self, graph: Graph, extent: Extent, spacing: Optional[Spacing] = None) -> Graph:
        """Mutate ``graph`` with geometry and return it.

        Raises
        ------
        LayoutError
            If the extent is empty or the layout function cannot place the
            graph. No geometry is guaranteed on the graph in that case.
        """
        spacing = spacing or self.spacing
        if not (extent.width > 0 and extent.height > 0):
            raise LayoutError(
                f"extent must have positive width and height, got {extent.width}x{extent.height}"
            )
        try:
            self.layout_func(graph, extent, spacing)
        except LayoutError:
            raise
        except Exception as e:
            raise LayoutError(f"layout failed: {e}") from e

        logger.debug(
            "Laid out %d nodes / %d links in %.0fx%.0f",
            len(graph.nodes), len(graph.links), extent.width, extent.height,
        )
        return graph
