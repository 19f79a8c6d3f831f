"""
sankey_flow
~~~~~~~~~~~

Sankey flow diagrams for time-indexed ``source -> target -> magnitude`` data.

A value frame is turned into a node/link graph, laid out inside the current
viewport, and reconciled into a persistent scene so that unchanged elements
survive redraws.
"""

from ._version import __version__

# Public API
from .graph import (
    Graph,
    GraphBuilder,
    GraphBuilderConfig,
    InvalidFrameError,
    Link,
    Node,
    SankeyError,
    ValueFrame,
    build_graph,
)
from .layout import Extent, LayoutAdapter, LayoutError, Spacing, link_horizontal, sankey_layout
from .colors import OrdinalColorScale, PairColorScale, ValueFormatter, node_color_key
from .scene import ReconcileStats, Scene, SceneElement, SceneReconciler, link_keys
from .exporters import PlotlyExporter, SceneExporter
from .sources import CallbackFrameSource, FrameSource, StaticFrameSource
from .config import SankeyConfig, configure_logging, load_config
from .orchestrator import Orchestrator, RenderResult, RenderState


__all__ = [
    "Graph",
    "GraphBuilder",
    "GraphBuilderConfig",
    "InvalidFrameError",
    "Link",
    "Node",
    "SankeyError",
    "ValueFrame",
    "build_graph",
    "Extent",
    "LayoutAdapter",
    "LayoutError",
    "Spacing",
    "link_horizontal",
    "sankey_layout",
    "OrdinalColorScale",
    "PairColorScale",
    "ValueFormatter",
    "node_color_key",
    "ReconcileStats",
    "Scene",
    "SceneElement",
    "SceneReconciler",
    "link_keys",
    "PlotlyExporter",
    "SceneExporter",
    "CallbackFrameSource",
    "FrameSource",
    "StaticFrameSource",
    "SankeyConfig",
    "configure_logging",
    "load_config",
    "Orchestrator",
    "RenderResult",
    "RenderState",
]
