# -*- coding: utf-8 -*-
"""
sankey_flow.exporters
~~~~~~~~~~~~~~~~~~~~~

Turn a reconciled :class:`~sankey_flow.scene.Scene` into something a host can
display.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import plotly.graph_objects as go

from .scene import LAYER_DEFAULTS, Scene


class SceneExporter(ABC):
    """Abstract base for scene exporters."""

    @abstractmethod
    def export(self, scene: Scene) -> Any:
        """Export the scene to a specific format."""
        pass


class PlotlyExporter(SceneExporter):
    """Draw the scene as Plotly layout shapes (SVG coordinates, y pointing down)."""

    def export(self, scene: Scene, *, title: Optional[str] = None) -> go.Figure:
        link_defaults = LAYER_DEFAULTS["links"]
        node_defaults = LAYER_DEFAULTS["nodes"]

        shapes: List[Dict[str, Any]] = []
        for el in scene.elements("links"):
            a = el.attrs
            shapes.append({
                "type": "path",
                "path": a["d"],
                "line": {"color": a.get("stroke", link_defaults["stroke"]), "width": a["stroke_width"]},
                "opacity": link_defaults["stroke_opacity"],
                "layer": "below",
            })

        annotations: List[Dict[str, Any]] = []
        hover_x, hover_y, hover_text = [], [], []
        for el in scene.elements("nodes"):
            a = el.attrs
            shapes.append({
                "type": "rect",
                "x0": a["x"],
                "y0": a["y"],
                "x1": a["x"] + a["width"],
                "y1": a["y"] + a["height"],
                "fillcolor": a["fill"],
                "line": {"color": a["stroke"], "width": 1},
            })
            annotations.append({
                "x": a["label_x"],
                "y": a["label_y"],
                "text": a["text"],
                "showarrow": False,
                "xanchor": "left" if a["text_anchor"] == "start" else "right",
                "font": {"family": node_defaults["font_family"], "size": node_defaults["font_size"]},
            })
            hover_x.append(a["x"] + a["width"] / 2)
            hover_y.append(a["y"] + a["height"] / 2)
            hover_text.append(a["title"].replace("\n", "<br>"))

        fig = go.Figure(
            go.Scatter(
                x=hover_x,
                y=hover_y,
                mode="markers",
                marker={"opacity": 0},
                hovertext=hover_text,
                hoverinfo="text",
            )
        )
        fig.update_layout(
            title=title,
            shapes=shapes,
            annotations=annotations,
            showlegend=False,
            plot_bgcolor="white",
            margin={"l": 0, "r": 0, "t": 40 if title else 0, "b": 0},
            xaxis={"range": [0, scene.width], "visible": False},
            yaxis={"range": [scene.height, 0], "visible": False},
        )
        # plotly rejects figure sizes below 10px
        if scene.width >= 10 and scene.height >= 10:
            fig.update_layout(width=scene.width, height=scene.height)
        return fig
