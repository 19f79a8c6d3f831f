# -*- coding: utf-8 -*-
"""
sankey_flow.colors
~~~~~~~~~~~~~~~~~~

Colour and number-format collaborators used while drawing the scene.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Mapping, Optional, Protocol, Sequence

import plotly.colors

# d3.schemeCategory10
CATEGORY10: Sequence[str] = tuple(plotly.colors.qualitative.D3)


class ColorScale(Protocol):
    """Link colour lookup keyed by endpoint names."""

    def __call__(self, source: str, target: str) -> str: ...


class OrdinalColorScale:
    """Maps arbitrary keys onto a fixed palette in first-seen order, cycling."""

    def __init__(self, palette: Optional[Sequence[str]] = None):
        self.palette = tuple(palette or CATEGORY10)
        if not self.palette:
            raise ValueError("palette must contain at least one colour")
        self._assigned: Dict[Any, str] = {}

    def __call__(self, key: Any) -> str:
        color = self._assigned.get(key)
        if color is None:
            color = self.palette[len(self._assigned) % len(self.palette)]
            self._assigned[key] = color
        return color


class PairColorScale:
    """
    Colour for a ``source -> target`` link.

    ``colors`` is a nested frame shaped like the value frame
    (``colors[source][target] -> key``); the key is mapped through ``scale``.
    Pairs missing from ``colors`` are coloured by their source name.
    """

    def __init__(self, colors: Optional[Mapping[str, Mapping[str, Any]]] = None,
                 scale: Optional[OrdinalColorScale] = None):
        self.colors = colors or {}
        self.scale = scale or OrdinalColorScale()

    def __call__(self, source: str, target: str) -> str:
        key = (self.colors.get(source) or {}).get(target, source)
        return self.scale(key)


def node_color_key(name: str) -> str:
    """Colour group of a node: its name up to the first space."""
    return re.sub(r" .*", "", name, count=1)


class ValueFormatter:
    """Formats flow magnitudes for tooltips, e.g. ``1,234 TWh``."""

    def __init__(self, unit: str = "TWh", spec: str = ",.0f"):
        self.unit = unit
        self.spec = spec

    def __call__(self, value: Optional[float]) -> str:
        if value is None:
            return ""
        text = format(value, self.spec)
        return f"{text} {self.unit}" if self.unit else text
