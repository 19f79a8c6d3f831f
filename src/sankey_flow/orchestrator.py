# -*- coding: utf-8 -*-
"""
sankey_flow.orchestrator
~~~~~~~~~~~~~~~~~~~~~~~~

Drives ``fetch -> build -> layout -> reconcile`` in response to host signals.

States
------
``UNINITIALIZED``
    :meth:`Orchestrator.start` has not been called. Time changes are dropped
    (not queued); resizes only record the viewport size.
``RENDERING``
    At least one frame fetch is outstanding.
``READY``
    Started and idle.

Overlapping fetches are not cancelled. Each request is numbered; with
``drop_stale_frames`` on, a frame that arrives after a newer request has
already been drawn is discarded, so the scene always ends on the newest
drawn request. With it off, whichever fetch completes last is drawn.

Quickstart
----------
>>> import asyncio
>>> from sankey_flow import Orchestrator, StaticFrameSource
>>> source = StaticFrameSource({2020: {"Coal": {"Electricity": 40}}})
>>> orch = Orchestrator(source, viewport=(400, 300))
>>> asyncio.run(orch.start(2020)).ok
True
>>> sorted(orch.scene.keys("nodes"))
['Coal', 'Electricity']
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple

from .colors import ColorScale, ValueFormatter
from .config import SankeyConfig
from .graph import Graph, GraphBuilder, GraphBuilderConfig
from .layout import Extent, LayoutAdapter, LayoutError, Spacing
from .scene import ReconcileStats, Scene, SceneReconciler
from .sources import FrameSource

logger = logging.getLogger(__name__)


class RenderState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    RENDERING = "rendering"


@dataclass
class RenderResult:
    """Outcome of one pass through the pipeline."""

    time_value: Any
    generation: int
    ok: bool = True
    stale: bool = False
    stats: Optional[ReconcileStats] = None
    error: Optional[Exception] = None


class Orchestrator:
    """
    Owns the single mutable graph, the viewport and the scene.

    Parameters
    ----------
    source : FrameSource
        Delivers the value frame for a time value.
    config : SankeyConfig, optional
        Spacing, padding, formatting and stale-frame policy.
    viewport : (width, height), optional
        Initial viewport size in pixels; may also arrive via :meth:`on_resized`.
    link_colors : ColorScale, optional
        ``(source, target) -> colour`` lookup for links.
    scene : Scene, optional
        Scene to reconcile into; a fresh one by default.
    """

    def __init__(
        self,
        source: FrameSource,
        config: Optional[SankeyConfig] = None,
        *,
        viewport: Optional[Tuple[float, float]] = None,
        link_colors: Optional[ColorScale] = None,
        scene: Optional[Scene] = None,
        builder: Optional[GraphBuilder] = None,
        layout: Optional[LayoutAdapter] = None,
        reconciler: Optional[SceneReconciler] = None,
    ):
        self.source = source
        self.config = config or SankeyConfig()
        cfg = self.config
        logging.getLogger("sankey_flow").setLevel(cfg.log_level)

        self.scene = scene or Scene()
        if viewport is not None:
            self.scene.width, self.scene.height = viewport

        self.builder = builder or GraphBuilder(GraphBuilderConfig(validate_frame=cfg.validate_frame))
        self.layout = layout or LayoutAdapter(Spacing(cfg.node_width, cfg.node_padding))
        self.reconciler = reconciler or SceneReconciler(
            link_colors=link_colors,
            formatter=ValueFormatter(cfg.unit, cfg.value_format),
            label_padding=cfg.label_padding,
        )

        self._graph: Optional[Graph] = None
        self._started = False
        self._in_flight = 0
        self._generation = 0
        self._drawn_generation = 0
        self.last_result: Optional[RenderResult] = None

    # ------------------------------------------------------------------ #
    # State
    # ------------------------------------------------------------------ #
    @property
    def state(self) -> RenderState:
        if not self._started:
            return RenderState.UNINITIALIZED
        if self._in_flight:
            return RenderState.RENDERING
        return RenderState.READY

    @property
    def graph(self) -> Optional[Graph]:
        return self._graph

    @property
    def extent(self) -> Extent:
        return Extent.from_viewport(self.scene.width, self.scene.height, self.config.sankey_padding)

    # ------------------------------------------------------------------ #
    # Signals
    # ------------------------------------------------------------------ #
    async def start(self, time_value: Any) -> RenderResult:
        """First-ready signal: fetch and draw the initial frame."""
        if self._started:
            logger.debug("start() called again; treating as a time change to %r", time_value)
        self._started = True
        return await self._update(time_value)

    async def on_time_changed(self, time_value: Any) -> Optional[RenderResult]:
        """Fetch and draw ``time_value``. Dropped before :meth:`start`."""
        if not self._started:
            logger.warning("Dropping time change to %r received before start", time_value)
            return None
        return await self._update(time_value)

    def on_resized(self, width: float, height: float) -> Optional[RenderResult]:
        """Re-layout and redraw the current graph for a new viewport size."""
        self.scene.width, self.scene.height = width, height
        if self._graph is None:
            logger.debug("Resize to %sx%s recorded; nothing drawn yet", width, height)
            return None
        result = self._draw(self._graph, self._drawn_generation, time_value=None)
        self.last_result = result
        return result

    # ------------------------------------------------------------------ #
    # Pipeline
    # ------------------------------------------------------------------ #
    async def _update(self, time_value: Any) -> RenderResult:
        self._generation += 1
        generation = self._generation
        self._in_flight += 1
        try:
            frame = await self.source.fetch(time_value)
        except Exception:
            logger.exception("Fetching frame for time value %r failed; keeping current scene", time_value)
            raise
        finally:
            self._in_flight -= 1

        if self.config.drop_stale_frames and generation < self._drawn_generation:
            logger.warning(
                "Discarding stale frame for %r (request %d, already drew %d)",
                time_value, generation, self._drawn_generation,
            )
            return RenderResult(time_value, generation, ok=False, stale=True)

        self._graph = self.builder.build(frame)
        result = self._draw(self._graph, generation, time_value)
        if result.ok:
            self._drawn_generation = max(self._drawn_generation, generation)
        self.last_result = result
        return result

    def _draw(self, graph: Graph, generation: int, time_value: Any) -> RenderResult:
        try:
            self.layout.layout(graph, self.extent)
        except LayoutError as e:
            logger.warning("Layout failed, keeping previous scene: %s", e)
            return RenderResult(time_value, generation, ok=False, error=e)

        stats = self.reconciler.reconcile(graph.nodes, graph.links, self.scene)
        return RenderResult(time_value, generation, ok=True, stats=stats)
