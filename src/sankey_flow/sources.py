# -*- coding: utf-8 -*-
"""
sankey_flow.sources
~~~~~~~~~~~~~~~~~~~

Data collaborators that deliver one :data:`~sankey_flow.graph.ValueFrame` per
time value. Fetching is the only place the render pipeline suspends.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, List, Mapping, Optional, Protocol

from .graph import ValueFrame

logger = logging.getLogger(__name__)

FrameCallback = Callable[[ValueFrame], None]


class FrameSource(Protocol):
    """Anything that can fetch the frame for a time value."""

    async def fetch(self, time_value: Any) -> ValueFrame: ...


class StaticFrameSource:
    """Serves frames from a mapping ``time -> frame``.

    ``delays`` (seconds per time value) simulate slow deliveries, which is
    how overlapping fetches are reproduced in tests.
    """

    def __init__(self, frames: Mapping[Any, ValueFrame], delays: Optional[Mapping[Any, float]] = None):
        self.frames = frames
        self.delays = dict(delays or {})
        self.calls: List[Any] = []

    async def fetch(self, time_value: Any) -> ValueFrame:
        self.calls.append(time_value)
        await asyncio.sleep(self.delays.get(time_value, 0.0))
        try:
            return self.frames[time_value]
        except KeyError:
            raise KeyError(f"No frame for time value {time_value!r}") from None


class CallbackFrameSource:
    """
    Adapts a callback-style collaborator, ``get_frame(time_value, callback)``,
    into an awaitable fetch.

    The callback may fire synchronously, later on the loop, or from another
    thread. Only its first invocation per fetch counts. Nothing here enforces
    a timeout; a collaborator that never calls back leaves the fetch pending.
    """

    def __init__(self, get_frame: Callable[[Any, FrameCallback], Any]):
        self.get_frame = get_frame

    async def fetch(self, time_value: Any) -> ValueFrame:
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()

        def _resolve(frame: ValueFrame) -> None:
            if future.cancelled():
                logger.debug("Fetch for time value %r was cancelled; dropping its frame", time_value)
                return
            if future.done():
                logger.warning("Ignoring repeated frame delivery for time value %r", time_value)
                return
            future.set_result(frame)

        def callback(frame: ValueFrame) -> None:
            loop.call_soon_threadsafe(_resolve, frame)

        self.get_frame(time_value, callback)
        return await future

