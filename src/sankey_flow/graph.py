# -*- coding: utf-8 -*-
"""
sankey_flow.graph
~~~~~~~~~~~~~~~~~

Turn a nested value frame (``source -> target -> magnitude``) into the
node/link graph consumed by the Sankey layout.

Quickstart
----------
>>> from sankey_flow.graph import GraphBuilder
>>> graph = GraphBuilder().build({"A": {"X": 10, "Y": 5}, "B": {"X": 3}})
>>> graph.node_names()
['A', 'X', 'Y', 'B']
>>> [(l.source, l.target, l.value) for l in graph.links]
[(0, 1, 10), (0, 2, 5), (3, 1, 3)]
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from .utils import is_number, json_safe

logger = logging.getLogger(__name__)

# source name -> target name -> flow magnitude, for one time point
ValueFrame = Mapping[str, Mapping[str, float]]


# --------------------------------------------------------------------------- #
# Errors
# --------------------------------------------------------------------------- #
class SankeyError(Exception):
    """Base class for errors raised by sankey_flow."""


class InvalidFrameError(SankeyError, ValueError):
    """A value frame failed validation (only raised when validation is on)."""


# --------------------------------------------------------------------------- #
# Graph data classes
# --------------------------------------------------------------------------- #
@dataclass(eq=False)
class Node:
    """A category in the diagram. Only ``name`` is set before layout."""

    name: str
    x0: Optional[float] = None
    x1: Optional[float] = None
    y0: Optional[float] = None
    y1: Optional[float] = None
    value: Optional[float] = None
    depth: Optional[int] = None
    height: Optional[int] = None
    index: Optional[int] = None
    source_links: List[Link] = field(default_factory=list, repr=False)
    target_links: List[Link] = field(default_factory=list, repr=False)

    @property
    def is_laid_out(self) -> bool:
        return None not in (self.x0, self.x1, self.y0, self.y1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "x0": self.x0,
            "x1": self.x1,
            "y0": self.y0,
            "y1": self.y1,
            "value": self.value,
            "depth": self.depth,
        }


@dataclass(eq=False)
class Link:
    """
    A flow between two nodes.

    ``source``/``target`` hold integer positions into ``Graph.nodes`` after a
    build; the layout replaces them with the :class:`Node` objects themselves.
    ``source_name``/``target_name`` always carry the endpoint names.
    """

    source: Union[int, Node]
    target: Union[int, Node]
    value: float
    source_name: Optional[str] = None
    target_name: Optional[str] = None
    width: Optional[float] = None
    y0: Optional[float] = None
    y1: Optional[float] = None
    index: Optional[int] = None

    def __post_init__(self):
        if self.source_name is None and isinstance(self.source, Node):
            self.source_name = self.source.name
        if self.target_name is None and isinstance(self.target, Node):
            self.target_name = self.target.name

    @property
    def endpoints(self) -> Tuple[Optional[str], Optional[str]]:
        return self.source_name, self.target_name

    @staticmethod
    def _position(end: Union[int, Node]) -> Optional[int]:
        return end.index if isinstance(end, Node) else end

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self._position(self.source),
            "target": self._position(self.target),
            "value": self.value,
            "width": self.width,
            "y0": self.y0,
            "y1": self.y1,
        }


@dataclass
class Graph:
    """Single mutable graph snapshot; layout fills geometry in place."""

    nodes: List[Node] = field(default_factory=list)
    links: List[Link] = field(default_factory=list)

    def node_names(self) -> List[str]:
        return [n.name for n in self.nodes]

    def is_empty(self) -> bool:
        return not self.nodes and not self.links

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [l.to_dict() for l in self.links],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(json_safe(self.to_dict()), indent=indent)


# --------------------------------------------------------------------------- #
# Builder
# --------------------------------------------------------------------------- #
@dataclass
class GraphBuilderConfig:
    """Configuration for GraphBuilder behavior."""

    validate_frame: bool = False

    def with_updates(self, **kwargs) -> GraphBuilderConfig:
        """Create a new config with updated values."""
        new_config = GraphBuilderConfig(**self.__dict__)
        for key, value in kwargs.items():
            if hasattr(new_config, key):
                setattr(new_config, key, value)
        return new_config


class GraphBuilder:
    """Builds a :class:`Graph` from a :data:`ValueFrame`.

    Node order is first appearance across outer keys and their nested keys;
    the layout uses it as a tie-break when placing nodes within a column.
    Duplicate ``(source, target)`` pairs are emitted as separate links and
    self-loops are passed through.
    """

    def __init__(self, config: Optional[GraphBuilderConfig] = None):
        self.config = config or GraphBuilderConfig()

    def build(self, frame: ValueFrame) -> Graph:
        """Build a fresh graph for one time point."""
        if self.config.validate_frame:
            self.validate(frame)

        index: Dict[str, int] = {}
        # names stay on the links until the node order is final
        pending = list(self._iter_triples(frame, index))

        nodes = [Node(name=name) for name in index]
        links = [
            Link(
                source=index[source],
                target=index[target],
                value=magnitude,
                source_name=source,
                target_name=target,
            )
            for source, target, magnitude in pending
        ]

        logger.debug("Built graph with %d nodes and %d links", len(nodes), len(links))
        return Graph(nodes=nodes, links=links)

    def build_from_json(self, text: str) -> Graph:
        """Build from a JSON document holding a value frame."""
        return self.build(json.loads(text))

    @staticmethod
    def _iter_triples(frame: ValueFrame, index: Dict[str, int]) -> Iterator[Tuple[str, str, Any]]:
        """Yield (source, target, magnitude), registering names as first seen."""
        for source, nested in frame.items():
            index.setdefault(source, len(index))
            # a value without nested flows contributes its source node only
            flows = nested.items() if hasattr(nested, "items") else ()
            for target, magnitude in flows:
                index.setdefault(target, len(index))
                yield source, target, magnitude

    @staticmethod
    def validate(frame: Any) -> None:
        """Raise InvalidFrameError on the first malformed entry."""
        if not isinstance(frame, Mapping):
            raise InvalidFrameError(f"frame must be a mapping, got {type(frame).__name__}")
        for source, nested in frame.items():
            if not isinstance(source, str) or not source:
                raise InvalidFrameError(f"source name must be a non-empty string, got {source!r}")
            if not isinstance(nested, Mapping):
                raise InvalidFrameError(
                    f"flows of {source!r} must be a mapping, got {type(nested).__name__}"
                )
            for target, magnitude in nested.items():
                if not isinstance(target, str) or not target:
                    raise InvalidFrameError(
                        f"target name under {source!r} must be a non-empty string, got {target!r}"
                    )
                if not is_number(magnitude):
                    raise InvalidFrameError(
                        f"magnitude {source!r} -> {target!r} must be numeric, got {magnitude!r}"
                    )
                if not math.isfinite(float(magnitude)):
                    raise InvalidFrameError(f"magnitude {source!r} -> {target!r} is not finite")
                if magnitude < 0:
                    raise InvalidFrameError(
                        f"magnitude {source!r} -> {target!r} is negative ({magnitude})"
                    )


def build_graph(frame: ValueFrame, *, validate: bool = False) -> Graph:
    """Shortcut for ``GraphBuilder(...).build(frame)``."""
    return GraphBuilder(GraphBuilderConfig(validate_frame=validate)).build(frame)
