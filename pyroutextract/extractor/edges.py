# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from dataclasses import dataclass
from logging import getLogger
from typing import Any, Callable, Iterable, Iterator, NamedTuple, Optional, Set, Tuple

from ..names import EMPTY_STRING_REF, StringRef
from ..protocols import ExtractionVector
from ..remap import INVALID_NODE_ID, IdentifierRemapper
from .profile import TravelMode

logger = getLogger("pyroutextract.extractor.edges")


@dataclass(frozen=True)
class EdgeAttributes:
    """EdgeAttributes are the routing-relevant attributes of a directed edge,
    as decided by the :py:class:`Profile`.
    """

    travel_mode: TravelMode
    speed: float
    """speed is the traversal speed in km/h."""

    name: StringRef = EMPTY_STRING_REF
    turn_lanes: StringRef = EMPTY_STRING_REF

    bidirectional: bool = False
    """bidirectional is set if the way segment is traversable in both directions,
    and thus is represented by two edges."""

    roundabout: bool = False


class InputEdge(NamedTuple):
    """InputEdge is a directed edge of a way segment, between two external node ids."""

    source: int
    target: int
    way_index: int
    """way_index is the position of the way in the order ways were extracted."""

    attributes: EdgeAttributes


class Edge(NamedTuple):
    """Edge is a directed edge between two internal node ids."""

    source: int
    target: int
    way_index: int
    attributes: EdgeAttributes


def edge_sort_key(edge: Edge) -> Tuple[int, int, int]:
    return edge.source, edge.target, edge.way_index


@dataclass
class EdgeNormalizer:
    """EdgeNormalizer turns the extracted :py:class:`InputEdge` collection into
    the final, ordered list of :py:class:`Edge`:

    1. edges with an endpoint unknown to the ``remapper`` are dropped,
    2. edges are sorted by source, target and way index,
    3. exact duplicates (same source, target and attributes) are dropped,
       keeping the first one in the sorted order.

    Dropped edges are only counted in :py:attr:`dangling_edges` and :py:attr:`duplicate_edges`.
    """

    remapper: IdentifierRemapper
    make_vector: Callable[[], "ExtractionVector[Any]"]

    dangling_edges: int = 0
    duplicate_edges: int = 0

    def normalize(self, raw_edges: Iterable[InputEdge]) -> "ExtractionVector[Edge]":
        remapped: "ExtractionVector[Edge]" = self.make_vector()
        try:
            remapped.extend(self.remap(raw_edges))
            return self.sort_and_deduplicate(remapped)
        finally:
            remapped.close()

    def remap(self, raw_edges: Iterable[InputEdge]) -> Iterator[Edge]:
        """remap translates edge endpoints into internal ids, dropping dangling edges."""
        for raw in raw_edges:
            source = self.remapper.lookup(raw.source)
            target = self.remapper.lookup(raw.target)
            if source == INVALID_NODE_ID or target == INVALID_NODE_ID:
                logger.debug(
                    "edge %d -> %d references an unknown node - dropping",
                    raw.source,
                    raw.target,
                )
                self.dangling_edges += 1
                continue
            yield Edge(source, target, raw.way_index, raw.attributes)

    def sort_and_deduplicate(self, edges: "ExtractionVector[Edge]") -> "ExtractionVector[Edge]":
        """sort_and_deduplicate returns a new collection with ``edges`` sorted and
        without duplicates. Applying it to its own result returns an identical list.
        """
        result: "ExtractionVector[Edge]" = self.make_vector()
        result.extend(self.deduplicate(edges.sorted(edge_sort_key)))
        return result

    def deduplicate(self, sorted_edges: Iterable[Edge]) -> Iterator[Edge]:
        """deduplicate drops edges with the same source, target and attributes
        as a preceding edge. Edges must be grouped by (source, target).
        """
        group: Optional[Tuple[int, int]] = None
        seen: Set[EdgeAttributes] = set()

        for edge in sorted_edges:
            if (edge.source, edge.target) != group:
                group = edge.source, edge.target
                seen.clear()

            if edge.attributes in seen:
                self.duplicate_edges += 1
                continue

            seen.add(edge.attributes)
            yield edge


class WayEndSegments(NamedTuple):
    """WayEndSegments records the first and the last segment of a way, by external node ids.
    This is all turn restrictions need to know about their member ways.
    """

    way_id: int
    first_source: int
    first_target: int
    last_source: int
    last_target: int

    def adjacent_to(self, node_id: int) -> Optional[int]:
        """adjacent_to returns the node next to ``node_id`` on this way, provided that
        ``node_id`` is one of the ends of the way. Otherwise, returns ``None``.
        """
        if self.first_source == node_id:
            return self.first_target
        elif self.last_target == node_id:
            return self.last_source
        return None

    @property
    def is_closed(self) -> bool:
        return self.first_source == self.last_target
