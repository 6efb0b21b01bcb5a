# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from itertools import islice
from logging import getLogger
from typing import Dict, Iterable, Iterator, Set, Union

from ..remap import IdentifierRemapper
from .edges import WayEndSegments
from .restriction import (
    InputNodeRestriction,
    InputRestriction,
    InputWayRestriction,
    NodeRestriction,
    TurnRestriction,
    WayRestriction,
)

logger = getLogger("pyroutextract.extractor.resolver")

RESOLVE_BATCH_SIZE = 4096
"""RESOLVE_BATCH_SIZE is the number of restrictions handed to worker threads at once."""


@dataclass
class RestrictionResolver:
    """RestrictionResolver converts :py:class:`InputRestriction` (addressed by OSM way and
    node ids) into :py:class:`TurnRestriction` (addressed by internal node ids).

    Restrictions which can't be fully anchored in the graph are dropped and counted:
    :py:attr:`malformed_restrictions` for restrictions whose members don't connect,
    :py:attr:`dangling_restrictions` for restrictions referencing ways or nodes
    which are not part of the graph.

    Resolving a single restriction only reads :py:attr:`remapper` and :py:attr:`ways`,
    so restrictions may be resolved on multiple threads.
    """

    remapper: IdentifierRemapper
    ways: Dict[int, WayEndSegments]

    malformed_restrictions: int = 0
    dangling_restrictions: int = 0

    @staticmethod
    def referenced_ways(
        restrictions: Iterable[InputRestriction],
        way_ends: Iterable[WayEndSegments],
    ) -> Dict[int, WayEndSegments]:
        """referenced_ways picks the :py:class:`WayEndSegments` of ways which are
        members of any of the provided restrictions.
        """
        ids: Set[int] = set()
        for restriction in restrictions:
            ids.add(restriction.from_way)
            ids.add(restriction.to_way)
            if isinstance(restriction.node_or_way, InputWayRestriction):
                ids.add(restriction.node_or_way.via_way)

        ways: Dict[int, WayEndSegments] = {}
        for way in way_ends:
            if way.way_id in ids:
                ways.setdefault(way.way_id, way)
        return ways

    def resolve_all(
        self,
        restrictions: Iterable[InputRestriction],
        workers: int = 1,
    ) -> Iterator[TurnRestriction]:
        """resolve_all generates resolved, valid restrictions in the order of ``restrictions``.
        With ``workers`` > 1 restrictions are resolved on a thread pool.
        """
        if workers <= 1:
            results: Iterable[Union[TurnRestriction, _InvalidRestriction]] = map(
                self._try_resolve, restrictions
            )
            yield from self._collect(results)
            return

        with ThreadPoolExecutor(max_workers=workers) as pool:
            it = iter(restrictions)
            while batch := list(islice(it, RESOLVE_BATCH_SIZE)):
                yield from self._collect(pool.map(self._try_resolve, batch))

    def resolve(self, restriction: InputRestriction) -> TurnRestriction:
        """resolve converts a single restriction.
        Raises :py:exc:`_InvalidRestriction` if that's not possible.
        """
        if isinstance(restriction.node_or_way, InputWayRestriction):
            resolved = TurnRestriction(
                self._resolve_way_restriction(restriction, restriction.node_or_way),
                restriction.is_only,
                restriction.conditions,
            )
        else:
            resolved = TurnRestriction(
                self._resolve_node_restriction(restriction, restriction.node_or_way),
                restriction.is_only,
                restriction.conditions,
            )

        if not resolved.valid():
            raise _InvalidRestriction(restriction, "references a node outside of the graph")
        return resolved

    def _collect(
        self,
        results: Iterable[Union[TurnRestriction, "_InvalidRestriction"]],
    ) -> Iterator[TurnRestriction]:
        for result in results:
            if isinstance(result, _InvalidRestriction):
                result.log()
                if result.dangling:
                    self.dangling_restrictions += 1
                else:
                    self.malformed_restrictions += 1
            else:
                yield result

    def _try_resolve(
        self,
        restriction: InputRestriction,
    ) -> Union[TurnRestriction, "_InvalidRestriction"]:
        try:
            return self.resolve(restriction)
        except _InvalidRestriction as e:
            return e

    def _resolve_node_restriction(
        self,
        r: InputRestriction,
        node: InputNodeRestriction,
    ) -> NodeRestriction:
        from_way = self._get_way(r, node.from_way)
        to_way = self._get_way(r, node.to_way)
        from_node = self._get_adjacent(r, from_way, node.via_node)
        to_node = self._get_adjacent(r, to_way, node.via_node)
        return self._to_internal(from_node, node.via_node, to_node)

    def _resolve_way_restriction(
        self,
        r: InputRestriction,
        way: InputWayRestriction,
    ) -> WayRestriction:
        from_way = self._get_way(r, way.from_way)
        via_way = self._get_way(r, way.via_way)
        to_way = self._get_way(r, way.to_way)

        if via_way.is_closed:
            raise _InvalidRestriction(r, "via way is closed", dangling=False)

        # b is the end of the via way shared with the from way, c - the other end
        if from_way.adjacent_to(via_way.first_source) is not None:
            b, c = via_way.first_source, via_way.last_target
        elif from_way.adjacent_to(via_way.last_target) is not None:
            b, c = via_way.last_target, via_way.first_source
        else:
            raise _InvalidRestriction(r, "disjoined from and via members", dangling=False)

        a = self._get_adjacent(r, from_way, b)
        after_b = self._get_adjacent(r, via_way, b)
        before_c = self._get_adjacent(r, via_way, c)
        d = self._get_adjacent(r, to_way, c)

        return WayRestriction(
            in_restriction=self._to_internal(a, b, after_b),
            out_restriction=self._to_internal(before_c, c, d),
        )

    def _get_way(self, r: InputRestriction, way_id: int) -> WayEndSegments:
        way = self.ways.get(way_id)
        if way is None:
            raise _InvalidRestriction(r, f"reference to unknown way: {way_id}")
        return way

    @staticmethod
    def _get_adjacent(r: InputRestriction, way: WayEndSegments, node_id: int) -> int:
        adjacent = way.adjacent_to(node_id)
        if adjacent is None:
            raise _InvalidRestriction(
                r,
                f"node {node_id} is not an end of way {way.way_id}",
                dangling=False,
            )
        return adjacent

    def _to_internal(self, from_: int, via: int, to: int) -> NodeRestriction:
        lookup = self.remapper.lookup
        return NodeRestriction(lookup(from_), lookup(via), lookup(to))


class _InvalidRestriction(ValueError):
    """_InvalidRestriction is raised when a turn restriction can't be resolved.
    It is raised and caught by :py:class:`RestrictionResolver`, which logs the issue,
    counts it and moves onto the next restriction.

    ``dangling`` separates references to data absent from the graph (expected, as the
    graph only contains routable ways) from restrictions which are malformed.
    """

    def __init__(self, restriction: InputRestriction, reason: str, dangling: bool = True) -> None:
        super().__init__(f"turn restriction {restriction.relation_id}: {reason} - skipping")
        self.restriction = restriction
        self.reason = reason
        self.dangling = dangling

    def log(self) -> None:
        if self.dangling:
            logger.debug(self.args[0])
        else:
            logger.warning(self.args[0])

