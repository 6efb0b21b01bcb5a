# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from dataclasses import dataclass
from logging import getLogger
from operator import attrgetter, itemgetter
from os import PathLike
from pathlib import Path
from typing import Any, Callable, ContextManager, Iterable, Iterator, Optional, Set, Tuple, Union

from filelock import FileLock
from typing_extensions import Self

from ..names import StringTable
from ..protocols import ExtractionVector
from ..remap import IdentifierRemapper
from ..storage import StorageConfig
from .callbacks import ExtractorCallbacks
from .edges import Edge, EdgeNormalizer, InputEdge, WayEndSegments
from .features import Feature
from .files import write_extraction
from .nodes import QueryNode, RawNode
from .profile import Profile
from .resolver import RestrictionResolver
from .restriction import InputRestriction, TurnRestriction
from .stats import ExtractionStats

logger = getLogger("pyroutextract.extractor")


@dataclass
class ExtractionResult:
    """ExtractionResult holds the prepared graph, ready to be written out.

    The internal id of a node is its index in :py:attr:`nodes`.
    """

    nodes: "ExtractionVector[QueryNode]"
    edges: "ExtractionVector[Edge]"
    restrictions: "ExtractionVector[TurnRestriction]"
    names: StringTable
    turn_lanes: StringTable
    stats: ExtractionStats

    def close(self) -> None:
        self.nodes.close()
        self.edges.close()
        self.restrictions.close()


class ExtractionContainers:
    """ExtractionContainers accumulate all data collected from OSM features
    (see :py:class:`ExtractorCallbacks`), which is then filtered, aggregated
    and finally written out.

    Accumulators are created through :py:attr:`storage`, so that data which doesn't fit
    into memory can be spilled into temporary files. Insertion order into the accumulators
    doesn't matter - all ordering is done by :py:meth:`prepare`.
    """

    storage: StorageConfig

    all_nodes: "ExtractionVector[RawNode]"
    all_edges: "ExtractionVector[InputEdge]"
    way_ends: "ExtractionVector[WayEndSegments]"
    restrictions: "ExtractionVector[InputRestriction]"

    barrier_nodes: Set[int]
    traffic_lights: Set[int]

    names: StringTable
    turn_lanes: StringTable

    remapper: IdentifierRemapper
    stats: ExtractionStats

    def __init__(self, storage: StorageConfig = StorageConfig()) -> None:
        self.storage = storage
        self.all_nodes = storage.make_vector()
        self.all_edges = storage.make_vector()
        self.way_ends = storage.make_vector()
        self.restrictions = storage.make_vector()
        self.barrier_nodes = set()
        self.traffic_lights = set()
        self.names = StringTable()
        self.turn_lanes = StringTable()
        self.remapper = IdentifierRemapper()
        self.stats = ExtractionStats()

    @classmethod
    def from_features(
        cls,
        profile: Profile,
        features: Iterable[Feature],
        storage: StorageConfig = StorageConfig(),
    ) -> Self:
        """Creates :py:class:`ExtractionContainers` holding the provided ``features``,
        as interpreted by ``profile``.
        """
        c = cls(storage)
        ExtractorCallbacks(c, profile).add_features(features)
        return c

    def prepare(self, workers: int = 1) -> ExtractionResult:
        """prepare runs all preparation stages, one after another:

        1. :py:meth:`prepare_nodes` assigns internal ids,
        2. :py:meth:`prepare_edges` filters, sorts and de-duplicates edges,
        3. :py:meth:`prepare_restrictions` resolves turn restrictions.

        ``workers`` is passed through to :py:meth:`prepare_restrictions`.
        Should only be called once.
        """
        nodes = self.prepare_nodes()
        edges = self.prepare_edges()
        restrictions = self.prepare_restrictions(workers)
        self.stats.log_summary()
        return ExtractionResult(
            nodes=nodes,
            edges=edges,
            restrictions=restrictions,
            names=self.names,
            turn_lanes=self.turn_lanes,
            stats=self.stats,
        )

    def prepare_data(
        self,
        output_base: Union[str, "PathLike[str]"],
        workers: int = 1,
        file_lock: Callable[[Path], ContextManager[Any]] = FileLock,
    ) -> ExtractionStats:
        """prepare_data runs :py:meth:`prepare` and writes the result next to ``output_base``,
        see :py:func:`write_extraction`.
        """
        result = self.prepare(workers)
        try:
            write_extraction(result, output_base, file_lock)
        finally:
            result.close()
        return result.stats

    def prepare_nodes(self) -> "ExtractionVector[QueryNode]":
        """prepare_nodes creates the list of nodes of the graph: endpoints of stored edges
        whose both endpoints have a known position, in the order of their first use
        by such an edge. Internal ids are assigned in the same order.
        """
        logger.info("Preparing nodes")
        endpoints: "ExtractionVector[Tuple[int, Optional[RawNode]]]" = self.storage.make_vector()
        retained: "ExtractionVector[Tuple[int, RawNode]]" = self.storage.make_vector()
        first_uses: "ExtractionVector[Tuple[int, RawNode]]" = self.storage.make_vector()
        try:
            endpoints.extend(self._join_endpoints(self.all_nodes.sorted(attrgetter("id"))))
            retained.extend(self._retained_endpoints(endpoints.sorted(itemgetter(0))))
            first_uses.extend(self._first_uses(retained.sorted(lambda pair: pair[1].id)))

            nodes: "ExtractionVector[QueryNode]" = self.storage.make_vector()
            for _, node in first_uses.sorted(itemgetter(0)):
                self.remapper.register(node.id)
                nodes.append(
                    QueryNode(
                        external_id=node.id,
                        position=node.position,
                        barrier=node.id in self.barrier_nodes,
                        traffic_light=node.id in self.traffic_lights,
                    )
                )
        finally:
            endpoints.close()
            retained.close()
            first_uses.close()

        self.stats.nodes = len(nodes)
        logger.info("Prepared %d nodes", len(nodes))
        return nodes

    def _endpoint_uses_by_id(self) -> Iterator[Tuple[int, int]]:
        """_endpoint_uses_by_id generates (node id, use) pairs for both endpoints
        of every stored edge, ordered by the node id. Uses number the endpoints in
        the order of edges: ``2*i`` is the source and ``2*i + 1`` the target of the i-th edge.
        """
        uses: "ExtractionVector[Tuple[int, int]]" = self.storage.make_vector()
        try:
            for idx, edge in enumerate(self.all_edges):
                uses.append((edge.source, 2 * idx))
                uses.append((edge.target, 2 * idx + 1))
            yield from uses.sorted(itemgetter(0))
        finally:
            uses.close()

    def _join_endpoints(
        self,
        sorted_nodes: Iterator[RawNode],
    ) -> Iterator[Tuple[int, Optional[RawNode]]]:
        """_join_endpoints merges edge endpoints with node records, both ordered by node id.
        Generates (use, node) pairs, with ``None`` in place of nodes without a record.
        If a node has multiple records, the first stored one is used.
        """
        node = next(sorted_nodes, None)
        previous_missing: Optional[int] = None
        for node_id, use in self._endpoint_uses_by_id():
            while node is not None and node.id < node_id:
                node = next(sorted_nodes, None)

            if node is not None and node.id == node_id:
                yield use, node
                continue

            if node_id != previous_missing:
                logger.debug("node %d is used by an edge, but has no position - skipping", node_id)
                self.stats.missing_nodes += 1
                previous_missing = node_id
            yield use, None

    @staticmethod
    def _retained_endpoints(
        endpoints: Iterable[Tuple[int, Optional[RawNode]]],
    ) -> Iterator[Tuple[int, RawNode]]:
        """_retained_endpoints generates the endpoints of edges with both nodes known.
        ``endpoints`` must be ordered by use, so that every edge is a consecutive pair.
        """
        it = iter(endpoints)
        for (source_use, source), (target_use, target) in zip(it, it):
            if source is not None and target is not None:
                yield source_use, source
                yield target_use, target

    @staticmethod
    def _first_uses(retained: Iterable[Tuple[int, RawNode]]) -> Iterator[Tuple[int, RawNode]]:
        """_first_uses keeps the first use of every node. ``retained`` must be ordered
        by node id, and by use for equal node ids.
        """
        previous: Optional[int] = None
        for use, node in retained:
            if node.id != previous:
                previous = node.id
                yield use, node

    def prepare_edges(self) -> "ExtractionVector[Edge]":
        """prepare_edges creates the ordered list of edges between prepared nodes.
        Must be called after :py:meth:`prepare_nodes`.
        """
        logger.info("Preparing edges")
        normalizer = EdgeNormalizer(self.remapper, self.storage.make_vector)
        edges = normalizer.normalize(self.all_edges)

        self.stats.edges = len(edges)
        self.stats.dangling_edges += normalizer.dangling_edges
        self.stats.duplicate_edges += normalizer.duplicate_edges
        logger.info("Prepared %d edges", len(edges))
        return edges

    def prepare_restrictions(self, workers: int = 1) -> "ExtractionVector[TurnRestriction]":
        """prepare_restrictions resolves all stored turn restrictions into internal node ids,
        in an order independent of the order of extraction. Must be called after
        :py:meth:`prepare_nodes`.

        With ``workers`` > 1, restrictions are resolved on a thread pool. The result
        doesn't depend on the amount of workers.
        """
        logger.info("Preparing turn restrictions")
        resolver = RestrictionResolver(
            self.remapper,
            RestrictionResolver.referenced_ways(self.restrictions, self.way_ends),
        )

        restrictions: "ExtractionVector[TurnRestriction]" = self.storage.make_vector()
        ordered = self.restrictions.sorted(InputRestriction.sort_key)
        for restriction in resolver.resolve_all(ordered, workers):
            restrictions.append(restriction)
            if restriction.is_conditional:
                self.stats.conditional_restrictions += 1

        self.stats.restrictions = len(restrictions)
        self.stats.malformed_restrictions += resolver.malformed_restrictions
        self.stats.dangling_restrictions += resolver.dangling_restrictions
        logger.info("Prepared %d turn restrictions", len(restrictions))
        return restrictions

    def close(self) -> None:
        """close releases all accumulated data (and any temporary files)."""
        self.all_nodes.close()
        self.all_edges.close()
        self.way_ends.close()
        self.restrictions.close()
