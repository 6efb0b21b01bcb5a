# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

import sys
from dataclasses import dataclass
from logging import getLogger
from math import isfinite
from typing import TYPE_CHECKING, Iterable, List, Optional, Tuple, Union

from .conditions import ConditionError, OpeningHours, parse_opening_hours
from .edges import EdgeAttributes, InputEdge, WayEndSegments
from .features import Feature, Node, Relation, RelationMember, Way
from .nodes import RawNode
from .profile import Profile, TravelMode, WayDecision
from .restriction import InputNodeRestriction, InputRestriction, InputWayRestriction

if TYPE_CHECKING:
    from .containers import ExtractionContainers

logger = getLogger("pyroutextract.extractor")

if sys.version_info < (3, 10):
    from typing import TypeVar, cast

    _T = TypeVar("_T")

    def pairwise(iterable: Iterable[_T]) -> Iterable[Tuple[_T, _T]]:
        it = iter(iterable)
        a = next(it, None)
        for b in it:
            yield cast(_T, a), b
            a = b

else:
    from itertools import pairwise


@dataclass
class ExtractorCallbacks:
    """ExtractorCallbacks stores OSM features in :py:class:`ExtractionContainers`,
    as instructed by a :py:class:`Profile`.

    Features may be provided in any order - no feature is looked up while storing
    another one. All cross-referencing happens in :py:meth:`ExtractionContainers.prepare`.

    Any issues with incoming OSM data are reported as warnings through the
    ``pyroutextract.extractor`` logger, and counted in the containers' stats.

    Usage::
        ExtractorCallbacks(containers, profile).add_features(features)
    """

    c: "ExtractionContainers"
    profile: Profile

    way_count: int = 0
    """way_count is the number of stored ways, used to number edges by their way."""

    def add_features(self, features: Iterable[Feature]) -> None:
        for feature in features:
            self.add_feature(feature)

    def add_feature(self, feature: Feature) -> None:
        if isinstance(feature, Node):
            self.add_node(feature)
        elif isinstance(feature, Way):
            self.add_way(feature)
        else:
            self.add_relation(feature)

    def add_node(self, node: Node) -> None:
        decision = self.profile.process_node(node.tags)
        self.c.all_nodes.append(RawNode(node.id, node.position))
        if decision.barrier:
            self.c.barrier_nodes.add(node.id)
        if decision.traffic_light:
            self.c.traffic_lights.add(node.id)

    def add_way(self, way: Way) -> None:
        decision = self.profile.process_way(way.tags)
        if decision is None or not (decision.forward or decision.backward):
            return

        self._validate_speeds(way, decision)

        if len(way.nodes) < 2:
            logger.warning("way %d has too few nodes - skipping way", way.id)
            self.c.stats.unusable_ways += 1
            return

        way_index = self.way_count
        self.way_count += 1

        forward, backward = self._get_edge_attributes(decision)
        for left, right in pairwise(way.nodes):
            if forward:
                self.c.all_edges.append(InputEdge(left, right, way_index, forward))
            if backward:
                self.c.all_edges.append(InputEdge(right, left, way_index, backward))

        self.c.way_ends.append(
            WayEndSegments(
                way_id=way.id,
                first_source=way.nodes[0],
                first_target=way.nodes[1],
                last_source=way.nodes[-2],
                last_target=way.nodes[-1],
            )
        )

    def _validate_speeds(self, way: Way, decision: WayDecision) -> None:
        for direction, mode, speed in (
            ("forward", decision.forward_mode, decision.forward_speed),
            ("backward", decision.backward_mode, decision.backward_speed),
        ):
            if mode != TravelMode.INACCESSIBLE and (not isfinite(speed) or speed <= 0.0):
                raise ValueError(
                    f"{self.profile} returned invalid {direction} speed {speed} "
                    f"for way {way.id}. Speeds must be finite and positive."
                )

    def _get_edge_attributes(
        self,
        decision: WayDecision,
    ) -> Tuple[Optional[EdgeAttributes], Optional[EdgeAttributes]]:
        """_get_edge_attributes returns the attributes of forward and backward edges
        of a way, or ``None`` for directions which are not traversable.
        """
        name = self.c.names.intern(decision.name)
        bidirectional = decision.forward and decision.backward

        forward = None
        if decision.forward:
            forward = EdgeAttributes(
                travel_mode=decision.forward_mode,
                speed=decision.forward_speed,
                name=name,
                turn_lanes=self.c.turn_lanes.intern(decision.forward_turn_lanes),
                bidirectional=bidirectional,
                roundabout=decision.roundabout,
            )

        backward = None
        if decision.backward:
            backward = EdgeAttributes(
                travel_mode=decision.backward_mode,
                speed=decision.backward_speed,
                name=name,
                turn_lanes=self.c.turn_lanes.intern(decision.backward_turn_lanes),
                bidirectional=bidirectional,
                roundabout=decision.roundabout,
            )

        return forward, backward

    def add_relation(self, relation: Relation) -> None:
        try:
            decision = self.profile.process_turn_restriction(relation.tags)
            if decision is None:
                return

            conditions: Tuple[OpeningHours, ...] = ()
            if decision.conditions:
                conditions = parse_opening_hours(decision.conditions)

            node_or_way = self._get_restriction_members(relation)
        except ConditionError as e:
            logger.warning("turn restriction %d: %s - skipping", relation.id, e)
            self.c.stats.malformed_restrictions += 1
            return
        except _InvalidTurnRestriction as e:
            e.log()
            self.c.stats.malformed_restrictions += 1
            return

        self.c.restrictions.append(
            InputRestriction(
                node_or_way=node_or_way,
                is_only=decision.is_only,
                conditions=conditions,
                relation_id=relation.id,
            )
        )

    def _get_restriction_members(
        self,
        r: Relation,
    ) -> Union[InputNodeRestriction, InputWayRestriction]:
        """_get_restriction_members ensures there is exactly one ``from`` way member,
        exactly one ``via`` node or way member and exactly one ``to`` way member.
        Any other members are ignored.
        """
        from_: Optional[RelationMember] = None
        to: Optional[RelationMember] = None
        via: List[RelationMember] = []

        for member in r.members:
            if member.role == "from":
                if from_:
                    raise _InvalidTurnRestriction(r, 'multiple "from" members')
                from_ = member

            elif member.role == "via":
                via.append(member)

            elif member.role == "to":
                if to:
                    raise _InvalidTurnRestriction(r, 'multiple "to" members')
                to = member

        if not from_:
            raise _InvalidTurnRestriction(r, 'missing "from" member')
        if not via:
            raise _InvalidTurnRestriction(r, 'missing "via" member')
        if not to:
            raise _InvalidTurnRestriction(r, 'missing "to" member')
        if len(via) > 1:
            raise _InvalidTurnRestriction(r, 'multiple "via" members are not supported')

        for member in (from_, to):
            if member.type != "way":
                raise _InvalidTurnRestriction(
                    r,
                    f"invalid type of {member.role!r} member: {member.type}",
                )

        if via[0].type == "node":
            return InputNodeRestriction(from_.ref, via[0].ref, to.ref)
        elif via[0].type == "way":
            return InputWayRestriction(from_.ref, via[0].ref, to.ref)
        raise _InvalidTurnRestriction(r, f"invalid type of 'via' member: {via[0].type}")


class _InvalidTurnRestriction(ValueError):
    """_InvalidTurnRestriction is raised when a turn restriction relation has invalid members.
    It is raised and caught by :py:class:`ExtractorCallbacks`, which logs the issue
    and moves onto processing next features.
    """

    def __init__(self, restriction: Relation, reason: str) -> None:
        super().__init__(f"invalid turn restriction {restriction.id}: {reason} - skipping")
        self.restriction = restriction
        self.reason = reason

    def log(self) -> None:
        logger.warning(self.args[0])
