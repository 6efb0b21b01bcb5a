# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from dataclasses import dataclass
from enum import IntEnum
from typing import Mapping, Optional, Protocol

from .conditions import split_conditional


class TravelMode(IntEnum):
    """TravelMode describes how an edge is traversed. Values are part of the edge file format."""

    INACCESSIBLE = 0
    """The direction can't be traversed at all."""

    DRIVING = 1
    CYCLING = 2
    WALKING = 3
    FERRY = 4
    TRAIN = 5
    PUSHING_BIKE = 6


@dataclass(frozen=True)
class NodeDecision:
    """NodeDecision describes the routing-relevant properties of a node."""

    barrier: bool = False
    traffic_light: bool = False


@dataclass(frozen=True)
class WayDecision:
    """WayDecision describes how a way should be turned into edges.

    A direction is traversable iff its mode is not :py:obj:`TravelMode.INACCESSIBLE`,
    in which case its speed (in km/h) must be finite and positive.
    """

    forward_mode: TravelMode = TravelMode.INACCESSIBLE
    backward_mode: TravelMode = TravelMode.INACCESSIBLE
    forward_speed: float = 0.0
    backward_speed: float = 0.0
    name: str = ""
    forward_turn_lanes: str = ""
    backward_turn_lanes: str = ""
    roundabout: bool = False

    @property
    def forward(self) -> bool:
        return self.forward_mode != TravelMode.INACCESSIBLE

    @property
    def backward(self) -> bool:
        return self.backward_mode != TravelMode.INACCESSIBLE


@dataclass(frozen=True)
class RestrictionDecision:
    """RestrictionDecision describes an applicable turn restriction relation."""

    is_only: bool
    """is_only is True for mandatory (only_*) restrictions, and False for prohibitory (no_*) ones."""

    conditions: str = ""
    """conditions is the time condition in the
    `opening_hours <https://wiki.openstreetmap.org/wiki/Key:opening_hours>`_ syntax,
    without the surrounding parentheses. Empty for restrictions which always apply.
    """


class Profile(Protocol):
    """Profile interprets tags of OSM features for the extractor. The extractor stores
    the returned decisions as-is, without looking at the tags on its own.
    """

    def process_node(self, __node_tags: Mapping[str, str]) -> NodeDecision:
        """process_node must return the flags of a node with the provided tags."""
        ...

    def process_way(self, __way_tags: Mapping[str, str]) -> Optional[WayDecision]:
        """process_way must describe how a way with the provided tags is traversed,
        or return ``None`` if the way is not routable.
        """
        ...

    def process_turn_restriction(
        self,
        __relation_tags: Mapping[str, str],
    ) -> Optional[RestrictionDecision]:
        """process_turn_restriction must determine whether the relation (given by its tags) is
        an applicable `turn restriction <https://wiki.openstreetmap.org/wiki/Relation:restriction>`_.
        Returns ``None`` if it's not.
        """
        ...


@dataclass(frozen=True)
class SkeletonProfile(Profile):
    """SkeletonProfile implements :py:class:`Profile` for every way in OSM data,
    regardless of used tags, all traversed with the same ``mode`` and ``speed``.
    This profile is meant for holding graphs in OSM formats, without following
    OpenStreetMap mapping conventions.

    Introspected tags:

    * ``oneway=yes`` and ``oneway=-1`` on ways,
    * ``name``, ``turn:lanes``, ``turn:lanes:forward``, ``turn:lanes:backward`` on ways,
    * ``junction=roundabout`` on ways,
    * ``barrier=*`` and ``highway=traffic_signals`` on nodes,
    * ``type=restriction`` with ``restriction=*`` or ``restriction:conditional=*`` on relations.
    """

    mode: TravelMode = TravelMode.DRIVING
    speed: float = 50.0

    def process_node(self, node_tags: Mapping[str, str]) -> NodeDecision:
        return NodeDecision(
            barrier=node_tags.get("barrier", "no") != "no",
            traffic_light=node_tags.get("highway") == "traffic_signals",
        )

    def process_way(self, way_tags: Mapping[str, str]) -> Optional[WayDecision]:
        roundabout = way_tags.get("junction") == "roundabout"
        oneway = way_tags.get("oneway")
        forward = oneway != "-1"
        backward = oneway not in ("yes", "-1") and not roundabout

        return WayDecision(
            forward_mode=self.mode if forward else TravelMode.INACCESSIBLE,
            backward_mode=self.mode if backward else TravelMode.INACCESSIBLE,
            forward_speed=self.speed if forward else 0.0,
            backward_speed=self.speed if backward else 0.0,
            name=way_tags.get("name", ""),
            forward_turn_lanes=way_tags.get("turn:lanes:forward", way_tags.get("turn:lanes", "")),
            backward_turn_lanes=way_tags.get("turn:lanes:backward", ""),
            roundabout=roundabout,
        )

    def process_turn_restriction(
        self,
        relation_tags: Mapping[str, str],
    ) -> Optional[RestrictionDecision]:
        if relation_tags.get("type") != "restriction":
            return None

        value = relation_tags.get("restriction")
        if value:
            return RestrictionDecision(is_only=value.startswith("only_"))

        conditional = relation_tags.get("restriction:conditional")
        if conditional:
            value, conditions = split_conditional(conditional)
            return RestrictionDecision(is_only=value.startswith("only_"), conditions=conditions)

        return None
