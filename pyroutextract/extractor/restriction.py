# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

"""Turn restrictions, both as parsed from OSM relations and as resolved into internal node ids.

OpenStreetMap offers two kinds of restrictions. A restriction turning at a single node,
the most common kind::

    a - b - c
        |
        d

    ab via b to bd

And a restriction with a single via-way in between::

    f - e - d
        |
    a - b - c

    ab via be to ef -- no u turn

Which kind a restriction is follows from the type of its ``node_or_way`` attribute;
there's no separate flag which could disagree with it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple, Union

from ..remap import INVALID_NODE_ID
from .conditions import OpeningHours


class RestrictionType(Enum):
    NODE_RESTRICTION = 0
    WAY_RESTRICTION = 1


@dataclass(frozen=True)
class InputNodeRestriction:
    """InputNodeRestriction is a restriction from one way, via a node, onto another way.
    All ids are external (OSM) ids.
    """

    from_way: int
    via_node: int
    to_way: int


@dataclass(frozen=True)
class InputWayRestriction:
    """InputWayRestriction is a restriction from one way, through a via-way, onto another way.
    All ids are external (OSM) ids.
    """

    from_way: int
    via_way: int
    to_way: int


@dataclass(frozen=True)
class InputRestriction:
    """InputRestriction is a turn restriction as stored by the extractor, before its
    ways and nodes are resolved into internal node ids.
    """

    node_or_way: Union[InputNodeRestriction, InputWayRestriction]

    is_only: bool = False
    """is_only is True for mandatory (only_*) restrictions, False for prohibitory (no_*) ones."""

    conditions: Tuple[OpeningHours, ...] = ()
    """conditions limit when the restriction applies. Empty for restrictions which always apply."""

    relation_id: int = 0
    """relation_id is the id of the OSM relation this restriction comes from, used for reporting."""

    def __post_init__(self) -> None:
        if not isinstance(self.node_or_way, (InputNodeRestriction, InputWayRestriction)):
            raise TypeError(f"invalid input restriction: {self.node_or_way!r}")

    @property
    def type(self) -> RestrictionType:
        if isinstance(self.node_or_way, InputWayRestriction):
            return RestrictionType.WAY_RESTRICTION
        return RestrictionType.NODE_RESTRICTION

    @property
    def is_conditional(self) -> bool:
        return bool(self.conditions)

    @property
    def from_way(self) -> int:
        return self.node_or_way.from_way

    @property
    def to_way(self) -> int:
        return self.node_or_way.to_way

    def sort_key(self) -> Tuple[Any, ...]:
        """sort_key returns a key ordering restrictions by their from way, via member,
        to way and flags, independent of the order in which they were extracted.
        """
        if isinstance(self.node_or_way, InputWayRestriction):
            via = self.node_or_way.via_way
        else:
            via = self.node_or_way.via_node

        return (
            self.from_way,
            self.type.value,
            via,
            self.to_way,
            self.is_only,
            tuple(str(condition) for condition in self.conditions),
            self.relation_id,
        )


@dataclass(frozen=True)
class NodeRestriction:
    """NodeRestriction is a turn from ``from_`` via ``via`` to ``to``, all internal node ids.
    The turn is identified by nodes, not edges, so it can't tell apart parallel edges.
    """

    from_: int
    via: int
    to: int

    def valid(self) -> bool:
        """valid checks if all parts of the restriction reference an actual node."""
        return INVALID_NODE_ID not in (self.from_, self.via, self.to)

    def __str__(self) -> str:
        return f"From {self.from_} via {self.via} to {self.to}"


@dataclass(frozen=True)
class WayRestriction:
    """WayRestriction is a via-way restriction translated into internal node ids.

    Essentially a dual node restriction::

        |     |
        c -x- b
        |     |
        d     a

        from ab via bxc to cd: no_uturn

    Only a, b, c and d are needed to describe the turn. However, it's not known whether
    later graph compression collapses bxc into bc (a traffic light at x, for example,
    prevents that). Therefore, both the entry into the via-way (a, b, x) and the exit from
    the via-way (x, c, d) are kept.
    """

    in_restriction: NodeRestriction
    out_restriction: NodeRestriction

    def valid(self) -> bool:
        return self.in_restriction.valid() and self.out_restriction.valid()

    def __str__(self) -> str:
        return f"In: {self.in_restriction} Out: {self.out_restriction}"


@dataclass(frozen=True)
class TurnRestriction:
    """TurnRestriction is a turn restriction resolved into internal node ids,
    ready to be written out.
    """

    node_or_way: Union[NodeRestriction, WayRestriction]
    is_only: bool = False
    conditions: Tuple[OpeningHours, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.node_or_way, (NodeRestriction, WayRestriction)):
            raise TypeError(f"invalid turn restriction: {self.node_or_way!r}")

    @property
    def type(self) -> RestrictionType:
        if isinstance(self.node_or_way, WayRestriction):
            return RestrictionType.WAY_RESTRICTION
        return RestrictionType.NODE_RESTRICTION

    @property
    def is_conditional(self) -> bool:
        return bool(self.conditions)

    def valid(self) -> bool:
        """valid checks if all node triples of the restriction reference actual nodes."""
        return self.node_or_way.valid()

    def __str__(self) -> str:
        return f"{self.node_or_way} is_only: {int(self.is_only)}"
