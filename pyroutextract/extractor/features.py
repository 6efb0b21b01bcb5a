# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Union

from ..protocols import Position


@dataclass
class Node:
    """Node represents a single `OpenStreetMap node <https://wiki.openstreetmap.org/wiki/Node>`_."""

    id: int
    position: Position
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass
class Way:
    """Way represents a single `OpenStreetMap way <https://wiki.openstreetmap.org/wiki/Way>`_."""

    id: int
    nodes: List[int] = field(default_factory=list)
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass
class RelationMember:
    """RelationMember represents a single member of a
    `OpenStreetMap relation <https://wiki.openstreetmap.org/wiki/Relation>`_.
    """

    type: Literal["node", "way", "relation"]
    ref: int
    role: str


@dataclass
class Relation:
    """Relation represents a single `OpenStreetMap relation <https://wiki.openstreetmap.org/wiki/Relation>`_."""

    id: int
    members: List[RelationMember] = field(default_factory=list)
    tags: Dict[str, str] = field(default_factory=dict)


Feature = Union[Node, Way, Relation]
"""Feature represents a single `OpenStreetMap feature <https://wiki.openstreetmap.org/wiki/Map_features>`_
as supplied by a feed reader: a :py:class:`Node`, :py:class:`Way` or :py:class:`Relation`.
Features may arrive in any order.
"""
