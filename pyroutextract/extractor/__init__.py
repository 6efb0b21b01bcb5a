# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from .callbacks import ExtractorCallbacks
from .conditions import ConditionError, OpeningHours, TimeSpan, parse_opening_hours
from .containers import ExtractionContainers, ExtractionResult
from .edges import Edge, EdgeAttributes, EdgeNormalizer, InputEdge, WayEndSegments
from .features import Feature, Node, Relation, RelationMember, Way
from .files import (
    OUTPUT_SUFFIXES,
    output_paths,
    read_edges,
    read_nodes,
    read_restrictions,
    read_string_table,
    write_extraction,
)
from .nodes import QueryNode, RawNode
from .profile import (
    NodeDecision,
    Profile,
    RestrictionDecision,
    SkeletonProfile,
    TravelMode,
    WayDecision,
)
from .resolver import RestrictionResolver
from .restriction import (
    InputNodeRestriction,
    InputRestriction,
    InputWayRestriction,
    NodeRestriction,
    RestrictionType,
    TurnRestriction,
    WayRestriction,
)
from .stats import ExtractionStats

__all__ = [
    "ConditionError",
    "Edge",
    "EdgeAttributes",
    "EdgeNormalizer",
    "ExtractionContainers",
    "ExtractionResult",
    "ExtractionStats",
    "ExtractorCallbacks",
    "Feature",
    "InputEdge",
    "InputNodeRestriction",
    "InputRestriction",
    "InputWayRestriction",
    "Node",
    "NodeDecision",
    "NodeRestriction",
    "OpeningHours",
    "OUTPUT_SUFFIXES",
    "output_paths",
    "parse_opening_hours",
    "Profile",
    "QueryNode",
    "RawNode",
    "read_edges",
    "read_nodes",
    "read_restrictions",
    "read_string_table",
    "Relation",
    "RelationMember",
    "RestrictionDecision",
    "RestrictionResolver",
    "RestrictionType",
    "SkeletonProfile",
    "TimeSpan",
    "TravelMode",
    "TurnRestriction",
    "Way",
    "WayDecision",
    "WayEndSegments",
    "WayRestriction",
    "write_extraction",
]
