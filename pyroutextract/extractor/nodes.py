# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from typing import NamedTuple

from ..protocols import Position


class RawNode(NamedTuple):
    """RawNode is a node as stored by the extractor, identified by its external id."""

    id: int
    position: Position


class QueryNode(NamedTuple):
    """QueryNode is a node of the prepared graph. Its internal id is its index
    in the prepared node list.
    """

    external_id: int
    position: Position
    barrier: bool = False
    traffic_light: bool = False
