# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

"""Binary files produced by the extractor.

All numbers are little-endian. Every file starts with an 8-byte magic and
the number of records as an unsigned 64-bit integer.

* ``<base>.nodes``: ``float64 lat, float64 lon`` (positions are written as-is),
  ``int64 external id``, ``uint8 flags`` (1 - barrier, 2 - traffic light);
  the internal id of a node is the index of its record.
* ``<base>.edges``: ``uint32 source, uint32 target, uint32 way index, uint8 travel mode,
  float32 speed, uint32 name offset, uint32 name length, uint32 turn lanes offset,
  uint32 turn lanes length, uint8 flags`` (1 - bidirectional, 2 - roundabout).
* ``<base>.names``, ``<base>.tls``: string tables (names and turn lane descriptions),
  ``uint32 offset, uint32 length`` per string followed by ``uint64`` blob length and the blob.
* ``<base>.restrictions``: ``uint8 kind`` (0 - node, 1 - way), ``uint8 is_only``,
  ``uint8 is_conditional``, followed by 3 (node) or 6 (way: in, then out) ``uint32`` node ids;
  conditional records end with ``uint32`` number of conditions, and for every condition
  an ``uint32`` length of its UTF-8 text.
"""

import os
import struct
from logging import getLogger
from os import PathLike
from pathlib import Path
from typing import (
    IO,
    TYPE_CHECKING,
    Any,
    Callable,
    ContextManager,
    Dict,
    Iterable,
    List,
    Tuple,
    Union,
)

from filelock import FileLock

from ..err import OutputError
from ..names import StringRef, StringTable
from .conditions import OpeningHours, parse_opening_hours
from .edges import Edge, EdgeAttributes
from .nodes import QueryNode
from .profile import TravelMode
from .restriction import NodeRestriction, TurnRestriction, WayRestriction

if TYPE_CHECKING:
    from .containers import ExtractionResult

logger = getLogger("pyroutextract.extractor.files")

NODES_MAGIC = b"PRXNODES"
EDGES_MAGIC = b"PRXEDGES"
RESTRICTIONS_MAGIC = b"PRXRESTR"
STRINGS_MAGIC = b"PRXSTRNG"

OUTPUT_SUFFIXES = {
    "nodes": ".nodes",
    "edges": ".edges",
    "restrictions": ".restrictions",
    "names": ".names",
    "turn_lanes": ".tls",
}
"""OUTPUT_SUFFIXES maps kinds of written data to the suffix appended to the output base."""

_HEADER = struct.Struct("<8sQ")
_NODE = struct.Struct("<ddqB")
_EDGE = struct.Struct("<IIIBfIIIIB")
_STRING_REF = struct.Struct("<II")
_RESTRICTION_FLAGS = struct.Struct("<BBB")
_NODE_TRIPLE = struct.Struct("<III")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")

_BARRIER = 1
_TRAFFIC_LIGHT = 2
_BIDIRECTIONAL = 1
_ROUNDABOUT = 2


def output_paths(output_base: Union[str, "PathLike[str]"]) -> Dict[str, Path]:
    """output_paths returns the paths of all files written by :py:func:`write_extraction`."""
    base = os.fspath(output_base)
    return {kind: Path(base + suffix) for kind, suffix in OUTPUT_SUFFIXES.items()}


def write_extraction(
    result: "ExtractionResult",
    output_base: Union[str, "PathLike[str]"],
    file_lock: Callable[[Path], ContextManager[Any]] = FileLock,
) -> None:
    """write_extraction writes the prepared graph into files named by appending
    :py:obj:`OUTPUT_SUFFIXES` to ``output_base``.

    The data is first written into temporary files, which are renamed over the target
    files only after everything was written. If any temporary file can't be opened,
    no output file is touched. ``file_lock`` (called with ``<output_base>.lock``)
    prevents simultaneous extractions from interleaving their outputs.

    Raises :py:exc:`OutputError` on any I/O failure, or if a value doesn't fit its
    binary field (like a node id outside of the int64 range). A failure while renaming
    the temporary files may leave the outputs inconsistent: some files from this run,
    some from a previous one.
    """
    paths = output_paths(output_base)
    with file_lock(Path(os.fspath(output_base) + ".lock")):
        temporaries = _open_temporaries(paths)
        try:
            write_nodes(temporaries["nodes"][1], result.nodes, len(result.nodes))
            write_edges(temporaries["edges"][1], result.edges, len(result.edges))
            write_restrictions(
                temporaries["restrictions"][1],
                result.restrictions,
                len(result.restrictions),
            )
            write_string_table(temporaries["names"][1], result.names)
            write_string_table(temporaries["turn_lanes"][1], result.turn_lanes)

            for _, f in temporaries.values():
                f.close()
            for kind, (temporary, _) in temporaries.items():
                os.replace(temporary, paths[kind])
                logger.info("Wrote %s", paths[kind])

        except OSError as e:
            raise OutputError(f"can't write extraction output {output_base}: {e}") from e

        except struct.error as e:
            raise OutputError(f"can't encode extraction output {output_base}: {e}") from e

        finally:
            _discard_temporaries(temporaries)


def _open_temporaries(paths: Dict[str, Path]) -> Dict[str, Tuple[Path, IO[bytes]]]:
    temporaries: Dict[str, Tuple[Path, IO[bytes]]] = {}
    for kind, path in paths.items():
        temporary = path.with_name(path.name + ".tmp")
        try:
            temporaries[kind] = temporary, temporary.open("wb")
        except OSError as e:
            _discard_temporaries(temporaries)
            raise OutputError(f"can't open {path} for writing: {e}") from e
    return temporaries


def _discard_temporaries(temporaries: Dict[str, Tuple[Path, IO[bytes]]]) -> None:
    for temporary, f in temporaries.values():
        f.close()
        try:
            temporary.unlink()
        except FileNotFoundError:
            pass


def write_nodes(f: IO[bytes], nodes: Iterable[QueryNode], count: int) -> None:
    f.write(_HEADER.pack(NODES_MAGIC, count))
    for node in nodes:
        flags = (_BARRIER if node.barrier else 0) | (_TRAFFIC_LIGHT if node.traffic_light else 0)
        f.write(
            _NODE.pack(
                node.position[0],
                node.position[1],
                node.external_id,
                flags,
            )
        )


def write_edges(f: IO[bytes], edges: Iterable[Edge], count: int) -> None:
    f.write(_HEADER.pack(EDGES_MAGIC, count))
    for edge in edges:
        a = edge.attributes
        flags = (_BIDIRECTIONAL if a.bidirectional else 0) | (_ROUNDABOUT if a.roundabout else 0)
        f.write(
            _EDGE.pack(
                edge.source,
                edge.target,
                edge.way_index,
                a.travel_mode,
                a.speed,
                a.name.offset,
                a.name.length,
                a.turn_lanes.offset,
                a.turn_lanes.length,
                flags,
            )
        )


def write_restrictions(f: IO[bytes], restrictions: Iterable[TurnRestriction], count: int) -> None:
    f.write(_HEADER.pack(RESTRICTIONS_MAGIC, count))
    for r in restrictions:
        f.write(_RESTRICTION_FLAGS.pack(r.type.value, r.is_only, r.is_conditional))

        if isinstance(r.node_or_way, WayRestriction):
            _write_node_restriction(f, r.node_or_way.in_restriction)
            _write_node_restriction(f, r.node_or_way.out_restriction)
        else:
            _write_node_restriction(f, r.node_or_way)

        if r.is_conditional:
            f.write(_U32.pack(len(r.conditions)))
            for condition in r.conditions:
                encoded = str(condition).encode("utf-8")
                f.write(_U32.pack(len(encoded)))
                f.write(encoded)


def _write_node_restriction(f: IO[bytes], r: NodeRestriction) -> None:
    f.write(_NODE_TRIPLE.pack(r.from_, r.via, r.to))


def write_string_table(f: IO[bytes], table: StringTable) -> None:
    f.write(_HEADER.pack(STRINGS_MAGIC, len(table.refs)))
    for ref in table.refs:
        f.write(_STRING_REF.pack(ref.offset, ref.length))
    f.write(_U64.pack(len(table.blob)))
    f.write(table.blob)


def read_nodes(f: IO[bytes]) -> List[QueryNode]:
    nodes: List[QueryNode] = []
    for _ in range(_read_header(f, NODES_MAGIC)):
        lat, lon, external_id, flags = _read_struct(f, _NODE)
        nodes.append(
            QueryNode(
                external_id=external_id,
                position=(lat, lon),
                barrier=bool(flags & _BARRIER),
                traffic_light=bool(flags & _TRAFFIC_LIGHT),
            )
        )
    return nodes


def read_edges(f: IO[bytes]) -> List[Edge]:
    edges: List[Edge] = []
    for _ in range(_read_header(f, EDGES_MAGIC)):
        (
            source,
            target,
            way_index,
            mode,
            speed,
            name_offset,
            name_length,
            lanes_offset,
            lanes_length,
            flags,
        ) = _read_struct(f, _EDGE)
        attributes = EdgeAttributes(
            travel_mode=TravelMode(mode),
            speed=speed,
            name=StringRef(name_offset, name_length),
            turn_lanes=StringRef(lanes_offset, lanes_length),
            bidirectional=bool(flags & _BIDIRECTIONAL),
            roundabout=bool(flags & _ROUNDABOUT),
        )
        edges.append(Edge(source, target, way_index, attributes))
    return edges


def read_restrictions(f: IO[bytes]) -> List[TurnRestriction]:
    restrictions: List[TurnRestriction] = []
    for _ in range(_read_header(f, RESTRICTIONS_MAGIC)):
        kind, is_only, is_conditional = _read_struct(f, _RESTRICTION_FLAGS)

        node_or_way: Union[NodeRestriction, WayRestriction]
        if kind == 1:
            node_or_way = WayRestriction(
                in_restriction=NodeRestriction(*_read_struct(f, _NODE_TRIPLE)),
                out_restriction=NodeRestriction(*_read_struct(f, _NODE_TRIPLE)),
            )
        elif kind == 0:
            node_or_way = NodeRestriction(*_read_struct(f, _NODE_TRIPLE))
        else:
            raise ValueError(f"invalid restriction kind: {kind}")

        conditions: Tuple[OpeningHours, ...] = ()
        if is_conditional:
            (condition_count,) = _read_struct(f, _U32)
            conditions = tuple(
                condition
                for _ in range(condition_count)
                for condition in parse_opening_hours(_read_text(f))
            )

        restrictions.append(TurnRestriction(node_or_way, bool(is_only), conditions))
    return restrictions


def read_string_table(f: IO[bytes]) -> StringTable:
    refs = [StringRef(*_read_struct(f, _STRING_REF)) for _ in range(_read_header(f, STRINGS_MAGIC))]
    (blob_length,) = _read_struct(f, _U64)
    return StringTable.from_blob(_read_exact(f, blob_length), refs)


def _read_header(f: IO[bytes], expected_magic: bytes) -> int:
    magic, count = _read_struct(f, _HEADER)
    if magic != expected_magic:
        raise ValueError(f"expected a file with magic {expected_magic!r}, got {magic!r}")
    return count


def _read_struct(f: IO[bytes], s: struct.Struct) -> Tuple[Any, ...]:
    return s.unpack(_read_exact(f, s.size))


def _read_text(f: IO[bytes]) -> str:
    (length,) = _read_struct(f, _U32)
    return _read_exact(f, length).decode("utf-8")


def _read_exact(f: IO[bytes], size: int) -> bytes:
    data = f.read(size)
    if len(data) != size:
        raise ValueError(f"unexpected end of file: wanted {size} bytes, got {len(data)}")
    return data
