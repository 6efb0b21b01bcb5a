# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from typing import Dict, Iterable, Iterator, List, NamedTuple


class StringRef(NamedTuple):
    """StringRef points at a string stored in a :py:class:`StringTable` blob."""

    offset: int
    length: int


EMPTY_STRING_REF = StringRef(0, 0)


class StringTable:
    """StringTable stores every distinct string exactly once in a contiguous UTF-8 blob.

    Edges referencing a string only hold a :py:class:`StringRef`. The reference returned
    for a string never changes once assigned, even as more strings are added.
    The empty string is never stored and is always referenced by :py:obj:`EMPTY_STRING_REF`.
    """

    def __init__(self) -> None:
        self.blob = bytearray()
        self.refs: List[StringRef] = []
        self._interned: Dict[str, StringRef] = {}

    def intern(self, text: str) -> StringRef:
        """intern returns the reference to the provided string, appending it to the blob
        if it wasn't seen before.
        """
        if not text:
            return EMPTY_STRING_REF

        ref = self._interned.get(text)
        if ref is None:
            encoded = text.encode("utf-8")
            ref = StringRef(len(self.blob), len(encoded))
            self.blob.extend(encoded)
            self.refs.append(ref)
            self._interned[text] = ref
        return ref

    def get(self, ref: StringRef) -> str:
        """get returns the string pointed to by ``ref``."""
        return bytes(self.blob[ref.offset : ref.offset + ref.length]).decode("utf-8")

    def __len__(self) -> int:
        return len(self.refs)

    def __iter__(self) -> Iterator[str]:
        return (self.get(ref) for ref in self.refs)

    @classmethod
    def from_blob(cls, blob: bytes, refs: Iterable[StringRef]) -> "StringTable":
        """from_blob recreates a StringTable from its blob and table of references,
        as written out by the extractor.
        """
        table = cls()
        table.blob = bytearray(blob)
        for ref in refs:
            table.refs.append(ref)
            table._interned[table.get(ref)] = ref
        return table
