# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from threading import Lock
from typing import Dict, Iterable, Iterator, List, Tuple

from .err import StorageError

INVALID_NODE_ID = 0xFFFF_FFFF
"""INVALID_NODE_ID is the sentinel internal identifier representing "no node".
Internal identifiers are stored as unsigned 32-bit integers, and this is the largest one.
"""


class IdentifierRemapper:
    """IdentifierRemapper maps sparse, external (e.g. OpenStreetMap) node identifiers
    into dense internal identifiers, starting from zero and assigned in the order of
    :py:meth:`register` calls.

    The mapping is held as an arena of external identifiers (indexed by the internal
    identifier) and a dictionary for the reverse lookup, so the size of the structure
    depends only on the number of registered nodes, not on the values of external identifiers.

    :py:meth:`register` may be called from multiple threads at once.

    The extractor itself only uses :py:meth:`register` and :py:meth:`lookup`. The remaining
    methods are meant for consumers of a prepared mapping, e.g. to translate internal ids
    back into OSM ids when reporting.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._to_internal: Dict[int, int] = {}
        self._to_external: List[int] = []

    def register(self, external_id: int) -> int:
        """register returns the internal identifier of the provided external node identifier,
        assigning the next free one if the node wasn't registered before.

        Raises :py:exc:`StorageError` if the internal identifier space is exhausted.
        """
        with self._lock:
            internal_id = self._to_internal.get(external_id)
            if internal_id is not None:
                return internal_id

            internal_id = len(self._to_external)
            if internal_id >= INVALID_NODE_ID:
                raise StorageError("internal node identifier space exhausted")

            self._to_internal[external_id] = internal_id
            self._to_external.append(external_id)
            return internal_id

    def register_all(self, external_ids: Iterable[int]) -> None:
        """register_all registers all provided external identifiers, in order."""
        for external_id in external_ids:
            self.register(external_id)

    def lookup(self, external_id: int) -> int:
        """lookup returns the internal identifier of the provided external node identifier,
        or :py:obj:`INVALID_NODE_ID` if it wasn't registered.
        """
        return self._to_internal.get(external_id, INVALID_NODE_ID)

    def external_id(self, internal_id: int) -> int:
        """external_id returns the external identifier of a registered node.
        Raises IndexError for unknown internal identifiers.
        """
        return self._to_external[internal_id]

    def __contains__(self, external_id: object) -> bool:
        return external_id in self._to_internal

    def __len__(self) -> int:
        return len(self._to_external)

    def items(self) -> Iterator[Tuple[int, int]]:
        """items generates (external id, internal id) pairs, ordered by the internal id."""
        return ((external, internal) for internal, external in enumerate(self._to_external))
