# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from typing import Any, Callable, Iterable, Iterator, Protocol, Tuple, TypeVar

Position = Tuple[float, float]
"""Position describes the physical location of a node.
For on-Earth positions, this should be WGS84 degrees, first latitude, then longitude.
The extractor never interprets positions, they are carried through as payload.
"""

T = TypeVar("T")

SortKey = Callable[[T], Any]
"""SortKey describes a callable returning a comparable key of an accumulated item."""


class ExtractionVector(Protocol[T]):
    """ExtractionVector describes an append-only collection of extracted items.

    Items are iterated in insertion order. Ordering work is done with :py:meth:`sorted`,
    which lets a backend sort data which doesn't fit into memory.
    """

    def append(self, item: T) -> None:
        """append adds an item at the end of the collection."""
        ...

    def extend(self, items: Iterable[T]) -> None:
        """extend appends all provided items."""
        ...

    def __iter__(self) -> Iterator[T]: ...

    def __len__(self) -> int: ...

    def sorted(self, key: "SortKey[T]") -> Iterator[T]:
        """sorted generates all items ordered by ``key``. The sort must be stable -
        items with equal keys are generated in insertion order.
        """
        ...

    def close(self) -> None:
        """close releases any resources (like temporary files) held by the collection.
        The collection must not be used afterwards.
        """
        ...
