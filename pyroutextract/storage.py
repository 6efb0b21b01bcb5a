# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

import heapq
import pickle
from dataclasses import dataclass, field
from logging import getLogger
from os import PathLike
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Any, Generic, Iterable, Iterator, List, Literal, Optional, Union

from .err import StorageError
from .protocols import ExtractionVector, SortKey, T

logger = getLogger("pyroutextract.storage")

BACKEND_T = Literal["memory", "spill"]
"""Type of the :py:attr:`StorageConfig.backend` attribute."""


@dataclass
class MemoryVector(Generic[T]):
    """MemoryVector implements :py:class:`ExtractionVector` over a plain list."""

    items: List[T] = field(default_factory=list)

    def append(self, item: T) -> None:
        self.items.append(item)

    def extend(self, items: Iterable[T]) -> None:
        self.items.extend(items)

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def sorted(self, key: "SortKey[T]") -> Iterator[T]:
        return iter(sorted(self.items, key=key))

    def close(self) -> None:
        self.items.clear()


class SpillVector(Generic[T]):
    """SpillVector implements :py:class:`ExtractionVector` by keeping at most
    ``threshold`` items in memory. Once the in-memory buffer fills up, it is pickled
    into a *run* file in a temporary directory.

    :py:meth:`sorted` is an external merge sort: every run is sorted separately
    (only one run is held in memory at a time) and the sorted runs are lazily merged.

    Any failure to create, write or read run files is reported as :py:exc:`StorageError`.
    """

    threshold: int
    directory: Optional[Path]

    _buffer: List[T]
    _runs: List[Path]
    _length: int
    _temp_dir: "Optional[TemporaryDirectory[str]]"
    _file_counter: int

    def __init__(
        self,
        threshold: int,
        directory: Union[str, "PathLike[str]", None] = None,
    ) -> None:
        if threshold < 1:
            raise ValueError(f"spill threshold must be positive, got {threshold}")
        self.threshold = threshold
        self.directory = Path(directory) if directory is not None else None
        self._buffer = []
        self._runs = []
        self._length = 0
        self._temp_dir = None
        self._file_counter = 0

    def append(self, item: T) -> None:
        self._buffer.append(item)
        self._length += 1
        if len(self._buffer) >= self.threshold:
            self._spill()

    def extend(self, items: Iterable[T]) -> None:
        for item in items:
            self.append(item)

    def __iter__(self) -> Iterator[T]:
        for run in self._runs:
            yield from self._read_run(run)
        # Copy, as the buffer might be appended to during iteration
        yield from list(self._buffer)

    def __len__(self) -> int:
        return self._length

    def sorted(self, key: "SortKey[T]") -> Iterator[T]:
        in_memory = sorted(self._buffer, key=key)
        if not self._runs:
            return iter(in_memory)

        sorted_runs = [self._sort_run(run, key) for run in self._runs]
        return heapq.merge(
            *(self._read_run(run) for run in sorted_runs),
            in_memory,
            key=key,
        )

    def close(self) -> None:
        self._buffer = []
        self._runs = []
        self._length = 0
        if self._temp_dir is not None:
            self._temp_dir.cleanup()
            self._temp_dir = None

    @property
    def spilled_runs(self) -> int:
        """spilled_runs is the number of run files written so far."""
        return len(self._runs)

    def _spill(self) -> None:
        run = self._write_run(self._buffer)
        self._runs.append(run)
        self._buffer = []
        logger.debug("Spilled %d items to %s", self.threshold, run)

    def _sort_run(self, run: Path, key: "SortKey[T]") -> Path:
        return self._write_run(sorted(self._read_run(run), key=key))

    def _new_run_path(self) -> Path:
        if self._temp_dir is None:
            try:
                self._temp_dir = TemporaryDirectory(prefix="pyroutextract-", dir=self.directory)
            except OSError as e:
                raise StorageError(f"can't create a spill directory: {e}") from e

        self._file_counter += 1
        return Path(self._temp_dir.name) / f"run-{self._file_counter:06d}.pickle"

    def _write_run(self, items: Iterable[T]) -> Path:
        path = self._new_run_path()
        try:
            with path.open("wb") as f:
                pickler = pickle.Pickler(f, protocol=pickle.HIGHEST_PROTOCOL)
                for item in items:
                    pickler.dump(item)
                    pickler.clear_memo()
        except OSError as e:
            raise StorageError(f"can't write spill file {path}: {e}") from e
        return path

    @staticmethod
    def _read_run(path: Path) -> Iterator[Any]:
        try:
            with path.open("rb") as f:
                unpickler = pickle.Unpickler(f)
                while True:
                    try:
                        yield unpickler.load()
                    except EOFError:
                        return
        except OSError as e:
            raise StorageError(f"can't read spill file {path}: {e}") from e


@dataclass(frozen=True)
class StorageConfig:
    """StorageConfig selects where :py:class:`ExtractionContainers` accumulate their data."""

    backend: BACKEND_T = "memory"
    """backend is either ``"memory"`` (plain lists) or ``"spill"`` (:py:class:`SpillVector`)."""

    spill_threshold: int = 1_000_000
    """spill_threshold is the number of items a single accumulator keeps in memory
    before moving them to a temporary file. Only used by the ``"spill"`` backend.
    """

    spill_directory: Union[str, "PathLike[str]", None] = None
    """spill_directory is where temporary run files are created. Defaults to the
    system's temporary directory.
    """

    def __post_init__(self) -> None:
        if self.backend not in ("memory", "spill"):
            raise ValueError(f"unknown storage backend: {self.backend!r}")
        if self.spill_threshold < 1:
            raise ValueError(f"spill threshold must be positive, got {self.spill_threshold}")

    def make_vector(self) -> "ExtractionVector[Any]":
        """make_vector creates a new, empty accumulator using the configured backend."""
        if self.backend == "spill":
            return SpillVector(self.spill_threshold, self.spill_directory)
        return MemoryVector()
