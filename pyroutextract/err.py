# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

"""Contains errors which abort an extraction run"""


class ExtractionError(Exception):
    """Base for all errors which terminate an extraction run."""

    pass


class StorageError(ExtractionError):
    """Accumulated data can't be stored - a spill file couldn't be created, written or read,
    or the internal node identifier space was exhausted. No output of the run is valid.
    """

    pass


class OutputError(ExtractionError, OSError):
    """One of the output files couldn't be opened or written."""

    pass
