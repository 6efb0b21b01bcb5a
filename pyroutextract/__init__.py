# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

"""Extraction of routing graphs from OpenStreetMap data"""

__title__ = "pyroutextract"
__description__ = "Extraction of routing graphs from OpenStreetMap data"
__url__ = "https://github.com/MKuranowski/pyroutextract"
__author__ = "Mikołaj Kuranowski"
__copyright__ = "© Copyright 2024 Mikołaj Kuranowski"
__license__ = "GPL-3.0-or-later"
__version__ = "0.1.0"
__email__ = "mkuranowski+pypackages@gmail.com"

from . import extractor, protocols
from .err import ExtractionError, OutputError, StorageError
from .names import EMPTY_STRING_REF, StringRef, StringTable
from .remap import INVALID_NODE_ID, IdentifierRemapper
from .storage import MemoryVector, SpillVector, StorageConfig

__all__ = [
    "EMPTY_STRING_REF",
    "ExtractionError",
    "extractor",
    "IdentifierRemapper",
    "INVALID_NODE_ID",
    "MemoryVector",
    "OutputError",
    "protocols",
    "SpillVector",
    "StorageConfig",
    "StorageError",
    "StringRef",
    "StringTable",
]
