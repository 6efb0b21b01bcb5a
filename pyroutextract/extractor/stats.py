# © Copyright 2024 Mikołaj Kuranowski
# SPDX-License-Identifier: GPL-3.0-or-later

from dataclasses import dataclass
from logging import getLogger
from typing import Dict

logger = getLogger("pyroutextract.extractor")


@dataclass
class ExtractionStats:
    """ExtractionStats summarizes an extraction run: the amount of written entities
    and the amount of entities dropped as part of routine data-quality filtering.

    Comparing these numbers between runs exposes data-quality regressions
    without failing the extraction.
    """

    nodes: int = 0
    edges: int = 0
    restrictions: int = 0
    conditional_restrictions: int = 0

    missing_nodes: int = 0
    """missing_nodes counts node ids referenced by edges, but without a node record."""

    unusable_ways: int = 0
    """unusable_ways counts routable ways with fewer than 2 nodes."""

    dangling_edges: int = 0
    duplicate_edges: int = 0
    malformed_restrictions: int = 0
    dangling_restrictions: int = 0

    def drop_counts(self) -> Dict[str, int]:
        """drop_counts returns the amount of dropped entities, by category."""
        return {
            "missing_nodes": self.missing_nodes,
            "unusable_ways": self.unusable_ways,
            "dangling_edges": self.dangling_edges,
            "duplicate_edges": self.duplicate_edges,
            "malformed_restrictions": self.malformed_restrictions,
            "dangling_restrictions": self.dangling_restrictions,
        }

    def log_summary(self) -> None:
        logger.info(
            "Extracted %d nodes, %d edges and %d restrictions (%d conditional)",
            self.nodes,
            self.edges,
            self.restrictions,
            self.conditional_restrictions,
        )
        for category, count in self.drop_counts().items():
            if count:
                logger.info("Dropped %s: %d", category.replace("_", " "), count)
