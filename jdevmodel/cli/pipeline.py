"""
Generation Driver for jdevmodel.

Pipeline stages (strictly in this order, never interleaved):
    1. Name Deduplication — every module name settles across the tree
    2. Dependency Resolution — every node's entries, reading final names

Running stage 2 first would let module references capture names that
stage 1 later rewrites; the classifier refuses to do that.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .. import config
from ..domain import DependencyEntry, NameCollision, ProjectNode, ProjectTree
from ..naming.deduper import dedupe, find_name_collisions
from ..resolution.aggregator import aggregate_tree

logger = logging.getLogger(__name__)


# =============================================================================
# GENERATION RESULT
# =============================================================================

@dataclass
class GenerationResult:
    """
    Everything a project-file writer needs from one generation pass.

    Exposes:
    - final module names
    - ordered entries per module
    - residual name collisions (for audit)
    """
    tree: ProjectTree
    entries: dict[int, list[DependencyEntry]] = field(default_factory=dict)
    collisions: list[NameCollision] = field(default_factory=list)

    @property
    def names(self) -> dict[int, str]:
        return {node.index: node.name for node in self.tree.walk()}

    @property
    def names_unique(self) -> bool:
        return not self.collisions

    def node_named(self, name: str) -> Optional[ProjectNode]:
        """First node (pre-order) carrying `name`."""
        for node in self.tree.walk():
            if node.name == name:
                return node
        return None

    def entries_for(self, node: ProjectNode) -> list[DependencyEntry]:
        return self.entries.get(node.index, [])


# =============================================================================
# PIPELINE EXECUTION
# =============================================================================

def generate(
    tree: ProjectTree,
    separator: str = config.DEFAULT_SEPARATOR,
) -> GenerationResult:
    """
    Run one generation pass over a fully configured tree.

    Args:
        tree: Project tree whose declarations no longer change
        separator: Joins ancestor names during deduplication

    Returns:
        GenerationResult with names, entries and leftover collisions
    """
    # ==========================================================================
    # STAGE 1: Name Deduplication
    # ==========================================================================
    dedupe(tree, separator)
    collisions = find_name_collisions(tree)

    # ==========================================================================
    # STAGE 2: Dependency Resolution
    # ==========================================================================
    entries = aggregate_tree(tree)

    logger.info(
        "Generated %d modules (%d entries, %d name collisions)",
        len(entries), sum(len(e) for e in entries.values()), len(collisions),
    )
    return GenerationResult(tree=tree, entries=entries, collisions=collisions)
