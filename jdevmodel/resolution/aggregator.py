"""
Dependency Aggregator for jdevmodel.

Builds the final entry list of a node:

    1. one library per existing directory output, scope by scope
    2. classified effective declarations, scope by scope
    3. structural de-duplication, first occurrence wins

Scope order is the order of the Scope enum, never the order of the node's
mappings.
"""

from __future__ import annotations

import logging
from typing import Iterable

from ..domain import DependencyEntry, ProjectNode, ProjectTree, Scope
from .algebra import effective_for
from .classifier import classify, classify_output_dir

logger = logging.getLogger(__name__)


def unique_entries(entries: Iterable[DependencyEntry]) -> list[DependencyEntry]:
    """Drop structurally equal entries, keeping first-occurrence order."""
    return list(dict.fromkeys(entries))


def output_dir_entries(node: ProjectNode) -> list[DependencyEntry]:
    """
    Library entries for the node's directory outputs.

    Missing paths and plain files are filtered out silently; a build that
    has not run yet simply has no output directories.
    """
    entries: list[DependencyEntry] = []
    for scope in Scope:
        for directory in node.output_dirs.get(scope, ()):
            if not directory.is_dir():
                logger.debug("Skipping output %s of %s: not a directory", directory, node.name)
                continue
            entries.append(classify_output_dir(node, directory, scope))
    return entries


def aggregate(tree: ProjectTree, node: ProjectNode) -> list[DependencyEntry]:
    """
    Compute the ordered, de-duplicated dependency entries of one node.

    Module references read target names, so the tree's names must already
    be final (see naming.deduper.dedupe).
    """
    collected = output_dir_entries(node)

    for scope in Scope:
        if scope not in node.scopes:
            continue
        declarations = effective_for(node.scopes[scope])
        collected.extend(classify(tree, node, scope, declarations))

    result = unique_entries(collected)
    logger.debug(
        "Aggregated %d entries for %s (%d before de-duplication)",
        len(result), node.name, len(collected),
    )
    return result


def aggregate_tree(tree: ProjectTree) -> dict[int, list[DependencyEntry]]:
    """Aggregate every node, keyed by node index, in pre-order."""
    return {node.index: aggregate(tree, node) for node in tree.walk()}
