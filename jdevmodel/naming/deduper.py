"""
Module Name Deduplicator for jdevmodel.

Every module in the tree needs a unique name: it is both the module's
display name and the stem of its module file. Collisions are resolved by
prefixing ancestor names, one level per round:

    core/util, app/util      ->  core-util, app-util
    a/x/util, b/x/util       ->  x-util, x-util  ->  a-x-util, b-x-util

Rounds repeat until no name is shared, or until no colliding node has any
ancestry left. Leftover collisions are reported, never raised; callers that
need strict uniqueness use require_unique_names().

The root has no ancestry and is therefore never renamed.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Iterable

from .. import config
from ..domain import DuplicateNameError, NameCollision, ProjectTree

logger = logging.getLogger(__name__)


# =============================================================================
# DEDUPLICATION TARGET
# =============================================================================

@dataclass
class DeduplicationTarget:
    """
    The deduplicator's view of one node.

    It owns no node state: it reads the current name and writes a new one
    through the callbacks. `ancestry` holds ancestor names nearest first, as
    they were before the pass started.
    """
    node_index: int
    original_name: str
    ancestry: tuple[str, ...]
    read_name: Callable[[], str]
    update_name: Callable[[str], None]
    level: int = 0

    @property
    def name(self) -> str:
        return self.read_name()

    @property
    def can_advance(self) -> bool:
        return self.level < len(self.ancestry)

    def candidate(self, level: int, separator: str = config.DEFAULT_SEPARATOR) -> str:
        """Original name prefixed with the `level` nearest ancestors, outermost first."""
        prefix = list(reversed(self.ancestry[:level]))
        return separator.join(prefix + [self.original_name])


def _group_by_name(
    targets: Iterable[DeduplicationTarget],
) -> dict[str, list[DeduplicationTarget]]:
    groups: dict[str, list[DeduplicationTarget]] = defaultdict(list)
    for target in targets:
        groups[target.name].append(target)
    return groups


def _movers(members: list[DeduplicationTarget]) -> list[DeduplicationTarget]:
    """
    Members of a colliding group that move up this round.

    A group whose collision was caused by a rename moves the renamed members
    only, so a name that was already there keeps it. Members at level 0 move
    when nobody else in the group can.
    """
    advanceable = [t for t in members if t.can_advance]
    renamed = [t for t in advanceable if t.level > 0]
    return renamed or advanceable


def dedupe_targets(
    targets: list[DeduplicationTarget],
    separator: str = config.DEFAULT_SEPARATOR,
) -> int:
    """
    Rename targets until names are unique or no collision can progress.

    Each round, the colliding members of every group move one level up
    (see _movers for which ones). Renames can create new collisions, so the
    groups are rebuilt before the next round. Levels only grow and are
    bounded by tree depth, which guarantees termination.

    Returns:
        Number of rounds that renamed at least one target
    """
    rounds = 0
    while True:
        advanced = False
        for name, members in _group_by_name(targets).items():
            if len(members) < 2:
                continue
            for target in _movers(members):
                target.level += 1
                renamed = target.candidate(target.level, separator)
                logger.debug("Renaming module %r -> %r", name, renamed)
                target.update_name(renamed)
                advanced = True
        if not advanced:
            return rounds
        rounds += 1


# =============================================================================
# TREE ENTRY POINTS
# =============================================================================

def _target_for(
    tree: ProjectTree,
    index: int,
    snapshot: dict[int, str],
) -> DeduplicationTarget:
    node = tree.node(index)

    def read() -> str:
        return node.name

    def update(name: str) -> None:
        node.name = name

    return DeduplicationTarget(
        node_index=index,
        original_name=snapshot[index],
        ancestry=tuple(snapshot[a.index] for a in tree.ancestors(node)),
        read_name=read,
        update_name=update,
    )


def deduplication_targets(tree: ProjectTree) -> list[DeduplicationTarget]:
    """One target per node, pre-order, with ancestry frozen before any rename."""
    nodes = tree.walk()
    snapshot = {node.index: node.name for node in nodes}
    return [_target_for(tree, node.index, snapshot) for node in nodes]


def dedupe(tree: ProjectTree, separator: str = config.DEFAULT_SEPARATOR) -> None:
    """
    Make module names unique across the whole tree, in place.

    Marks the tree's names as final afterwards, which unlocks module
    reference classification. Never raises on leftover collisions.
    """
    targets = deduplication_targets(tree)
    rounds = dedupe_targets(targets, separator)
    tree.names_final = True

    renamed = sum(1 for t in targets if t.level > 0)
    logger.info("Module names settled after %d rounds (%d renamed)", rounds, renamed)

    for collision in find_name_collisions(tree):
        logger.warning(
            "Module name %r is still shared by %d modules",
            collision.name, len(collision.node_indices),
        )


def find_name_collisions(tree: ProjectTree) -> list[NameCollision]:
    """Names shared by more than one node, in pre-order of first use."""
    indices: dict[str, list[int]] = defaultdict(list)
    for node in tree.walk():
        indices[node.name].append(node.index)
    return [
        NameCollision(name=name, node_indices=tuple(found))
        for name, found in indices.items()
        if len(found) > 1
    ]


def require_unique_names(tree: ProjectTree) -> None:
    """
    Raises:
        DuplicateNameError: If any module name is shared
    """
    collisions = find_name_collisions(tree)
    if collisions:
        raise DuplicateNameError(collisions)
