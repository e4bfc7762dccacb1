"""
Dependency Classifier for jdevmodel.

Converts effective raw declarations into typed dependency entries:

    ProjectDependency   -> ModuleReference (target's final name)
    ExternalDependency  -> LibraryReference (+ companions, + version)
                           skipped entirely in offline mode
    FileDependency      -> FileReference (primary path only)

Every path goes through the node's anchor table. Input order is preserved.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from ..domain import (
    DependencyEntry,
    ExternalDependency,
    FileDependency,
    FileReference,
    LibraryReference,
    ModuleReference,
    NameOrderError,
    ProjectDependency,
    ProjectNode,
    ProjectTree,
    RawDependency,
    Scope,
    TreeStructureError,
)
from ..paths import SymbolicPath

logger = logging.getLogger(__name__)


def _symbolic(node: ProjectNode, file: Optional[Path]) -> Optional[SymbolicPath]:
    if file is None:
        return None
    return node.anchors.resolve(file)


# =============================================================================
# PER-KIND CLASSIFICATION
# =============================================================================

def classify_project_dependency(
    tree: ProjectTree,
    declaration: ProjectDependency,
    scope: Scope,
) -> ModuleReference:
    """
    Emit a reference to another module by its current name.

    Raises:
        NameOrderError: If the tree's names have not been deduplicated yet
        TreeStructureError: If the target does not belong to this tree
    """
    if not tree.names_final:
        raise NameOrderError(
            "Module names must be deduplicated across the tree before "
            "module references are classified"
        )

    target = declaration.target
    if target.index >= len(tree) or tree.node(target.index) is not target:
        raise TreeStructureError(
            f"Project dependency on '{target.name}' points outside the tree"
        )

    return ModuleReference(target_name=target.name, scope=scope)


def classify_external_dependency(
    node: ProjectNode,
    declaration: ExternalDependency,
    scope: Scope,
) -> LibraryReference:
    artifact = declaration.artifact
    settings = node.settings

    source_file = artifact.source_file if settings.download_sources else None
    doc_file = artifact.doc_file if settings.download_docs else None

    return LibraryReference(
        path=node.anchors.resolve(artifact.file),
        scope=scope,
        source_path=_symbolic(node, source_file),
        doc_path=_symbolic(node, doc_file),
        version_id=artifact.id,
    )


def classify_file_dependency(
    node: ProjectNode,
    declaration: FileDependency,
    scope: Scope,
) -> FileReference:
    return FileReference(path=node.anchors.resolve(declaration.file), scope=scope)


def classify_output_dir(
    node: ProjectNode,
    directory: Path,
    scope: Scope,
) -> LibraryReference:
    """Directory outputs are libraries in their registered scope, online or not."""
    return LibraryReference(path=node.anchors.resolve(directory), scope=scope)


# =============================================================================
# BATCH CLASSIFICATION
# =============================================================================

def classify(
    tree: ProjectTree,
    node: ProjectNode,
    scope: Scope,
    declarations: Iterable[RawDependency],
) -> list[DependencyEntry]:
    """
    Classify the effective declarations of one scope of one node.

    Offline mode drops externally resolved artifacts only; module and local
    file references are emitted either way.

    Returns:
        Entries in the same order as `declarations`
    """
    entries: list[DependencyEntry] = []

    for declaration in declarations:
        if isinstance(declaration, ProjectDependency):
            entries.append(classify_project_dependency(tree, declaration, scope))
        elif isinstance(declaration, ExternalDependency):
            if node.settings.offline:
                logger.debug(
                    "Offline: skipping %s in %s/%s",
                    declaration.artifact.id, node.name, scope.value,
                )
                continue
            entries.append(classify_external_dependency(node, declaration, scope))
        elif isinstance(declaration, FileDependency):
            entries.append(classify_file_dependency(node, declaration, scope))
        else:
            raise TypeError(f"Unsupported dependency declaration: {declaration!r}")

    return entries
