"""
Core Domain Objects for jdevmodel.

Domain Objects:
    Scope              — Closed set of visibility tiers, in aggregation order
    ResolvedArtifact   — An externally resolved file with optional companions
    Raw declarations   — ProjectDependency, ExternalDependency, FileDependency
    Configuration      — A named bucket of declarations that may extend others
    ScopeDeclaration   — The add/subtract pair configured for one scope
    Entries            — ModuleReference, LibraryReference, FileReference
    ProjectNode        — One build project in the tree
    ProjectTree        — Arena owning every node; parent/child links are indices

Raw declarations compare by identity: the same object reached through two
configurations is one declaration, two objects pointing at the same file
are two.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

from . import config
from .paths import PathAnchorTable, SymbolicPath


# =============================================================================
# ERRORS
# =============================================================================

class ModelError(Exception):
    """Base class for jdevmodel errors."""
    pass


class TreeStructureError(ModelError):
    """Raised when a node is attached to the tree in an invalid position."""
    pass


class NameOrderError(ModelError):
    """
    Raised when module references are classified before names are final.

    Module names must be deduplicated across the whole tree first; reading
    a name earlier could emit a reference to a name that later changes.
    """
    pass


@dataclass(frozen=True)
class NameCollision:
    """
    A residual duplicate name left after deduplication.

    Auditable record, never raised by the deduplicator itself.
    """
    name: str
    node_indices: tuple[int, ...]


class DuplicateNameError(ModelError):
    """Raised by strict callers that require every module name to be unique."""

    def __init__(self, collisions: list[NameCollision]):
        self.collisions = collisions
        names = ", ".join(sorted(c.name for c in collisions))
        super().__init__(f"Module names are not unique: {names}")


# =============================================================================
# SCOPES
# =============================================================================

class Scope(Enum):
    """
    Dependency visibility tiers.

    Definition order is the aggregation order:
    PROVIDED < COMPILE < RUNTIME < TEST
    """
    PROVIDED = "PROVIDED"
    COMPILE = "COMPILE"
    RUNTIME = "RUNTIME"
    TEST = "TEST"

    @classmethod
    def parse(cls, value: Union[str, Scope]) -> Scope:
        if isinstance(value, Scope):
            return value
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown scope: {value}") from None


# =============================================================================
# ARTIFACTS & RAW DECLARATIONS
# =============================================================================

@dataclass(frozen=True)
class ArtifactId:
    """Version identity of an externally resolved artifact."""
    group: str
    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.group}:{self.name}:{self.version}"


@dataclass(eq=False)
class ResolvedArtifact:
    """
    Output of the external dependency resolution.

    The primary file always exists; source and documentation companions
    are present only when the resolver found them.
    """
    id: ArtifactId
    file: Path
    source_file: Optional[Path] = None
    doc_file: Optional[Path] = None


@dataclass(eq=False)
class ProjectDependency:
    """Declared dependency on another project node."""
    target: ProjectNode


@dataclass(eq=False)
class ExternalDependency:
    """Declared dependency on an externally resolved artifact."""
    artifact: ResolvedArtifact


@dataclass(eq=False)
class FileDependency:
    """Declared dependency on a local file (neither project nor repository)."""
    file: Path


RawDependency = Union[ProjectDependency, ExternalDependency, FileDependency]


# =============================================================================
# CONFIGURATIONS & SCOPE DECLARATIONS
# =============================================================================

@dataclass(eq=False)
class Configuration:
    """
    A named, ordered bucket of raw declarations.

    A configuration sees the declarations of every configuration it
    extends, e.g. "runtime" extends "compile".
    """
    name: str
    declarations: list[RawDependency] = field(default_factory=list)
    extends_from: list[Configuration] = field(default_factory=list)

    def add(self, *declarations: RawDependency) -> Configuration:
        self.declarations.extend(declarations)
        return self

    def all_declarations(self) -> list[RawDependency]:
        """Own declarations first, then inherited ones; each object once."""
        result: list[RawDependency] = []
        seen_declarations: set[int] = set()
        seen_configurations: set[int] = set()

        def visit(configuration: Configuration) -> None:
            if id(configuration) in seen_configurations:
                return
            seen_configurations.add(id(configuration))
            for declaration in configuration.declarations:
                if id(declaration) not in seen_declarations:
                    seen_declarations.add(id(declaration))
                    result.append(declaration)
            for parent in configuration.extends_from:
                visit(parent)

        visit(self)
        return result


@dataclass
class ScopeDeclaration:
    """
    The add ("plus") and subtract ("minus") collections for one scope.

    add=None marks a malformed declaration; it resolves to an empty set.
    """
    add: Optional[list[RawDependency]] = field(default_factory=list)
    subtract: Optional[list[RawDependency]] = field(default_factory=list)

    @classmethod
    def from_configurations(
        cls,
        plus: Iterable[Configuration] = (),
        minus: Iterable[Configuration] = (),
    ) -> ScopeDeclaration:
        """Flatten configuration lists into one add/subtract pair."""
        return cls(
            add=_flatten(plus),
            subtract=_flatten(minus),
        )


def _flatten(configurations: Iterable[Configuration]) -> list[RawDependency]:
    result: list[RawDependency] = []
    seen: set[int] = set()
    for configuration in configurations:
        for declaration in configuration.all_declarations():
            if id(declaration) not in seen:
                seen.add(id(declaration))
                result.append(declaration)
    return result


# =============================================================================
# DEPENDENCY ENTRIES
# =============================================================================

@dataclass(frozen=True)
class ModuleReference:
    """Dependency on another module, by its final name."""
    target_name: str
    scope: Scope


@dataclass(frozen=True)
class LibraryReference:
    """
    Single-entry library: one primary path plus optional companions.

    version_id is set only for externally resolved artifacts.
    """
    path: SymbolicPath
    scope: Scope
    source_path: Optional[SymbolicPath] = None
    doc_path: Optional[SymbolicPath] = None
    version_id: Optional[ArtifactId] = None


@dataclass(frozen=True)
class FileReference(LibraryReference):
    """Library entry for a local file. Never carries companions or a version."""

    def __post_init__(self):
        if (
            self.source_path is not None
            or self.doc_path is not None
            or self.version_id is not None
        ):
            raise ModelError(
                f"File reference {self.path} cannot carry companions or a version"
            )


DependencyEntry = Union[ModuleReference, LibraryReference]


# =============================================================================
# PROJECT NODES
# =============================================================================

@dataclass(frozen=True)
class ModuleSettings:
    """Per-module generation switches."""
    offline: bool = config.DEFAULT_OFFLINE
    download_sources: bool = config.DEFAULT_DOWNLOAD_SOURCES
    download_docs: bool = config.DEFAULT_DOWNLOAD_DOCS


@dataclass(eq=False)
class ProjectNode:
    """
    A build project in the tree.

    parent and children are arena indices into the owning ProjectTree.
    Only `name` changes after construction, and only by deduplication.
    """
    index: int
    name: str
    parent: Optional[int] = None
    children: list[int] = field(default_factory=list)
    scopes: dict[Scope, ScopeDeclaration] = field(default_factory=dict)
    output_dirs: dict[Scope, list[Path]] = field(default_factory=dict)
    anchors: PathAnchorTable = field(default_factory=PathAnchorTable)
    settings: ModuleSettings = field(default_factory=ModuleSettings)
    project_dir: Optional[Path] = None

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def declare(self, scope: Scope, declaration: ScopeDeclaration) -> None:
        self.scopes[scope] = declaration

    def add_output_dir(self, scope: Scope, directory: Path) -> None:
        self.output_dirs.setdefault(scope, []).append(Path(directory))


class ProjectTree:
    """
    Arena of project nodes.

    Nodes are addressed by stable integer index. The first node added is
    the root; every later node must name an existing parent.
    """

    def __init__(self):
        self._nodes: list[ProjectNode] = []
        # Set by the deduplicator once names reached their fixed point
        self.names_final: bool = False

    def add_node(
        self,
        name: str,
        parent: Optional[Union[ProjectNode, int]] = None,
        **attributes,
    ) -> ProjectNode:
        """
        Create a node and attach it below `parent`.

        Raises:
            TreeStructureError: On a second root or an unknown parent
        """
        parent_index = parent.index if isinstance(parent, ProjectNode) else parent

        if parent_index is None and self._nodes:
            raise TreeStructureError(
                f"Tree already has a root ({self._nodes[0].name}); "
                f"'{name}' needs a parent"
            )
        if parent_index is not None and not 0 <= parent_index < len(self._nodes):
            raise TreeStructureError(f"Unknown parent index {parent_index} for '{name}'")

        node = ProjectNode(
            index=len(self._nodes),
            name=name,
            parent=parent_index,
            **attributes,
        )
        self._nodes.append(node)
        if parent_index is not None:
            self._nodes[parent_index].children.append(node.index)

        # A new node can collide with names that were already final
        self.names_final = False
        return node

    @property
    def root(self) -> ProjectNode:
        if not self._nodes:
            raise TreeStructureError("Tree is empty")
        return self._nodes[0]

    def node(self, index: int) -> ProjectNode:
        return self._nodes[index]

    def parent_of(self, node: ProjectNode) -> Optional[ProjectNode]:
        if node.parent is None:
            return None
        return self._nodes[node.parent]

    def children_of(self, node: ProjectNode) -> list[ProjectNode]:
        return [self._nodes[i] for i in node.children]

    def ancestors(self, node: ProjectNode) -> Iterator[ProjectNode]:
        """Yield parent, grandparent, ... up to the root."""
        current = self.parent_of(node)
        while current is not None:
            yield current
            current = self.parent_of(current)

    def walk(self) -> list[ProjectNode]:
        """All nodes in pre-order (root first, children in insertion order)."""
        if not self._nodes:
            return []
        ordered: list[ProjectNode] = []
        stack = [self.root]
        while stack:
            node = stack.pop()
            ordered.append(node)
            stack.extend(reversed(self.children_of(node)))
        return ordered

    def find(self, name: str) -> list[ProjectNode]:
        return [node for node in self.walk() if node.name == name]

    def __iter__(self) -> Iterator[ProjectNode]:
        return iter(self.walk())

    def __len__(self) -> int:
        return len(self._nodes)
