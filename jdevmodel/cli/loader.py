"""
Tree description loader for the jdevmodel CLI.

Reads a JSON description of an already resolved build:

    {
      "name": "shop",
      "artifacts": {
        "guava": {"id": "com.google.guava:guava:31.1",
                  "file": "repo/guava.jar", "sources": "repo/guava-src.jar"}
      },
      "path_variables": {"REPO": "repo"},
      "configurations": {"compile": [{"artifact": "guava"}]},
      "outputs": {"RUNTIME": ["build/classes"]},
      "children": [
        {"name": "util",
         "scopes": {"COMPILE": {"add": [{"project": ":"}, {"file": "libs/x.jar"}],
                                "subtract": []}}}
      ]
    }

Declarations only have an identity through their key, so the loader interns
them: the same artifact key, project path or file path within one node yields
the same declaration object.

Paths are relative to the node's directory; artifacts are relative to the
description file. A child's directory defaults to "<parent dir>/<name>".
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from .. import config
from ..conventions import (
    build_anchor_table,
    standard_java_configurations,
    standard_java_scopes,
)
from ..domain import (
    ArtifactId,
    ExternalDependency,
    FileDependency,
    ModelError,
    ModuleSettings,
    ProjectDependency,
    ProjectNode,
    ProjectTree,
    RawDependency,
    ResolvedArtifact,
    Scope,
    ScopeDeclaration,
)

logger = logging.getLogger(__name__)


class TreeDescriptionError(ModelError):
    """Raised when a tree description is malformed."""
    pass


def parse_artifact_id(value: str) -> ArtifactId:
    parts = value.split(":")
    if len(parts) != 3 or not all(parts):
        raise TreeDescriptionError(f"Artifact id must be group:name:version, got {value!r}")
    return ArtifactId(*parts)


def _project_path(tree: ProjectTree, node: ProjectNode) -> str:
    """Gradle-style path: ":" for the root, ":core:util" below it."""
    if node.is_root:
        return ":"
    # ancestors() runs nearest first and ends at the root, which has no segment
    names = [a.name for a in tree.ancestors(node)][::-1][1:]
    return ":" + ":".join(names + [node.name])


class TreeLoader:
    """Builds a ProjectTree from a parsed description."""

    def __init__(self, base_dir: Path, force_offline: bool = False):
        self.base_dir = base_dir
        self.force_offline = force_offline
        self.tree = ProjectTree()
        self.artifacts: dict[str, ResolvedArtifact] = {}
        self._projects: dict[str, ProjectNode] = {}
        self._pending: list[tuple[ProjectNode, dict[str, Any]]] = []

    def load(self, description: dict[str, Any]) -> ProjectTree:
        for key, spec in description.get("artifacts", {}).items():
            self.artifacts[key] = self._artifact(key, spec)

        self._add_node(description, parent=None, parent_dir=self.base_dir)

        # Declarations may point at any project, so they wait for the whole tree
        for node, spec in self._pending:
            self._declare(node, spec)
        return self.tree

    # -------------------------------------------------------------------------

    def _artifact(self, key: str, spec: dict[str, Any]) -> ResolvedArtifact:
        if "id" not in spec or "file" not in spec:
            raise TreeDescriptionError(f"Artifact {key!r} needs 'id' and 'file'")
        return ResolvedArtifact(
            id=parse_artifact_id(spec["id"]),
            file=self.base_dir / spec["file"],
            source_file=self.base_dir / spec["sources"] if spec.get("sources") else None,
            doc_file=self.base_dir / spec["docs"] if spec.get("docs") else None,
        )

    def _add_node(
        self,
        spec: dict[str, Any],
        parent: Optional[ProjectNode],
        parent_dir: Path,
    ) -> ProjectNode:
        name = spec.get("name")
        if not name:
            raise TreeDescriptionError("Every project needs a 'name'")

        if "dir" in spec:
            node_dir = parent_dir / spec["dir"]
        else:
            node_dir = parent_dir if parent is None else parent_dir / name

        settings = ModuleSettings(
            offline=self.force_offline or spec.get("offline", config.DEFAULT_OFFLINE),
            download_sources=spec.get("download_sources", config.DEFAULT_DOWNLOAD_SOURCES),
            download_docs=spec.get("download_docs", config.DEFAULT_DOWNLOAD_DOCS),
        )
        path_variables = {
            key: node_dir / value for key, value in spec.get("path_variables", {}).items()
        }

        node = self.tree.add_node(
            name,
            parent=parent,
            anchors=build_anchor_table(node_dir, path_variables),
            settings=settings,
            project_dir=node_dir,
        )
        for scope_name, dirs in spec.get("outputs", {}).items():
            for directory in dirs:
                node.add_output_dir(Scope.parse(scope_name), node_dir / directory)

        project_path = _project_path(self.tree, node)
        if project_path in self._projects:
            raise TreeDescriptionError(f"Duplicate project path {project_path!r}")
        self._projects[project_path] = node
        self._pending.append((node, spec))

        for child in spec.get("children", []):
            self._add_node(child, parent=node, parent_dir=node_dir)
        return node

    def _declare(self, node: ProjectNode, spec: dict[str, Any]) -> None:
        interned: dict[tuple[str, str], RawDependency] = {}

        def declaration(item: dict[str, Any]) -> RawDependency:
            if "project" in item:
                key = ("project", item["project"])
            elif "artifact" in item:
                key = ("artifact", item["artifact"])
            elif "file" in item:
                key = ("file", str(node.project_dir / item["file"]))
            else:
                raise TreeDescriptionError(f"Unknown dependency in {node.name}: {item!r}")
            if key not in interned:
                interned[key] = self._make_declaration(node, *key)
            return interned[key]

        configurations = spec.get("configurations")
        if configurations:
            compile_config, runtime_config, test_runtime_config = standard_java_configurations()
            for configuration in (compile_config, runtime_config, test_runtime_config):
                for item in configurations.get(configuration.name, []):
                    configuration.add(declaration(item))
            node.scopes.update(
                standard_java_scopes(compile_config, runtime_config, test_runtime_config)
            )

        for scope_name, scope_spec in spec.get("scopes", {}).items():
            add = scope_spec.get("add")
            node.declare(
                Scope.parse(scope_name),
                ScopeDeclaration(
                    add=None if add is None else [declaration(i) for i in add],
                    subtract=[declaration(i) for i in scope_spec.get("subtract", [])],
                ),
            )

    def _make_declaration(self, node: ProjectNode, kind: str, key: str) -> RawDependency:
        if kind == "project":
            target = self._projects.get(key)
            if target is None:
                raise TreeDescriptionError(f"{node.name} depends on unknown project {key!r}")
            return ProjectDependency(target)
        if kind == "artifact":
            artifact = self.artifacts.get(key)
            if artifact is None:
                raise TreeDescriptionError(f"{node.name} depends on unknown artifact {key!r}")
            return ExternalDependency(artifact)
        return FileDependency(Path(key))


def load_tree(path: Path, force_offline: bool = False) -> ProjectTree:
    """
    Load a tree description file.

    Raises:
        OSError: If the file cannot be read
        TreeDescriptionError: If the description is malformed
    """
    try:
        description = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise TreeDescriptionError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(description, dict):
        raise TreeDescriptionError(f"{path} must contain a JSON object")

    tree = TreeLoader(Path(path).parent, force_offline).load(description)
    logger.info("Loaded %d projects from %s", len(tree), path)
    return tree
