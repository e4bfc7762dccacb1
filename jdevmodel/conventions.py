"""
Convention defaults for JDev modules.

The resolution engine does not need these; they reproduce what a Java
build configures out of the box so callers do not have to:

    PROVIDED  nothing
    COMPILE   compile
    RUNTIME   runtime     minus compile
    TEST      testRuntime minus runtime

plus MODULE_DIR as the first path anchor and "<name>.jpr" module files.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Mapping, Optional

from . import config
from .domain import Configuration, ProjectNode, ProjectTree, Scope, ScopeDeclaration
from .paths import PathAnchorTable, PathLike, SymbolicPath


# =============================================================================
# SCOPES & OUTPUTS
# =============================================================================

def standard_java_scopes(
    compile_config: Configuration,
    runtime_config: Configuration,
    test_runtime_config: Configuration,
) -> dict[Scope, ScopeDeclaration]:
    """
    Scope table of a Java project.

    Expects runtime to extend compile and testRuntime to extend runtime,
    so each wider scope only keeps what the narrower one does not already
    contribute.
    """
    return {
        Scope.PROVIDED: ScopeDeclaration.from_configurations(),
        Scope.COMPILE: ScopeDeclaration.from_configurations(plus=[compile_config]),
        Scope.RUNTIME: ScopeDeclaration.from_configurations(plus=[runtime_config], minus=[compile_config]),
        Scope.TEST: ScopeDeclaration.from_configurations(plus=[test_runtime_config], minus=[runtime_config]),
    }


def standard_java_configurations() -> tuple[Configuration, Configuration, Configuration]:
    """Empty compile/runtime/testRuntime configurations wired to extend each other."""
    compile_config = Configuration("compile")
    runtime_config = Configuration("runtime", extends_from=[compile_config])
    test_runtime_config = Configuration("testRuntime", extends_from=[runtime_config])
    return compile_config, runtime_config, test_runtime_config


def standard_output_dirs(
    main_dirs: Iterable[PathLike] = (),
    test_dirs: Iterable[PathLike] = (),
) -> dict[Scope, list[Path]]:
    """Main classes are runtime libraries, test classes test libraries."""
    return {
        Scope.RUNTIME: [Path(d) for d in main_dirs],
        Scope.TEST: [Path(d) for d in test_dirs],
    }


# =============================================================================
# ANCHORS & MODULE FILES
# =============================================================================

def build_anchor_table(
    module_dir: PathLike,
    path_variables: Optional[Mapping[str, PathLike]] = None,
) -> PathAnchorTable:
    """MODULE_DIR first, then user path variables in the order given."""
    table = PathAnchorTable({config.MODULE_DIR: module_dir})
    for name, directory in (path_variables or {}).items():
        table = table.add(name, directory)
    return table


def module_file_name(node: ProjectNode) -> str:
    return f"{node.name}{config.MODULE_FILE_EXTENSION}"


def module_file(node: ProjectNode, default_dir: PathLike) -> Path:
    """Module file inside the node's project directory (or `default_dir`)."""
    directory = node.project_dir if node.project_dir is not None else Path(default_dir)
    return Path(os.path.abspath(directory)) / module_file_name(node)


def workspace_module_paths(tree: ProjectTree, project_dir: PathLike) -> list[SymbolicPath]:
    """
    Every module file relative to PROJECT_DIR, in tree pre-order.

    This is the module listing of the root project file, so names must be
    final before it is built.
    """
    anchors = PathAnchorTable({config.PROJECT_DIR: project_dir})
    return [
        anchors.relative_path(config.PROJECT_DIR, module_file(node, project_dir))
        for node in tree.walk()
    ]
