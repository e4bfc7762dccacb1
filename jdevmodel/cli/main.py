"""
jdevmodel CLI — Inspect module names and dependencies of a project tree.

Commands:
    jdevmodel names <tree.json>            — Final, deduplicated module names
    jdevmodel deps <tree.json> [--node N]  — Ordered dependency entries
    jdevmodel check <tree.json>            — Fail on residual name collisions

The CLI only reads: it never writes project files.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .. import config
from ..domain import (
    DependencyEntry,
    FileReference,
    LibraryReference,
    ModelError,
    ModuleReference,
)
from ..conventions import module_file_name
from .loader import load_tree
from .pipeline import GenerationResult, generate


# =============================================================================
# OUTPUT FORMATTING
# =============================================================================

def format_entry(entry: DependencyEntry) -> str:
    """Format one dependency entry as a single line."""
    scope = f"[{entry.scope.value}]"

    if isinstance(entry, ModuleReference):
        return f"{scope:<11}module   {entry.target_name}"

    if isinstance(entry, FileReference):
        return f"{scope:<11}file     {entry.path}"

    if isinstance(entry, LibraryReference):
        line = f"{scope:<11}library  {entry.path}"
        if entry.version_id:
            line += f" ({entry.version_id})"
        if entry.source_path:
            line += f" sources={entry.source_path}"
        if entry.doc_path:
            line += f" docs={entry.doc_path}"
        return line

    return f"{scope:<11}{entry!r}"


def format_module_header(result: GenerationResult, index: int) -> str:
    node = result.tree.node(index)
    return f"{node.name} ({module_file_name(node)})"


def _generate(args: argparse.Namespace) -> GenerationResult:
    tree = load_tree(Path(args.tree), force_offline=args.offline)
    return generate(tree, separator=args.separator)


# =============================================================================
# CLI COMMANDS
# =============================================================================

def cmd_names(args: argparse.Namespace) -> int:
    """Print final module names in tree order."""
    try:
        result = _generate(args)
    except (OSError, ValueError, ModelError) as e:
        print("ERROR: Could not load project tree")
        print(f"Reason: {e}")
        return 1

    for node in result.tree.walk():
        depth = len(list(result.tree.ancestors(node)))
        print(f"{'  ' * depth}{node.name}")
    return 0


def cmd_deps(args: argparse.Namespace) -> int:
    """Print aggregated dependency entries per module."""
    try:
        result = _generate(args)
    except (OSError, ValueError, ModelError) as e:
        print("ERROR: Could not resolve dependencies")
        print(f"Reason: {e}")
        return 1

    if args.node:
        node = result.node_named(args.node)
        if node is None:
            print(f"Module not found: {args.node}")
            print()
            print("Available modules:")
            for n in result.tree.walk():
                print(f"  {n.name}")
            return 1
        indices = [node.index]
    else:
        indices = [n.index for n in result.tree.walk()]

    for index in indices:
        print(format_module_header(result, index))
        entries = result.entries.get(index, [])
        if not entries:
            print("  (no dependencies)")
        for entry in entries:
            print(f"  {format_entry(entry)}")
        print()

    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Exit non-zero when module names are not unique after deduplication."""
    try:
        result = _generate(args)
    except (OSError, ValueError, ModelError) as e:
        print("ERROR: Could not load project tree")
        print(f"Reason: {e}")
        return 1

    if result.names_unique:
        print(f"OK: {len(result.tree)} module names are unique")
        return 0

    print("DUPLICATE MODULE NAMES:")
    for collision in result.collisions:
        print(f"  • {collision.name} (modules {', '.join(map(str, collision.node_indices))})")
    return 1


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "tree",
        help="JSON description of the project tree",
    )
    common.add_argument(
        "--separator",
        default=config.DEFAULT_SEPARATOR,
        help="Separator used when prefixing ancestor names (default: %(default)s)",
    )
    common.add_argument(
        "--offline",
        action="store_true",
        help="Leave out externally resolved libraries",
    )
    common.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log resolution decisions",
    )

    parser = argparse.ArgumentParser(
        prog="jdevmodel",
        description="jdevmodel — JDev module names and dependency entries",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
    )

    # Names command
    names_parser = subparsers.add_parser(
        "names",
        parents=[common],
        help="Show deduplicated module names",
    )
    names_parser.set_defaults(func=cmd_names)

    # Deps command
    deps_parser = subparsers.add_parser(
        "deps",
        parents=[common],
        help="Show dependency entries per module",
    )
    deps_parser.add_argument(
        "--node",
        help="Only show the module with this final name",
    )
    deps_parser.set_defaults(func=cmd_deps)

    # Check command
    check_parser = subparsers.add_parser(
        "check",
        parents=[common],
        help="Fail if module names are not unique",
    )
    check_parser.set_defaults(func=cmd_check)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
