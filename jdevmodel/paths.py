"""
Path Resolver for jdevmodel.

Rewrites absolute file locations into symbolic, relocation-safe paths using
a table of named anchor directories (path variables).

    /home/me/proj/lib/a.jar  with  MODULE_DIR=/home/me/proj
        -> $MODULE_DIR$/lib/a.jar

Resolution never fails: a file outside every anchor keeps its absolute path.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Mapping, Optional, Union

PathLike = Union[str, os.PathLike]


def _absolute(location: PathLike) -> Path:
    # Lexical normalisation only; the file does not have to exist.
    return Path(os.path.abspath(os.fspath(location)))


def _anchor_token(name: str) -> str:
    return f"${name}$"


# =============================================================================
# SYMBOLIC PATH
# =============================================================================

@dataclass(frozen=True)
class SymbolicPath:
    """
    A file location expressed relative to a named anchor when possible.

    text      — the rendered form, e.g. "$MODULE_DIR$/lib/a.jar"
    absolute  — the absolute POSIX path the text stands for
    anchor    — the anchor name used, or None when unanchored
    """
    text: str
    absolute: str
    anchor: Optional[str] = None

    @property
    def is_anchored(self) -> bool:
        return self.anchor is not None

    def __str__(self) -> str:
        return self.text


# =============================================================================
# ANCHOR TABLE
# =============================================================================

class PathAnchorTable:
    """
    Ordered, immutable mapping from anchor name to absolute directory.

    Registration order matters only for tie-breaks: when two anchors point
    at directories of equal depth that both contain a file, the first
    registered one wins.
    """

    def __init__(self, anchors: Optional[Mapping[str, PathLike]] = None):
        entries: list[tuple[str, Path]] = []
        for name, directory in (anchors or {}).items():
            entries = _replace_or_append(entries, name, _absolute(directory))
        self._entries: tuple[tuple[str, Path], ...] = tuple(entries)

    def add(self, name: str, directory: PathLike) -> PathAnchorTable:
        """Return a new table with one more anchor (or a re-pointed one)."""
        table = PathAnchorTable()
        table._entries = tuple(
            _replace_or_append(list(self._entries), name, _absolute(directory))
        )
        return table

    def __iter__(self) -> Iterator[tuple[str, Path]]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return any(existing == name for existing, _ in self._entries)

    def __repr__(self) -> str:
        pairs = ", ".join(f"{name}={directory}" for name, directory in self._entries)
        return f"PathAnchorTable({pairs})"

    def directory(self, name: str) -> Path:
        for existing, directory in self._entries:
            if existing == name:
                return directory
        raise KeyError(f"Unknown path anchor: {name}")

    def resolve(self, file: PathLike) -> SymbolicPath:
        return resolve_path(self, file)

    def relative_path(self, name: str, file: PathLike) -> SymbolicPath:
        """
        Express a file relative to one specific anchor.

        Unlike resolve(), the file does not have to live below the anchor:
        parent segments ("..") are emitted as needed.

        Raises:
            KeyError: If the anchor is not registered
        """
        directory = self.directory(name)
        target = _absolute(file)
        relative = Path(os.path.relpath(target, directory)).as_posix()
        text = _anchor_token(name)
        if relative != ".":
            text = f"{text}/{relative}"
        return SymbolicPath(text=text, absolute=target.as_posix(), anchor=name)


def _replace_or_append(
    entries: list[tuple[str, Path]],
    name: str,
    directory: Path,
) -> list[tuple[str, Path]]:
    for i, (existing, _) in enumerate(entries):
        if existing == name:
            entries[i] = (name, directory)
            return entries
    entries.append((name, directory))
    return entries


# =============================================================================
# RESOLUTION
# =============================================================================

def resolve_path(anchors: PathAnchorTable, file: PathLike) -> SymbolicPath:
    """
    Map an absolute file onto the anchor with the longest matching prefix.

    Prefixes are compared by path components, so /a/bc is never treated as
    being inside /a/b. Equal-length matches keep the first registered anchor.

    Returns:
        SymbolicPath anchored at the best anchor, or the absolute path
        unchanged when no anchor contains the file
    """
    target = _absolute(file)

    best_name: Optional[str] = None
    best_dir: Optional[Path] = None
    for name, directory in anchors:
        if not target.is_relative_to(directory):
            continue
        if best_dir is None or len(directory.parts) > len(best_dir.parts):
            best_name, best_dir = name, directory

    if best_name is None or best_dir is None:
        return SymbolicPath(text=target.as_posix(), absolute=target.as_posix())

    text = _anchor_token(best_name)
    suffix = target.relative_to(best_dir).as_posix()
    if suffix != ".":
        text = f"{text}/{suffix}"
    return SymbolicPath(text=text, absolute=target.as_posix(), anchor=best_name)
