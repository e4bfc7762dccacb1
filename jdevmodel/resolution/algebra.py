"""
Dependency Set Algebra for jdevmodel.

effective = add - subtract, per scope, by object identity.

Scopes are independent here. "Runtime includes compile" is expressed by
what the caller puts into each scope's add/subtract pair, never derived.
"""

from __future__ import annotations

from typing import Iterable, Optional

from ..domain import RawDependency, ScopeDeclaration


def effective(
    add: Optional[Iterable[RawDependency]],
    subtract: Optional[Iterable[RawDependency]] = None,
) -> list[RawDependency]:
    """
    Compute the effective declarations for one scope.

    Membership is by identity, not by path or equality. The result keeps the
    first-occurrence order of `add` and lists each declaration once.
    A missing `add` yields an empty result whatever `subtract` holds.
    """
    if not add:
        return []

    removed = {id(declaration) for declaration in (subtract or ())}
    result: list[RawDependency] = []
    seen: set[int] = set()
    for declaration in add:
        key = id(declaration)
        if key in removed or key in seen:
            continue
        seen.add(key)
        result.append(declaration)
    return result


def effective_for(declaration: Optional[ScopeDeclaration]) -> list[RawDependency]:
    """effective() for a ScopeDeclaration; None counts as malformed, i.e. empty."""
    if declaration is None:
        return []
    return effective(declaration.add, declaration.subtract)
