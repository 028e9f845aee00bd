"""Visibility predicate deciding which collections a role set may list."""
from __future__ import annotations

from typing import Iterable

from ..schemas import Scope, Visibility

UNLISTED_SCOPES = frozenset({Scope.restricted, Scope.admin, Scope.wildcard})
PRIVATE_SCOPES = frozenset({Scope.admin, Scope.wildcard})


def is_visible(visibility: Visibility, scopes: Iterable[Scope]) -> bool:
    """Return whether a collection with ``visibility`` is listed for ``scopes``.

    Pure and uncached: callers evaluate it per request.
    """

    granted = set(scopes)
    match visibility:
        case Visibility.public:
            return True
        case Visibility.unlisted:
            return bool(granted & UNLISTED_SCOPES)
        case Visibility.private:
            return bool(granted & PRIVATE_SCOPES)
    raise ValueError(f"Unknown visibility {visibility!r}")
