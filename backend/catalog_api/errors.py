"""Domain errors raised by the catalog persistence layer."""
from __future__ import annotations


class CatalogError(RuntimeError):
    """Base class for failures surfaced by catalog operations."""


class EntityNotFoundError(CatalogError):
    """Raised when an entity id does not exist in the store."""

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} {entity_id} not found")
        self.kind = kind
        self.entity_id = entity_id


class ConflictError(CatalogError):
    """Raised when a write raced with a concurrent structural change."""


class CatalogValidationError(CatalogError):
    """Raised when create or patch input is malformed."""


class StoreUnavailableError(CatalogError):
    """Raised when the underlying persistence fails with an I/O error."""


class AggregateRecomputeError(CatalogError):
    """Raised when season aggregates could not be recomputed after a mutation."""

    def __init__(self, season_id: str, cause: Exception) -> None:
        super().__init__(f"Aggregates of season {season_id} may be stale: {cause}")
        self.season_id = season_id


class PermissionDeniedError(CatalogError):
    """Raised when the caller may not perform the requested operation."""
