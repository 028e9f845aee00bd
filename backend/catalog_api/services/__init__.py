"""Catalog persistence services."""

from .aggregates import AggregateMaintainer, SeasonAggregates, compute_aggregates
from .cascade import CascadeEngine
from .catalog import CatalogService
from .hierarchy import HierarchyIndex
from .locks import CollectionLocks
from .repair import repair_catalog
from .visibility import is_visible

__all__ = [
    "AggregateMaintainer",
    "CascadeEngine",
    "CatalogService",
    "CollectionLocks",
    "HierarchyIndex",
    "SeasonAggregates",
    "compute_aggregates",
    "is_visible",
    "repair_catalog",
]
