"""Consistency repair pass over the whole catalog."""
from __future__ import annotations

import asyncio
import logging

from sqlmodel import Session

from ..schemas import EntityKind, RepairReport
from .catalog import CatalogService
from .hierarchy import MEMBERSHIP

logger = logging.getLogger(__name__)


async def repair_catalog(catalog: CatalogService) -> RepairReport:
    """Prune dangling membership ids and recompute every season's aggregates.

    Used to reconcile seasons left stale by a failed recomputation. Each
    collection is repaired while holding its lock.
    """

    report = RepairReport()
    collections = await asyncio.to_thread(catalog.store.scan, EntityKind.collection)
    for collection in collections:
        async with catalog.locks.hold(collection.id):
            pruned, season_ids = await asyncio.to_thread(
                catalog.store.atomic,
                lambda session: _prune_collection(catalog, session, collection.id),
            )
            report.pruned.extend(pruned)
            for season_id in season_ids:
                await catalog.aggregates.recompute(season_id)
                report.seasons.append(season_id)
    logger.info(
        "Repair pass finished: %d seasons recomputed, %d dangling ids pruned",
        len(report.seasons),
        len(report.pruned),
    )
    return report


def _prune_collection(
    catalog: CatalogService, session: Session, collection_id: str
) -> tuple[list[str], list[str]]:
    store = catalog.store
    hierarchy = catalog.hierarchy
    pruned: list[str] = []

    def prune(child_kind: EntityKind, parent_id: str) -> list[str]:
        kept: list[str] = []
        for child_id in hierarchy.children(session, child_kind, parent_id):
            if store.lookup(session, child_kind, child_id) is None:
                hierarchy.remove_child(session, child_kind, parent_id, child_id)
                parent_kind, _ = MEMBERSHIP[child_kind]
                pruned.append(f"{parent_kind.value}:{parent_id}:{child_id}")
                logger.warning("Pruned dangling %s %s from %s", child_kind.value, child_id, parent_id)
            else:
                kept.append(child_id)
        return kept

    season_ids = prune(EntityKind.season, collection_id)
    for season_id in season_ids:
        for episode_id in prune(EntityKind.episode, season_id):
            prune(EntityKind.source, episode_id)
            prune(EntityKind.subtitle, episode_id)
    return pruned, season_ids
