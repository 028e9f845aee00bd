"""Recursive deletion of catalog entities and everything below them."""
from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from functools import partial
from typing import Awaitable, Callable

from sqlmodel import Session

from ..errors import AggregateRecomputeError, CatalogError, EntityNotFoundError
from ..schemas import EntityKind
from ..stores.entity_store import EntityStore
from .aggregates import AggregateMaintainer
from .hierarchy import MEMBERSHIP, HierarchyIndex

logger = logging.getLogger(__name__)


class CascadeEngine:
    """Delete an entity after deleting its descendants, top-down.

    Every step removes one record and prunes its id from the parent's
    membership list inside a single transaction. A child that is listed but
    whose record is already gone is treated as deleted: its id is pruned and
    the cascade carries on. Any other failure aborts the remaining steps.

    Callers are expected to hold the owning collection's lock.
    """

    def __init__(
        self,
        store: EntityStore,
        hierarchy: HierarchyIndex,
        aggregates: AggregateMaintainer,
        *,
        retries: int = 0,
    ) -> None:
        self._store = store
        self._hierarchy = hierarchy
        self._aggregates = aggregates
        self._retries = retries

    async def delete(self, kind: EntityKind, entity_id: str) -> None:
        handlers: dict[EntityKind, Callable[[str], Awaitable[None]]] = {
            EntityKind.collection: self.delete_collection,
            EntityKind.season: self.delete_season,
            EntityKind.episode: self.delete_episode,
            EntityKind.source: self.delete_source,
            EntityKind.subtitle: self.delete_subtitle,
        }
        await handlers[kind](entity_id)

    async def delete_collection(self, collection_id: str) -> None:
        collection = await asyncio.to_thread(self._store.get, EntityKind.collection, collection_id)
        for season_id in collection.seasons:
            await self._delete_listed(EntityKind.season, collection_id, season_id, self.delete_season)
        await self._remove(EntityKind.collection, collection_id, parent_id=None)

    async def delete_season(self, season_id: str) -> None:
        season = await asyncio.to_thread(self._store.get, EntityKind.season, season_id)
        # The season itself goes away, so its aggregates are never rebuilt.
        drop_episode = partial(self.delete_episode, recompute=False)
        for episode_id in season.episodes:
            await self._delete_listed(EntityKind.episode, season_id, episode_id, drop_episode)
        await self._remove(EntityKind.season, season_id, parent_id=season.collection_id)

    async def delete_episode(self, episode_id: str, *, recompute: bool = True) -> None:
        """Delete sources, then subtitles, then the episode itself.

        The season is rebuilt once after the children are gone, including when
        a later step fails and aborts the cascade.
        """

        episode = await asyncio.to_thread(self._store.get, EntityKind.episode, episode_id)
        touched = recompute and bool(episode.sources or episode.subtitles)
        drop_source = partial(self.delete_source, recompute=False)
        drop_subtitle = partial(self.delete_subtitle, recompute=False)
        try:
            for source_id in episode.sources:
                await self._delete_listed(EntityKind.source, episode_id, source_id, drop_source)
            for subtitle_id in episode.subtitles:
                await self._delete_listed(EntityKind.subtitle, episode_id, subtitle_id, drop_subtitle)
            await self._remove(EntityKind.episode, episode_id, parent_id=episode.season_id)
        except CatalogError:
            if touched:
                with suppress(AggregateRecomputeError):
                    await self._aggregates.recompute(episode.season_id)
            raise
        if touched:
            await self._aggregates.recompute(episode.season_id)

    async def delete_source(self, source_id: str, *, recompute: bool = True) -> None:
        source = await asyncio.to_thread(self._store.get, EntityKind.source, source_id)
        await self._remove(EntityKind.source, source_id, parent_id=source.episode_id)
        if recompute:
            await self._aggregates.recompute(source.season_id)

    async def delete_subtitle(self, subtitle_id: str, *, recompute: bool = True) -> None:
        subtitle = await asyncio.to_thread(self._store.get, EntityKind.subtitle, subtitle_id)
        await self._remove(EntityKind.subtitle, subtitle_id, parent_id=subtitle.episode_id)
        if recompute:
            await self._aggregates.recompute(subtitle.season_id)

    async def _delete_listed(
        self,
        kind: EntityKind,
        parent_id: str,
        child_id: str,
        delete: Callable[[str], Awaitable[None]],
    ) -> None:
        try:
            await delete(child_id)
        except EntityNotFoundError:
            logger.warning(
                "%s %s listed under %s but already missing; pruning reference",
                kind.value,
                child_id,
                parent_id,
            )
            await asyncio.to_thread(
                self._store.atomic,
                lambda session: self._hierarchy.remove_child(session, kind, parent_id, child_id),
                retries=self._retries,
            )

    async def _remove(self, kind: EntityKind, entity_id: str, *, parent_id: str | None) -> None:
        """Delete one record and prune it from its parent, atomically."""

        def step(session: Session) -> None:
            self._store.delete(kind, entity_id, session=session)
            if parent_id is not None:
                # Always the parent's own id, never the deleted child's.
                self._hierarchy.remove_child(session, kind, parent_id, entity_id)

        await asyncio.to_thread(self._store.atomic, step, retries=self._retries)
        if parent_id is None:
            logger.info("Deleted %s %s", kind.value, entity_id)
        else:
            parent_kind, _ = MEMBERSHIP[kind]
            logger.info("Deleted %s %s from %s %s", kind.value, entity_id, parent_kind.value, parent_id)
