"""Derived season fields computed from the sources and subtitles below a season."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable

from sqlmodel import Session

from ..errors import AggregateRecomputeError, CatalogError
from ..schemas import EntityKind
from ..stores.entity_store import EntityStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SeasonAggregates:
    """Distinct content and subtitle languages of a season, in first-seen order."""

    languages: list[str] = field(default_factory=list)
    subtitles: list[str] = field(default_factory=list)


def _distinct(values: Iterable[str | None]) -> list[str]:
    seen: dict[str, None] = {}
    for value in values:
        if value:
            seen.setdefault(value, None)
    return list(seen)


def compute_aggregates(
    source_languages: Iterable[str],
    embedded_subtitles: Iterable[str | None],
    subtitle_languages: Iterable[str],
) -> SeasonAggregates:
    """Collapse leaf languages into the season-level sets.

    Embedded subtitle languages without a track (``None``) are skipped; the
    embedded and standalone subtitle languages are merged into one set.
    """

    return SeasonAggregates(
        languages=_distinct(source_languages),
        subtitles=_distinct([*embedded_subtitles, *subtitle_languages]),
    )


class AggregateMaintainer:
    """Recompute ``Season.languages`` and ``Season.subtitles`` from scratch."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    async def recompute(self, season_id: str) -> SeasonAggregates:
        """Reload the season tree and rewrite its aggregates before returning."""

        try:
            return await asyncio.to_thread(self.recompute_now, season_id)
        except CatalogError as exc:
            logger.warning("Aggregates of season %s left stale: %s", season_id, exc)
            raise AggregateRecomputeError(season_id, exc) from exc

    def recompute_now(self, season_id: str) -> SeasonAggregates:
        return self._store.atomic(lambda session: self._recompute(session, season_id))

    def _recompute(self, session: Session, season_id: str) -> SeasonAggregates:
        store = self._store
        season = store.record(session, EntityKind.season, season_id)
        source_languages: list[str] = []
        embedded: list[str | None] = []
        standalone: list[str] = []

        for episode_id in season.episodes or []:
            episode = store.lookup(session, EntityKind.episode, episode_id)
            if episode is None:
                logger.warning("Season %s lists missing episode %s", season_id, episode_id)
                continue
            for source_id in episode.sources or []:
                source = store.lookup(session, EntityKind.source, source_id)
                if source is None:
                    logger.warning("Episode %s lists missing source %s", episode_id, source_id)
                    continue
                source_languages.append(source.language)
                embedded.append(source.subtitles)
            for subtitle_id in episode.subtitles or []:
                subtitle = store.lookup(session, EntityKind.subtitle, subtitle_id)
                if subtitle is None:
                    logger.warning("Episode %s lists missing subtitle %s", episode_id, subtitle_id)
                    continue
                standalone.append(subtitle.language)

        aggregates = compute_aggregates(source_languages, embedded, standalone)
        store.patch_field(EntityKind.season, season_id, "languages", aggregates.languages, session=session)
        store.patch_field(EntityKind.season, season_id, "subtitles", aggregates.subtitles, session=session)
        logger.debug(
            "Season %s aggregates: languages=%s subtitles=%s",
            season_id,
            aggregates.languages,
            aggregates.subtitles,
        )
        return aggregates

