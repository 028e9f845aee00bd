"""Public operation surface of the catalog persistence layer."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Iterable
from uuid import uuid4

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlmodel import Session

from ..errors import CatalogValidationError, EntityNotFoundError
from ..models import utc_now
from ..schemas import (
    CollectionCreate,
    CollectionModel,
    CollectionUpdate,
    EntityKind,
    EpisodeCreate,
    EpisodeDetailModel,
    EpisodeModel,
    EpisodeUpdate,
    FileCreate,
    FileUpdate,
    ProfileModel,
    ProfileUpdate,
    Scope,
    SeasonCreate,
    SeasonModel,
    SeasonTreeModel,
    SeasonUpdate,
    SourceCreate,
    SourceUpdate,
    SubtitleCreate,
    SubtitleUpdate,
)
from ..stores.entity_store import KINDS, EntityStore
from .aggregates import AggregateMaintainer
from .cascade import CascadeEngine
from .hierarchy import MEMBERSHIP, HierarchyIndex
from .locks import CollectionLocks
from .visibility import is_visible

logger = logging.getLogger(__name__)

CREATE_SCHEMAS: dict[EntityKind, type[BaseModel]] = {
    EntityKind.file: FileCreate,
    EntityKind.collection: CollectionCreate,
    EntityKind.season: SeasonCreate,
    EntityKind.episode: EpisodeCreate,
    EntityKind.source: SourceCreate,
    EntityKind.subtitle: SubtitleCreate,
}

UPDATE_SCHEMAS: dict[EntityKind, type[BaseModel]] = {
    EntityKind.file: FileUpdate,
    EntityKind.collection: CollectionUpdate,
    EntityKind.season: SeasonUpdate,
    EntityKind.episode: EpisodeUpdate,
    EntityKind.source: SourceUpdate,
    EntityKind.subtitle: SubtitleUpdate,
}

# Patched fields that change what a season aggregates.
AGGREGATE_FIELDS: dict[EntityKind, frozenset[str]] = {
    EntityKind.source: frozenset({"language", "subtitles"}),
    EntityKind.subtitle: frozenset({"language"}),
}

# Fields that may never be cleared by a patch.
REQUIRED_FIELDS = frozenset({"name", "visibility", "index", "language", "key", "private"})


def _validate(schema: type[BaseModel], fields: BaseModel | dict[str, Any]) -> BaseModel:
    if isinstance(fields, schema):
        return fields
    if isinstance(fields, BaseModel):
        fields = fields.model_dump(exclude_unset=True)
    try:
        return schema.model_validate(fields)
    except PydanticValidationError as exc:
        raise CatalogValidationError(str(exc)) from exc


class CatalogService:
    """find/create/patch/delete per entity kind plus the visibility listing.

    Store I/O runs in worker threads. Every structural mutation holds the
    owning collection's lock until its aggregates have been recomputed, so the
    call returns only once the season is consistent again.
    """

    def __init__(
        self,
        store: EntityStore,
        *,
        lock_timeout: float = 10.0,
        conflict_retries: int = 3,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._store = store
        self._retries = conflict_retries
        self._id_factory = id_factory or (lambda: uuid4().hex)
        self._locks = CollectionLocks(timeout=lock_timeout)
        self.hierarchy = HierarchyIndex(store)
        self.aggregates = AggregateMaintainer(store)
        self.cascade = CascadeEngine(store, self.hierarchy, self.aggregates, retries=conflict_retries)

    @property
    def store(self) -> EntityStore:
        return self._store

    @property
    def locks(self) -> CollectionLocks:
        return self._locks

    # Reads ---------------------------------------------------------------

    async def find(self, kind: EntityKind, entity_id: str, *, parent_id: str | None = None) -> Any:
        """Return an entity, optionally scoped to the parent it must live under."""

        entity = await asyncio.to_thread(self._store.get, kind, entity_id)
        parent_field = KINDS[kind].parent_field
        if parent_id is not None and parent_field and getattr(entity, parent_field) != parent_id:
            raise EntityNotFoundError(kind.value, entity_id)
        return entity

    async def list_collections(self, scopes: Iterable[Scope | str]) -> list[CollectionModel]:
        """Return every collection the given role set may see."""

        try:
            granted = [Scope(scope) for scope in scopes]
        except ValueError as exc:
            raise CatalogValidationError(str(exc)) from exc
        collections = await asyncio.to_thread(self._store.scan, EntityKind.collection)
        return [item for item in collections if is_visible(item.visibility, granted)]

    async def season_tree(self, season_id: str) -> SeasonTreeModel:
        """Return a season with its episodes, sources and subtitles expanded."""

        return await asyncio.to_thread(self._season_tree, season_id)

    def _season_tree(self, season_id: str) -> SeasonTreeModel:
        with self._store.transaction() as session:
            season: SeasonModel = self._store.get(EntityKind.season, season_id, session=session)
            episodes: list[EpisodeDetailModel] = []
            for episode_id in season.episodes:
                episode: EpisodeModel = self._store.get(EntityKind.episode, episode_id, session=session)
                sources = [
                    self._store.get(EntityKind.source, source_id, session=session)
                    for source_id in episode.sources
                ]
                subtitles = [
                    self._store.get(EntityKind.subtitle, subtitle_id, session=session)
                    for subtitle_id in episode.subtitles
                ]
                episodes.append(
                    EpisodeDetailModel(
                        **episode.model_dump(exclude={"sources", "subtitles"}),
                        sources=sources,
                        subtitles=subtitles,
                    )
                )
            return SeasonTreeModel(
                **season.model_dump(exclude={"episodes"}),
                episodes=episodes,
            )

    # Writes --------------------------------------------------------------

    async def create(
        self,
        kind: EntityKind,
        parent_id: str | None,
        fields: BaseModel | dict[str, Any],
        *,
        entity_id: str | None = None,
    ) -> Any:
        """Create an entity and register it in its parent's membership list."""

        if kind not in CREATE_SCHEMAS:
            raise CatalogValidationError(f"{kind.value} entities cannot be created here")
        payload = _validate(CREATE_SCHEMAS[kind], fields)
        new_id = entity_id or self._id_factory()

        if kind in (EntityKind.file, EntityKind.collection):
            if parent_id is not None:
                raise CatalogValidationError(f"{kind.value} entities have no parent")
            entity = KINDS[kind].model(
                id=new_id, creation_date=utc_now(), **payload.model_dump()
            )
            await asyncio.to_thread(self._store.insert, kind, new_id, entity)
            logger.info("Created %s %s", kind.value, new_id)
            return entity

        if parent_id is None:
            raise CatalogValidationError(f"{kind.value} entities require a parent id")
        parent_kind, _ = MEMBERSHIP[kind]
        collection_id = await self._collection_of(parent_kind, parent_id)
        async with self._locks.hold(collection_id):
            entity = await asyncio.to_thread(
                self._store.atomic,
                lambda session: self._insert(session, kind, parent_id, new_id, payload),
                retries=self._retries,
            )
            logger.info("Created %s %s under %s %s", kind.value, new_id, parent_kind.value, parent_id)
            if kind in AGGREGATE_FIELDS:
                await self.aggregates.recompute(entity.season_id)
        return entity

    def _insert(
        self, session: Session, kind: EntityKind, parent_id: str, new_id: str, payload: BaseModel
    ) -> Any:
        parent_kind, _ = MEMBERSHIP[kind]
        parent = self._store.record(session, parent_kind, parent_id)
        values: dict[str, Any] = {"id": new_id, **payload.model_dump()}
        if kind is EntityKind.season:
            values["collection_id"] = parent_id
        elif kind is EntityKind.episode:
            values["season_id"] = parent_id
            values["creation_date"] = utc_now()
        else:
            values["season_id"] = parent.season_id
            values["episode_id"] = parent_id
            values["creation_date"] = utc_now()
        entity = KINDS[kind].model(**values)
        self._store.insert(kind, new_id, entity, session=session)
        self.hierarchy.append_child(session, kind, parent_id, new_id)
        return entity

    async def patch(self, kind: EntityKind, entity_id: str, delta: BaseModel | dict[str, Any]) -> None:
        """Apply a field-level update; identity and back-references never change."""

        if kind not in UPDATE_SCHEMAS:
            raise CatalogValidationError(f"{kind.value} entities cannot be patched here")
        update = _validate(UPDATE_SCHEMAS[kind], delta)
        changes = update.model_dump(exclude_unset=True)
        if not changes:
            raise CatalogValidationError(f"No {kind.value} fields to update")
        cleared = sorted(field for field, value in changes.items() if value is None and field in REQUIRED_FIELDS)
        if cleared:
            raise CatalogValidationError(f"{kind.value} fields cannot be cleared: {', '.join(cleared)}")

        def step(session: Session) -> Any:
            record = self._store.record(session, kind, entity_id)
            for field, value in changes.items():
                self._store.patch_field(kind, entity_id, field, value, session=session)
            return getattr(record, "season_id", None)

        if kind is EntityKind.file:
            await asyncio.to_thread(self._store.atomic, step)
            return

        collection_id = await self._collection_of(kind, entity_id)
        async with self._locks.hold(collection_id):
            season_id = await asyncio.to_thread(self._store.atomic, step)
            logger.debug("Patched %s %s: %s", kind.value, entity_id, sorted(changes))
            if AGGREGATE_FIELDS.get(kind, frozenset()) & changes.keys():
                await self.aggregates.recompute(season_id)

    async def delete(self, kind: EntityKind, entity_id: str) -> None:
        """Delete an entity, cascading to its descendants."""

        if kind is EntityKind.file:
            await asyncio.to_thread(self._store.delete, kind, entity_id)
            logger.info("Deleted file %s", entity_id)
            return
        if kind is EntityKind.profile:
            raise CatalogValidationError("profiles cannot be deleted")

        collection_id = await self._collection_of(kind, entity_id)
        async with self._locks.hold(collection_id):
            await self.cascade.delete(kind, entity_id)
        if kind is EntityKind.collection:
            self._locks.discard(collection_id)

    # Profiles ------------------------------------------------------------

    async def profile_upsert(self, uid: str, fields: ProfileUpdate | dict[str, Any]) -> ProfileModel:
        """Create a profile or refresh its details; new profiles get the user role."""

        update = _validate(ProfileUpdate, fields)
        return await asyncio.to_thread(self._profile_upsert, uid, update)

    def _profile_upsert(self, uid: str, update: ProfileUpdate) -> ProfileModel:
        with self._store.transaction() as session:
            existing = self._store.lookup(session, EntityKind.profile, uid)
            if existing is None:
                profile = ProfileModel(
                    uid=uid,
                    username=update.username,
                    avatar=update.avatar,
                    scopes=update.scopes or [Scope.user],
                    creation_date=utc_now(),
                )
                self._store.insert(EntityKind.profile, uid, profile, session=session)
                return profile
            changes = update.model_dump(exclude_unset=True, exclude_none=False)
            if changes.get("scopes") is None:
                changes.pop("scopes", None)
            self._store.put(EntityKind.profile, uid, changes, merge=True, session=session)
            session.flush()
            return self._store.get(EntityKind.profile, uid, session=session)

    # Helpers -------------------------------------------------------------

    async def _collection_of(self, kind: EntityKind, entity_id: str) -> str:
        return await asyncio.to_thread(self._resolve_collection, kind, entity_id)

    def _resolve_collection(self, kind: EntityKind, entity_id: str) -> str:
        """Walk back-references up to the owning collection id."""

        with self._store.transaction() as session:
            record = self._store.record(session, kind, entity_id)
            if kind is EntityKind.collection:
                return record.id
            if kind is EntityKind.season:
                return record.collection_id
            season = self._store.record(session, EntityKind.season, record.season_id)
            return season.collection_id

    async def owning_collection(self, kind: EntityKind, entity_id: str) -> CollectionModel:
        """Return the collection an entity belongs to."""

        collection_id = await self._collection_of(kind, entity_id)
        return await asyncio.to_thread(self._store.get, EntityKind.collection, collection_id)
