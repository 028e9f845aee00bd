"""Key-value persistence of catalog entities keyed by kind and id."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterator, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import update
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, select

from ..db import session_scope
from ..errors import CatalogValidationError, ConflictError, EntityNotFoundError
from ..models import (
    CollectionRecord,
    EpisodeRecord,
    FileRecord,
    ProfileRecord,
    SeasonRecord,
    SourceRecord,
    SubtitleRecord,
)
from ..schemas import (
    CollectionModel,
    EntityKind,
    EpisodeModel,
    FileModel,
    ProfileModel,
    SeasonModel,
    SourceModel,
    SubtitleModel,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class KindSpec:
    """Storage mapping for one entity kind."""

    record: type[SQLModel]
    model: type[BaseModel]
    key: str = "id"
    parent_field: str | None = None


KINDS: dict[EntityKind, KindSpec] = {
    EntityKind.profile: KindSpec(ProfileRecord, ProfileModel, key="uid"),
    EntityKind.file: KindSpec(FileRecord, FileModel),
    EntityKind.collection: KindSpec(CollectionRecord, CollectionModel),
    EntityKind.season: KindSpec(SeasonRecord, SeasonModel, parent_field="collection_id"),
    EntityKind.episode: KindSpec(EpisodeRecord, EpisodeModel, parent_field="season_id"),
    EntityKind.source: KindSpec(SourceRecord, SourceModel, parent_field="episode_id"),
    EntityKind.subtitle: KindSpec(SubtitleRecord, SubtitleModel, parent_field="episode_id"),
}


class EntityStore:
    """CRUD interface over every catalog entity table.

    Each public method accepts an optional ``session`` so several operations can
    share one transaction; without it the call runs in its own transaction.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Yield a session whose work is committed atomically."""

        with session_scope(self._engine) as session:
            yield session

    def atomic(self, step: Callable[[Session], T], *, retries: int = 0) -> T:
        """Run ``step`` in one transaction, retrying it when a versioned write conflicts."""

        attempt = 0
        while True:
            try:
                with self.transaction() as session:
                    return step(session)
            except ConflictError:
                if attempt >= retries:
                    raise
                attempt += 1
                logger.debug("Retrying conflicted catalog write (attempt %d/%d)", attempt, retries)

    def record(self, session: Session, kind: EntityKind, entity_id: str) -> Any:
        """Return the raw record for ``entity_id`` or raise ``EntityNotFoundError``."""

        record = session.get(KINDS[kind].record, entity_id)
        if record is None:
            raise EntityNotFoundError(kind.value, entity_id)
        return record

    def lookup(self, session: Session, kind: EntityKind, entity_id: str) -> Any | None:
        """Return the raw record for ``entity_id`` or ``None`` when absent."""

        return session.get(KINDS[kind].record, entity_id)

    def get(self, kind: EntityKind, entity_id: str, *, session: Session | None = None) -> Any:
        """Fetch a single entity as its response model."""

        with self._scope(session) as active:
            return _to_model(kind, self.record(active, kind, entity_id))

    def exists(self, kind: EntityKind, entity_id: str, *, session: Session | None = None) -> bool:
        with self._scope(session) as active:
            return active.get(KINDS[kind].record, entity_id) is not None

    def scan(self, kind: EntityKind, *, session: Session | None = None) -> list[Any]:
        """Return every entity of a kind."""

        record_type = KINDS[kind].record
        with self._scope(session) as active:
            records = active.exec(select(record_type)).all()
            return [_to_model(kind, record) for record in records]

    def put(
        self,
        kind: EntityKind,
        entity_id: str,
        entity: BaseModel | dict[str, Any],
        *,
        merge: bool = False,
        session: Session | None = None,
    ) -> None:
        """Write an entity at ``entity_id``.

        With ``merge`` false the record is replaced as a whole; with ``merge``
        true only the provided fields are written onto the existing record.
        """

        spec = KINDS[kind]
        payload = _payload(entity)
        payload[spec.key] = entity_id
        with self._scope(session) as active:
            existing = active.get(spec.record, entity_id)
            if merge and existing is not None:
                for field, value in payload.items():
                    _check_field(kind, field)
                    setattr(existing, field, value)
                active.add(existing)
                return
            if existing is not None:
                active.delete(existing)
                active.flush()
            active.add(spec.record(**payload))

    def insert(
        self,
        kind: EntityKind,
        entity_id: str,
        entity: BaseModel | dict[str, Any],
        *,
        session: Session | None = None,
    ) -> None:
        """Add a new entity, refusing to replace one already stored at ``entity_id``."""

        spec = KINDS[kind]
        payload = _payload(entity)
        payload[spec.key] = entity_id
        with self._scope(session) as active:
            if active.get(spec.record, entity_id) is not None:
                raise ConflictError(f"{kind.value} {entity_id} already exists")
            active.add(spec.record(**payload))

    def patch_field(
        self,
        kind: EntityKind,
        entity_id: str,
        field: str,
        value: Any,
        *,
        session: Session | None = None,
    ) -> None:
        """Update one field of an existing record without touching its siblings."""

        _check_field(kind, field)
        value = _plain(value)
        with self._scope(session) as active:
            record = self.record(active, kind, entity_id)
            setattr(record, field, value)
            active.add(record)

    def delete(self, kind: EntityKind, entity_id: str, *, session: Session | None = None) -> None:
        """Remove a record, raising ``EntityNotFoundError`` when it is absent."""

        with self._scope(session) as active:
            active.delete(self.record(active, kind, entity_id))
            active.flush()

    def write_children(
        self,
        session: Session,
        kind: EntityKind,
        parent_id: str,
        field: str,
        children: list[str],
        *,
        expected_version: int,
    ) -> None:
        """Replace a membership list if the parent still carries ``expected_version``."""

        record_type = KINDS[kind].record
        statement = (
            update(record_type)
            .where(record_type.id == parent_id)
            .where(record_type.version == expected_version)
            .values({field: children, "version": expected_version + 1})
            .execution_options(synchronize_session=False)
        )
        result = session.execute(statement)
        if result.rowcount == 0:
            raise ConflictError(
                f"{kind.value} {parent_id} changed while updating its {field} list"
            )
        session.expire_all()

    @contextmanager
    def _scope(self, session: Session | None) -> Iterator[Session]:
        if session is not None:
            yield session
            return
        with self.transaction() as owned:
            yield owned


def _payload(entity: BaseModel | dict[str, Any]) -> dict[str, Any]:
    if isinstance(entity, BaseModel):
        entity = entity.model_dump()
    return {key: _plain(value) for key, value in entity.items()}


def _plain(value: Any) -> Any:
    """Strip enums down to their stored string values."""

    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


def _check_field(kind: EntityKind, field: str) -> None:
    if field not in KINDS[kind].record.model_fields:
        raise CatalogValidationError(f"{kind.value} has no field {field!r}")


def _to_model(kind: EntityKind, record: Any) -> Any:
    """Convert a database record into its response model."""

    model_type = KINDS[kind].model
    try:
        return model_type.model_validate(record.model_dump())
    except PydanticValidationError as exc:
        raise CatalogValidationError(f"Stored {kind.value} is malformed: {exc}") from exc
