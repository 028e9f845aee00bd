"""Membership lists linking catalog parents to their children."""
from __future__ import annotations

import logging

from sqlmodel import Session

from ..errors import EntityNotFoundError
from ..schemas import EntityKind
from ..stores.entity_store import EntityStore

logger = logging.getLogger(__name__)

# child kind -> (parent kind, membership field on the parent)
MEMBERSHIP: dict[EntityKind, tuple[EntityKind, str]] = {
    EntityKind.season: (EntityKind.collection, "seasons"),
    EntityKind.episode: (EntityKind.season, "episodes"),
    EntityKind.source: (EntityKind.episode, "sources"),
    EntityKind.subtitle: (EntityKind.episode, "subtitles"),
}


class HierarchyIndex:
    """Read-modify-write access to parent membership lists.

    Writes are conditional on the parent's version stamp, so a concurrent
    change surfaces as ``ConflictError`` and the enclosing transaction can be
    retried instead of silently dropping a sibling's update.
    """

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    def children(self, session: Session, child_kind: EntityKind, parent_id: str) -> list[str]:
        parent_kind, field = MEMBERSHIP[child_kind]
        record = self._store.record(session, parent_kind, parent_id)
        return list(getattr(record, field) or [])

    def append_child(
        self, session: Session, child_kind: EntityKind, parent_id: str, child_id: str
    ) -> None:
        """Append ``child_id`` to its parent's list unless it is already present."""

        parent_kind, field = MEMBERSHIP[child_kind]
        record = self._store.record(session, parent_kind, parent_id)
        current = list(getattr(record, field) or [])
        if child_id in current:
            return
        self._store.write_children(
            session,
            parent_kind,
            parent_id,
            field,
            current + [child_id],
            expected_version=record.version,
        )

    def remove_child(
        self,
        session: Session,
        child_kind: EntityKind,
        parent_id: str,
        child_id: str,
        *,
        missing_ok: bool = True,
    ) -> bool:
        """Filter ``child_id`` out of its parent's list, keeping surviving order.

        Returns whether the list changed. A missing parent is tolerated unless
        ``missing_ok`` is false.
        """

        parent_kind, field = MEMBERSHIP[child_kind]
        try:
            record = self._store.record(session, parent_kind, parent_id)
        except EntityNotFoundError:
            if not missing_ok:
                raise
            logger.debug("%s %s already gone, nothing to prune", parent_kind.value, parent_id)
            return False
        current = list(getattr(record, field) or [])
        remaining = [existing for existing in current if existing != child_id]
        if len(remaining) == len(current):
            return False
        self._store.write_children(
            session,
            parent_kind,
            parent_id,
            field,
            remaining,
            expected_version=record.version,
        )
        return True
