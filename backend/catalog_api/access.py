"""Ownership and visibility checks applied by the HTTP layer."""
from __future__ import annotations

from .dependencies import Caller
from .errors import PermissionDeniedError
from .schemas import CollectionModel, EntityKind, FileModel, Scope, Visibility
from .services.catalog import CatalogService

ADMIN_SCOPES = frozenset({Scope.admin, Scope.wildcard})


def is_admin(caller: Caller) -> bool:
    return bool(ADMIN_SCOPES & set(caller.scopes))


async def readable_collection(
    catalog: CatalogService, caller: Caller, kind: EntityKind, entity_id: str
) -> CollectionModel:
    """Private collections are readable by their owner only."""

    collection = await catalog.owning_collection(kind, entity_id)
    if collection.visibility is Visibility.private and collection.owner != caller.uid:
        raise PermissionDeniedError(f"{kind.value} {entity_id} is private")
    return collection


async def owned_collection(
    catalog: CatalogService, caller: Caller, kind: EntityKind, entity_id: str
) -> CollectionModel:
    """Only the owner of a collection may mutate anything below it."""

    collection = await catalog.owning_collection(kind, entity_id)
    if collection.owner != caller.uid:
        raise PermissionDeniedError(f"Caller does not own collection {collection.id}")
    return collection


async def owned_file(catalog: CatalogService, caller: Caller, file_id: str) -> FileModel:
    """Files referenced or modified by a caller must belong to that caller."""

    file = await catalog.find(EntityKind.file, file_id)
    if file.owner != caller.uid:
        raise PermissionDeniedError(f"Caller does not own file {file_id}")
    return file
