"""Collection endpoints, including the visibility-filtered listing."""
from fastapi import APIRouter, Depends, Response

from ..access import owned_collection, owned_file, readable_collection
from ..dependencies import Caller, get_caller, get_catalog
from ..schemas import (
    CollectionCreate,
    CollectionCreateRequest,
    CollectionModel,
    CollectionUpdate,
    EntityKind,
)
from ..services.catalog import CatalogService

router = APIRouter(tags=["collections"])


@router.get("/collections", response_model=list[CollectionModel])
async def list_collections(
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> list[CollectionModel]:
    """Return every collection visible to the caller's role set."""

    return await catalog.list_collections(caller.scopes)


@router.get("/collection/{collection_id}", response_model=CollectionModel)
async def get_collection(
    collection_id: str,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> CollectionModel:
    return await readable_collection(catalog, caller, EntityKind.collection, collection_id)


@router.put("/collection", response_model=CollectionModel)
async def create_collection(
    request: CollectionCreateRequest,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> CollectionModel:
    """Create a collection owned by the caller."""

    if request.thumbnail is not None:
        await owned_file(catalog, caller, request.thumbnail)
    fields = CollectionCreate(owner=caller.uid, **request.model_dump())
    return await catalog.create(EntityKind.collection, None, fields)


@router.patch("/collection/{collection_id}", status_code=204)
async def patch_collection(
    collection_id: str,
    update: CollectionUpdate,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> Response:
    await owned_collection(catalog, caller, EntityKind.collection, collection_id)
    if update.thumbnail is not None:
        await owned_file(catalog, caller, update.thumbnail)
    await catalog.patch(EntityKind.collection, collection_id, update)
    return Response(status_code=204)


@router.delete("/collection/{collection_id}", status_code=204)
async def delete_collection(
    collection_id: str,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> Response:
    """Delete a collection together with its seasons, episodes, sources and subtitles."""

    await owned_collection(catalog, caller, EntityKind.collection, collection_id)
    await catalog.delete(EntityKind.collection, collection_id)
    return Response(status_code=204)
