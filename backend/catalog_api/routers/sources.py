"""Source endpoints."""
from fastapi import APIRouter, Depends, Response

from ..access import owned_collection, owned_file, readable_collection
from ..dependencies import Caller, get_caller, get_catalog
from ..schemas import EntityKind, SourceCreateRequest, SourceModel, SourceUpdate
from ..services.catalog import CatalogService

router = APIRouter(prefix="/source", tags=["sources"])


@router.get("/{source_id}", response_model=SourceModel)
async def get_source(
    source_id: str,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> SourceModel:
    await readable_collection(catalog, caller, EntityKind.source, source_id)
    return await catalog.find(EntityKind.source, source_id)


@router.put("", response_model=SourceModel)
async def create_source(
    request: SourceCreateRequest,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> SourceModel:
    """Attach a source to an episode and refresh the season languages."""

    await owned_collection(catalog, caller, EntityKind.episode, request.episode_id)
    await owned_file(catalog, caller, request.key)
    return await catalog.create(
        EntityKind.source, request.episode_id, request.model_dump(exclude={"episode_id"})
    )


@router.patch("/{source_id}", status_code=204)
async def patch_source(
    source_id: str,
    update: SourceUpdate,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> Response:
    await owned_collection(catalog, caller, EntityKind.source, source_id)
    if update.key is not None:
        await owned_file(catalog, caller, update.key)
    await catalog.patch(EntityKind.source, source_id, update)
    return Response(status_code=204)


@router.delete("/{source_id}", status_code=204)
async def delete_source(
    source_id: str,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> Response:
    await owned_collection(catalog, caller, EntityKind.source, source_id)
    await catalog.delete(EntityKind.source, source_id)
    return Response(status_code=204)
