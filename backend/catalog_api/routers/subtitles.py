"""Subtitle endpoints."""
from fastapi import APIRouter, Depends, Response

from ..access import owned_collection, owned_file, readable_collection
from ..dependencies import Caller, get_caller, get_catalog
from ..schemas import EntityKind, SubtitleCreateRequest, SubtitleModel, SubtitleUpdate
from ..services.catalog import CatalogService

router = APIRouter(prefix="/subtitle", tags=["subtitles"])


@router.get("/{subtitle_id}", response_model=SubtitleModel)
async def get_subtitle(
    subtitle_id: str,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> SubtitleModel:
    await readable_collection(catalog, caller, EntityKind.subtitle, subtitle_id)
    return await catalog.find(EntityKind.subtitle, subtitle_id)


@router.put("", response_model=SubtitleModel)
async def create_subtitle(
    request: SubtitleCreateRequest,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> SubtitleModel:
    """Attach a standalone subtitle to an episode and refresh the season subtitle languages."""

    await owned_collection(catalog, caller, EntityKind.episode, request.episode_id)
    await owned_file(catalog, caller, request.key)
    return await catalog.create(
        EntityKind.subtitle, request.episode_id, request.model_dump(exclude={"episode_id"})
    )


@router.patch("/{subtitle_id}", status_code=204)
async def patch_subtitle(
    subtitle_id: str,
    update: SubtitleUpdate,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> Response:
    await owned_collection(catalog, caller, EntityKind.subtitle, subtitle_id)
    if update.key is not None:
        await owned_file(catalog, caller, update.key)
    await catalog.patch(EntityKind.subtitle, subtitle_id, update)
    return Response(status_code=204)


@router.delete("/{subtitle_id}", status_code=204)
async def delete_subtitle(
    subtitle_id: str,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> Response:
    await owned_collection(catalog, caller, EntityKind.subtitle, subtitle_id)
    await catalog.delete(EntityKind.subtitle, subtitle_id)
    return Response(status_code=204)
