"""Episode endpoints."""
from fastapi import APIRouter, Depends, Query, Response

from ..access import owned_collection, readable_collection
from ..dependencies import Caller, get_caller, get_catalog
from ..schemas import EntityKind, EpisodeCreateRequest, EpisodeModel, EpisodeUpdate
from ..services.catalog import CatalogService

router = APIRouter(prefix="/episode", tags=["episodes"])


@router.get("/{episode_id}", response_model=EpisodeModel)
async def get_episode(
    episode_id: str,
    season_id: str | None = Query(default=None, description="Season the episode must belong to."),
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> EpisodeModel:
    await readable_collection(catalog, caller, EntityKind.episode, episode_id)
    return await catalog.find(EntityKind.episode, episode_id, parent_id=season_id)


@router.put("", response_model=EpisodeModel)
async def create_episode(
    request: EpisodeCreateRequest,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> EpisodeModel:
    await owned_collection(catalog, caller, EntityKind.season, request.season_id)
    return await catalog.create(
        EntityKind.episode, request.season_id, request.model_dump(exclude={"season_id"})
    )


@router.patch("/{episode_id}", status_code=204)
async def patch_episode(
    episode_id: str,
    update: EpisodeUpdate,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> Response:
    await owned_collection(catalog, caller, EntityKind.episode, episode_id)
    await catalog.patch(EntityKind.episode, episode_id, update)
    return Response(status_code=204)


@router.delete("/{episode_id}", status_code=204)
async def delete_episode(
    episode_id: str,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> Response:
    """Delete an episode and every source and subtitle attached to it."""

    await owned_collection(catalog, caller, EntityKind.episode, episode_id)
    await catalog.delete(EntityKind.episode, episode_id)
    return Response(status_code=204)
