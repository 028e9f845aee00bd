"""Season endpoints."""
from fastapi import APIRouter, Depends, Response

from ..access import owned_collection, readable_collection
from ..dependencies import Caller, get_caller, get_catalog
from ..schemas import EntityKind, SeasonCreateRequest, SeasonModel, SeasonTreeModel, SeasonUpdate
from ..services.catalog import CatalogService

router = APIRouter(prefix="/season", tags=["seasons"])


@router.get("/{season_id}", response_model=SeasonTreeModel)
async def get_season(
    season_id: str,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> SeasonTreeModel:
    """Return the season with every episode, source and subtitle expanded."""

    await readable_collection(catalog, caller, EntityKind.season, season_id)
    return await catalog.season_tree(season_id)


@router.put("", response_model=SeasonModel)
async def create_season(
    request: SeasonCreateRequest,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> SeasonModel:
    await owned_collection(catalog, caller, EntityKind.collection, request.collection_id)
    return await catalog.create(
        EntityKind.season, request.collection_id, request.model_dump(exclude={"collection_id"})
    )


@router.patch("/{season_id}", status_code=204)
async def patch_season(
    season_id: str,
    update: SeasonUpdate,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> Response:
    await owned_collection(catalog, caller, EntityKind.season, season_id)
    await catalog.patch(EntityKind.season, season_id, update)
    return Response(status_code=204)


@router.delete("/{season_id}", status_code=204)
async def delete_season(
    season_id: str,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> Response:
    await owned_collection(catalog, caller, EntityKind.season, season_id)
    await catalog.delete(EntityKind.season, season_id)
    return Response(status_code=204)
