"""Profile endpoints for the calling user."""
from fastapi import APIRouter, Depends

from ..dependencies import Caller, get_caller, get_catalog
from ..schemas import EntityKind, ProfileModel, ProfileUpdate
from ..services.catalog import CatalogService

router = APIRouter(prefix="/profile", tags=["profiles"])


@router.get("", response_model=ProfileModel)
async def get_profile(
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> ProfileModel:
    return await catalog.find(EntityKind.profile, caller.uid)


@router.put("", response_model=ProfileModel)
async def upsert_profile(
    update: ProfileUpdate,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> ProfileModel:
    """Create or refresh the caller's profile. Role changes are ignored."""

    fields = update.model_dump(exclude={"scopes"}, exclude_unset=True)
    return await catalog.profile_upsert(caller.uid, fields)
