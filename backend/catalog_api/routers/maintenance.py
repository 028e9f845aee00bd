"""Maintenance endpoints."""
from fastapi import APIRouter, Depends

from ..access import is_admin
from ..dependencies import Caller, get_caller, get_catalog
from ..errors import PermissionDeniedError
from ..schemas import RepairReport
from ..services.catalog import CatalogService
from ..services.repair import repair_catalog

router = APIRouter(prefix="/maintenance", tags=["maintenance"])


@router.post("/repair", response_model=RepairReport)
async def repair(
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> RepairReport:
    """Prune dangling membership ids and recompute every season's aggregates."""

    if not is_admin(caller):
        raise PermissionDeniedError("Repair requires the admin role")
    return await repair_catalog(catalog)
