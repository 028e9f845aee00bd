"""File metadata endpoints. Blob bytes and signed URLs live in the file service."""
from fastapi import APIRouter, Depends, Response

from ..access import owned_file
from ..dependencies import Caller, get_caller, get_catalog
from ..errors import PermissionDeniedError
from ..schemas import EntityKind, FileCreate, FileCreateRequest, FileModel, FileUpdate
from ..services.catalog import CatalogService

router = APIRouter(prefix="/file", tags=["files"])


@router.get("/{file_id}", response_model=FileModel)
async def get_file(
    file_id: str,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> FileModel:
    file = await catalog.find(EntityKind.file, file_id)
    if file.private and file.owner != caller.uid:
        raise PermissionDeniedError(f"file {file_id} is private")
    return file


@router.put("", response_model=FileModel)
async def create_file(
    request: FileCreateRequest,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> FileModel:
    fields = FileCreate(name=request.name, owner=caller.uid, private=request.private)
    return await catalog.create(EntityKind.file, None, fields, entity_id=request.id)


@router.patch("/{file_id}", status_code=204)
async def patch_file(
    file_id: str,
    update: FileUpdate,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> Response:
    await owned_file(catalog, caller, file_id)
    await catalog.patch(EntityKind.file, file_id, update)
    return Response(status_code=204)


@router.delete("/{file_id}", status_code=204)
async def delete_file(
    file_id: str,
    caller: Caller = Depends(get_caller),
    catalog: CatalogService = Depends(get_catalog),
) -> Response:
    await owned_file(catalog, caller, file_id)
    await catalog.delete(EntityKind.file, file_id)
    return Response(status_code=204)
