from fastapi import APIRouter, Depends, HTTPException, status
from pricebook.core.dependencies import require_admin
from pricebook.database.supabase_client import get_supabase
from pricebook.modules.auth.schemas import Identity
from pricebook.modules.permissions.schemas import (
    PermissionRecord, PermissionCreate, PermissionUpdate
)
from pricebook.modules.permissions.service import PermissionService
from supabase import Client
from typing import List

router = APIRouter(prefix="/permissions", tags=["permissions"])


def get_permission_service(supabase: Client = Depends(get_supabase)) -> PermissionService:
    return PermissionService(supabase)


@router.get("", response_model=List[PermissionRecord])
async def list_permissions(
    admin: Identity = Depends(require_admin()),
    service: PermissionService = Depends(get_permission_service)
):
    """List every user's permissions, ordered by user name"""
    return service.list_records()


@router.post("", response_model=PermissionRecord, status_code=201)
async def create_permissions(
    data: PermissionCreate,
    admin: Identity = Depends(require_admin()),
    service: PermissionService = Depends(get_permission_service)
):
    """Pre-create permissions for a user name; linked on that user's first sign-in"""
    return service.create_record(data)


@router.get("/{record_id}", response_model=PermissionRecord)
async def get_permissions(
    record_id: str,
    admin: Identity = Depends(require_admin()),
    service: PermissionService = Depends(get_permission_service)
):
    return service.get_record(record_id)


@router.put("/{record_id}", response_model=PermissionRecord)
async def update_permissions(
    record_id: str,
    data: PermissionUpdate,
    admin: Identity = Depends(require_admin()),
    service: PermissionService = Depends(get_permission_service)
):
    """Update capability flags"""
    if data.is_admin is False:
        target = service.get_record(record_id)
        if target.user_id == admin.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot remove your own admin access"
            )
    return service.update_record(record_id, data)


@router.delete("/{record_id}", status_code=204)
async def delete_permissions(
    record_id: str,
    admin: Identity = Depends(require_admin()),
    service: PermissionService = Depends(get_permission_service)
):
    target = service.get_record(record_id)
    if target.user_id == admin.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own permissions"
        )
    service.delete_record(record_id)
    return None
