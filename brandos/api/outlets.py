"""
Outlets API endpoints (tenant tokens)

The partition always comes from the caller's token; nothing in the request
can point these handlers at another tenant.
"""

from fastapi import APIRouter, Depends, Query, status
from typing import List
import uuid
import structlog

from brandos.core.context import TenantCaller
from brandos.core.dependencies import get_services, require_permission
from brandos.core.permissions import Permission
from brandos.schemas.outlet import (
    OutletAccessRequest,
    OutletAccessResponse,
    OutletCreate,
    OutletResponse,
    OutletUpdate,
    UserOutletsUpdate,
)
from brandos.schemas.tenant import TenantUserResponse
from brandos.services.container import Services

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/", response_model=OutletResponse, status_code=status.HTTP_201_CREATED)
def create_outlet(
    outlet_data: OutletCreate,
    caller: TenantCaller = Depends(require_permission(Permission.OUTLET_EDIT)),
    services: Services = Depends(get_services),
):
    """Create a new outlet"""
    return services.outlets.create_outlet(
        caller.handle, outlet_data.code, outlet_data.name, outlet_data.address
    )


@router.get("/", response_model=List[OutletResponse])
def list_outlets(
    skip: int = 0,
    limit: int = Query(default=100, le=500),
    caller: TenantCaller = Depends(require_permission(Permission.OUTLET_VIEW)),
    services: Services = Depends(get_services),
):
    """List all outlets of the caller's tenant"""
    return services.outlets.list_outlets(caller.handle, skip=skip, limit=limit)


@router.get("/mine", response_model=List[OutletResponse])
def list_my_outlets(
    caller: TenantCaller = Depends(require_permission(Permission.OUTLET_VIEW)),
    services: Services = Depends(get_services),
):
    """Outlets the calling tenant-user may access"""
    return services.outlets.list_accessible_outlets(caller.handle, caller.user.id, caller.roles)


@router.post("/access", response_model=OutletAccessResponse)
def grant_outlet_access(
    access_data: OutletAccessRequest,
    caller: TenantCaller = Depends(require_permission(Permission.OUTLET_GRANT)),
    services: Services = Depends(get_services),
):
    """Grant a tenant-user access to an outlet (idempotent)"""
    changed = services.outlets.grant_access(caller.handle, access_data.user_id, access_data.outlet_id)
    return OutletAccessResponse(
        success=True,
        message="Access granted" if changed else "Access already granted",
        user_id=access_data.user_id,
        outlet_id=access_data.outlet_id,
        changed=changed,
    )


@router.delete("/access", response_model=OutletAccessResponse)
def revoke_outlet_access(
    user_id: uuid.UUID,
    outlet_id: uuid.UUID,
    caller: TenantCaller = Depends(require_permission(Permission.OUTLET_GRANT)),
    services: Services = Depends(get_services),
):
    """Revoke a tenant-user's access to an outlet (idempotent)"""
    changed = services.outlets.revoke_access(caller.handle, user_id, outlet_id)
    return OutletAccessResponse(
        success=True,
        message="Access revoked" if changed else "No access to revoke",
        user_id=user_id,
        outlet_id=outlet_id,
        changed=changed,
    )


@router.get("/users/{user_id}", response_model=List[OutletResponse])
def list_user_outlets(
    user_id: uuid.UUID,
    caller: TenantCaller = Depends(require_permission(Permission.OUTLET_GRANT)),
    services: Services = Depends(get_services),
):
    """Outlets granted to a tenant-user"""
    return services.outlets.list_accessible_outlets(caller.handle, user_id)


@router.put("/users/{user_id}", response_model=List[OutletResponse])
def replace_user_outlets(
    user_id: uuid.UUID,
    outlets_data: UserOutletsUpdate,
    caller: TenantCaller = Depends(require_permission(Permission.OUTLET_GRANT)),
    services: Services = Depends(get_services),
):
    """Replace a tenant-user's outlet grants"""
    return services.outlets.replace_user_outlets(caller.handle, user_id, outlets_data.outlet_ids)


@router.get("/{outlet_id}", response_model=OutletResponse)
def get_outlet(
    outlet_id: uuid.UUID,
    caller: TenantCaller = Depends(require_permission(Permission.OUTLET_VIEW)),
    services: Services = Depends(get_services),
):
    """Get outlet by ID"""
    return services.outlets.get_outlet(caller.handle, outlet_id)


@router.get("/{outlet_id}/users", response_model=List[TenantUserResponse])
def list_outlet_users(
    outlet_id: uuid.UUID,
    caller: TenantCaller = Depends(require_permission(Permission.OUTLET_GRANT)),
    services: Services = Depends(get_services),
):
    """Tenant-users with access to an outlet"""
    users = services.outlets.list_outlet_users(caller.handle, outlet_id)
    return [TenantUserResponse.from_user(u) for u in users]


@router.patch("/{outlet_id}", response_model=OutletResponse)
def update_outlet(
    outlet_id: uuid.UUID,
    outlet_update: OutletUpdate,
    caller: TenantCaller = Depends(require_permission(Permission.OUTLET_EDIT)),
    services: Services = Depends(get_services),
):
    """Update outlet"""
    changes = outlet_update.model_dump(exclude_unset=True)
    return services.outlets.update_outlet(caller.handle, outlet_id, **changes)


@router.delete("/{outlet_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_outlet(
    outlet_id: uuid.UUID,
    caller: TenantCaller = Depends(require_permission(Permission.OUTLET_EDIT)),
    services: Services = Depends(get_services),
):
    """Delete outlet and its grants"""
    services.outlets.delete_outlet(caller.handle, outlet_id)
