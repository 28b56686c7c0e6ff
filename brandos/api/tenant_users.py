"""
Tenant-user API endpoints (tenant tokens) - machine identities of the caller's tenant
"""

from fastapi import APIRouter, Depends, status
from typing import List
import structlog

from brandos.core.context import TenantCaller
from brandos.core.dependencies import get_services, require_permission
from brandos.core.permissions import Permission
from brandos.schemas.tenant import CredentialResponse, TenantUserCreate, TenantUserResponse
from brandos.services.container import Services

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/", response_model=CredentialResponse, status_code=status.HTTP_201_CREATED)
def create_tenant_user(
    user_data: TenantUserCreate,
    caller: TenantCaller = Depends(require_permission(Permission.TENANT_USER_MANAGE)),
    services: Services = Depends(get_services),
):
    """Issue a credential for a new tenant-user; shown once"""
    credential = services.credentials.create_tenant_user(
        caller.handle,
        user_data.display_name,
        roles=[role.value for role in user_data.roles],
    )
    return CredentialResponse.from_issued(credential)


@router.get("/", response_model=List[TenantUserResponse])
def list_tenant_users(
    caller: TenantCaller = Depends(require_permission(Permission.TENANT_USER_MANAGE)),
    services: Services = Depends(get_services),
):
    """List tenant-users"""
    users = services.credentials.list_tenant_users(caller.handle)
    return [TenantUserResponse.from_user(u) for u in users]
