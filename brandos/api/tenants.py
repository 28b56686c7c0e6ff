"""
Tenant API endpoints - provisioning and credential management (principal tokens)
"""

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session
from typing import List
import uuid
import structlog

from brandos.core.context import PrincipalCaller
from brandos.core.database import get_session
from brandos.core.dependencies import get_services, require_permission
from brandos.core.errors import NotFoundError, ValidationError
from brandos.core.permissions import Permission, ensure_tenant_access, is_super_admin
from brandos.schemas.tenant import (
    CredentialResponse,
    TenantCreate,
    TenantCreatedResponse,
    TenantResponse,
)
from brandos.services.container import Services

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/", response_model=TenantCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_tenant(
    tenant_data: TenantCreate,
    caller: PrincipalCaller = Depends(require_permission(Permission.TENANT_CREATE)),
    session: Session = Depends(get_session),
    services: Services = Depends(get_services),
):
    """Provision a new tenant owned by the caller; the credential is shown once"""
    provisioned = services.provisioner.create_tenant(session, tenant_data.name, caller.subject_id)
    return TenantCreatedResponse(
        tenant=TenantResponse.from_tenant(provisioned.tenant),
        credential=CredentialResponse.from_issued(provisioned.credential),
    )


@router.get("/", response_model=List[TenantResponse])
def list_tenants(
    skip: int = 0,
    limit: int = Query(default=100, le=500),
    caller: PrincipalCaller = Depends(require_permission(Permission.TENANT_VIEW)),
    session: Session = Depends(get_session),
    services: Services = Depends(get_services),
):
    """List tenants owned by the caller (all tenants for super admins)"""
    owner_id = None if is_super_admin(caller) else caller.subject_id
    tenants = services.provisioner.list_tenants(session, owner_id=owner_id, skip=skip, limit=limit)
    return [TenantResponse.from_tenant(t) for t in tenants]


@router.get("/{tenant_id}", response_model=TenantResponse)
def get_tenant(
    tenant_id: uuid.UUID,
    caller: PrincipalCaller = Depends(require_permission(Permission.TENANT_VIEW)),
    session: Session = Depends(get_session),
    services: Services = Depends(get_services),
):
    """Get tenant by ID"""
    tenant = services.provisioner.get_tenant(session, tenant_id)
    ensure_tenant_access(caller, tenant)
    return TenantResponse.from_tenant(tenant)


@router.delete("/{tenant_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tenant(
    tenant_id: uuid.UUID,
    confirm: str = Query(..., description="Must be 'DELETE <tenant_id>'"),
    caller: PrincipalCaller = Depends(require_permission(Permission.TENANT_DELETE)),
    session: Session = Depends(get_session),
    services: Services = Depends(get_services),
):
    """Destroy a tenant, its partition and its role"""
    if confirm != f"DELETE {tenant_id}":
        raise ValidationError(f"Confirmation text must be 'DELETE {tenant_id}'")

    tenant = services.provisioner.get_tenant(session, tenant_id)
    ensure_tenant_access(caller, tenant)
    services.provisioner.destroy_tenant(session, tenant_id)
    logger.info("Tenant deleted via API", tenant_id=str(tenant_id), by=str(caller.subject_id))


@router.post("/{tenant_id}/credentials/{user_id}/reset", response_model=CredentialResponse)
def reset_credential(
    tenant_id: uuid.UUID,
    user_id: uuid.UUID,
    caller: PrincipalCaller = Depends(require_permission(Permission.CREDENTIAL_RESET)),
    session: Session = Depends(get_session),
    services: Services = Depends(get_services),
):
    """Rotate a tenant-user's API secret and password; the new pair is shown once"""
    tenant = services.provisioner.get_tenant(session, tenant_id)
    ensure_tenant_access(caller, tenant)
    if not tenant.is_active:
        raise NotFoundError("Tenant not found")

    handle = services.router.resolve(tenant.partition_identifier)
    credential = services.credentials.reset_credential(handle, user_id)
    return CredentialResponse.from_issued(credential)
