"""
Principal management endpoints (super admin)
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import Session
from typing import List
import uuid
import structlog

from brandos.core.context import PrincipalCaller
from brandos.core.database import get_session
from brandos.core.dependencies import get_services, require_permission
from brandos.core.permissions import Permission
from brandos.schemas.principal import PrincipalResponse, PrincipalRoleAssign
from brandos.services.container import Services

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/", response_model=List[PrincipalResponse])
def list_principals(
    skip: int = 0,
    limit: int = Query(default=100, le=500),
    caller: PrincipalCaller = Depends(require_permission(Permission.PRINCIPAL_MANAGE)),
    session: Session = Depends(get_session),
    services: Services = Depends(get_services),
):
    """List all principals"""
    principals = services.principals.list_principals(session, skip=skip, limit=limit)
    return [PrincipalResponse.from_principal(p) for p in principals]


@router.post("/{principal_id}/roles", response_model=PrincipalResponse)
def assign_role(
    principal_id: uuid.UUID,
    role_data: PrincipalRoleAssign,
    caller: PrincipalCaller = Depends(require_permission(Permission.PRINCIPAL_MANAGE)),
    session: Session = Depends(get_session),
    services: Services = Depends(get_services),
):
    """Grant a principal role"""
    principal = services.principals.assign_role(session, principal_id, role_data.role.value)
    return PrincipalResponse.from_principal(principal)


@router.delete("/{principal_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_principal(
    principal_id: uuid.UUID,
    caller: PrincipalCaller = Depends(require_permission(Permission.PRINCIPAL_MANAGE)),
    session: Session = Depends(get_session),
    services: Services = Depends(get_services),
):
    """Delete a principal together with every tenant it owns"""
    if principal_id == caller.subject_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete yourself",
        )
    if not services.principals.delete_principal(session, principal_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Principal not found",
        )
    logger.info("Principal deleted via API", principal_id=str(principal_id), by=str(caller.subject_id))
