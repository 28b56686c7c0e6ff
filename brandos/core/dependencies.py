"""
Authentication dependencies for FastAPI
"""

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session
from typing import Optional
import structlog

from brandos.core.context import CallerContext
from brandos.core.database import get_session
from brandos.core.errors import AuthenticationError
from brandos.core.permissions import Permission, check_permission
from brandos.services.container import Services

logger = structlog.get_logger(__name__)
security = HTTPBearer(auto_error=False)


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: Session = Depends(get_session),
    services: Services = Depends(get_services),
) -> CallerContext:
    """Validate the bearer token and build the caller context"""
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    caller = services.validator.validate(session, credentials.credentials)
    logger.debug("Caller authenticated", context=caller.context.value, subject=str(caller.subject_id))
    return caller


def require_permission(required_permission: Permission):
    """Dependency factory to check permissions"""
    def _check_permission(caller: CallerContext = Depends(get_caller)) -> CallerContext:
        check_permission(caller, required_permission)
        return caller
    return _check_permission
