"""
Auth API endpoints - registration, sign-in and caller info
"""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session
import structlog

from brandos.core.context import CallerContext, PrincipalCaller
from brandos.core.database import get_session
from brandos.core.dependencies import get_caller, get_services
from brandos.schemas.principal import PrincipalCreate, PrincipalResponse
from brandos.schemas.token import (
    CallerResponse,
    PrincipalSignInRequest,
    SignInRequest,
    TenantSignInRequest,
    TokenResponse,
)
from brandos.services.authentication import SignInResult
from brandos.services.container import Services

logger = structlog.get_logger(__name__)
router = APIRouter()


def _token_response(result: SignInResult) -> TokenResponse:
    return TokenResponse(
        access_token=result.token,
        context=result.context,
        subject_id=result.subject_id,
        roles=result.roles,
        tenant_id=result.tenant_id,
    )


@router.post("/register", response_model=PrincipalResponse, status_code=status.HTTP_201_CREATED)
def register_principal(
    principal_data: PrincipalCreate,
    session: Session = Depends(get_session),
    services: Services = Depends(get_services),
):
    """Register a new principal"""
    principal = services.principals.register(
        session,
        email=principal_data.email,
        password=principal_data.password,
        display_name=principal_data.display_name,
    )
    return PrincipalResponse.from_principal(principal)


@router.post("/sign-in", response_model=TokenResponse)
def sign_in(
    sign_in_data: SignInRequest,
    session: Session = Depends(get_session),
    services: Services = Depends(get_services),
):
    """Sign in as a principal, or as a tenant-user when tenant_id is given"""
    result = services.authenticator.sign_in(
        session,
        identifier=sign_in_data.identifier,
        secret=sign_in_data.secret,
        tenant_selector=sign_in_data.tenant_id,
    )
    return _token_response(result)


@router.post("/sign-in/principal", response_model=TokenResponse)
def sign_in_principal(
    sign_in_data: PrincipalSignInRequest,
    session: Session = Depends(get_session),
    services: Services = Depends(get_services),
):
    """Sign in with email and password"""
    result = services.authenticator.sign_in_principal(session, sign_in_data.email, sign_in_data.password)
    return _token_response(result)


@router.post("/sign-in/tenant", response_model=TokenResponse)
def sign_in_tenant(
    sign_in_data: TenantSignInRequest,
    session: Session = Depends(get_session),
    services: Services = Depends(get_services),
):
    """Sign in with a tenant-user API secret and password"""
    result = services.authenticator.sign_in_tenant(
        session,
        tenant_selector=sign_in_data.tenant_id,
        api_secret=sign_in_data.api_secret,
        api_password=sign_in_data.api_password,
    )
    return _token_response(result)


@router.get("/me", response_model=CallerResponse)
def get_current_caller(caller: CallerContext = Depends(get_caller)):
    """Get current caller info"""
    if isinstance(caller, PrincipalCaller):
        return CallerResponse(
            context=caller.context,
            subject_id=caller.subject_id,
            roles=list(caller.roles),
            email=caller.principal.email,
        )
    return CallerResponse(
        context=caller.context,
        subject_id=caller.subject_id,
        roles=list(caller.roles),
        tenant_id=caller.tenant_id,
    )
