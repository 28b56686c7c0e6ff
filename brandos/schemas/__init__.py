"""
Schemas for API responses and requests
"""

from brandos.schemas.token import (
    CallerResponse,
    PrincipalSignInRequest,
    SignInRequest,
    TenantSignInRequest,
    TokenPayload,
    TokenResponse,
)
from brandos.schemas.principal import PrincipalCreate, PrincipalResponse, PrincipalRoleAssign
from brandos.schemas.tenant import (
    CredentialResponse,
    TenantCreate,
    TenantCreatedResponse,
    TenantResponse,
    TenantUserCreate,
    TenantUserResponse,
)
from brandos.schemas.brand_info import BrandInfoResponse, BrandInfoUpdate
from brandos.schemas.outlet import (
    OutletAccessRequest,
    OutletAccessResponse,
    OutletCreate,
    OutletResponse,
    OutletUpdate,
    UserOutletsUpdate,
)

__all__ = [
    "BrandInfoResponse",
    "BrandInfoUpdate",
    "CallerResponse",
    "PrincipalSignInRequest",
    "SignInRequest",
    "TenantSignInRequest",
    "TokenPayload",
    "TokenResponse",
    "PrincipalCreate",
    "PrincipalResponse",
    "PrincipalRoleAssign",
    "CredentialResponse",
    "TenantCreate",
    "TenantCreatedResponse",
    "TenantResponse",
    "TenantUserCreate",
    "TenantUserResponse",
    "OutletAccessRequest",
    "OutletAccessResponse",
    "OutletCreate",
    "OutletResponse",
    "OutletUpdate",
    "UserOutletsUpdate",
]
