"""
Pydantic schemas for authentication and tokens
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
import uuid

from brandos.core.auth import TokenContext


class TokenPayload(BaseModel):
    """JWT token payload"""
    sub: uuid.UUID = Field(..., description="Principal or tenant-user ID")
    ctx: TokenContext = Field(..., description="Token context")
    roles: List[str] = Field(default_factory=list)
    tenant_id: Optional[uuid.UUID] = Field(default=None, description="Tenant ID (tenant tokens)")
    partition: Optional[str] = Field(default=None, description="Partition identifier (tenant tokens)")
    exp: datetime = Field(..., description="Expiration time")
    iat: Optional[datetime] = Field(default=None, description="Issued at")


class SignInRequest(BaseModel):
    """Combined sign-in; a tenant selector switches to the tenant flow"""
    identifier: str = Field(..., min_length=1, max_length=255)
    secret: str = Field(..., min_length=1, max_length=255)
    tenant_id: Optional[str] = Field(default=None, description="Tenant selector")


class PrincipalSignInRequest(BaseModel):
    """Human sign-in"""
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=255)


class TenantSignInRequest(BaseModel):
    """Machine sign-in for a tenant-user"""
    tenant_id: str = Field(..., min_length=1)
    api_secret: str = Field(..., min_length=1, max_length=64)
    api_password: str = Field(..., min_length=1, max_length=255)


class TokenResponse(BaseModel):
    """Token response"""
    access_token: str
    token_type: str = "bearer"
    context: TokenContext
    subject_id: uuid.UUID
    roles: List[str]
    tenant_id: Optional[uuid.UUID] = None


class CallerResponse(BaseModel):
    """Who the current token belongs to"""
    context: TokenContext
    subject_id: uuid.UUID
    roles: List[str]
    tenant_id: Optional[uuid.UUID] = None
    email: Optional[str] = None
