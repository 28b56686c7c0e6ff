"""
Pydantic schemas for tenants and tenant-user credentials
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
import uuid

from brandos.models import Tenant, TenantRoleName, TenantUser
from brandos.services.credentials import IssuedCredential


class TenantCreate(BaseModel):
    """Tenant creation schema"""
    name: str = Field(..., min_length=1, max_length=200)


class TenantResponse(BaseModel):
    """Tenant response; partition credentials are never exposed"""
    id: uuid.UUID
    name: str
    owner_id: uuid.UUID
    partition_identifier: str
    is_active: bool
    created_at: datetime

    @classmethod
    def from_tenant(cls, tenant: Tenant) -> "TenantResponse":
        return cls(
            id=tenant.id,
            name=tenant.name,
            owner_id=tenant.owner_id,
            partition_identifier=tenant.partition_identifier,
            is_active=tenant.is_active,
            created_at=tenant.created_at,
        )


class CredentialResponse(BaseModel):
    """Plaintext credential, returned once"""
    user_id: uuid.UUID
    api_secret: str
    api_password: str

    @classmethod
    def from_issued(cls, credential: IssuedCredential) -> "CredentialResponse":
        return cls(user_id=credential.user_id, api_secret=credential.secret, api_password=credential.password)


class TenantCreatedResponse(BaseModel):
    """Result of provisioning"""
    tenant: TenantResponse
    credential: CredentialResponse


class TenantUserCreate(BaseModel):
    """Additional tenant-user inside the caller's partition"""
    display_name: Optional[str] = Field(default=None, max_length=200)
    roles: List[TenantRoleName] = Field(default_factory=lambda: [TenantRoleName.OPERATOR])


class TenantUserResponse(BaseModel):
    """Tenant-user response; the API secret is a credential and is not listed"""
    id: uuid.UUID
    display_name: Optional[str]
    roles: List[str]
    is_active: bool
    created_at: datetime
    last_used_at: Optional[datetime]

    @classmethod
    def from_user(cls, user: TenantUser) -> "TenantUserResponse":
        return cls(
            id=user.id,
            display_name=user.display_name,
            roles=user.role_names,
            is_active=user.is_active,
            created_at=user.created_at,
            last_used_at=user.last_used_at,
        )
