"""
Pydantic schemas for principals
"""

from pydantic import BaseModel, Field, EmailStr
from typing import List, Optional
from datetime import datetime
import uuid

from brandos.models import Principal, PrincipalRoleName


class PrincipalCreate(BaseModel):
    """Principal registration schema"""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    display_name: Optional[str] = Field(default=None, max_length=200)


class PrincipalResponse(BaseModel):
    """Principal response model"""
    id: uuid.UUID
    email: str
    display_name: Optional[str]
    roles: List[str]
    is_active: bool
    created_at: datetime
    last_login_at: Optional[datetime]

    @classmethod
    def from_principal(cls, principal: Principal) -> "PrincipalResponse":
        return cls(
            id=principal.id,
            email=principal.email,
            display_name=principal.display_name,
            roles=principal.role_names,
            is_active=principal.is_active,
            created_at=principal.created_at,
            last_login_at=principal.last_login_at,
        )


class PrincipalRoleAssign(BaseModel):
    """Role assignment request"""
    role: PrincipalRoleName
