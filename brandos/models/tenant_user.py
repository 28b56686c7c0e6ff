"""
Tenant-user model - machine identities living inside a tenant partition
"""

from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import UniqueConstraint
from datetime import datetime
from typing import Optional, List
import uuid
from enum import Enum


class TenantRoleName(str, Enum):
    """Roles a tenant-user can hold inside its partition"""
    OWNER = "Owner"
    OPERATOR = "Operator"


class TenantUser(SQLModel, table=True):
    """Service identity scoped to exactly one partition"""

    __tablename__ = "tenant_users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # Credentials; the secret is the public identifier, unique within the partition only
    api_secret: str = Field(unique=True, index=True, nullable=False, max_length=64)
    password_hash: str = Field(nullable=False)

    # Profile
    display_name: Optional[str] = Field(default=None, max_length=200)

    # Status
    is_active: bool = Field(default=True, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    last_used_at: Optional[datetime] = None

    roles: List["TenantUserRole"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "lazy": "selectin"},
    )

    @property
    def role_names(self) -> List[str]:
        return sorted(r.role for r in self.roles)


class TenantUserRole(SQLModel, table=True):
    """Role assignment for a tenant-user"""

    __tablename__ = "tenant_user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_tenant_user_role"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="tenant_users.id", index=True, ondelete="CASCADE")
    role: str = Field(max_length=50, nullable=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    user: Optional[TenantUser] = Relationship(back_populates="roles")
