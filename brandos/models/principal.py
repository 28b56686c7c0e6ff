"""
Principal model - global human identities and their roles
"""

from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import UniqueConstraint
from datetime import datetime
from typing import Optional, List
import uuid
from enum import Enum


class PrincipalRoleName(str, Enum):
    """Roles a principal can hold"""
    SUPER_ADMIN = "SuperAdmin"
    USER = "User"


class Principal(SQLModel, table=True):
    """Global identity, not scoped to any tenant"""

    __tablename__ = "principals"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # Authentication
    email: str = Field(unique=True, index=True, nullable=False, max_length=255)
    password_hash: str = Field(nullable=False)

    # Profile
    display_name: Optional[str] = Field(default=None, max_length=200)

    # Status
    is_active: bool = Field(default=True, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    last_login_at: Optional[datetime] = None

    # Relationships
    roles: List["PrincipalRole"] = Relationship(
        back_populates="principal",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "lazy": "selectin"},
    )

    @property
    def role_names(self) -> List[str]:
        return sorted(r.role for r in self.roles)

    def has_role(self, role: str) -> bool:
        return role in self.role_names


class PrincipalRole(SQLModel, table=True):
    """Role assignment for a principal"""

    __tablename__ = "principal_roles"
    __table_args__ = (UniqueConstraint("principal_id", "role", name="uq_principal_role"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    principal_id: uuid.UUID = Field(foreign_key="principals.id", index=True)
    role: str = Field(max_length=50, nullable=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    principal: Optional[Principal] = Relationship(back_populates="roles")
