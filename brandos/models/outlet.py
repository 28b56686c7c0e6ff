"""
Outlet model - tenant-local locations and per-user access grants
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
import uuid


class Outlet(SQLModel, table=True):
    """Location belonging to a tenant partition"""

    __tablename__ = "outlets"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    code: str = Field(unique=True, index=True, nullable=False, max_length=50)
    name: str = Field(nullable=False, max_length=255)
    address: Optional[str] = Field(default=None, max_length=500)

    # Status
    is_active: bool = Field(default=True, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class OutletGrant(SQLModel, table=True):
    """Presence of a row means the tenant-user may access the outlet"""

    __tablename__ = "outlet_grants"

    user_id: uuid.UUID = Field(foreign_key="tenant_users.id", primary_key=True, ondelete="CASCADE")
    outlet_id: uuid.UUID = Field(foreign_key="outlets.id", primary_key=True, ondelete="CASCADE")
    created_at: datetime = Field(default_factory=datetime.utcnow)
