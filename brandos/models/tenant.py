"""
Tenant model - control-plane registry of brands and their partitions
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
import uuid


class Tenant(SQLModel, table=True):
    """A brand with its own isolated partition (schema + restricted role)"""

    __tablename__ = "tenants"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(unique=True, index=True, max_length=200, description="Unique display name")
    owner_id: uuid.UUID = Field(foreign_key="principals.id", index=True, description="Owning principal")

    # Partition
    partition_identifier: str = Field(unique=True, index=True, max_length=63)
    partition_role: str = Field(unique=True, max_length=63)
    encrypted_role_secret: str = Field(nullable=False, description="Fernet token, never plaintext")

    # Status
    is_active: bool = Field(default=True, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
