"""
Pydantic schemas for outlets and outlet access
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
import uuid


class OutletCreate(BaseModel):
    """Outlet creation schema"""
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    address: Optional[str] = Field(default=None, max_length=500)


class OutletUpdate(BaseModel):
    """Outlet update schema; only set fields are applied"""
    code: Optional[str] = Field(default=None, min_length=1, max_length=50)
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    address: Optional[str] = Field(default=None, max_length=500)
    is_active: Optional[bool] = None


class OutletResponse(BaseModel):
    """Outlet response model"""
    id: uuid.UUID
    code: str
    name: str
    address: Optional[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class OutletAccessRequest(BaseModel):
    """Grant or revoke one user's access to one outlet"""
    user_id: uuid.UUID
    outlet_id: uuid.UUID


class OutletAccessResponse(BaseModel):
    """Outcome of a grant or revoke; changed is false when nothing had to be done"""
    success: bool
    message: str
    user_id: uuid.UUID
    outlet_id: uuid.UUID
    changed: bool


class UserOutletsUpdate(BaseModel):
    """Complete replacement of a user's outlet grants"""
    outlet_ids: List[uuid.UUID] = Field(default_factory=list)
