"""
Pydantic schemas for brand info
"""

from pydantic import BaseModel, Field
from datetime import datetime


class BrandInfoUpdate(BaseModel):
    """Create or overwrite one brand info key"""
    key: str = Field(..., min_length=1, max_length=100)
    value: str = Field(..., max_length=2000)


class BrandInfoResponse(BaseModel):
    key: str
    value: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
