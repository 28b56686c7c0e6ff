"""
Brand info model - free-form key/value settings inside a tenant partition
"""

from sqlmodel import Field, SQLModel
from datetime import datetime


class BrandInfo(SQLModel, table=True):
    """One brand setting, such as the display name stored under Brand Name"""

    __tablename__ = "brand_infos"

    key: str = Field(primary_key=True, max_length=100)
    value: str = Field(nullable=False, max_length=2000)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
