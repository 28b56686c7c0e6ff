"""
Brand info service - key/value settings of the caller's own tenant
"""

from datetime import datetime
from typing import List

from sqlmodel import Session, select
import structlog

from brandos.core.errors import NotFoundError, ValidationError
from brandos.models import BrandInfo
from brandos.services.connection_router import ScopedHandle

logger = structlog.get_logger(__name__)

BRAND_NAME_KEY = "Brand Name"
MAX_KEY_LENGTH = 100
MAX_VALUE_LENGTH = 2000


class BrandInfoService:
    """Reads and upserts brand info rows through a scoped handle"""

    def list_info(self, handle: ScopedHandle) -> List[BrandInfo]:
        statement = select(BrandInfo).order_by(BrandInfo.key)
        return handle.run(lambda session: list(session.exec(statement).all()))

    def get_info(self, handle: ScopedHandle, key: str) -> BrandInfo:
        info = handle.run(lambda session: session.get(BrandInfo, key))
        if info is None:
            raise NotFoundError(f"Brand info '{key}' not found")
        return info

    def update_info(self, handle: ScopedHandle, key: str, value: str) -> BrandInfo:
        """Create or overwrite one key"""
        key = (key or "").strip()
        if not key:
            raise ValidationError("Brand info key is required")
        if len(key) > MAX_KEY_LENGTH:
            raise ValidationError(f"Brand info key must be at most {MAX_KEY_LENGTH} characters")
        if value is None or len(value) > MAX_VALUE_LENGTH:
            raise ValidationError(f"Brand info value must be a string of at most {MAX_VALUE_LENGTH} characters")

        def _upsert(session: Session) -> BrandInfo:
            info = session.get(BrandInfo, key)
            if info is None:
                info = BrandInfo(key=key, value=value)
            else:
                info.value = value
                info.updated_at = datetime.utcnow()
            session.add(info)
            session.flush()
            return info

        info = handle.run(_upsert)
        logger.info("Brand info updated", partition=handle.partition, key=key)
        return info

    def seed(self, handle: ScopedHandle, brand_name: str) -> BrandInfo:
        """Initial rows of a freshly provisioned partition"""
        return self.update_info(handle, BRAND_NAME_KEY, brand_name)
