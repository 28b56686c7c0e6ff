"""
Brand info API endpoints (tenant tokens) - key/value settings of the caller's tenant
"""

from fastapi import APIRouter, Depends
from typing import List
import structlog

from brandos.core.context import TenantCaller
from brandos.core.dependencies import get_services, require_permission
from brandos.core.permissions import Permission
from brandos.schemas.brand_info import BrandInfoResponse, BrandInfoUpdate
from brandos.services.container import Services

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/", response_model=List[BrandInfoResponse])
def list_brand_info(
    caller: TenantCaller = Depends(require_permission(Permission.BRAND_INFO_VIEW)),
    services: Services = Depends(get_services),
):
    """All brand info pairs, ordered by key"""
    return services.brand_info.list_info(caller.handle)


@router.put("/", response_model=BrandInfoResponse)
def update_brand_info(
    info_data: BrandInfoUpdate,
    caller: TenantCaller = Depends(require_permission(Permission.BRAND_INFO_EDIT)),
    services: Services = Depends(get_services),
):
    """Create or overwrite one brand info pair"""
    return services.brand_info.update_info(caller.handle, info_data.key, info_data.value)


@router.get("/{key}", response_model=BrandInfoResponse)
def get_brand_info(
    key: str,
    caller: TenantCaller = Depends(require_permission(Permission.BRAND_INFO_VIEW)),
    services: Services = Depends(get_services),
):
    """Get one brand info pair"""
    return services.brand_info.get_info(caller.handle, key)
