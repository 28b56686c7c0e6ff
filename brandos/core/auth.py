"""
JWT Authentication utilities
"""

from datetime import datetime, timedelta
from enum import Enum
from jose import JWTError, jwt
from typing import Dict, Iterable, Optional
import uuid

from brandos.core.config import Settings, get_settings


class TokenContext(str, Enum):
    """Which kind of identity a token was issued to"""
    PRINCIPAL = "PRINCIPAL"
    TENANT = "TENANT"


def create_access_token(
    subject_id: uuid.UUID,
    context: TokenContext,
    roles: Iterable[str],
    tenant_id: Optional[uuid.UUID] = None,
    partition: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
    settings: Optional[Settings] = None,
) -> str:
    """Create JWT access token; tenant tokens must name their tenant and partition"""
    settings = settings or get_settings()
    context = TokenContext(context)

    if context == TokenContext.TENANT and (tenant_id is None or not partition):
        raise ValueError("Tenant tokens require tenant_id and partition")
    if context == TokenContext.PRINCIPAL and (tenant_id is not None or partition):
        raise ValueError("Principal tokens cannot carry tenant claims")

    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES))

    to_encode = {
        "sub": str(subject_id),
        "ctx": context.value,
        "roles": sorted(set(roles)),
        "exp": expire,
        "iat": now,
    }
    if context == TokenContext.TENANT:
        to_encode["tenant_id"] = str(tenant_id)
        to_encode["partition"] = partition

    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, settings: Optional[Settings] = None) -> Optional[Dict]:
    """Decode and validate JWT token"""
    settings = settings or get_settings()
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
