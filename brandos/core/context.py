"""
Caller context produced by token validation

A request is either made by a principal (control-plane identity) or by a
tenant-user. Tenant callers carry the scoped handle of their own partition;
handlers never pick a partition themselves.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Tuple, Union
import uuid

from brandos.core.auth import TokenContext
from brandos.models import Principal

if TYPE_CHECKING:
    from brandos.services.connection_router import ScopedHandle


@dataclass(frozen=True)
class TenantUserStub:
    """Tenant-user as described by the token; no partition lookup needed"""
    id: uuid.UUID
    roles: Tuple[str, ...]


@dataclass(frozen=True)
class PrincipalCaller:
    principal: Principal
    roles: Tuple[str, ...]

    context = TokenContext.PRINCIPAL

    @property
    def subject_id(self) -> uuid.UUID:
        return self.principal.id


@dataclass(frozen=True)
class TenantCaller:
    user: TenantUserStub
    tenant_id: uuid.UUID
    handle: "ScopedHandle"

    context = TokenContext.TENANT

    @property
    def subject_id(self) -> uuid.UUID:
        return self.user.id

    @property
    def roles(self) -> Tuple[str, ...]:
        return self.user.roles

    @property
    def partition(self) -> str:
        return self.handle.partition


CallerContext = Union[PrincipalCaller, TenantCaller]
