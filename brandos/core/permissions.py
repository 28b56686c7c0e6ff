"""
RBAC (Role-Based Access Control) permission system

Permissions belong to exactly one token context; a tenant token never carries
a principal permission and vice versa, whatever role names it holds.
"""

from enum import Enum
from typing import Iterable, Set

from brandos.core.auth import TokenContext
from brandos.core.context import CallerContext
from brandos.core.errors import ForbiddenError
from brandos.models import PrincipalRoleName, Tenant, TenantRoleName


class Permission(str, Enum):
    """Permission definitions"""
    # Control plane
    TENANT_CREATE = "tenant:create"
    TENANT_VIEW = "tenant:view"
    TENANT_DELETE = "tenant:delete"
    CREDENTIAL_RESET = "credential:reset"
    PRINCIPAL_MANAGE = "principal:manage"

    # Inside a tenant partition
    OUTLET_VIEW = "outlet:view"
    OUTLET_EDIT = "outlet:edit"
    OUTLET_GRANT = "outlet:grant"
    TENANT_USER_MANAGE = "tenant_user:manage"
    BRAND_INFO_VIEW = "brand_info:view"
    BRAND_INFO_EDIT = "brand_info:edit"


PERMISSION_CONTEXT = {
    Permission.TENANT_CREATE: TokenContext.PRINCIPAL,
    Permission.TENANT_VIEW: TokenContext.PRINCIPAL,
    Permission.TENANT_DELETE: TokenContext.PRINCIPAL,
    Permission.CREDENTIAL_RESET: TokenContext.PRINCIPAL,
    Permission.PRINCIPAL_MANAGE: TokenContext.PRINCIPAL,
    Permission.OUTLET_VIEW: TokenContext.TENANT,
    Permission.OUTLET_EDIT: TokenContext.TENANT,
    Permission.OUTLET_GRANT: TokenContext.TENANT,
    Permission.TENANT_USER_MANAGE: TokenContext.TENANT,
    Permission.BRAND_INFO_VIEW: TokenContext.TENANT,
    Permission.BRAND_INFO_EDIT: TokenContext.TENANT,
}


# Role permission mapping, per token context
ROLE_PERMISSIONS = {
    TokenContext.PRINCIPAL: {
        PrincipalRoleName.SUPER_ADMIN.value: {
            # Super admins manage every tenant and principal
            Permission.TENANT_CREATE,
            Permission.TENANT_VIEW,
            Permission.TENANT_DELETE,
            Permission.CREDENTIAL_RESET,
            Permission.PRINCIPAL_MANAGE,
        },
        PrincipalRoleName.USER.value: {
            # Users manage the tenants they own
            Permission.TENANT_CREATE,
            Permission.TENANT_VIEW,
            Permission.TENANT_DELETE,
            Permission.CREDENTIAL_RESET,
        },
    },
    TokenContext.TENANT: {
        TenantRoleName.OWNER.value: {
            Permission.OUTLET_VIEW,
            Permission.OUTLET_EDIT,
            Permission.OUTLET_GRANT,
            Permission.TENANT_USER_MANAGE,
            Permission.BRAND_INFO_VIEW,
            Permission.BRAND_INFO_EDIT,
        },
        TenantRoleName.OPERATOR.value: {
            Permission.OUTLET_VIEW,
            Permission.OUTLET_EDIT,
            Permission.OUTLET_GRANT,
            Permission.BRAND_INFO_VIEW,
            Permission.BRAND_INFO_EDIT,
        },
    },
}


def get_permissions_for_roles(context: TokenContext, roles: Iterable[str]) -> Set[Permission]:
    """Union of the permissions granted by each role in the given context"""
    mapping = ROLE_PERMISSIONS.get(TokenContext(context), {})
    permissions: Set[Permission] = set()
    for role in roles:
        permissions |= mapping.get(role, set())
    return permissions


def has_permission(required_permission: Permission, user_permissions: Set[Permission]) -> bool:
    """Check if user has required permission"""
    return required_permission in user_permissions


def require_context(caller: CallerContext, context: TokenContext) -> None:
    if caller.context != context:
        raise ForbiddenError(f"This operation requires a {context.value.lower()} token")


def check_permission(caller: CallerContext, permission: Permission) -> None:
    """Raise ForbiddenError unless the caller's context and roles grant the permission"""
    require_context(caller, PERMISSION_CONTEXT[permission])
    if not has_permission(permission, get_permissions_for_roles(caller.context, caller.roles)):
        raise ForbiddenError(f"Permission required: {permission.value}")


def is_super_admin(caller: CallerContext) -> bool:
    return (
        caller.context == TokenContext.PRINCIPAL
        and PrincipalRoleName.SUPER_ADMIN.value in caller.roles
    )


def ensure_tenant_access(caller: CallerContext, tenant: Tenant) -> None:
    """Principals only act on tenants they own, super admins on any"""
    require_context(caller, TokenContext.PRINCIPAL)
    if is_super_admin(caller):
        return
    if tenant.owner_id != caller.subject_id:
        raise ForbiddenError("Access denied to this tenant")
