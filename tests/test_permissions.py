"""
Unit tests for RBAC permission system
"""

import pytest
import uuid

from brandos.core.auth import TokenContext
from brandos.core.context import PrincipalCaller, TenantCaller, TenantUserStub
from brandos.core.errors import ForbiddenError
from brandos.core.permissions import (
    Permission,
    check_permission,
    ensure_tenant_access,
    get_permissions_for_roles,
    has_permission,
)
from brandos.core.dependencies import require_permission
from brandos.models import Principal, Tenant


def _principal_caller(*roles):
    principal = Principal(email="someone@bensu.co", password_hash="x")
    return PrincipalCaller(principal=principal, roles=tuple(roles))


def _tenant_caller(*roles):
    # Permission checks never touch the handle
    return TenantCaller(
        user=TenantUserStub(id=uuid.uuid4(), roles=tuple(roles)),
        tenant_id=uuid.uuid4(),
        handle=None,
    )


def test_get_permissions_for_roles():
    """Test permission retrieval per context"""
    admin_perms = get_permissions_for_roles(TokenContext.PRINCIPAL, ["SuperAdmin"])
    assert Permission.PRINCIPAL_MANAGE in admin_perms
    assert Permission.TENANT_CREATE in admin_perms

    user_perms = get_permissions_for_roles(TokenContext.PRINCIPAL, ["User"])
    assert Permission.TENANT_CREATE in user_perms
    assert Permission.PRINCIPAL_MANAGE not in user_perms

    operator_perms = get_permissions_for_roles(TokenContext.TENANT, ["Operator"])
    assert Permission.OUTLET_GRANT in operator_perms
    assert Permission.TENANT_USER_MANAGE not in operator_perms


def test_role_names_do_not_cross_contexts():
    """A tenant role means nothing in a principal token and vice versa"""
    assert get_permissions_for_roles(TokenContext.PRINCIPAL, ["Owner"]) == set()
    assert get_permissions_for_roles(TokenContext.TENANT, ["SuperAdmin"]) == set()


def test_has_permission():
    owner_perms = get_permissions_for_roles(TokenContext.TENANT, ["Owner"])
    assert has_permission(Permission.OUTLET_EDIT, owner_perms)
    assert not has_permission(Permission.TENANT_CREATE, owner_perms)


def test_check_permission_enforces_context():
    """Principal tokens are refused on tenant operations even for super admins"""
    with pytest.raises(ForbiddenError):
        check_permission(_principal_caller("SuperAdmin"), Permission.OUTLET_VIEW)
    with pytest.raises(ForbiddenError):
        check_permission(_tenant_caller("Owner"), Permission.TENANT_CREATE)


def test_check_permission_enforces_roles():
    check_permission(_tenant_caller("Operator"), Permission.OUTLET_EDIT)
    with pytest.raises(ForbiddenError):
        check_permission(_tenant_caller("Operator"), Permission.TENANT_USER_MANAGE)
    with pytest.raises(ForbiddenError):
        check_permission(_tenant_caller(), Permission.OUTLET_VIEW)


def test_ensure_tenant_access():
    caller = _principal_caller("User")
    own = Tenant(
        name="Bensu Kitchen",
        owner_id=caller.principal.id,
        partition_identifier="bensu_kitchen_7f3a",
        partition_role="bensu_kitchen_7f3a_role",
        encrypted_role_secret="x",
    )
    foreign = Tenant(
        name="Other",
        owner_id=uuid.uuid4(),
        partition_identifier="other_0000",
        partition_role="other_0000_role",
        encrypted_role_secret="x",
    )

    ensure_tenant_access(caller, own)
    with pytest.raises(ForbiddenError):
        ensure_tenant_access(caller, foreign)
    ensure_tenant_access(_principal_caller("SuperAdmin"), foreign)


def test_require_permission_dependency():
    """Test permission requirement dependency factory"""
    checker = require_permission(Permission.OUTLET_VIEW)
    assert callable(checker)

    caller = _tenant_caller("Owner")
    assert checker(caller=caller) is caller
    with pytest.raises(ForbiddenError):
        require_permission(Permission.TENANT_DELETE)(caller=caller)


def test_brand_info_is_tenant_only():
    check_permission(_tenant_caller("Operator"), Permission.BRAND_INFO_EDIT)
    check_permission(_tenant_caller("Owner"), Permission.BRAND_INFO_VIEW)
    with pytest.raises(ForbiddenError):
        check_permission(_principal_caller("SuperAdmin"), Permission.BRAND_INFO_VIEW)
