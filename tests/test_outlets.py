"""
Tests for outlet CRUD and outlet access control
"""

import pytest
import uuid

from brandos.core.errors import ConflictError, NotFoundError, ValidationError
from brandos.services.outlets import OutletService


@pytest.fixture
def operator(services, handle):
    return services.credentials.create_tenant_user(handle, "Cashier", roles=["Operator"])


@pytest.fixture
def outlets(services, handle):
    return [
        services.outlets.create_outlet(handle, "KB-01", "Kemang", "Jl. Kemang Raya 1"),
        services.outlets.create_outlet(handle, "KB-02", "Senopati"),
    ]


def test_create_and_list_outlets(services, handle, outlets):
    listed = services.outlets.list_outlets(handle)
    assert [o.code for o in listed] == ["KB-01", "KB-02"]
    assert services.outlets.get_outlet(handle, outlets[0].id).address == "Jl. Kemang Raya 1"


def test_duplicate_outlet_code_conflicts(services, handle, outlets):
    with pytest.raises(ConflictError):
        services.outlets.create_outlet(handle, "KB-01", "Another Kemang")


def test_outlet_requires_code_and_name(services, handle):
    with pytest.raises(ValidationError):
        services.outlets.create_outlet(handle, " ", "Nameless")


def test_update_outlet(services, handle, outlets):
    updated = services.outlets.update_outlet(handle, outlets[1].id, name="Senopati Flagship", is_active=False)
    assert updated.name == "Senopati Flagship"
    assert updated.is_active is False

    with pytest.raises(ConflictError):
        services.outlets.update_outlet(handle, outlets[1].id, code="KB-01")
    with pytest.raises(ValidationError):
        services.outlets.update_outlet(handle, outlets[1].id, id=uuid.uuid4())


def test_grant_is_idempotent(services, handle, operator, outlets):
    """Granting twice leaves exactly one grant"""
    assert services.outlets.grant_access(handle, operator.user_id, outlets[0].id) is True
    assert services.outlets.grant_access(handle, operator.user_id, outlets[0].id) is False

    accessible = services.outlets.list_accessible_outlets(handle, operator.user_id)
    assert [o.code for o in accessible] == ["KB-01"]
    assert services.outlets.has_access(handle, operator.user_id, outlets[0].id)
    assert not services.outlets.has_access(handle, operator.user_id, outlets[1].id)


def test_revoke_is_idempotent(services, handle, operator, outlets):
    services.outlets.grant_access(handle, operator.user_id, outlets[0].id)

    assert services.outlets.revoke_access(handle, operator.user_id, outlets[0].id) is True
    assert services.outlets.revoke_access(handle, operator.user_id, outlets[0].id) is False
    assert services.outlets.list_accessible_outlets(handle, operator.user_id) == []


def test_grant_requires_existing_user_and_outlet(services, handle, operator, outlets):
    with pytest.raises(NotFoundError):
        services.outlets.grant_access(handle, uuid.uuid4(), outlets[0].id)
    with pytest.raises(NotFoundError):
        services.outlets.grant_access(handle, operator.user_id, uuid.uuid4())


def test_replace_user_outlets(services, handle, operator, outlets):
    services.outlets.grant_access(handle, operator.user_id, outlets[0].id)

    replaced = services.outlets.replace_user_outlets(handle, operator.user_id, [outlets[1].id])
    assert [o.code for o in replaced] == ["KB-02"]
    assert [o.code for o in services.outlets.list_accessible_outlets(handle, operator.user_id)] == ["KB-02"]

    assert services.outlets.replace_user_outlets(handle, operator.user_id, []) == []
    assert services.outlets.list_accessible_outlets(handle, operator.user_id) == []


def test_replace_with_unknown_outlet_changes_nothing(services, handle, operator, outlets):
    services.outlets.grant_access(handle, operator.user_id, outlets[0].id)

    with pytest.raises(NotFoundError):
        services.outlets.replace_user_outlets(handle, operator.user_id, [outlets[1].id, uuid.uuid4()])

    assert [o.code for o in services.outlets.list_accessible_outlets(handle, operator.user_id)] == ["KB-01"]


def test_delete_outlet_removes_its_grants(services, handle, operator, outlets):
    services.outlets.grant_access(handle, operator.user_id, outlets[0].id)
    services.outlets.delete_outlet(handle, outlets[0].id)

    assert services.outlets.list_accessible_outlets(handle, operator.user_id) == []
    with pytest.raises(NotFoundError):
        services.outlets.get_outlet(handle, outlets[0].id)
    with pytest.raises(NotFoundError):
        services.outlets.delete_outlet(handle, outlets[0].id)


def test_list_outlet_users(services, handle, provisioned, operator, outlets):
    services.outlets.grant_access(handle, operator.user_id, outlets[0].id)
    services.outlets.grant_access(handle, provisioned.credential.user_id, outlets[0].id)

    users = services.outlets.list_outlet_users(handle, outlets[0].id)
    assert {u.id for u in users} == {operator.user_id, provisioned.credential.user_id}
    assert services.outlets.list_outlet_users(handle, outlets[1].id) == []


def test_owner_has_no_implicit_access_by_default(services, handle, provisioned, outlets):
    owner_id = provisioned.credential.user_id
    assert services.outlets.list_accessible_outlets(handle, owner_id, roles=["Owner"]) == []
    assert not services.outlets.has_access(handle, owner_id, outlets[0].id, roles=["Owner"])


def test_owner_bypass_when_enabled(handle, provisioned, outlets):
    bypassing = OutletService(owner_bypass=True)
    owner_id = provisioned.credential.user_id

    accessible = bypassing.list_accessible_outlets(handle, owner_id, roles=["Owner"])
    assert [o.code for o in accessible] == ["KB-01", "KB-02"]
    assert bypassing.has_access(handle, owner_id, outlets[1].id, roles=["Owner"])

    # Operators still need grants
    assert bypassing.list_accessible_outlets(handle, uuid.uuid4(), roles=["Operator"]) == []


@pytest.mark.parametrize("field", ["code", "name", "is_active"])
def test_update_outlet_rejects_null_for_required_fields(services, handle, outlets, field):
    with pytest.raises(ValidationError):
        services.outlets.update_outlet(handle, outlets[0].id, **{field: None})

    assert services.outlets.get_outlet(handle, outlets[0].id).name == "Kemang"


def test_update_outlet_allows_clearing_address(services, handle, outlets):
    updated = services.outlets.update_outlet(handle, outlets[0].id, address=None)
    assert updated.address is None


def test_revoking_missing_grant_leaves_other_grants(services, handle, operator, outlets):
    services.outlets.grant_access(handle, operator.user_id, outlets[0].id)

    assert services.outlets.revoke_access(handle, operator.user_id, outlets[1].id) is False

    assert [o.code for o in services.outlets.list_accessible_outlets(handle, operator.user_id)] == ["KB-01"]
    assert services.outlets.has_access(handle, operator.user_id, outlets[0].id)
