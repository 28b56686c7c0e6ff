"""
Tests for sign-in (both flows) and token validation
"""

import pytest
import uuid
from datetime import timedelta

from brandos.core.auth import TokenContext, create_access_token
from brandos.core.context import PrincipalCaller, TenantCaller
from brandos.core.errors import AuthenticationError, InvalidCredentialsError, PartitionUnavailableError
from brandos.models import Tenant

OWNER_EMAIL = "owner@bensu.co"
OWNER_PASSWORD = "Kitchen2024"


def test_principal_sign_in_issues_principal_token(services, db, owner):
    result = services.authenticator.sign_in_principal(db, OWNER_EMAIL, OWNER_PASSWORD)

    assert result.context == TokenContext.PRINCIPAL
    assert result.subject_id == owner.id
    assert result.roles == ["User"]
    assert result.tenant_id is None

    caller = services.validator.validate(db, result.token)
    assert isinstance(caller, PrincipalCaller)
    assert caller.principal.id == owner.id


def test_principal_sign_in_is_case_insensitive_on_email(services, db, owner):
    result = services.authenticator.sign_in_principal(db, OWNER_EMAIL.upper(), OWNER_PASSWORD)
    assert result.subject_id == owner.id


@pytest.mark.parametrize(
    "email, password, reason",
    [
        ("nobody@bensu.co", OWNER_PASSWORD, "unknown_principal"),
        (OWNER_EMAIL, "Wrong2024", "wrong_password"),
    ],
)
def test_principal_sign_in_failures(services, db, owner, email, password, reason):
    with pytest.raises(InvalidCredentialsError) as exc_info:
        services.authenticator.sign_in_principal(db, email, password)
    assert exc_info.value.reason == reason


def test_tenant_sign_in_issues_tenant_token(services, db, provisioned):
    tenant = provisioned.tenant
    credential = provisioned.credential

    result = services.authenticator.sign_in_tenant(db, str(tenant.id), credential.secret, credential.password)

    assert result.context == TokenContext.TENANT
    assert result.subject_id == credential.user_id
    assert result.roles == ["Owner"]
    assert result.tenant_id == tenant.id

    caller = services.validator.validate(db, result.token)
    assert isinstance(caller, TenantCaller)
    assert caller.user.id == credential.user_id
    assert caller.partition == tenant.partition_identifier
    assert caller.tenant_id == tenant.id


def test_combined_sign_in_dispatches_on_selector(services, db, owner, provisioned):
    principal = services.authenticator.sign_in(db, OWNER_EMAIL, OWNER_PASSWORD)
    assert principal.context == TokenContext.PRINCIPAL

    credential = provisioned.credential
    tenant = services.authenticator.sign_in(
        db, credential.secret, credential.password, tenant_selector=provisioned.tenant.id
    )
    assert tenant.context == TokenContext.TENANT


@pytest.mark.parametrize(
    "selector, reason",
    [
        ("not-a-uuid", "malformed_tenant_selector"),
        (str(uuid.uuid4()), "unknown_tenant"),
    ],
)
def test_tenant_sign_in_bad_selector(services, db, provisioned, selector, reason):
    credential = provisioned.credential
    with pytest.raises(InvalidCredentialsError) as exc_info:
        services.authenticator.sign_in_tenant(db, selector, credential.secret, credential.password)
    assert exc_info.value.reason == reason


def test_tenant_sign_in_wrong_password(services, db, provisioned):
    with pytest.raises(InvalidCredentialsError) as exc_info:
        services.authenticator.sign_in_tenant(
            db, str(provisioned.tenant.id), provisioned.credential.secret, "wrong"
        )
    assert exc_info.value.reason == "wrong_password"


def test_credential_of_one_tenant_fails_on_another(services, db, owner):
    """A valid credential presented to the wrong tenant is simply invalid"""
    first = services.provisioner.create_tenant(db, "Bensu Kitchen", owner.id)
    second = services.provisioner.create_tenant(db, "Bensu Bakery", owner.id)

    with pytest.raises(InvalidCredentialsError):
        services.authenticator.sign_in_tenant(
            db, str(second.tenant.id), first.credential.secret, first.credential.password
        )


def test_inactive_tenant_cannot_sign_in(services, db, provisioned):
    tenant = db.get(Tenant, provisioned.tenant.id)
    tenant.is_active = False
    db.add(tenant)
    db.commit()

    with pytest.raises(InvalidCredentialsError) as exc_info:
        services.authenticator.sign_in_tenant(
            db, str(tenant.id), provisioned.credential.secret, provisioned.credential.password
        )
    assert exc_info.value.reason == "inactive_tenant"


def test_unreachable_partition_is_not_reported_as_bad_credentials(services, backend, db, provisioned):
    tenant = provisioned.tenant
    services.router.evict(tenant.partition_identifier)
    backend._roles[tenant.partition_role] = "rotated-elsewhere"

    with pytest.raises(PartitionUnavailableError):
        services.authenticator.sign_in_tenant(
            db, str(tenant.id), provisioned.credential.secret, provisioned.credential.password
        )


def test_validate_rejects_garbage(services, db):
    with pytest.raises(AuthenticationError):
        services.validator.validate(db, "garbage")


def test_validate_rejects_token_for_destroyed_tenant(services, db, provisioned):
    result = services.authenticator.sign_in_tenant(
        db, str(provisioned.tenant.id), provisioned.credential.secret, provisioned.credential.password
    )
    services.provisioner.destroy_tenant(db, provisioned.tenant.id)

    with pytest.raises(AuthenticationError):
        services.validator.validate(db, result.token)


def test_validate_rejects_mismatched_tenant_and_partition(services, db, owner):
    first = services.provisioner.create_tenant(db, "Bensu Kitchen", owner.id).tenant
    second = services.provisioner.create_tenant(db, "Bensu Bakery", owner.id).tenant

    token = create_access_token(
        subject_id=uuid.uuid4(),
        context=TokenContext.TENANT,
        roles=["Owner"],
        tenant_id=first.id,
        partition=second.partition_identifier,
        settings=services.settings,
    )
    with pytest.raises(AuthenticationError):
        services.validator.validate(db, token)


def test_validate_rejects_deleted_principal(services, db, owner):
    token = create_access_token(
        subject_id=uuid.uuid4(),
        context=TokenContext.PRINCIPAL,
        roles=["SuperAdmin"],
        settings=services.settings,
    )
    with pytest.raises(AuthenticationError):
        services.validator.validate(db, token)


def test_principal_roles_come_from_registry_not_token(services, db, owner):
    """A forged role claim does not elevate a principal"""
    token = create_access_token(
        subject_id=owner.id,
        context=TokenContext.PRINCIPAL,
        roles=["SuperAdmin"],
        expires_delta=timedelta(minutes=5),
        settings=services.settings,
    )
    caller = services.validator.validate(db, token)
    assert caller.roles == ("User",)


def test_token_issued_before_reset_stays_valid_until_expiry(services, db, provisioned):
    """Reset rotates the credential but does not revoke outstanding tokens"""
    credential = provisioned.credential
    result = services.authenticator.sign_in_tenant(
        db, str(provisioned.tenant.id), credential.secret, credential.password
    )

    handle = services.router.resolve(provisioned.tenant.partition_identifier)
    services.credentials.reset_credential(handle, credential.user_id)

    caller = services.validator.validate(db, result.token)
    assert caller.user.id == credential.user_id
    with pytest.raises(InvalidCredentialsError):
        services.authenticator.sign_in_tenant(
            db, str(provisioned.tenant.id), credential.secret, credential.password
        )
