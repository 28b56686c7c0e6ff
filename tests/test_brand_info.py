"""
Tests for tenant-local brand info
"""

import pytest

from brandos.core.errors import NotFoundError, ValidationError
from brandos.services.brand_info import BRAND_NAME_KEY


def test_provisioning_seeds_brand_name(services, handle, provisioned):
    info = services.brand_info.get_info(handle, BRAND_NAME_KEY)
    assert info.value == "Bensu Kitchen"
    assert [i.key for i in services.brand_info.list_info(handle)] == [BRAND_NAME_KEY]


def test_update_info_upserts(services, handle):
    created = services.brand_info.update_info(handle, "Currency", "IDR")
    assert created.value == "IDR"

    updated = services.brand_info.update_info(handle, "Currency", "USD")
    assert updated.value == "USD"
    assert updated.created_at == created.created_at
    assert [i.key for i in services.brand_info.list_info(handle)] == [BRAND_NAME_KEY, "Currency"]


def test_brand_name_can_be_changed_without_touching_registry(services, db, handle, provisioned):
    services.brand_info.update_info(handle, BRAND_NAME_KEY, "Bensu Kitchen & Bar")

    assert services.brand_info.get_info(handle, BRAND_NAME_KEY).value == "Bensu Kitchen & Bar"
    assert services.provisioner.get_tenant(db, provisioned.tenant.id).name == "Bensu Kitchen"


def test_brand_info_is_partition_local(services, db, owner, handle):
    other = services.provisioner.create_tenant(db, "Bensu Bakery", owner.id).tenant
    other_handle = services.router.resolve(other.partition_identifier)

    services.brand_info.update_info(handle, "Currency", "IDR")

    assert services.brand_info.get_info(other_handle, BRAND_NAME_KEY).value == "Bensu Bakery"
    with pytest.raises(NotFoundError):
        services.brand_info.get_info(other_handle, "Currency")


@pytest.mark.parametrize("key, value", [("", "x"), ("   ", "x"), ("k" * 101, "x"), ("Currency", "v" * 2001)])
def test_update_info_validates_input(services, handle, key, value):
    with pytest.raises(ValidationError):
        services.brand_info.update_info(handle, key, value)
