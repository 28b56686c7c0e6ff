"""
Tests for partition routing, handle scoping and retry behaviour
"""

import threading

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from brandos.core.errors import NotFoundError, PartitionUnavailableError
from brandos.models import Outlet, Tenant, TenantUser


def test_resolve_returns_handle_for_partition(services, provisioned):
    partition = provisioned.tenant.partition_identifier
    handle = services.router.resolve(partition)

    assert handle.partition == partition
    assert handle.tenant_id == provisioned.tenant.id
    assert services.router.ping(partition)


def test_resolve_unknown_partition(services):
    with pytest.raises(NotFoundError):
        services.router.resolve("no_such_partition")


def test_resolve_loads_configuration_from_control_plane(services, provisioned):
    """A cold router finds tenants through the registry"""
    partition = provisioned.tenant.partition_identifier
    services.router.evict(partition)
    assert not services.router.is_cached(partition)

    handle = services.router.resolve(partition)
    assert handle.tenant_id == provisioned.tenant.id
    assert services.router.is_cached(partition)


def test_inactive_tenant_is_not_found(services, db, provisioned):
    tenant = db.get(Tenant, provisioned.tenant.id)
    tenant.is_active = False
    db.add(tenant)
    db.commit()
    services.router.evict(tenant.partition_identifier)

    with pytest.raises(NotFoundError):
        services.router.resolve(tenant.partition_identifier)


def test_partitions_are_isolated(services, db, owner):
    """Data written through one tenant's handle is invisible to another"""
    first = services.provisioner.create_tenant(db, "Bensu Kitchen", owner.id).tenant
    second = services.provisioner.create_tenant(db, "Bensu Bakery", owner.id).tenant
    first_handle = services.router.resolve(first.partition_identifier)
    second_handle = services.router.resolve(second.partition_identifier)

    services.outlets.create_outlet(first_handle, "KB-01", "Kemang")

    with first_handle.session() as session:
        assert [o.code for o in session.exec(select(Outlet)).all()] == ["KB-01"]
    with second_handle.session() as session:
        assert session.exec(select(Outlet)).all() == []
        assert len(session.exec(select(TenantUser)).all()) == 1


def test_wrong_role_secret_makes_partition_unavailable(services, backend, provisioned):
    """A partition that cannot be opened is unavailable, not missing"""
    tenant = provisioned.tenant
    services.router.evict(tenant.partition_identifier)
    backend._roles[tenant.partition_role] = "rotated-elsewhere"

    with pytest.raises(PartitionUnavailableError):
        services.router.resolve(tenant.partition_identifier)


def test_concurrent_first_resolution_builds_one_engine(services, backend, provisioned, monkeypatch):
    partition = provisioned.tenant.partition_identifier
    services.router.evict(partition)
    services.router.prime(provisioned.tenant)

    calls = []
    original = backend.create_engine

    def counting_create_engine(*args):
        calls.append(args[0])
        return original(*args)

    monkeypatch.setattr(backend, "create_engine", counting_create_engine)

    errors = []

    def resolve():
        try:
            services.router.resolve(partition)
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=resolve) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert calls == [partition]


def test_run_retries_transient_failures(handle):
    attempts = []

    def flaky(session):
        attempts.append(1)
        if len(attempts) < 3:
            raise OperationalError("SELECT 1", {}, Exception("connection reset"))
        return "ok"

    assert handle.run(flaky) == "ok"
    assert len(attempts) == 3


def test_run_gives_up_with_partition_unavailable(handle):
    def always_down(session):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    with pytest.raises(PartitionUnavailableError) as exc_info:
        handle.run(always_down)
    assert exc_info.value.retryable
    assert exc_info.value.retry_after == 5


def test_run_does_not_retry_other_errors(handle):
    attempts = []

    def broken(session):
        attempts.append(1)
        raise ValueError("bug")

    with pytest.raises(ValueError):
        handle.run(broken)
    assert len(attempts) == 1


def test_run_rolls_back_on_error(handle):
    def write_then_fail(session):
        session.add(Outlet(code="TMP", name="Temporary"))
        session.flush()
        raise ValueError("abort")

    with pytest.raises(ValueError):
        handle.run(write_then_fail)

    with handle.session() as session:
        assert session.exec(select(Outlet)).all() == []
