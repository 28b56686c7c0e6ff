"""
Test configuration for pytest
"""

import pytest
import os
from typing import Generator

# Test environment variables
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["TENANT_SECRET_KEY"] = "test-tenant-secret"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"

from fastapi.testclient import TestClient
from sqlmodel import Session

from brandos.core.config import Settings
from brandos.core.database import create_control_plane_engine, init_db
from brandos.main import create_app
from brandos.partitions.sqlite import SqlitePartitionBackend
from brandos.services.container import Services, build_services

OWNER_EMAIL = "owner@bensu.co"
OWNER_PASSWORD = "Kitchen2024"


@pytest.fixture(scope="function")
def settings() -> Settings:
    """Settings for an isolated in-memory deployment"""
    return Settings(
        DATABASE_URL="sqlite:///:memory:",
        PARTITION_BACKEND="sqlite",
        PARTITION_RETRY_ATTEMPTS=3,
        PARTITION_RETRY_DELAY=0,
        OUTLET_OWNER_BYPASS=False,
    )


@pytest.fixture(scope="function")
def backend() -> SqlitePartitionBackend:
    return SqlitePartitionBackend()


@pytest.fixture(scope="function")
def services(settings, backend) -> Generator[Services, None, None]:
    """Fresh control plane and partition backend for each test"""
    engine = create_control_plane_engine(settings)
    init_db(engine)
    yield build_services(settings, engine=engine, backend=backend)
    engine.dispose()


@pytest.fixture(scope="function")
def db(services) -> Generator[Session, None, None]:
    """Control-plane session"""
    with Session(services.engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture(scope="function")
def owner(services, db):
    """A registered principal with the User role"""
    return services.principals.register(db, OWNER_EMAIL, OWNER_PASSWORD, display_name="Bensu Owner")


@pytest.fixture(scope="function")
def provisioned(services, db, owner):
    """Tenant 'Bensu Kitchen' with its initial Owner credential"""
    return services.provisioner.create_tenant(db, "Bensu Kitchen", owner.id)


@pytest.fixture(scope="function")
def handle(services, provisioned):
    """Scoped handle of the provisioned tenant's partition"""
    return services.router.resolve(provisioned.tenant.partition_identifier)


@pytest.fixture(scope="function")
def client(settings, services) -> Generator[TestClient, None, None]:
    app = create_app(settings, services)
    with TestClient(app) as test_client:
        yield test_client
