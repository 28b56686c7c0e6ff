"""
Tenant provisioning

Creating a tenant spans two databases: DDL on the partition backend and a row
in the control plane. DDL cannot join the control-plane transaction, so every
step that succeeded is undone by hand when a later one fails.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple
import uuid

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
import structlog

from brandos.core.config import Settings
from brandos.core.encryption import SecretCipher
from brandos.core.errors import (
    NotFoundError,
    ProvisioningError,
    TenantNameConflictError,
    ValidationError,
)
from brandos.core.security import (
    LOWER_ALPHANUMERIC,
    MAX_IDENTIFIER_LENGTH,
    create_safe_identifier,
    generate_random_chars,
)
from brandos.models import Principal, Tenant
from brandos.partitions.base import PartitionBackend
from brandos.services.brand_info import BrandInfoService
from brandos.services.connection_router import ConnectionRouter
from brandos.services.credentials import CredentialService, IssuedCredential

logger = structlog.get_logger(__name__)

ROLE_SUFFIX = "_role"
ROLE_SECRET_LENGTH = 40
IDENTIFIER_ATTEMPTS = 10
MAX_TENANT_NAME_LENGTH = 200


@dataclass(frozen=True)
class ProvisionedTenant:
    """A newly created tenant and its initial Owner credential"""
    tenant: Tenant
    credential: IssuedCredential


class TenantProvisioner:
    """Creates and destroys tenants together with their partitions"""

    def __init__(
        self,
        backend: PartitionBackend,
        router: ConnectionRouter,
        credentials: CredentialService,
        brand_info: BrandInfoService,
        cipher: SecretCipher,
        settings: Settings,
    ):
        self._backend = backend
        self._router = router
        self._credentials = credentials
        self._brand_info = brand_info
        self._cipher = cipher
        self._suffix_length = settings.PARTITION_SUFFIX_LENGTH

    def create_tenant(self, session: Session, name: str, owner_id: uuid.UUID) -> ProvisionedTenant:
        """
        Provision a tenant: role, partition, schema, initial credential and
        brand info, then the control-plane row.

        Raises ValidationError for a bad name, NotFoundError for an unknown
        owner, TenantNameConflictError when the name is taken and
        ProvisioningError when any provisioning step fails (nothing is left
        behind in that case).
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Tenant name is required")
        if len(name) > MAX_TENANT_NAME_LENGTH:
            raise ValidationError(f"Tenant name must be at most {MAX_TENANT_NAME_LENGTH} characters")

        owner = session.get(Principal, owner_id)
        if owner is None or not owner.is_active:
            raise NotFoundError("Owner not found")

        if self._name_taken(session, name):
            raise TenantNameConflictError(f"Tenant name '{name}' is already registered")

        partition, role = self.derive_identifiers(session, name)
        role_secret = generate_random_chars(ROLE_SECRET_LENGTH)
        tenant = Tenant(
            name=name,
            owner_id=owner.id,
            partition_identifier=partition,
            partition_role=role,
            encrypted_role_secret=self._cipher.encrypt(role_secret),
        )

        log = logger.bind(tenant_name=name, partition=partition)
        log.info("Provisioning tenant", owner_id=str(owner.id))

        try:
            self._backend.create_role(role, role_secret)
            self._backend.create_partition(partition, role)

            self._router.prime(tenant)
            handle = self._router.resolve(partition)
            handle.create_schema()
            credential = self._credentials.issue_initial_credential(handle, display_name=owner.email)
            self._brand_info.seed(handle, name)

            session.add(tenant)
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            self._cleanup(partition, role)
            if self._name_taken(session, name):
                log.warning("Tenant name taken during provisioning")
                raise TenantNameConflictError(f"Tenant name '{name}' is already registered") from exc
            log.error("Provisioning failed", error=str(exc))
            raise ProvisioningError(f"Provisioning of tenant '{name}' failed, please retry", retry_after=5) from exc
        except Exception as exc:
            session.rollback()
            log.error("Provisioning failed", error=str(exc), error_type=type(exc).__name__)
            self._cleanup(partition, role)
            raise ProvisioningError(f"Provisioning of tenant '{name}' failed, please retry", retry_after=5) from exc

        session.refresh(tenant)
        log.info("Tenant provisioned", tenant_id=str(tenant.id))
        return ProvisionedTenant(tenant=tenant, credential=credential)

    def derive_identifiers(self, session: Session, name: str) -> Tuple[str, str]:
        """
        Partition and role identifiers: the sanitized name plus a random
        suffix, re-rolled until neither exists anywhere.
        """
        base = create_safe_identifier(name)
        max_base = MAX_IDENTIFIER_LENGTH - len(ROLE_SUFFIX) - self._suffix_length - 1
        base = base[:max_base].rstrip("_")

        for _ in range(IDENTIFIER_ATTEMPTS):
            suffix = generate_random_chars(self._suffix_length, LOWER_ALPHANUMERIC)
            partition = f"{base}_{suffix}"
            role = f"{partition}{ROLE_SUFFIX}"
            if self._identifier_free(session, partition, role):
                return partition, role

        raise ProvisioningError("Could not allocate a unique partition identifier", retry_after=1)

    def destroy_tenant(self, session: Session, tenant_id: uuid.UUID) -> bool:
        """
        Drop a tenant's partition, role and registry row.

        Idempotent: returns False when the tenant does not exist.
        """
        tenant = session.get(Tenant, tenant_id)
        if tenant is None:
            logger.info("Tenant already destroyed", tenant_id=str(tenant_id))
            return False

        partition, role = tenant.partition_identifier, tenant.partition_role
        self._router.evict(partition)
        self._backend.drop_partition(partition)
        self._backend.drop_role(role)

        session.delete(tenant)
        session.commit()
        logger.info("Tenant destroyed", tenant_id=str(tenant_id), partition=partition)
        return True

    def destroy_tenants_owned_by(self, session: Session, owner_id: uuid.UUID) -> int:
        """Destroy every tenant of a principal; returns how many were removed"""
        tenant_ids = [t.id for t in self.list_tenants(session, owner_id=owner_id, limit=None)]
        return sum(1 for tenant_id in tenant_ids if self.destroy_tenant(session, tenant_id))

    def set_tenant_active(self, session: Session, tenant_id: uuid.UUID, is_active: bool) -> Tenant:
        """Suspend or reinstate a tenant; its cached router entry is dropped"""
        tenant = self.get_tenant(session, tenant_id)
        tenant.is_active = is_active
        tenant.updated_at = datetime.utcnow()
        session.add(tenant)
        session.commit()
        session.refresh(tenant)
        self._router.evict(tenant.partition_identifier)
        logger.info("Tenant status changed", tenant_id=str(tenant_id), is_active=is_active)
        return tenant

    def get_tenant(self, session: Session, tenant_id: uuid.UUID) -> Tenant:
        tenant = session.get(Tenant, tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant not found")
        return tenant

    def list_tenants(
        self,
        session: Session,
        owner_id: Optional[uuid.UUID] = None,
        skip: int = 0,
        limit: Optional[int] = 100,
    ) -> List[Tenant]:
        statement = select(Tenant).order_by(Tenant.created_at)
        if owner_id is not None:
            statement = statement.where(Tenant.owner_id == owner_id)
        return list(session.exec(statement.offset(skip).limit(limit)).all())

    def _name_taken(self, session: Session, name: str) -> bool:
        return session.exec(select(Tenant.id).where(Tenant.name == name)).first() is not None

    def _identifier_free(self, session: Session, partition: str, role: str) -> bool:
        registered = session.exec(
            select(Tenant.id).where(
                (Tenant.partition_identifier == partition) | (Tenant.partition_role == role)
            )
        ).first()
        if registered is not None:
            return False
        return not self._backend.partition_exists(partition) and not self._backend.role_exists(role)

    def _cleanup(self, partition: str, role: str) -> None:
        """Best-effort undo of partial provisioning"""
        self._router.evict(partition)
        for step, action in (
            ("drop_partition", lambda: self._backend.drop_partition(partition)),
            ("drop_role", lambda: self._backend.drop_role(role)),
        ):
            try:
                action()
            except Exception as exc:
                logger.warning("Provisioning cleanup step failed", step=step, partition=partition, error=str(exc))
