"""
Connection router - resolves a partition identifier to a scoped data handle

Partition configuration (role and encrypted secret) is read from the control
plane once and cached. Engines are built lazily, one per partition, under a
lock so concurrent first requests share a single pool. Cached lookups take no
lock.
"""

from contextlib import contextmanager
from dataclasses import dataclass
import threading
import time
from typing import Callable, Dict, Iterator, Optional, TypeVar
import uuid

from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, SQLModel, select
import structlog

from brandos.core.config import Settings
from brandos.core.encryption import SecretCipher
from brandos.core.errors import NotFoundError, PartitionUnavailableError
from brandos.models import PARTITION_TABLES, Tenant
from brandos.partitions.base import PartitionBackend

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class PartitionConfig:
    """Control-plane facts needed to reach a partition"""
    tenant_id: uuid.UUID
    partition: str
    role: str
    encrypted_secret: str
    is_active: bool

    @classmethod
    def from_tenant(cls, tenant: Tenant) -> "PartitionConfig":
        return cls(
            tenant_id=tenant.id,
            partition=tenant.partition_identifier,
            role=tenant.partition_role,
            encrypted_secret=tenant.encrypted_role_secret,
            is_active=tenant.is_active,
        )


class ScopedHandle:
    """
    Data access bound to exactly one partition.

    Every session opened here authenticates as the partition role, so the
    handle cannot reach another tenant's data whatever the caller asks for.
    """

    def __init__(
        self,
        config: PartitionConfig,
        engine: Engine,
        execution_options: Optional[dict] = None,
        retry_attempts: int = 3,
        retry_delay: float = 0.2,
    ):
        self._config = config
        self._engine = engine.execution_options(**execution_options) if execution_options else engine
        self._retry_attempts = max(1, retry_attempts)
        self._retry_delay = retry_delay

    @property
    def partition(self) -> str:
        return self._config.partition

    @property
    def tenant_id(self) -> uuid.UUID:
        return self._config.tenant_id

    @contextmanager
    def session(self) -> Iterator[Session]:
        with Session(self._engine, expire_on_commit=False) as session:
            yield session

    def run(self, fn: Callable[[Session], T]) -> T:
        """
        Run ``fn`` in a transaction and commit.

        Connection-level failures are retried with exponential backoff; when
        retries are exhausted a PartitionUnavailableError is raised.
        """
        attempt = 0
        while True:
            try:
                with self.session() as session:
                    result = fn(session)
                    session.commit()
                    return result
            except OperationalError as exc:
                attempt += 1
                if attempt >= self._retry_attempts:
                    logger.error(
                        "Partition unavailable",
                        partition=self.partition,
                        attempts=attempt,
                        error=str(exc.orig),
                    )
                    raise PartitionUnavailableError(
                        "Tenant partition temporarily unavailable", retry_after=5
                    ) from exc
                delay = self._retry_delay * (2 ** (attempt - 1))
                logger.warning(
                    "Partition operation failed, retrying",
                    partition=self.partition,
                    attempt=attempt,
                    delay=delay,
                )
                time.sleep(delay)

    def create_schema(self) -> None:
        """Create the partition tables; existing tables are left alone"""

        def _create(session: Session) -> None:
            SQLModel.metadata.create_all(session.connection(), tables=PARTITION_TABLES)

        self.run(_create)

    def __repr__(self) -> str:
        return f"<ScopedHandle partition={self.partition}>"


class ConnectionRouter:
    """Routes partition identifiers to scoped handles"""

    def __init__(
        self,
        control_engine: Engine,
        backend: PartitionBackend,
        cipher: SecretCipher,
        settings: Settings,
    ):
        self._control_engine = control_engine
        self._backend = backend
        self._cipher = cipher
        self._retry_attempts = settings.PARTITION_RETRY_ATTEMPTS
        self._retry_delay = settings.PARTITION_RETRY_DELAY
        self._configs: Dict[str, PartitionConfig] = {}
        self._engines: Dict[str, Engine] = {}
        self._lock = threading.Lock()

    def resolve(self, partition: str) -> ScopedHandle:
        """
        Resolve a partition identifier to a handle.

        Raises NotFoundError when no active tenant owns the partition and
        PartitionUnavailableError when it exists but cannot be reached.
        """
        config = self._configs.get(partition) or self._load_config(partition)
        if not config.is_active:
            raise NotFoundError("Tenant not found")

        engine = self._engines.get(partition) or self._build_engine(config)
        return ScopedHandle(
            config,
            engine,
            self._backend.execution_options(partition),
            retry_attempts=self._retry_attempts,
            retry_delay=self._retry_delay,
        )

    # Cached configs are never refreshed on their own; anything that changes a
    # tenant row (status, role secret) must evict the partition afterwards.

    def prime(self, tenant: Tenant) -> None:
        """Cache configuration for a tenant that is not committed yet"""
        self._configs[tenant.partition_identifier] = PartitionConfig.from_tenant(tenant)

    def evict(self, partition: str) -> None:
        """Forget a partition and close its pool"""
        with self._lock:
            self._configs.pop(partition, None)
            engine = self._engines.pop(partition, None)
        if engine is not None:
            self._backend.dispose_engine(engine)
            logger.info("Partition pool closed", partition=partition)

    def is_cached(self, partition: str) -> bool:
        return partition in self._engines

    def ping(self, partition: str) -> bool:
        """True when the partition answers a trivial query"""
        handle = self.resolve(partition)
        try:
            with handle.session() as session:
                session.connection()
            return True
        except OperationalError:
            return False

    def _load_config(self, partition: str) -> PartitionConfig:
        try:
            with Session(self._control_engine) as session:
                tenant = session.exec(
                    select(Tenant).where(Tenant.partition_identifier == partition)
                ).first()
        except OperationalError as exc:
            logger.error("Control plane unavailable", partition=partition, error=str(exc.orig))
            raise PartitionUnavailableError(retry_after=5) from exc

        if tenant is None:
            raise NotFoundError("Tenant not found")

        config = PartitionConfig.from_tenant(tenant)
        self._configs[partition] = config
        return config

    def _build_engine(self, config: PartitionConfig) -> Engine:
        with self._lock:
            engine = self._engines.get(config.partition)
            if engine is not None:
                return engine

            secret = self._cipher.decrypt(config.encrypted_secret)
            try:
                engine = self._backend.create_engine(config.partition, config.role, secret)
            except (OperationalError, PermissionError) as exc:
                logger.error("Could not open partition", partition=config.partition, error=str(exc))
                raise PartitionUnavailableError(retry_after=5) from exc

            self._engines[config.partition] = engine
            logger.info("Partition pool opened", partition=config.partition)
            return engine
