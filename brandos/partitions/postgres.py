"""
PostgreSQL partitions: one schema per tenant, owned by a dedicated login role
"""

from typing import Any, Dict

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
import structlog

from brandos.core.security import is_safe_identifier
from brandos.partitions.base import PartitionBackend

logger = structlog.get_logger(__name__)


def quote_identifier(identifier: str) -> str:
    """Quote a generated identifier for DDL; refuses anything not produced by create_safe_identifier"""
    if not is_safe_identifier(identifier):
        raise ValueError(f"Unsafe identifier: {identifier!r}")
    return f'"{identifier}"'


class PostgresPartitionBackend(PartitionBackend):
    """Schema-per-tenant backend driven through the control-plane (admin) engine"""

    name = "postgres"

    def __init__(self, admin_engine: Engine, pool_size: int = 5, pool_timeout: int = 10):
        self._admin_engine = admin_engine
        self._pool_size = pool_size
        self._pool_timeout = pool_timeout

    def prepare(self) -> None:
        # Before PostgreSQL 15 every role may create objects in public through PUBLIC
        with self._admin_engine.begin() as conn:
            conn.execute(text("REVOKE CREATE ON SCHEMA public FROM PUBLIC"))
        logger.info("Public schema locked down")

    def role_exists(self, role: str) -> bool:
        with self._admin_engine.connect() as conn:
            row = conn.execute(
                text("SELECT 1 FROM pg_roles WHERE rolname = :role"), {"role": role}
            ).first()
        return row is not None

    def partition_exists(self, partition: str) -> bool:
        with self._admin_engine.connect() as conn:
            row = conn.execute(
                text("SELECT 1 FROM information_schema.schemata WHERE schema_name = :schema"),
                {"schema": partition},
            ).first()
        return row is not None

    def create_role(self, role: str, secret: str) -> None:
        quoted = quote_identifier(role)
        if self.role_exists(role):
            logger.info("Partition role already exists", role=role)
            return

        with self._admin_engine.begin() as conn:
            conn.execute(
                text(
                    f"CREATE ROLE {quoted} WITH LOGIN PASSWORD :secret "
                    "NOSUPERUSER NOCREATEDB NOCREATEROLE NOINHERIT NOREPLICATION"
                ),
                {"secret": secret},
            )
            conn.execute(text(f"REVOKE ALL ON SCHEMA public FROM {quoted}"))
        logger.info("Partition role created", role=role)

    def create_partition(self, partition: str, role: str) -> None:
        schema = quote_identifier(partition)
        owner = quote_identifier(role)

        with self._admin_engine.begin() as conn:
            conn.execute(text(f"CREATE SCHEMA IF NOT EXISTS {schema} AUTHORIZATION {owner}"))
            conn.execute(text(f"GRANT ALL ON SCHEMA {schema} TO {owner}"))
            conn.execute(text(f"ALTER ROLE {owner} SET search_path TO {schema}"))
        logger.info("Partition schema created", partition=partition, role=role)

    def drop_partition(self, partition: str) -> None:
        schema = quote_identifier(partition)
        with self._admin_engine.begin() as conn:
            conn.execute(text(f"DROP SCHEMA IF EXISTS {schema} CASCADE"))
        logger.info("Partition schema dropped", partition=partition)

    def drop_role(self, role: str) -> None:
        quoted = quote_identifier(role)
        if not self.role_exists(role):
            return

        with self._admin_engine.begin() as conn:
            conn.execute(text(f"REASSIGN OWNED BY {quoted} TO CURRENT_USER"))
            conn.execute(text(f"DROP OWNED BY {quoted}"))
            conn.execute(text(f"DROP ROLE IF EXISTS {quoted}"))
        logger.info("Partition role dropped", role=role)

    def create_engine(self, partition: str, role: str, secret: str) -> Engine:
        quote_identifier(partition)
        url = self._admin_engine.url.set(username=role, password=secret)
        return create_engine(
            url,
            future=True,
            pool_pre_ping=True,
            pool_size=self._pool_size,
            max_overflow=self._pool_size,
            pool_timeout=self._pool_timeout,
            connect_args={"options": f"-csearch_path={partition}"},
        )

    def execution_options(self, partition: str) -> Dict[str, Any]:
        # Unqualified partition tables resolve to the tenant schema
        return {"schema_translate_map": {None: partition}}
