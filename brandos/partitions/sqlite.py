"""
SQLite partitions: one database per tenant

Used for local development and the test suite. Each partition is a separate
SQLite database, so there is no shared namespace to cross. Roles are tracked
in-process; opening a partition checks the role owns it and the secret matches.
"""

import hmac
import os
import threading
from typing import Dict, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
import structlog

from brandos.core.security import is_safe_identifier
from brandos.partitions.base import PartitionBackend

logger = structlog.get_logger(__name__)


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class SqlitePartitionBackend(PartitionBackend):
    """Database-per-tenant backend; in memory unless a directory is given"""

    name = "sqlite"

    def __init__(self, directory: Optional[str] = None):
        self._directory = directory
        self._roles: Dict[str, str] = {}
        self._owners: Dict[str, str] = {}
        self._memory_engines: Dict[str, Engine] = {}
        self._lock = threading.Lock()

        if directory:
            os.makedirs(directory, exist_ok=True)

    @property
    def in_memory(self) -> bool:
        return self._directory is None

    def _path(self, partition: str) -> str:
        return os.path.join(self._directory, f"{partition}.sqlite3")

    def role_exists(self, role: str) -> bool:
        return role in self._roles

    def partition_exists(self, partition: str) -> bool:
        if self.in_memory:
            return partition in self._memory_engines
        return os.path.exists(self._path(partition))

    def create_role(self, role: str, secret: str) -> None:
        if not is_safe_identifier(role):
            raise ValueError(f"Unsafe identifier: {role!r}")
        with self._lock:
            self._roles.setdefault(role, secret)

    def create_partition(self, partition: str, role: str) -> None:
        if not is_safe_identifier(partition):
            raise ValueError(f"Unsafe identifier: {partition!r}")
        with self._lock:
            if role not in self._roles:
                raise PermissionError(f"Role {role} does not exist")
            self._owners.setdefault(partition, role)
            if self.in_memory:
                if partition not in self._memory_engines:
                    self._memory_engines[partition] = self._new_engine("sqlite://", StaticPool)
            elif not os.path.exists(self._path(partition)):
                # Touch the file so partition_exists reflects the new partition
                open(self._path(partition), "a").close()
        logger.info("Partition database created", partition=partition, role=role)

    def drop_partition(self, partition: str) -> None:
        with self._lock:
            self._owners.pop(partition, None)
            if self.in_memory:
                engine = self._memory_engines.pop(partition, None)
                if engine is not None:
                    engine.dispose()
            elif os.path.exists(self._path(partition)):
                os.remove(self._path(partition))
        logger.info("Partition database dropped", partition=partition)

    def drop_role(self, role: str) -> None:
        with self._lock:
            self._roles.pop(role, None)
            for partition, owner in list(self._owners.items()):
                if owner == role:
                    del self._owners[partition]

    def create_engine(self, partition: str, role: str, secret: str) -> Engine:
        expected = self._roles.get(role)
        if expected is None or not hmac.compare_digest(expected, secret):
            raise PermissionError(f"Authentication failed for role {role}")
        if self._owners.get(partition) != role:
            raise PermissionError(f"Role {role} has no access to partition {partition}")

        if self.in_memory:
            engine = self._memory_engines.get(partition)
            if engine is None:
                raise PermissionError(f"Partition {partition} does not exist")
            return engine
        return self._new_engine(f"sqlite:///{self._path(partition)}")

    def dispose_engine(self, engine: Engine) -> None:
        # In-memory partitions live exactly as long as their engine
        if not self.in_memory:
            engine.dispose()

    @staticmethod
    def _new_engine(url: str, poolclass=None) -> Engine:
        kwargs = {"connect_args": {"check_same_thread": False}}
        if poolclass is not None:
            kwargs["poolclass"] = poolclass
        engine = create_engine(url, future=True, **kwargs)
        event.listen(engine, "connect", _enable_foreign_keys)
        return engine
