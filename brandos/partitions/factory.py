"""
Partition backend factory
"""

from sqlalchemy.engine import Engine
import structlog

from brandos.core.config import Settings
from brandos.partitions.base import PartitionBackend
from brandos.partitions.postgres import PostgresPartitionBackend
from brandos.partitions.sqlite import SqlitePartitionBackend

logger = structlog.get_logger(__name__)


def create_partition_backend(settings: Settings, admin_engine: Engine) -> PartitionBackend:
    """
    Build the partition backend named by PARTITION_BACKEND.

    "auto" follows the dialect of the control-plane engine.
    """
    backend_type = settings.PARTITION_BACKEND.lower()
    if backend_type == "auto":
        backend_type = "postgres" if admin_engine.dialect.name == "postgresql" else admin_engine.dialect.name

    if backend_type == "postgres":
        backend = PostgresPartitionBackend(
            admin_engine,
            pool_size=settings.PARTITION_POOL_SIZE,
            pool_timeout=settings.PARTITION_POOL_TIMEOUT,
        )
    elif backend_type == "sqlite":
        backend = SqlitePartitionBackend(settings.PARTITION_SQLITE_PATH)
    else:
        raise ValueError(f"Unsupported partition backend: {settings.PARTITION_BACKEND}")

    logger.info("Partition backend selected", backend=backend.name)
    return backend
