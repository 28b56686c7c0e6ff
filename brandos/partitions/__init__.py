from brandos.partitions.base import PartitionBackend
from brandos.partitions.postgres import PostgresPartitionBackend
from brandos.partitions.sqlite import SqlitePartitionBackend
from brandos.partitions.factory import create_partition_backend

__all__ = [
    "PartitionBackend",
    "PostgresPartitionBackend",
    "SqlitePartitionBackend",
    "create_partition_backend",
]
