"""
Partition backend interface

A partition is an isolated namespace for one tenant's data, reachable only
through a restricted role whose secret is held encrypted in the control plane.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from sqlalchemy.engine import Engine


class PartitionBackend(ABC):
    """Storage operations needed to provision and reach tenant partitions"""

    name: str = "abstract"

    @abstractmethod
    def role_exists(self, role: str) -> bool:
        pass

    @abstractmethod
    def partition_exists(self, partition: str) -> bool:
        pass

    @abstractmethod
    def create_role(self, role: str, secret: str) -> None:
        """Create a login role with no privileges beyond its own partition (no-op if it exists)"""
        pass

    @abstractmethod
    def create_partition(self, partition: str, role: str) -> None:
        """Create the partition owned by ``role`` (no-op if it exists)"""
        pass

    @abstractmethod
    def drop_partition(self, partition: str) -> None:
        """Drop the partition and everything in it; absent partitions are ignored"""
        pass

    @abstractmethod
    def drop_role(self, role: str) -> None:
        """Drop the role; absent roles are ignored"""
        pass

    @abstractmethod
    def create_engine(self, partition: str, role: str, secret: str) -> Engine:
        """Open an engine that authenticates as ``role`` and only sees ``partition``"""
        pass

    def prepare(self) -> None:
        """One-time hardening of the shared database, run at startup"""
        pass

    def dispose_engine(self, engine: Engine) -> None:
        engine.dispose()

    def execution_options(self, partition: str) -> Dict[str, Any]:
        """Execution options applied to every connection of a partition engine"""
        return {}
