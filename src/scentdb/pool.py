"""
Process-wide registry of connection pools keyed by connection parameters.
"""

from __future__ import annotations

from threading import RLock
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Protocol

from .config import get_settings
from .errors import DatabaseError
from .utils import get_logger

if TYPE_CHECKING:
    from .adapters.base import ConnectionParameters


class ConnectionPool(Protocol):
    """
    Backend pool lending clients to connectors.
    """

    def borrow(self) -> Any:
        """
        Lend one client. The caller owns it until :meth:`release`.
        """

    def release(self, client: Any, *, error_occurred: bool = False) -> None:
        """
        Return a borrowed client; clients that saw an error are discarded.
        """

    def close(self) -> None:
        """
        Close every client held by the pool.
        """


PoolFactory = Callable[["ConnectionParameters", int], ConnectionPool]


class PoolRegistry:
    """
    Maps the canonical serialization of connection parameters to a shared
    pool. Pools are created lazily on first use and closed by :meth:`end`.
    """

    def __init__(self) -> None:
        self._pools: Optional[Dict[str, ConnectionPool]] = None
        self._lock = RLock()
        self.maximum_number_of_connections = get_settings().maximum_number_of_connections
        self.logger = get_logger("pool")

    @property
    def started(self) -> bool:
        with self._lock:
            return self._pools is not None

    def start(self, maximum_number_of_connections: int | None = None) -> None:
        """
        Open the registry. Starting an already started registry keeps its pools.
        """
        with self._lock:
            if self._pools is not None:
                return
            if maximum_number_of_connections is not None:
                self.maximum_number_of_connections = maximum_number_of_connections
            self._pools = {}
            self.logger.info(
                "Pool registry started (maximum_number_of_connections=%s)",
                self.maximum_number_of_connections,
            )

    def _require_pools(self) -> Dict[str, ConnectionPool]:
        if self._pools is None:
            raise DatabaseError("Pool has not been started.")
        return self._pools

    def get(self, parameters: "ConnectionParameters") -> Optional[ConnectionPool]:
        with self._lock:
            return self._require_pools().get(parameters.serialize())

    def get_or_create(self, parameters: "ConnectionParameters", factory: PoolFactory) -> ConnectionPool:
        key = parameters.serialize()
        with self._lock:
            pools = self._require_pools()
            pool = pools.get(key)
            if pool is None:
                pool = factory(parameters, self.maximum_number_of_connections)
                pools[key] = pool
                self.logger.info("Created connection pool for %s", parameters.describe())
            return pool

    def __len__(self) -> int:
        with self._lock:
            return len(self._pools or {})

    def end(self) -> None:
        """
        Close every registered pool. All pools are attempted; the first
        failure is raised afterwards as :class:`DatabaseError`.
        """
        with self._lock:
            if self._pools is None:
                return
            failure: Exception | None = None
            for key, pool in list(self._pools.items()):
                try:
                    pool.close()
                except Exception as exc:
                    self.logger.warning("Failed to close pool %s: %s", key, exc)
                    if failure is None:
                        failure = exc
                finally:
                    del self._pools[key]
            self._pools = None
            self.logger.info("Pool registry ended")
            if failure is not None:
                if isinstance(failure, DatabaseError):
                    raise failure
                raise DatabaseError(str(failure)) from failure


registry = PoolRegistry()


def pool_start(maximum_number_of_connections: int | None = None) -> None:
    registry.start(maximum_number_of_connections)


def pool_end() -> None:
    registry.end()
