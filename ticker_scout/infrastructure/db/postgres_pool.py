"""
Bounded PostgreSQL connection pool shared by the catalog and the vector index.

Wraps psycopg2's ThreadedConnectionPool with the limits the request path
needs: a minimum and maximum number of connections, a connect timeout, and
recycling of connections that sat idle for too long. TLS is enforced for
non-local hosts.

Pool exhaustion and connect failures surface as BackendConnectionError and
are never retried here.
"""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional

import psycopg2
import psycopg2.extras
import psycopg2.pool

from ticker_scout.domain.errors import BackendConnectionError
from ticker_scout.infrastructure.db.connection_url import requires_tls

logger = logging.getLogger(__name__)

DEFAULT_MIN_CONNECTIONS = 2
DEFAULT_MAX_CONNECTIONS = 10
DEFAULT_CONNECT_TIMEOUT_SECONDS = 3
DEFAULT_IDLE_TIMEOUT_SECONDS = 60.0


class PostgresConnectionPool:
    """
    Thread-safe pool of psycopg2 connections.

    Usage:
        pool = PostgresConnectionPool("postgresql://user:pw@db.example.com/app")
        with pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
        pool.close()

    The `connection()` context manager commits on success, rolls back on
    error, and always returns the connection to the pool.
    """

    def __init__(
        self,
        database_url: str,
        min_connections: int = DEFAULT_MIN_CONNECTIONS,
        max_connections: int = DEFAULT_MAX_CONNECTIONS,
        connect_timeout: int = DEFAULT_CONNECT_TIMEOUT_SECONDS,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT_SECONDS,
        pool_factory: Optional[Callable[..., Any]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Create the pool and open `min_connections` connections.

        Args:
            database_url: postgresql:// connection string
            min_connections: Connections kept open at all times
            max_connections: Upper bound on concurrent connections
            connect_timeout: Seconds to wait for a new connection
            idle_timeout: Seconds after which an idle connection is recycled
            pool_factory: Pool constructor (defaults to ThreadedConnectionPool;
                          injectable for tests)
            clock: Monotonic clock (injectable for tests)

        Raises:
            BackendConnectionError: If the initial connections cannot be opened
        """
        if min_connections < 0 or max_connections < max(1, min_connections):
            raise ValueError(
                f"Invalid pool bounds: min={min_connections}, max={max_connections}"
            )

        self._idle_timeout = idle_timeout
        self._clock = clock
        self._returned_at: Dict[int, float] = {}
        self._lock = threading.Lock()
        self._closed = False

        connect_kwargs: Dict[str, Any] = {"connect_timeout": connect_timeout}
        if requires_tls(database_url):
            connect_kwargs["sslmode"] = "require"

        factory = pool_factory or psycopg2.pool.ThreadedConnectionPool
        try:
            self._pool = factory(
                min_connections, max_connections, database_url, **connect_kwargs
            )
        except psycopg2.Error as e:
            raise BackendConnectionError(f"Failed to connect to PostgreSQL: {e}") from e

        logger.info(
            f"Initialized PostgreSQL pool (min={min_connections}, max={max_connections}, "
            f"tls={'sslmode' in connect_kwargs})"
        )

    def _checkout(self) -> Any:
        try:
            conn = self._pool.getconn()
        except psycopg2.pool.PoolError as e:
            raise BackendConnectionError(f"Connection pool exhausted: {e}") from e
        except psycopg2.Error as e:
            raise BackendConnectionError(f"Failed to connect to PostgreSQL: {e}") from e

        with self._lock:
            returned_at = self._returned_at.pop(id(conn), None)

        idle_for = None if returned_at is None else self._clock() - returned_at
        if conn.closed or (idle_for is not None and idle_for > self._idle_timeout):
            logger.debug("Recycling stale pooled connection")
            self._pool.putconn(conn, close=True)
            return self._checkout()

        return conn

    def _checkin(self, conn: Any, discard: bool = False) -> None:
        if not discard:
            with self._lock:
                self._returned_at[id(conn)] = self._clock()
        self._pool.putconn(conn, close=discard)

    @contextmanager
    def connection(self) -> Iterator[Any]:
        """
        Borrow a connection for one unit of work.

        Raises:
            BackendConnectionError: On exhaustion, connect failure, or a
                                    connection dropped mid-operation
        """
        if self._closed:
            raise BackendConnectionError("Connection pool is closed")

        conn = self._checkout()
        discard = False
        try:
            yield conn
            conn.commit()
        except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
            discard = True
            raise BackendConnectionError(f"PostgreSQL connection failed: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            self._checkin(conn, discard=discard or bool(conn.closed))

    @contextmanager
    def dict_cursor(self) -> Iterator[Any]:
        """Borrow a connection and yield a RealDictCursor on it."""
        with self.connection() as conn:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                yield cur

    def close(self) -> None:
        """Close every pooled connection. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._pool.closeall()
        with self._lock:
            self._returned_at.clear()
        logger.info("Closed PostgreSQL pool")
