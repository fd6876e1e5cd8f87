"""
Tests for PostgresConnectionPool.

The psycopg2 pool is replaced by a fake factory so the wrapper's behavior
(TLS flag, commit/rollback, error translation, idle recycling) can be
verified without a database server.
"""

from typing import List

import psycopg2
import psycopg2.pool
import pytest

from ticker_scout.domain.errors import BackendConnectionError
from ticker_scout.infrastructure.db.postgres_pool import PostgresConnectionPool


class FakeConnection:
    def __init__(self, number: int):
        self.number = number
        self.closed = 0
        self.commits = 0
        self.rollbacks = 0

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1


class FakeThreadedPool:
    """Stands in for psycopg2.pool.ThreadedConnectionPool."""

    def __init__(self, minconn, maxconn, dsn, **kwargs):
        self.minconn = minconn
        self.maxconn = maxconn
        self.dsn = dsn
        self.kwargs = kwargs
        self.idle: List[FakeConnection] = []
        self.created = 0
        self.in_use = 0
        self.discarded: List[FakeConnection] = []
        self.closed_all = False

    def getconn(self):
        if self.in_use >= self.maxconn:
            raise psycopg2.pool.PoolError("connection pool exhausted")
        self.in_use += 1
        if self.idle:
            return self.idle.pop()
        self.created += 1
        return FakeConnection(self.created)

    def putconn(self, conn, close=False):
        self.in_use -= 1
        if close:
            conn.closed = 1
            self.discarded.append(conn)
        else:
            self.idle.append(conn)

    def closeall(self):
        self.closed_all = True


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def make_pool(url="postgresql://user:pw@localhost:5432/app", **kwargs):
    created = {}

    def factory(*args, **factory_kwargs):
        created["pool"] = FakeThreadedPool(*args, **factory_kwargs)
        return created["pool"]

    pool = PostgresConnectionPool(url, pool_factory=factory, **kwargs)
    return pool, created["pool"]


class TestConstruction:
    def test_defaults_passed_to_factory(self):
        _, inner = make_pool()

        assert (inner.minconn, inner.maxconn) == (2, 10)
        assert inner.kwargs == {"connect_timeout": 3}

    def test_remote_host_requires_tls(self):
        _, inner = make_pool("postgresql://user:pw@db.example.com:5432/app")

        assert inner.kwargs["sslmode"] == "require"

    def test_explicit_sslmode_left_alone(self):
        _, inner = make_pool("postgresql://user:pw@db.example.com/app?sslmode=verify-full")

        assert "sslmode" not in inner.kwargs

    def test_connect_failure_raises_backend_error(self):
        def failing_factory(*args, **kwargs):
            raise psycopg2.OperationalError("timeout expired")

        with pytest.raises(BackendConnectionError, match="timeout expired"):
            PostgresConnectionPool("postgresql://localhost/app", pool_factory=failing_factory)

    def test_invalid_bounds(self):
        with pytest.raises(ValueError):
            make_pool(min_connections=5, max_connections=2)


class TestConnection:
    def test_commit_on_success(self):
        pool, inner = make_pool()

        with pool.connection() as conn:
            pass

        assert conn.commits == 1
        assert inner.in_use == 0

    def test_rollback_on_error(self):
        pool, inner = make_pool()

        with pytest.raises(KeyError):
            with pool.connection() as conn:
                raise KeyError("boom")

        assert conn.rollbacks == 1
        assert conn.commits == 0
        assert inner.idle == [conn]

    def test_operational_error_discards_connection(self):
        pool, inner = make_pool()

        with pytest.raises(BackendConnectionError):
            with pool.connection() as conn:
                raise psycopg2.OperationalError("server closed the connection")

        assert inner.discarded == [conn]

    def test_exhaustion_raises_backend_error(self):
        pool, _ = make_pool(min_connections=1, max_connections=1)

        with pool.connection():
            with pytest.raises(BackendConnectionError, match="exhausted"):
                with pool.connection():
                    pass

    def test_backend_error_is_a_connection_error(self):
        pool, _ = make_pool(min_connections=1, max_connections=1)

        with pool.connection():
            with pytest.raises(ConnectionError):
                with pool.connection():
                    pass


class TestIdleRecycling:
    def test_idle_connection_recycled(self):
        clock = FakeClock()
        pool, inner = make_pool(clock=clock, idle_timeout=60.0)

        with pool.connection() as first:
            pass
        clock.now = 61.0
        with pool.connection() as second:
            pass

        assert first is not second
        assert inner.discarded == [first]

    def test_recent_connection_reused(self):
        clock = FakeClock()
        pool, inner = make_pool(clock=clock, idle_timeout=60.0)

        with pool.connection() as first:
            pass
        clock.now = 30.0
        with pool.connection() as second:
            pass

        assert first is second
        assert inner.discarded == []


def test_close_is_idempotent():
    pool, inner = make_pool()

    pool.close()
    pool.close()

    assert inner.closed_all is True
    with pytest.raises(BackendConnectionError, match="closed"):
        with pool.connection():
            pass
