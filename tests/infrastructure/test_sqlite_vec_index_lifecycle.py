"""
Connection lifecycle tests for SqliteVecIndex.

These replace the extension-loading connection with a plain SQLite
connection, so they run even where sqlite3 cannot load extensions.
"""

import sqlite3

import pytest

pytest.importorskip("sqlite_vec")

from ticker_scout.domain.errors import InitializationError
from ticker_scout.domain.value_objects import SearchFilters
from ticker_scout.infrastructure.search.sqlite_vec_index import SqliteVecIndex


class TrackingConnection:
    """Wraps a real in-memory connection and records close()."""

    def __init__(self):
        self._conn = sqlite3.connect(":memory:")
        self.closed = False

    def __enter__(self):
        return self._conn.__enter__()

    def __exit__(self, *exc):
        return self._conn.__exit__(*exc)

    def execute(self, sql, params=()):
        return self._conn.execute(sql, params)

    def close(self):
        self.closed = True
        self._conn.close()


def test_connection_closed_when_self_test_fails(tmp_path):
    conn = TrackingConnection()
    index = SqliteVecIndex(tmp_path / "catalog.db")
    index._get_connection = lambda: conn

    def failing_self_test(_conn):
        raise InitializationError("Vector extension verification failed")

    index._self_test = failing_self_test

    with pytest.raises(InitializationError, match="verification failed"):
        index.initialize()
    assert conn.closed is True


def test_connection_closed_after_successful_initialize(tmp_path):
    conn = TrackingConnection()
    index = SqliteVecIndex(tmp_path / "catalog.db")
    index._get_connection = lambda: conn
    index._self_test = lambda _conn: None

    index.initialize()

    assert conn.closed is True


def test_filtered_search_raises_not_implemented(tmp_path):
    index = SqliteVecIndex(tmp_path / "catalog.db")

    assert index.supports_filtered_search is False
    with pytest.raises(NotImplementedError):
        index.search_similar_with_filters([0.0] * 1536, 5, SearchFilters())
