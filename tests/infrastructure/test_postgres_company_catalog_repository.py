"""
Tests for PostgresCompanyCatalogRepository against a recording fake pool.
"""

from contextlib import contextmanager
from typing import Any, List, Tuple

import pytest

from ticker_scout.domain.value_objects import SearchFilters
from ticker_scout.infrastructure.db.company_rows import COMPANY_COLUMNS
from ticker_scout.infrastructure.db.postgres_company_catalog_repository import (
    PostgresCompanyCatalogRepository,
)


class FakeCursor:
    def __init__(self, pool):
        self._pool = pool
        self.rowcount = pool.rowcount

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql: str, params: Any = None) -> None:
        self._pool.executed.append((" ".join(sql.split()), params))

    def fetchone(self):
        return self._pool.results.pop(0)

    def fetchall(self):
        return self._pool.results.pop(0)


class FakeConnection:
    def __init__(self, pool):
        self._pool = pool

    def cursor(self, cursor_factory=None):
        return FakeCursor(self._pool)


class FakePool:
    def __init__(self, rowcount: int = 1):
        self.rowcount = rowcount
        self.executed: List[Tuple[str, Any]] = []
        self.results: List[Any] = []

    @contextmanager
    def connection(self):
        yield FakeConnection(self)

    @contextmanager
    def dict_cursor(self):
        yield FakeCursor(self)


def row(company_id: int, symbol: str, **values) -> dict:
    data = {column: None for column in COMPANY_COLUMNS}
    data.update(id=company_id, symbol=symbol, has_embedding=False)
    data.update(values)
    return data


def test_schema_created_on_construction():
    pool = FakePool()

    PostgresCompanyCatalogRepository(pool)

    assert "CREATE TABLE IF NOT EXISTS companies" in pool.executed[0][0]
    assert "has_embedding BOOLEAN NOT NULL DEFAULT FALSE" in pool.executed[0][0]


def test_find_many_builds_filtered_query():
    pool = FakePool()
    repo = PostgresCompanyCatalogRepository(pool, create_schema=False)
    pool.results.append([row(1, "AAPL", sector="Technology", market_cap=3.0e12)])

    companies = repo.find_many(SearchFilters(sector="Technology", min_market_cap=1e9), limit=5)

    assert [c.symbol for c in companies] == ["AAPL"]
    sql, params = pool.executed[0]
    assert "WHERE sector = %s AND market_cap >= %s" in sql
    assert sql.endswith("ORDER BY market_cap DESC NULLS LAST, id ASC LIMIT %s")
    assert params == ["Technology", 1e9, 5]


def test_find_by_ids_uses_any():
    pool = FakePool()
    repo = PostgresCompanyCatalogRepository(pool, create_schema=False)
    pool.results.append([row(2, "XOM")])

    repo.find_by_ids([2, 3], SearchFilters(max_market_cap=1e12))

    sql, params = pool.executed[0]
    assert "WHERE id = ANY(%s) AND market_cap <= %s" in sql
    assert params == [[2, 3], 1e12]


def test_search_text_uses_strpos_on_every_field():
    pool = FakePool()
    repo = PostgresCompanyCatalogRepository(pool, create_schema=False)
    pool.results.append([])

    repo.search_text("chips", SearchFilters(), limit=10)

    sql, params = pool.executed[0]
    assert sql.count("strpos(") == 5
    assert params == ["chips"] * 5 + [10]


def test_update_embedding_flag_unknown_company():
    pool = FakePool(rowcount=0)
    repo = PostgresCompanyCatalogRepository(pool, create_schema=False)

    with pytest.raises(ValueError, match="not found"):
        repo.update_embedding_flag(404, b"\x00" * 4)


def test_count_and_sectors():
    pool = FakePool()
    repo = PostgresCompanyCatalogRepository(pool, create_schema=False)
    pool.results.extend([{"cnt": 7}, [{"sector": "Energy"}, {"sector": "Technology"}]])

    assert repo.count_with_embeddings() == 7
    assert repo.list_sectors() == ["Energy", "Technology"]
