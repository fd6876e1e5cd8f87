"""
PostgreSQL implementation of the CompanyCatalogRepository port.

Reads go through the shared PostgresConnectionPool so that concurrent
request handlers never open unbounded connections.
"""

import logging
from typing import List, Sequence

import psycopg2
import psycopg2.extras

from ticker_scout.domain.entities import Company
from ticker_scout.domain.ports import CompanyCatalogRepository
from ticker_scout.domain.value_objects import SearchFilters
from ticker_scout.infrastructure.db.company_rows import (
    COMPANY_COLUMNS,
    TEXT_MATCH_COLUMNS,
    build_filter_clause,
    company_to_row,
    row_to_company,
    select_columns,
    where_sql,
)
from ticker_scout.infrastructure.db.postgres_pool import PostgresConnectionPool

logger = logging.getLogger(__name__)

_ORDER_BY_MARKET_CAP = "ORDER BY market_cap DESC NULLS LAST, id ASC"


class PostgresCompanyCatalogRepository(CompanyCatalogRepository):
    """Catalog repository backed by a networked PostgreSQL database."""

    def __init__(self, pool: PostgresConnectionPool, create_schema: bool = True) -> None:
        self._pool = pool
        if create_schema:
            self._init_schema()

    def _init_schema(self) -> None:
        """Create the companies table if it doesn't exist."""
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute("""
                CREATE TABLE IF NOT EXISTS companies (
                    id INTEGER PRIMARY KEY,
                    symbol TEXT NOT NULL UNIQUE,
                    short_name TEXT,
                    long_name TEXT,
                    sector TEXT,
                    industry TEXT,
                    exchange TEXT,
                    current_price DOUBLE PRECISION,
                    market_cap DOUBLE PRECISION,
                    ebitda DOUBLE PRECISION,
                    revenue_growth DOUBLE PRECISION,
                    city TEXT,
                    state TEXT,
                    country TEXT,
                    full_time_employees INTEGER,
                    long_business_summary TEXT,
                    weight DOUBLE PRECISION,
                    has_embedding BOOLEAN NOT NULL DEFAULT FALSE,
                    embedding BYTEA
                )
            """)
                cur.execute(
                    "CREATE INDEX IF NOT EXISTS idx_companies_sector ON companies(sector)"
                )

    def _query(self, sql: str, params: Sequence = ()) -> List[Company]:
        with self._pool.dict_cursor() as cur:
            cur.execute(sql, list(params))
            rows = cur.fetchall()
        return [row_to_company(row) for row in rows]

    def save_many(self, companies: List[Company]) -> None:
        """Insert or replace multiple companies in a single transaction."""
        if not companies:
            return

        updates = ", ".join(
            f"{column} = EXCLUDED.{column}" for column in COMPANY_COLUMNS if column != "id"
        )
        rows = []
        for company in companies:
            row = company_to_row(company)
            if row["embedding"] is not None:
                row["embedding"] = psycopg2.Binary(row["embedding"])
            rows.append(tuple(row[column] for column in COMPANY_COLUMNS))

        try:
            with self._pool.connection() as conn:
                with conn.cursor() as cur:
                    psycopg2.extras.execute_values(
                        cur,
                        f"INSERT INTO companies ({select_columns()}) VALUES %s "
                        f"ON CONFLICT (id) DO UPDATE SET {updates}",
                        rows,
                    )
        except psycopg2.IntegrityError as e:
            raise ValueError(f"One or more companies violate catalog constraints: {e}") from e

    def find_companies_needing_embedding(self) -> List[Company]:
        """Return every company with a non-null business summary."""
        return self._query(
            f"SELECT {select_columns()} FROM companies "
            "WHERE long_business_summary IS NOT NULL ORDER BY id ASC"
        )

    def update_embedding_flag(self, company_id: int, embedding_blob: bytes) -> None:
        """Mark a company as embedded and store the raw vector mirror."""
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "UPDATE companies SET has_embedding = TRUE, embedding = %s WHERE id = %s",
                    (psycopg2.Binary(embedding_blob), company_id),
                )
                updated = cur.rowcount

        if updated == 0:
            raise ValueError(f"Company {company_id} not found in catalog")

    def find_many(self, filters: SearchFilters, limit: int) -> List[Company]:
        """Structured filter ordered by market cap descending."""
        conditions, params = build_filter_clause(filters, "%s")
        return self._query(
            f"SELECT {select_columns()} FROM companies {where_sql(conditions)} "
            f"{_ORDER_BY_MARKET_CAP} LIMIT %s",
            params + [limit],
        )

    def find_by_ids(
        self, company_ids: Sequence[int], filters: SearchFilters
    ) -> List[Company]:
        """Resolve ids into companies that also match the filters."""
        ids = list(company_ids)
        if not ids:
            return []

        conditions, params = build_filter_clause(filters, "%s")
        conditions.insert(0, "id = ANY(%s)")
        return self._query(
            f"SELECT {select_columns()} FROM companies {where_sql(conditions)}",
            [ids] + params,
        )

    def search_text(
        self, query_text: str, filters: SearchFilters, limit: int
    ) -> List[Company]:
        """Case-sensitive substring match via strpos."""
        match = " OR ".join(f"strpos({column}, %s) > 0" for column in TEXT_MATCH_COLUMNS)
        conditions, params = build_filter_clause(filters, "%s")
        conditions.insert(0, f"({match})")

        return self._query(
            f"SELECT {select_columns()} FROM companies {where_sql(conditions)} "
            f"{_ORDER_BY_MARKET_CAP} LIMIT %s",
            [query_text] * len(TEXT_MATCH_COLUMNS) + params + [limit],
        )

    def count_with_embeddings(self) -> int:
        """Number of companies flagged as embedded."""
        with self._pool.dict_cursor() as cur:
            cur.execute("SELECT COUNT(*) AS cnt FROM companies WHERE has_embedding")
            return int(cur.fetchone()["cnt"])

    def list_sectors(self) -> List[str]:
        """Distinct non-null sectors, sorted alphabetically."""
        with self._pool.dict_cursor() as cur:
            cur.execute(
                "SELECT DISTINCT sector FROM companies "
                "WHERE sector IS NOT NULL ORDER BY sector ASC"
            )
            return [row["sector"] for row in cur.fetchall()]
