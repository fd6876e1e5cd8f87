"""
SQLite implementation of the CompanyCatalogRepository port.

This adapter reads Company entities from a SQLite database file and writes
the two derived embedding columns back. The `companies` table is created if
it does not exist yet so that a fresh file is usable immediately.
"""

import logging
import sqlite3
from pathlib import Path
from typing import List, Sequence

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

logger = logging.getLogger(__name__)

# Keeps IN (...) lists below SQLite's host parameter limit
_ID_CHUNK_SIZE = 500

_ORDER_BY_MARKET_CAP = "ORDER BY market_cap IS NULL, market_cap DESC, id ASC"


class SqliteCompanyCatalogRepository(CompanyCatalogRepository):
    """
    Catalog repository backed by a single SQLite file.

    A new connection is opened per call, which keeps the repository safe to
    use from the embedding pipeline's worker threads.
    """

    def __init__(self, db_path: Path) -> None:
        """
        Initialize the repository with a database path
        """
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with row factory."""
        conn = sqlite3.connect(str(self._db_path), timeout=30)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        """Create the companies table if it doesn't exist."""
        with self._get_connection() as conn:
            conn.execute("""
            CREATE TABLE IF NOT EXISTS companies (
                id INTEGER PRIMARY KEY,
                symbol TEXT NOT NULL UNIQUE,
                short_name TEXT,
                long_name TEXT,
                sector TEXT,
                industry TEXT,
                exchange TEXT,
                current_price REAL,
                market_cap REAL,
                ebitda REAL,
                revenue_growth REAL,
                city TEXT,
                state TEXT,
                country TEXT,
                full_time_employees INTEGER,
                long_business_summary TEXT,
                weight REAL,
                has_embedding INTEGER NOT NULL DEFAULT 0,
                embedding BLOB
            )
        """)

            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_companies_sector ON companies(sector)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_companies_market_cap ON companies(market_cap)"
            )
        conn.close()

    def _query(self, sql: str, params: Sequence = ()) -> List[Company]:
        try:
            with self._get_connection() as conn:
                rows = conn.execute(sql, list(params)).fetchall()
            conn.close()
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while reading companies: {e}") from e
        return [row_to_company(row) for row in rows]

    def save_many(self, companies: List[Company]) -> None:
        """Insert or replace multiple companies in a single transaction."""
        if not companies:
            return

        rows = [company_to_row(company) for company in companies]
        placeholders = ", ".join(f":{column}" for column in COMPANY_COLUMNS)

        try:
            with self._get_connection() as conn:
                conn.executemany(
                    f"INSERT OR REPLACE INTO companies ({select_columns()}) "
                    f"VALUES ({placeholders})",
                    rows,
                )
            conn.close()
        except sqlite3.IntegrityError as e:
            raise ValueError(f"One or more companies violate catalog constraints: {e}") from e
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while saving companies: {e}") from e

    def find_companies_needing_embedding(self) -> List[Company]:
        """Return every company with a non-null business summary."""
        return self._query(
            f"SELECT {select_columns()} FROM companies "
            "WHERE long_business_summary IS NOT NULL ORDER BY id ASC"
        )

    def update_embedding_flag(self, company_id: int, embedding_blob: bytes) -> None:
        """Mark a company as embedded and store the raw vector mirror."""
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    "UPDATE companies SET has_embedding = 1, embedding = ? WHERE id = ?",
                    (sqlite3.Binary(embedding_blob), company_id),
                )
            conn.close()
        except sqlite3.Error as e:
            raise RuntimeError(
                f"Database error while flagging company {company_id}: {e}"
            ) from e

        if cursor.rowcount == 0:
            raise ValueError(f"Company {company_id} not found in catalog")

    def find_many(self, filters: SearchFilters, limit: int) -> List[Company]:
        """Structured filter ordered by market cap descending."""
        conditions, params = build_filter_clause(filters, "?")
        return self._query(
            f"SELECT {select_columns()} FROM companies {where_sql(conditions)} "
            f"{_ORDER_BY_MARKET_CAP} LIMIT ?",
            params + [limit],
        )

    def find_by_ids(
        self, company_ids: Sequence[int], filters: SearchFilters
    ) -> List[Company]:
        """Resolve ids into companies that also match the filters."""
        companies: List[Company] = []
        ids = list(company_ids)

        for start in range(0, len(ids), _ID_CHUNK_SIZE):
            chunk = ids[start : start + _ID_CHUNK_SIZE]
            conditions, params = build_filter_clause(filters, "?")
            conditions.insert(0, f"id IN ({', '.join('?' * len(chunk))})")
            companies.extend(
                self._query(
                    f"SELECT {select_columns()} FROM companies {where_sql(conditions)}",
                    chunk + params,
                )
            )

        return companies

    def search_text(
        self, query_text: str, filters: SearchFilters, limit: int
    ) -> List[Company]:
        """Case-sensitive substring match (instr, unlike LIKE, respects case)."""
        match = " OR ".join(f"instr({column}, ?) > 0" for column in TEXT_MATCH_COLUMNS)
        conditions, params = build_filter_clause(filters, "?")
        conditions.insert(0, f"({match})")

        return self._query(
            f"SELECT {select_columns()} FROM companies {where_sql(conditions)} "
            f"{_ORDER_BY_MARKET_CAP} LIMIT ?",
            [query_text] * len(TEXT_MATCH_COLUMNS) + params + [limit],
        )

    def count_with_embeddings(self) -> int:
        """Number of companies flagged as embedded."""
        try:
            with self._get_connection() as conn:
                result = conn.execute(
                    "SELECT COUNT(*) AS cnt FROM companies WHERE has_embedding = 1"
                ).fetchone()
            conn.close()
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while counting companies: {e}") from e
        return result["cnt"]

    def list_sectors(self) -> List[str]:
        """Distinct non-null sectors, sorted alphabetically."""
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    "SELECT DISTINCT sector FROM companies "
                    "WHERE sector IS NOT NULL ORDER BY sector ASC"
                ).fetchall()
            conn.close()
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while listing sectors: {e}") from e
        return [row["sector"] for row in rows]
