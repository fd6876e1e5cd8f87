"""
pgvector implementation of the VectorIndex port.

Vectors are stored in a native `vector(1536)` column and indexed with an
IVFFlat approximate nearest-neighbor index using cosine-distance operators,
so searches stay sub-linear as the catalog grows. All access goes through the
shared PostgresConnectionPool.

Unlike the embedded variant, this backend can join similarity with the
catalog filters server-side (`search_similar_with_filters`), which the
SearchService prefers when available.
"""

import logging
import math
from typing import List, Sequence

import psycopg2

from ticker_scout.domain.entities import CompanySearchResult, SimilarityResult
from ticker_scout.domain.errors import BackendConnectionError, InitializationError
from ticker_scout.domain.ports import VectorIndex
from ticker_scout.domain.value_objects import SearchFilters
from ticker_scout.domain.vectors import (
    EMBEDDING_DIMENSION,
    distance_to_similarity,
    to_vector_literal,
    validate_dimension,
)
from ticker_scout.infrastructure.db.company_rows import (
    build_filter_clause,
    row_to_company,
    select_columns,
    where_sql,
)
from ticker_scout.infrastructure.db.postgres_pool import PostgresConnectionPool

logger = logging.getLogger(__name__)

# IVFFlat partitions; ~sqrt(rows) is the usual starting point
DEFAULT_IVFFLAT_LISTS = 100

# Probing every list makes IVFFlat exact; the index is built on an empty table
DEFAULT_IVFFLAT_PROBES = DEFAULT_IVFFLAT_LISTS

_SELF_TEST_LITERAL = "[1,2,3]"
_SELF_TEST_TOLERANCE = 1e-5


class PgVectorIndex(VectorIndex):
    """Relational-extension vector index using PostgreSQL + pgvector."""

    supports_filtered_search = True

    def __init__(
        self,
        pool: PostgresConnectionPool,
        dimension: int = EMBEDDING_DIMENSION,
        ivfflat_lists: int = DEFAULT_IVFFLAT_LISTS,
        ivfflat_probes: int = DEFAULT_IVFFLAT_PROBES,
    ) -> None:
        """
        Args:
            pool: Shared connection pool (also used by the catalog)
            dimension: Expected vector length
            ivfflat_lists: Number of IVFFlat lists for the ANN index
            ivfflat_probes: Lists scanned per query (set per transaction)
        """
        self._pool = pool
        self._dimension = dimension
        self._ivfflat_lists = ivfflat_lists
        self._ivfflat_probes = ivfflat_probes

    def initialize(self) -> None:
        """Recreate the embeddings table and ANN index, then self-test `<=>`."""
        try:
            with self._pool.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("CREATE EXTENSION IF NOT EXISTS vector")
                    cur.execute("DROP TABLE IF EXISTS company_embeddings")
                    cur.execute(
                        f"""
                        CREATE TABLE company_embeddings (
                            company_id INTEGER PRIMARY KEY,
                            embedding vector({int(self._dimension)}) NOT NULL
                        )
                        """
                    )
                    cur.execute(
                        f"""
                        CREATE INDEX company_embeddings_embedding_idx
                        ON company_embeddings
                        USING ivfflat (embedding vector_cosine_ops)
                        WITH (lists = {int(self._ivfflat_lists)})
                        """
                    )
                    cur.execute(
                        "SELECT %s::vector <=> %s::vector",
                        (_SELF_TEST_LITERAL, _SELF_TEST_LITERAL),
                    )
                    (distance,) = cur.fetchone()
        except (psycopg2.Error, BackendConnectionError) as e:
            raise InitializationError(f"Failed to create vector storage: {e}") from e

        if distance is None or math.isnan(distance) or abs(distance) > _SELF_TEST_TOLERANCE:
            raise InitializationError(
                f"pgvector verification failed: self-distance was {distance}"
            )

        logger.info("pgvector index initialized and verified")

    def store(self, company_id: int, vector: Sequence[float]) -> None:
        """Upsert a company's vector."""
        validate_dimension(vector, self._dimension)

        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO company_embeddings (company_id, embedding)
                    VALUES (%s, %s::vector)
                    ON CONFLICT (company_id) DO UPDATE SET embedding = EXCLUDED.embedding
                    """,
                    (company_id, to_vector_literal(vector)),
                )

    def search_similar(
        self, query_vector: Sequence[float], k: int
    ) -> List[SimilarityResult]:
        """Nearest neighbors by cosine distance, converted to similarity."""
        validate_dimension(query_vector, self._dimension)
        if k < 1:
            return []

        literal = to_vector_literal(query_vector)
        with self._pool.dict_cursor() as cur:
            self._set_probes(cur)
            cur.execute(
                """
                SELECT company_id, embedding <=> %s::vector AS distance
                FROM company_embeddings
                ORDER BY embedding <=> %s::vector ASC, company_id ASC
                LIMIT %s
                """,
                (literal, literal, k),
            )
            rows = cur.fetchall()

        return [
            SimilarityResult(
                company_id=int(row["company_id"]),
                similarity=_similarity(row["distance"]),
            )
            for row in rows
        ]

    def search_similar_with_filters(
        self, query_vector: Sequence[float], k: int, filters: SearchFilters
    ) -> List[CompanySearchResult]:
        """
        Single query joining similarity with sector and market-cap filters.

        Returns already-filtered, already-ranked, already-limited companies
        with their similarity attached.
        """
        validate_dimension(query_vector, self._dimension)
        if k < 1:
            return []

        literal = to_vector_literal(query_vector)
        conditions, params = build_filter_clause(filters, "%s", alias="c")

        with self._pool.dict_cursor() as cur:
            self._set_probes(cur)
            cur.execute(
                f"""
                SELECT {select_columns("c")},
                       e.embedding <=> %s::vector AS distance
                FROM company_embeddings e
                JOIN companies c ON c.id = e.company_id
                {where_sql(conditions)}
                ORDER BY e.embedding <=> %s::vector ASC, c.id ASC
                LIMIT %s
                """,
                [literal] + params + [literal, k],
            )
            rows = cur.fetchall()

        return [
            CompanySearchResult(
                company=row_to_company(row),
                rank=rank,
                similarity=_similarity(row["distance"]),
            )
            for rank, row in enumerate(rows, start=1)
        ]

    def _set_probes(self, cur) -> None:
        # SET LOCAL only lasts until the borrowed connection commits
        cur.execute(f"SET LOCAL ivfflat.probes = {int(self._ivfflat_probes)}")

    def is_ready(self) -> bool:
        """True if the embeddings table exists and the pool can reach it."""
        try:
            with self._pool.dict_cursor() as cur:
                cur.execute("SELECT to_regclass('company_embeddings') AS tbl")
                return cur.fetchone()["tbl"] is not None
        except (psycopg2.Error, BackendConnectionError) as e:
            logger.debug(f"Vector index not ready: {e}")
            return False

    def close(self) -> None:
        """Release the pool's connections."""
        self._pool.close()


def _similarity(distance) -> float:
    # <=> yields NaN for zero vectors
    if distance is None or math.isnan(float(distance)):
        return 0.0
    return distance_to_similarity(distance)
