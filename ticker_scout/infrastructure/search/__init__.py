"""
Vector index adapters.

This package contains:
- SqliteVecIndex: embedded SQLite file with the sqlite-vec extension
- PgVectorIndex: PostgreSQL with the pgvector extension

`create_vector_index` picks one of them from the DATABASE_URL connection
string. The choice is made once, when the service container is built.
"""

import logging
from typing import Optional

from ticker_scout.domain.ports import VectorIndex
from ticker_scout.infrastructure.db.connection_url import (
    is_embedded_url,
    sqlite_path_from_url,
)
from ticker_scout.infrastructure.db.postgres_pool import PostgresConnectionPool
from ticker_scout.infrastructure.search.pgvector_index import PgVectorIndex
from ticker_scout.infrastructure.search.sqlite_vec_index import SqliteVecIndex

logger = logging.getLogger(__name__)

__all__ = ["PgVectorIndex", "SqliteVecIndex", "create_vector_index"]


def create_vector_index(
    database_url: str, pool: Optional[PostgresConnectionPool] = None
) -> VectorIndex:
    """
    Build the vector index matching a connection string.

    Args:
        database_url: `file:`/`sqlite:` URL for the embedded backend,
                      anything else for PostgreSQL
        pool: Existing Postgres pool to share with the catalog. A new one is
              created when omitted.

    Returns:
        SqliteVecIndex or PgVectorIndex
    """
    if is_embedded_url(database_url):
        db_path = sqlite_path_from_url(database_url)
        logger.info(f"Using embedded vector index at {db_path}")
        return SqliteVecIndex(db_path)

    logger.info("Using pgvector index")
    return PgVectorIndex(pool if pool is not None else PostgresConnectionPool(database_url))
