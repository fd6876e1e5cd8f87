"""
sqlite-vec implementation of the VectorIndex port.

Vectors live next to the catalog in the same SQLite file, in a
`company_embeddings` table keyed by company id. Each vector is a raw
little-endian float32 BLOB, and similarity uses the `vec_distance_cosine`
function provided by the sqlite-vec loadable extension.

Suited to single-process, low-concurrency deployments. The extension is
loaded on every connection, and connections are opened per operation so the
index can be used from the embedding pipeline's worker threads.
"""

import logging
import math
import sqlite3
from pathlib import Path
from typing import List, Sequence

import sqlite_vec

from ticker_scout.domain.entities import CompanySearchResult, SimilarityResult
from ticker_scout.domain.errors import InitializationError
from ticker_scout.domain.ports import VectorIndex
from ticker_scout.domain.value_objects import SearchFilters
from ticker_scout.domain.vectors import (
    EMBEDDING_DIMENSION,
    distance_to_similarity,
    serialize_vector,
    validate_dimension,
)

logger = logging.getLogger(__name__)

_SELF_TEST_VECTOR = [1.0, 2.0, 3.0]
_SELF_TEST_TOLERANCE = 1e-5


class SqliteVecIndex(VectorIndex):
    """
    Embedded-file vector index using SQLite + sqlite-vec.

    Search is an exact scan ordered by cosine distance; there is no ANN index.
    Server-side filtered search is not supported: `search_similar_with_filters`
    raises NotImplementedError and `supports_filtered_search` is False, so
    callers resolve ids against the catalog themselves.
    """

    supports_filtered_search = False

    def __init__(self, db_path: Path, dimension: int = EMBEDDING_DIMENSION) -> None:
        """
        Initialize the index on a SQLite file.

        Args:
            db_path: Path of the SQLite database file (shared with the catalog)
            dimension: Expected vector length
        """
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._dimension = dimension

    def _get_connection(self) -> sqlite3.Connection:
        """Open a connection with the sqlite-vec extension loaded."""
        conn = sqlite3.connect(str(self._db_path), timeout=30)
        try:
            conn.enable_load_extension(True)
            sqlite_vec.load(conn)
            conn.enable_load_extension(False)
        except (AttributeError, sqlite3.Error) as e:
            conn.close()
            raise InitializationError(
                f"Failed to load the sqlite-vec extension: {e}"
            ) from e
        return conn

    def initialize(self) -> None:
        """Drop and recreate the embeddings table, then self-test the extension."""
        try:
            conn = self._get_connection()
            try:
                with conn:
                    conn.execute("DROP TABLE IF EXISTS company_embeddings")
                    conn.execute("""
                        CREATE TABLE company_embeddings (
                            company_id INTEGER PRIMARY KEY,
                            embedding BLOB NOT NULL
                        )
                    """)
                self._self_test(conn)
            finally:
                conn.close()
        except InitializationError:
            raise
        except sqlite3.Error as e:
            raise InitializationError(f"Failed to create vector storage: {e}") from e

        logger.info(f"Vector index initialized and verified at {self._db_path}")

    @staticmethod
    def _self_test(conn: sqlite3.Connection) -> None:
        """Round-trip a small vector through the native distance functions."""
        blob = serialize_vector(_SELF_TEST_VECTOR)
        length, distance = conn.execute(
            "SELECT vec_length(?), vec_distance_cosine(?, ?)", (blob, blob, blob)
        ).fetchone()

        if length != len(_SELF_TEST_VECTOR):
            raise InitializationError(
                f"Vector extension verification failed: vec_length returned {length}"
            )
        if distance is None or math.isnan(distance) or abs(distance) > _SELF_TEST_TOLERANCE:
            raise InitializationError(
                f"Vector extension verification failed: self-distance was {distance}"
            )

    def store(self, company_id: int, vector: Sequence[float]) -> None:
        """Upsert a company's vector as a float32 BLOB."""
        validate_dimension(vector, self._dimension)
        blob = serialize_vector(vector)

        conn = self._get_connection()
        try:
            with conn:
                conn.execute(
                    "INSERT OR REPLACE INTO company_embeddings (company_id, embedding) "
                    "VALUES (?, ?)",
                    (company_id, blob),
                )
        except sqlite3.Error as e:
            raise RuntimeError(
                f"Error storing embedding for company {company_id}: {e}"
            ) from e
        finally:
            conn.close()

    def search_similar(
        self, query_vector: Sequence[float], k: int
    ) -> List[SimilarityResult]:
        """Nearest neighbors by cosine distance, converted to similarity."""
        validate_dimension(query_vector, self._dimension)
        if k < 1:
            return []

        conn = self._get_connection()
        try:
            rows = conn.execute(
                """
                SELECT company_id, vec_distance_cosine(embedding, ?) AS distance
                FROM company_embeddings
                ORDER BY distance IS NULL, distance ASC, company_id ASC
                LIMIT ?
                """,
                (serialize_vector(query_vector), k),
            ).fetchall()
        except sqlite3.Error as e:
            raise RuntimeError(f"Vector search error: {e}") from e
        finally:
            conn.close()

        # Zero vectors have no direction: SQLite turns their NaN distance into NULL
        return [
            SimilarityResult(
                company_id=company_id,
                similarity=distance_to_similarity(distance)
                if distance is not None
                else 0.0,
            )
            for company_id, distance in rows
        ]

    def search_similar_with_filters(
        self, query_vector: Sequence[float], k: int, filters: SearchFilters
    ) -> List[CompanySearchResult]:
        raise NotImplementedError(
            "SqliteVecIndex does not support server-side filtered search"
        )

    def count(self) -> int:
        """Number of stored vectors."""
        conn = self._get_connection()
        try:
            return conn.execute("SELECT COUNT(*) FROM company_embeddings").fetchone()[0]
        finally:
            conn.close()

    def is_ready(self) -> bool:
        """True if the embeddings table exists and the extension loads."""
        try:
            self.count()
            return True
        except (InitializationError, sqlite3.Error) as e:
            logger.debug(f"Vector index not ready: {e}")
            return False

    def close(self) -> None:
        """Nothing to release; connections are opened per operation."""
