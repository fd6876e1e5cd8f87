"""
Port interfaces (protocols) for the domain layer.

Ports define the contracts between the domain and infrastructure layers.
They are implemented by adapters in the infrastructure layer, allowing
the domain to remain independent of technical details.

Following Hexagonal Architecture principles, the domain layer depends only
on these abstract protocols, never on concrete implementations.
"""

from typing import List, Protocol, Sequence

from .entities import Company, CompanySearchResult, SimilarityResult
from .value_objects import SearchFilters


class CompanyCatalogRepository(Protocol):
    """
    Port for reading companies and writing their derived embedding fields.

    The catalog store owns the company schema. The search core only needs
    filtered reads, id resolution, a text-match fallback and the two
    embedding columns (`has_embedding` flag and raw vector mirror).
    """

    def save_many(self, companies: List[Company]) -> None:
        """
        Insert or replace multiple companies in a single transaction.

        Raises:
            ValueError: If a company violates catalog constraints
            RuntimeError: If a database error occurs
        """
        ...

    def find_companies_needing_embedding(self) -> List[Company]:
        """
        Return every company whose business summary is non-null.

        Companies without a summary are never embedded.
        """
        ...

    def update_embedding_flag(self, company_id: int, embedding_blob: bytes) -> None:
        """
        Mark a company as embedded and store the raw vector mirror.

        Args:
            company_id: The company's catalog id
            embedding_blob: Serialized vector (little-endian float32 bytes)
        """
        ...

    def find_many(self, filters: SearchFilters, limit: int) -> List[Company]:
        """
        Structured filter over the catalog.

        Sector is an exact match, market-cap bounds are inclusive.
        Results are ordered by market cap descending and truncated to `limit`.
        """
        ...

    def find_by_ids(
        self, company_ids: Sequence[int], filters: SearchFilters
    ) -> List[Company]:
        """
        Resolve ids into companies, keeping only those that match `filters`.

        Order of the returned list is unspecified; callers re-rank.
        """
        ...

    def search_text(
        self, query_text: str, filters: SearchFilters, limit: int
    ) -> List[Company]:
        """
        Case-sensitive substring match over name, sector, industry and summary.

        Filters apply as in find_many. Ordered by market cap descending.
        """
        ...

    def count_with_embeddings(self) -> int:
        """Number of companies flagged as having an embedding."""
        ...

    def list_sectors(self) -> List[str]:
        """Distinct non-null sectors, sorted alphabetically."""
        ...


class VectorIndex(Protocol):
    """
    Port for storing company vectors and querying nearest neighbors.

    Two adapters implement this port: an embedded SQLite file with the
    sqlite-vec extension and a PostgreSQL database with pgvector. The adapter
    is selected once, from the connection string, when the service container
    is built.
    """

    supports_filtered_search: bool
    """True if search_similar_with_filters runs as one backend query"""

    def initialize(self) -> None:
        """
        Drop and recreate the vector storage, then self-test the distance function.

        This is a full reset, not a migration.

        Raises:
            InitializationError: If setup or the self-test fails
        """
        ...

    def store(self, company_id: int, vector: Sequence[float]) -> None:
        """
        Upsert the vector for a company.

        Raises:
            DimensionError: If the vector does not have 1536 components
        """
        ...

    def search_similar(
        self, query_vector: Sequence[float], k: int
    ) -> List[SimilarityResult]:
        """
        Return up to `k` entries ordered by descending similarity.

        Similarity is derived from cosine distance as 1 - distance / 2.

        Raises:
            DimensionError: If the query vector does not have 1536 components
        """
        ...

    def search_similar_with_filters(
        self, query_vector: Sequence[float], k: int, filters: SearchFilters
    ) -> List[CompanySearchResult]:
        """
        Similarity search joined with catalog filters in a single query.

        Only meaningful when `supports_filtered_search` is True.

        Raises:
            NotImplementedError: If the backend does not support it
        """
        ...

    def is_ready(self) -> bool:
        """Check whether the vector storage exists and can be queried."""
        ...

    def close(self) -> None:
        """Release backend resources."""
        ...


class EmbeddingProvider(Protocol):
    """
    Port for turning text into a fixed-length embedding vector.

    Stateless; safe to call concurrently.
    """

    def embed(self, text: str) -> List[float]:
        """
        Generate an embedding for `text`.

        Empty or whitespace-only text returns the zero vector without
        calling the external API.

        Raises:
            ProviderError: If the external call fails
        """
        ...

    def get_model_name(self) -> str:
        """Identifier of the embedding model (e.g., 'text-embedding-3-small')."""
        ...
