"""
Service container: explicit dependency wiring for the API and the CLI.

The container owns one catalog repository, one vector index, one embedding
provider and (for PostgreSQL) the connection pool they share. It is built
once at startup from Settings and closed on shutdown, which releases the
pool. Tests construct it directly with fakes.
"""

import logging
from typing import Optional

from ticker_scout.config import Settings
from ticker_scout.domain.ports import (
    CompanyCatalogRepository,
    EmbeddingProvider,
    VectorIndex,
)
from ticker_scout.domain.services import EmbeddingPipeline, SearchService
from ticker_scout.infrastructure.db.connection_url import (
    is_embedded_url,
    sqlite_path_from_url,
)
from ticker_scout.infrastructure.db.postgres_company_catalog_repository import (
    PostgresCompanyCatalogRepository,
)
from ticker_scout.infrastructure.db.postgres_pool import PostgresConnectionPool
from ticker_scout.infrastructure.db.sqlite_company_catalog_repository import (
    SqliteCompanyCatalogRepository,
)
from ticker_scout.infrastructure.external.openai_embedding_provider import (
    OpenAIEmbeddingProvider,
)
from ticker_scout.infrastructure.search import create_vector_index

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Holds the wired adapters and hands out domain services."""

    def __init__(
        self,
        catalog: CompanyCatalogRepository,
        vector_index: VectorIndex,
        embedding_provider: EmbeddingProvider,
        pool: Optional[PostgresConnectionPool] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.catalog = catalog
        self.vector_index = vector_index
        self.embedding_provider = embedding_provider
        self.settings = settings
        self._pool = pool
        self._search_service: Optional[SearchService] = None
        self._closed = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "ServiceContainer":
        """
        Build every adapter for the configured backend.

        Raises:
            ConfigurationError: If the API key is missing
            BackendConnectionError: If PostgreSQL cannot be reached
        """
        provider = OpenAIEmbeddingProvider(
            api_key=settings.require_openai_api_key(),
            model=settings.embedding_model,
        )

        if is_embedded_url(settings.database_url):
            db_path = sqlite_path_from_url(settings.database_url)
            logger.info(f"Using embedded catalog at {db_path}")
            catalog = SqliteCompanyCatalogRepository(db_path)
            return cls(
                catalog=catalog,
                vector_index=create_vector_index(settings.database_url),
                embedding_provider=provider,
                settings=settings,
            )

        pool = PostgresConnectionPool(
            settings.database_url,
            min_connections=settings.pg_pool_min,
            max_connections=settings.pg_pool_max,
            connect_timeout=settings.pg_connect_timeout,
            idle_timeout=settings.pg_idle_timeout,
        )
        try:
            catalog = PostgresCompanyCatalogRepository(pool)
        except Exception:
            pool.close()
            raise

        return cls(
            catalog=catalog,
            vector_index=create_vector_index(settings.database_url, pool=pool),
            embedding_provider=provider,
            pool=pool,
            settings=settings,
        )

    def search_service(self) -> SearchService:
        """The shared SearchService (created on first use)."""
        if self._search_service is None:
            self._search_service = SearchService(
                catalog=self.catalog,
                vector_index=self.vector_index,
                embedding_provider=self.embedding_provider,
            )
        return self._search_service

    def embedding_pipeline(self) -> EmbeddingPipeline:
        """A new EmbeddingPipeline using the configured batch settings."""
        kwargs = {}
        if self.settings is not None:
            kwargs = {
                "batch_size": self.settings.embedding_batch_size,
                "batch_delay_seconds": self.settings.embedding_batch_delay,
            }
        return EmbeddingPipeline(
            catalog=self.catalog,
            vector_index=self.vector_index,
            embedding_provider=self.embedding_provider,
            **kwargs,
        )

    def close(self) -> None:
        """Release backend resources. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self.vector_index.close()
        if self._pool is not None:
            self._pool.close()
        logger.info("Service container closed")
