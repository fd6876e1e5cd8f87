"""
Search service for the company catalog.

Orchestrates the query path across the catalog store, the embedding provider
and the vector index. Depends only on domain entities, value objects and
port protocols (never on concrete implementations).
"""

import logging
import time
from typing import Dict, List, Optional, Tuple

from ..entities import Company, CompanySearchResult
from ..errors import DimensionError
from ..ports import CompanyCatalogRepository, EmbeddingProvider, VectorIndex
from ..value_objects import SearchQuery, SearchResponse

logger = logging.getLogger(__name__)

# Nearest neighbors fetched before resolving against the catalog when the
# backend cannot filter server-side.
DEFAULT_CANDIDATE_LIMIT = 1000


class _NoCoverage(Exception):
    """The catalog has no embedded companies to search by vector."""


class SearchService:
    """
    Hybrid company search with graceful degradation.

    Without query text the search is a pure structured filter. With query
    text the service resolves one of three tiers at call time:

    1. **vector_filtered**: the vector index joins similarity with the
       filters in one backend query (capability probed via
       `supports_filtered_search`).
    2. **vector_resolved**: nearest neighbors by vector alone, resolved
       against the catalog with the filters, re-ranked by similarity.
    3. **text_fallback**: substring match over the catalog when no company
       has an embedding yet or when the vector path raises.

    The response is tagged with the tier that served it.
    """

    def __init__(
        self,
        catalog: CompanyCatalogRepository,
        vector_index: VectorIndex,
        embedding_provider: EmbeddingProvider,
        candidate_limit: int = DEFAULT_CANDIDATE_LIMIT,
    ) -> None:
        """
        Initialize the search service with required dependencies.

        Args:
            catalog: Repository for company reads and the text fallback
            vector_index: Active vector index backend
            embedding_provider: Provider used to embed the query text
            candidate_limit: Neighbors fetched on the resolve tier
        """
        self._catalog = catalog
        self._vector_index = vector_index
        self._embedding_provider = embedding_provider
        self._candidate_limit = candidate_limit

    def get_health_status(self) -> Dict[str, bool]:
        """
        Check the health status of the search components.

        Returns:
            Dictionary with component names and their ready status:
            {"vector_index": ..., "catalog": ..., "overall": ...}
        """
        vector_ready = self._vector_index.is_ready()
        try:
            self._catalog.count_with_embeddings()
            catalog_ready = True
        except Exception as e:
            logger.warning(f"Catalog health check failed: {e}")
            catalog_ready = False

        return {
            "vector_index": vector_ready,
            "catalog": catalog_ready,
            "overall": vector_ready and catalog_ready,
        }

    def list_sectors(self) -> List[str]:
        """Distinct sectors available for filtering."""
        return self._catalog.list_sectors()

    def search(self, query: SearchQuery) -> SearchResponse:
        """
        Execute a search and report which tier served it.

        Args:
            query: The search query (text optional) with filters and limit

        Returns:
            SearchResponse with ranked results and degradation metadata

        Raises:
            DimensionError: If the query embedding has the wrong length
            RuntimeError: If the text fallback (catalog store) also fails
        """
        start_time = time.time()
        degraded = False
        degradation_reason: Optional[str] = None

        if not query.has_text():
            logger.info(f"Executing filter-only search with {query.filters}")
            companies = self._catalog.find_many(query.filters, query.limit)
            results = self._rank(companies)
            search_mode = "filter_only"
        else:
            try:
                results, search_mode = self._search_vector(query)
            except DimensionError:
                raise
            except _NoCoverage as e:
                degraded = True
                degradation_reason = str(e)
                search_mode = "text_fallback"
            except Exception as e:
                logger.warning(f"Vector search failed, falling back to text match: {e}")
                degraded = True
                degradation_reason = f"Vector search failed ({e}) - using text match"
                search_mode = "text_fallback"

            if search_mode == "text_fallback":
                results = self._search_text(query)

        latency_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Search returned {len(results)} results "
            f"(mode={search_mode}, {latency_ms:.1f} ms)"
        )

        return SearchResponse(
            results=results,
            search_mode=search_mode,
            degraded=degraded,
            degradation_reason=degradation_reason,
            latency_ms=latency_ms,
        )

    def _search_vector(self, query: SearchQuery) -> Tuple[List[CompanySearchResult], str]:
        if self._catalog.count_with_embeddings() == 0:
            logger.warning("No company has an embedding yet, using text match")
            raise _NoCoverage("No embeddings available - using text match")

        logger.debug(f"Embedding query text: '{query.text}'")
        query_vector = self._embedding_provider.embed(query.text)

        if self._vector_index.supports_filtered_search:
            results = self._vector_index.search_similar_with_filters(
                query_vector, query.limit, query.filters
            )
            return self._rerank(results), "vector_filtered"

        return self._search_vector_resolved(query_vector, query), "vector_resolved"

    def _search_vector_resolved(
        self, query_vector: List[float], query: SearchQuery
    ) -> List[CompanySearchResult]:
        neighbors = self._vector_index.search_similar(
            query_vector, self._candidate_limit
        )
        logger.debug(f"Retrieved {len(neighbors)} nearest neighbors")

        similarity_by_id = {n.company_id: n.similarity for n in neighbors}
        companies = self._catalog.find_by_ids(list(similarity_by_id), query.filters)

        # Restore neighbor order first so that ties stay in distance order
        position = {n.company_id: i for i, n in enumerate(neighbors)}
        companies.sort(key=lambda c: position[c.id])
        companies.sort(key=lambda c: similarity_by_id[c.id], reverse=True)

        return [
            CompanySearchResult(company=c, rank=i, similarity=similarity_by_id[c.id])
            for i, c in enumerate(companies[: query.limit], start=1)
        ]

    def _search_text(self, query: SearchQuery) -> List[CompanySearchResult]:
        logger.info(f"Executing text-match search for query: '{query.text}'")
        companies = self._catalog.search_text(query.text, query.filters, query.limit)
        return self._rank(companies)

    @staticmethod
    def _rank(companies: List[Company]) -> List[CompanySearchResult]:
        return [
            CompanySearchResult(company=c, rank=i)
            for i, c in enumerate(companies, start=1)
        ]

    @staticmethod
    def _rerank(results: List[CompanySearchResult]) -> List[CompanySearchResult]:
        for i, result in enumerate(results, start=1):
            result.rank = i
        return results
