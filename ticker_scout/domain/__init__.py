"""
Domain layer - Core business logic and entities.

This layer contains the business entities, value objects, and defines
the ports (interfaces) that the infrastructure layer must implement.

It has NO dependencies on web frameworks, databases, or APIs.
"""

from .entities import Company, CompanySearchResult, SimilarityResult
from .value_objects import (
    SearchFilters,
    SearchQuery,
    SearchResponse,
    EmbeddingRunSummary,
)

__all__ = [
    # Entities
    "Company",
    "CompanySearchResult",
    "SimilarityResult",
    # Value Objects
    "SearchFilters",
    "SearchQuery",
    "SearchResponse",
    "EmbeddingRunSummary",
]
