"""
Domain services package.

Services orchestrate domain logic that doesn't naturally belong to a single
entity. They coordinate between entities and ports to implement use cases.
"""

from .search_service import SearchService
from .embedding_pipeline import EmbeddingPipeline

__all__ = [
    "SearchService",
    "EmbeddingPipeline",
]
