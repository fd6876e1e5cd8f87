"""
API request/response models.
"""

from typing import Literal

from pydantic import BaseModel, Field


class Company(BaseModel):
    """
    API representation of a Company entity.

    Maps from the domain Company entity for API responses. The raw embedding
    bytes are never exposed.
    """

    id: int = Field(description="Catalog identifier")
    symbol: str = Field(description="Ticker symbol (e.g., 'AAPL')")
    short_name: str | None = None
    long_name: str | None = None
    sector: str | None = None
    industry: str | None = None
    exchange: str | None = None
    current_price: float | None = None
    market_cap: float | None = Field(default=None, description="Market capitalization in USD")
    ebitda: float | None = None
    revenue_growth: float | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    full_time_employees: int | None = None
    long_business_summary: str | None = None
    weight: float | None = None
    has_embedding: bool = False


class SearchResult(BaseModel):
    """
    Represents a single search result linking a company to its relevance.
    """
    company: Company = Field(description="The company that matched the query")

    rank: int = Field(description="Position in the result list (1-indexed)")

    similarity: float | None = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Cosine-derived similarity; only set for vector results."
    )


class SearchResponse(BaseModel):
    """
    Response wrapper for search operations with degradation metadata.
    """
    results: list[SearchResult] = Field(description="Ranked search results")
    total: int = Field(ge=0, description="Number of results returned")
    degraded: bool = Field(default=False, description="True if the vector path was unavailable")
    degradation_reason: str | None = Field(
        default=None,
        description="Human-readable explanation of why degradation occurred"
    )
    search_mode: Literal['filter_only', 'vector_filtered', 'vector_resolved', 'text_fallback'] = Field(
        default="filter_only",
        description="The tier that served the search"
    )
    latency_ms: float | None = Field(default=None, description="Search execution time in ms")


class SectorsResponse(BaseModel):
    sectors: list[str] = Field(description="Distinct sectors, sorted alphabetically")
