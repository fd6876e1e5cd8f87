"""
Domain entities for the company semantic search system.

Entities are objects with a unique identity that runs through time and
different representations. They are the core building blocks of the domain.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Company:
    """
    Represents a company record in the catalog.

    Business attributes are owned by the catalog store and treated as
    immutable here. The search core only reads identity and summary and
    writes the two derived embedding fields through the catalog port.
    """

    id: int
    """Catalog primary key, also the key of the vector index entry"""

    symbol: str
    """Ticker symbol (e.g., 'AAPL')"""

    short_name: Optional[str] = None
    long_name: Optional[str] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    exchange: Optional[str] = None

    current_price: Optional[float] = None
    market_cap: Optional[float] = None
    """Market capitalization in USD, used for filtering and default ordering"""

    ebitda: Optional[float] = None
    revenue_growth: Optional[float] = None

    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    full_time_employees: Optional[int] = None

    long_business_summary: Optional[str] = None
    """Free-text summary; the source text for the company's embedding"""

    weight: Optional[float] = None
    """Index weight of the company"""

    has_embedding: bool = False
    """True once the embedding pipeline has stored a vector for this company"""

    embedding: Optional[bytes] = field(default=None, repr=False, compare=False)
    """Durable mirror of the vector as raw float32 bytes"""

    def __post_init__(self) -> None:
        """Validate company data."""
        if not self.symbol or not self.symbol.strip():
            raise ValueError("Company symbol cannot be empty")

        if self.market_cap is not None and self.market_cap < 0:
            raise ValueError(f"market_cap cannot be negative, got {self.market_cap}")

    def has_summary(self) -> bool:
        """Check if the company has a non-null business summary."""
        return self.long_business_summary is not None

    @property
    def display_name(self) -> str:
        return self.short_name or self.long_name or self.symbol


@dataclass(frozen=True)
class SimilarityResult:
    """
    One nearest-neighbor hit from the vector index.

    Derived per query, never persisted.
    """

    company_id: int
    similarity: float
    """Similarity in [0, 1]; 1.0 = identical, 0.0 = opposite vectors"""

    def __post_init__(self) -> None:
        if not (0.0 <= self.similarity <= 1.0):
            raise ValueError(
                f"similarity must be between 0.0 and 1.0, got {self.similarity}"
            )


@dataclass
class CompanySearchResult:
    """
    Represents a single search result linking a company to its relevance.

    `similarity` is set only when the result came from a vector tier.
    Filter-only and text-fallback results carry None.
    """

    company: Company
    """The company that matched the query"""

    rank: int
    """Position in the result list (1-indexed)"""

    similarity: Optional[float] = None
    """Vector similarity in [0, 1], if the result came from the vector index"""

    def __post_init__(self) -> None:
        """Validate search result data."""
        if self.rank < 1:
            raise ValueError(f"rank must be >= 1, got {self.rank}")

        if self.similarity is not None and not (0.0 <= self.similarity <= 1.0):
            raise ValueError(
                f"similarity must be between 0.0 and 1.0, got {self.similarity}"
            )

    def has_similarity(self) -> bool:
        """Check if this result carries a vector similarity score."""
        return self.similarity is not None
