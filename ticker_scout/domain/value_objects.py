"""
Value objects for the domain layer.

Value objects are immutable objects that represent descriptive aspects
of the domain with no conceptual identity.
"""

from dataclasses import dataclass, field
from typing import Optional

DEFAULT_SEARCH_LIMIT = 50
MAX_SEARCH_LIMIT = 1000


@dataclass(frozen=True)
class SearchFilters:
    """
    Structured filters that can be applied to a search.

    All filters are optional. When a filter is None, it means "no restriction".
    """

    sector: Optional[str] = None
    """Exact sector name (e.g., 'Technology')"""

    min_market_cap: Optional[float] = None
    """Minimum market capitalization (inclusive)"""

    max_market_cap: Optional[float] = None
    """Maximum market capitalization (inclusive)"""

    def __post_init__(self) -> None:
        """Validate filter constraints."""
        if self.min_market_cap is not None and self.max_market_cap is not None:
            if self.min_market_cap > self.max_market_cap:
                raise ValueError(
                    f"min_market_cap ({self.min_market_cap}) cannot be greater than "
                    f"max_market_cap ({self.max_market_cap})"
                )

    def is_empty(self) -> bool:
        """Check if no filters are set."""
        return all(
            getattr(self, field_name) is None
            for field_name in ["sector", "min_market_cap", "max_market_cap"]
        )


@dataclass(frozen=True)
class SearchQuery:
    """
    Represents a user's search request.

    `text` is optional: without it the search is a pure structured filter.
    Blank text is normalized to None.
    """

    text: Optional[str] = None
    """The raw search query text from the user"""

    filters: SearchFilters = field(default_factory=SearchFilters)
    """Optional filters to refine the search"""

    limit: int = DEFAULT_SEARCH_LIMIT
    """Maximum number of results to return"""

    def __post_init__(self) -> None:
        """Validate query constraints."""
        if self.text is not None and not self.text.strip():
            object.__setattr__(self, "text", None)

        if self.limit < 1:
            raise ValueError(f"limit must be >= 1, got {self.limit}")

        if self.limit > MAX_SEARCH_LIMIT:
            raise ValueError(
                f"limit cannot exceed {MAX_SEARCH_LIMIT}, got {self.limit}"
            )

    def has_text(self) -> bool:
        return self.text is not None


SEARCH_MODES = {"filter_only", "vector_filtered", "vector_resolved", "text_fallback"}


@dataclass(frozen=True)
class SearchResponse:
    """
    Response wrapper for search operations with degradation metadata.

    `search_mode` tags which tier served the response:
    - 'filter_only': no query text, structured filter over the catalog
    - 'vector_filtered': one combined similarity + filter query in the backend
    - 'vector_resolved': nearest neighbors resolved against the catalog
    - 'text_fallback': substring match after the vector path was unavailable
    """

    results: list
    """List of CompanySearchResult entities"""

    search_mode: str = "filter_only"

    degraded: bool = False
    """True if the vector path was skipped or failed"""

    degradation_reason: Optional[str] = None
    """Human-readable explanation of why degradation occurred"""

    latency_ms: Optional[float] = None
    """Search execution time in milliseconds"""

    def __post_init__(self) -> None:
        """Validate response constraints."""
        if self.degraded and self.degradation_reason is None:
            raise ValueError("degradation_reason is required when degraded=True")

        if self.search_mode not in SEARCH_MODES:
            raise ValueError(
                f"search_mode must be one of {SEARCH_MODES}, got '{self.search_mode}'"
            )


@dataclass(frozen=True)
class EmbeddingRunSummary:
    """
    Summary of one embedding pipeline run.

    Captures how many companies were considered, how many ended up with a
    stored vector, and which ones failed.
    """

    n_total: int
    """Number of companies with a non-null summary considered by the run"""

    n_processed: int
    """Number of companies whose vector was stored and flagged"""

    n_failed: int
    """Number of companies skipped because of a per-entity error"""

    n_batches: int = 0
    """Number of batches dispatched"""

    errors: list[str] = field(default_factory=list)
    """Per-entity error messages (for logs and debugging)"""

    def __post_init__(self) -> None:
        """Validate summary constraints."""
        for name in ("n_total", "n_processed", "n_failed", "n_batches"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} cannot be negative, got {value}")

        # Invariant: total = processed + failed
        if self.n_total != self.n_processed + self.n_failed:
            raise ValueError(
                f"Invariant violated: n_total ({self.n_total}) must equal "
                f"n_processed + n_failed ({self.n_processed + self.n_failed})"
            )
