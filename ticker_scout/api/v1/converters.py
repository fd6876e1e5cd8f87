"""
Converters between domain entities/value objects and API schemas.

This module centralizes all conversion logic between the domain layer
and the API layer, maintaining clean separation of concerns.
"""

from typing import Optional

from ticker_scout.domain import entities as domain
from ticker_scout.domain import value_objects as domain_vo
from ticker_scout.api.v1 import schemas as api


def domain_company_to_api(company: domain.Company) -> api.Company:
    """
    Convert a domain Company entity to an API Company model.

    Args:
        company: Domain Company entity

    Returns:
        API Company model (without the embedding bytes)
    """
    fields = {name: getattr(company, name) for name in api.Company.model_fields}
    return api.Company(**fields)


def domain_search_result_to_api(result: domain.CompanySearchResult) -> api.SearchResult:
    """Convert a domain CompanySearchResult to an API SearchResult model."""
    return api.SearchResult(
        company=domain_company_to_api(result.company),
        rank=result.rank,
        similarity=result.similarity,
    )


def domain_response_to_api(response: domain_vo.SearchResponse) -> api.SearchResponse:
    """
    Convert a domain SearchResponse value object to an API SearchResponse model.

    Args:
        response: Domain SearchResponse value object

    Returns:
        API SearchResponse model
    """
    api_results = [domain_search_result_to_api(r) for r in response.results]

    return api.SearchResponse(
        results=api_results,
        total=len(api_results),
        degraded=response.degraded,
        degradation_reason=response.degradation_reason,
        search_mode=response.search_mode,
        latency_ms=response.latency_ms,
    )


def query_params_to_domain(
    q: Optional[str],
    sector: Optional[str],
    min_market_cap: Optional[float],
    max_market_cap: Optional[float],
    limit: int,
) -> domain_vo.SearchQuery:
    """
    Convert search query-string parameters to a domain SearchQuery.

    Raises:
        ValueError: If the filters or limit are invalid
    """
    filters = domain_vo.SearchFilters(
        sector=sector or None,
        min_market_cap=min_market_cap,
        max_market_cap=max_market_cap,
    )
    return domain_vo.SearchQuery(text=q, filters=filters, limit=limit)
