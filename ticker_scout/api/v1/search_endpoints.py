"""
API endpoints for company search operations.

This module defines the FastAPI routes for searching companies and listing
sectors. It handles HTTP concerns and delegates to domain services.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ticker_scout.domain.errors import TickerScoutError
from ticker_scout.domain.services import SearchService
from ticker_scout.domain.value_objects import DEFAULT_SEARCH_LIMIT
from ticker_scout.api.v1 import schemas as api
from ticker_scout.api.v1.converters import domain_response_to_api, query_params_to_domain
from ticker_scout.api.v1.dependencies import get_search_service

router = APIRouter()

_UNAVAILABLE = (RuntimeError, ConnectionError, TickerScoutError)


@router.get("/search", response_model=api.SearchResponse)
def search_companies(
    q: Optional[str] = Query(default=None, description="Natural-language query"),
    sector: Optional[str] = Query(default=None, description="Exact sector name"),
    min_market_cap: Optional[float] = Query(default=None, alias="minMarketCap"),
    max_market_cap: Optional[float] = Query(default=None, alias="maxMarketCap"),
    limit: int = Query(default=DEFAULT_SEARCH_LIMIT, description="Max results (1-1000)"),
    service: SearchService = Depends(get_search_service),
) -> api.SearchResponse:
    """
    Search companies by meaning, optionally filtered by sector and market cap.

    Without `q` the catalog is filtered and ordered by market cap. With `q`
    the query is embedded and matched by vector similarity, degrading to a
    substring match when no vectors are available.

    Returns:
        SearchResponse with ranked results and the tier that served them
    """
    try:
        domain_query = query_params_to_domain(
            q, sector, min_market_cap, max_market_cap, limit
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    try:
        domain_response = service.search(domain_query)
    except _UNAVAILABLE as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        )

    return domain_response_to_api(domain_response)


@router.get("/sectors", response_model=api.SectorsResponse)
def list_sectors(
    service: SearchService = Depends(get_search_service),
) -> api.SectorsResponse:
    """List the distinct sectors available for filtering."""
    try:
        return api.SectorsResponse(sectors=service.list_sectors())
    except _UNAVAILABLE as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        )


@router.get("/health")
def health_check(
    service: SearchService = Depends(get_search_service),
) -> dict:
    """
    Check system health and component readiness.

    Returns the status of all search components:
    - vector_index: vector storage exists and can be queried
    - catalog: catalog store reachable
    - overall: True only if all components are ready
    """
    health_status = service.get_health_status()

    return {
        "status": "ok" if health_status["overall"] else "degraded",
        "components": {
            "vector_index": health_status["vector_index"],
            "catalog": health_status["catalog"],
        },
        "overall": health_status["overall"],
    }
