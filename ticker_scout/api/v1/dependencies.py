"""
FastAPI dependencies for dependency injection.

Services come from the ServiceContainer stored on `app.state` by the
application lifespan. Tests attach a container built from fakes instead.
"""

from fastapi import Request

from ticker_scout.container import ServiceContainer
from ticker_scout.domain.services import SearchService


def get_container(request: Request) -> ServiceContainer:
    """Provide the application's service container."""
    return request.app.state.container


def get_search_service(request: Request) -> SearchService:
    """Provide the Search Service with all dependencies wired."""
    return get_container(request).search_service()
