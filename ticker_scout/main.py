"""
Main application entry point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ticker_scout.api.v1.search_endpoints import router as search_router
from ticker_scout.config import Settings
from ticker_scout.container import ServiceContainer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the service container on startup and release it on shutdown."""
    container = ServiceContainer.from_settings(Settings.from_env())
    app.state.container = container
    logger.info("Ticker Scout API started")
    try:
        yield
    finally:
        container.close()


def create_app(use_lifespan: bool = True) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        use_lifespan: Build the container from the environment on startup.
                      Tests pass False and set `app.state.container` themselves.
    """
    app = FastAPI(
        title="Ticker Scout API",
        description="Semantic search over a catalog of public companies.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan if use_lifespan else None,
    )

    # Include API routers
    app.include_router(search_router, prefix="/api/v1", tags=["search"])

    @app.get("/")
    def read_root():
        """Root endpoint."""
        return {
            "message": "Welcome to the Ticker Scout API",
            "docs": "/docs",
            "health": "/api/v1/health"
        }

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("ticker_scout.main:app", host="0.0.0.0", port=8000, reload=True)
