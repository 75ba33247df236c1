"""
FastAPI application entry point for the Brand Snapshot API.

Configures logging, CORS, the database pool lifecycle and the API routers.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from brand_snapshot import __version__
from brand_snapshot.api import api_router
from brand_snapshot.core.config import get_settings
from brand_snapshot.core.database import init_db, close_db
from brand_snapshot.models.schemas import HealthResponse

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: initialize the database pool (startup continues if it fails;
    the pool is created lazily on the first request instead).
    Shutdown: close the pool.
    """
    logger.info("Brand Snapshot API starting")
    try:
        await init_db()
        logger.info("Database connection pool initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")

    yield

    logger.info("Brand Snapshot API shutting down")
    try:
        await close_db()
        logger.info("Database connection pool closed")
    except Exception as e:
        logger.error(f"Error closing database pool: {e}")


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    settings = get_settings()

    application = FastAPI(
        title="Brand Snapshot API",
        version=__version__,
        description=(
            "Compares a performance metric across two months or quarters and "
            "correlates the change with coaching activity from one period earlier."
        ),
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=["*"],
    )

    application.include_router(api_router)

    @application.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """Health check endpoint for monitoring and load balancer probes."""
        return HealthResponse(status="healthy")

    @application.get("/")
    async def root():
        """API name and version."""
        return {
            "name": "Brand Snapshot API",
            "version": __version__,
            "docs": "/docs",
            "openapi": "/openapi.json",
        }

    return application


app = create_app()


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "brand_snapshot.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
