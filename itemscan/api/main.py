"""
FastAPI application factory and server startup.

Usage:
    uvicorn itemscan.api.main:app --reload --port 8000
"""

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables before importing itemscan modules
load_dotenv()

from itemscan import __version__
from itemscan.api.routes import cache, health, search
from itemscan.config import get_config


logging.basicConfig(
    level=get_config().log_level,
    format="%(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup/shutdown events.

    Builds the search cache and orchestrator on startup and writes the
    cache snapshot on shutdown.
    """
    from itemscan.api.dependencies import (
        get_cached_orchestrator,
        get_cached_search_cache,
        check_readiness,
    )

    logger.info("itemscan API starting...")
    _ = get_cached_orchestrator()

    status = check_readiness()
    logger.info("Catalog items: %d", status.catalog_items)
    logger.info("Gemini API available: %s", status.gemini_available)
    if status.gemini_error:
        logger.warning("Gemini unavailable (%s), searches will use the catalog fallback", status.gemini_error)

    yield

    logger.info("itemscan API shutting down...")
    get_cached_search_cache().close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="itemscan API",
        description="Cached item search by text and by screenshot",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",
            "http://localhost:5173",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(search.router, tags=["Search"])
    app.include_router(cache.router, tags=["Cache"])

    return app


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "itemscan.api.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
