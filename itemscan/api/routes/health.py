"""
Health check endpoints.
"""

from fastapi import APIRouter
from pydantic import BaseModel

from itemscan import __version__
from itemscan.api.dependencies import check_readiness


router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str = __version__


class ReadinessResponse(BaseModel):
    """Readiness check response with component status."""
    ready: bool
    catalog_items: int
    gemini: dict


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Liveness check endpoint.

    Returns immediately to indicate the server is running.
    Does not check external dependencies.
    """
    return HealthResponse(status="ok")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check():
    """
    Readiness check endpoint.

    Reports whether the item catalog is loaded and whether the Gemini
    recognizer is configured.
    """
    return ReadinessResponse(**check_readiness().to_dict())
