"""
Cache management endpoints.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from itemscan.api.dependencies import get_cached_search_cache
from itemscan.cache.search_cache import SearchCache


router = APIRouter()


class CacheStatsResponse(BaseModel):
    """Cache statistics."""
    text_entries: int
    image_entries: int
    total_size_bytes: int = Field(..., description="Approximate JSON size of all entries")
    hit_rate: float = Field(..., ge=0, le=1)
    hits: int
    misses: int


@router.get("/cache/stats", response_model=CacheStatsResponse)
async def cache_stats(cache: SearchCache = Depends(get_cached_search_cache)):
    """Entry counts, size and hit rate of the search caches."""
    return CacheStatsResponse(**cache.get_cache_stats())


@router.delete("/cache", response_model=CacheStatsResponse)
async def clear_cache(cache: SearchCache = Depends(get_cached_search_cache)):
    """Empty both search caches and reset the counters."""
    cache.clear_cache()
    return CacheStatsResponse(**cache.get_cache_stats())
