"""
Image and text search endpoints.
"""

import base64
import binascii
import time
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Query

from itemscan.api.dependencies import (
    get_cached_catalog,
    get_cached_orchestrator,
    get_cached_search_cache,
)
from itemscan.api.schemas.common import ItemSchema, RecognitionResultSchema
from itemscan.api.schemas.search import (
    ImageSearchRequest,
    ImageSearchResponse,
    ImageUpload,
    TextSearchResponse,
)
from itemscan.cache.search_cache import SearchCache
from itemscan.core.catalog import MAX_SEARCH_RESULTS, ItemCatalog
from itemscan.core.exceptions import HashingError, InvalidInputError
from itemscan.core.types import ImageInput, SearchOptions
from itemscan.recognizers.orchestrator import RecognitionOrchestrator
from itemscan.utils.image import sniff_content_type


router = APIRouter()


def _decode_upload(upload: ImageUpload) -> ImageInput:
    """Decode a base64 upload."""
    try:
        data = base64.b64decode(upload.data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid base64 image '{upload.name}': {e}")
    content_type = upload.content_type
    if content_type is None and not Path(upload.name).suffix:
        content_type = sniff_content_type(data)
    return ImageInput(name=upload.name, content_type=content_type, data=data)


@router.post("/search/image", response_model=ImageSearchResponse)
def search_by_image(
    request: ImageSearchRequest,
    orchestrator: RecognitionOrchestrator = Depends(get_cached_orchestrator),
):
    """
    Identify the items in one or more screenshots.

    Repeating a search with the same images (in any order) is answered from
    the cache. An empty result list means nothing was recognized.
    """
    images = [_decode_upload(u) for u in request.images]
    options = SearchOptions(
        max_results=request.max_results,
        min_confidence=request.min_confidence,
        include_variants=request.include_variants,
        detect_multiple_items=request.detect_multiple_items,
    )

    start = time.time()
    try:
        results = orchestrator.search_by_images(images, options)
    except (InvalidInputError, HashingError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ImageSearchResponse(
        results=[RecognitionResultSchema.from_result(r) for r in results],
        count=len(results),
        time_ms=(time.time() - start) * 1000,
    )


@router.get("/search/text", response_model=TextSearchResponse)
def search_by_text(
    q: str = Query(..., description="Search query"),
    limit: int = Query(10, ge=1, le=MAX_SEARCH_RESULTS),
    cache: SearchCache = Depends(get_cached_search_cache),
    catalog: ItemCatalog = Depends(get_cached_catalog),
):
    """Search items by name, answering repeated queries from the cache."""
    if not q.strip():
        raise HTTPException(status_code=400, detail=str(InvalidInputError("Empty search query")))

    cached = cache.get_cached_text_search(q)
    if cached is not None:
        return TextSearchResponse(
            query=q,
            items=[ItemSchema.from_item(i) for i in cached[:limit]],
            cached=True,
        )

    # The cache holds the full match list; limit applies per response
    items = catalog.search(q)
    cache.set_cached_text_search(q, items)
    return TextSearchResponse(query=q, items=[ItemSchema.from_item(i) for i in items[:limit]])
