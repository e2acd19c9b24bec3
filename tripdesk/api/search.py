# api/search.py
"""
Search API
Structured multi-filter search (route, date, class, price range, rating,
sort) with results cached per request for a few minutes.
"""

from fastapi import APIRouter, Depends
from loguru import logger

from ..config import Settings
from ..interfaces import ListingQuery, ListingRepository, SearchCache
from ..schemas import SearchRequest
from .dependencies import enforce_rate_limit, get_listing_repository, get_search_cache, get_settings


router = APIRouter(
    prefix="/api/search",
    tags=["Search"],
    dependencies=[Depends(enforce_rate_limit)]
)


@router.post("")
def search_listings(
    request: SearchRequest,
    repository: ListingRepository = Depends(get_listing_repository),
    cache: SearchCache = Depends(get_search_cache),
    settings: Settings = Depends(get_settings)
):
    """Search one category; identical searches are served from the cache"""
    params = request.model_dump(by_alias=True, mode="json", exclude_none=True)
    query = ListingQuery.from_search(request, limit=settings.SEARCH_MAX_RESULTS)

    results, cached = cache.get_or_compute(
        request.category,
        params,
        lambda: [listing.to_record() for listing in repository.search(request.category, query)]
    )

    logger.info(
        f"Search on {request.category.value} returned {len(results)} results"
        f"{' (cached)' if cached else ''}"
    )

    return {
        "success": True,
        "data": {
            "results": results,
            "category": request.category.value,
            "filters": {
                k: params[k]
                for k in ("from", "to", "departDate", "class", "priceRange", "rating")
                if k in params
            },
        },
        "count": len(results),
        "cached": cached
    }
