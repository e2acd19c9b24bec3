# api/nl_query.py
"""
Natural-Language Query API
"non-stop flights under 20000" -> structured filters -> catalog results
"""

import time

from fastapi import APIRouter, Depends
from loguru import logger

from ..config import Settings
from ..errors import UnparseableCommandError, UnsafeQueryError
from ..interfaces import ListingQuery, ListingRepository
from ..parsers import parse_filter_query, validate_query_safety
from ..schemas import NLQueryRequest, NLQueryResult
from .dependencies import enforce_rate_limit, get_listing_repository, get_settings


router = APIRouter(
    prefix="/api/ai/nl-query",
    tags=["AI Natural Language Query"],
    dependencies=[Depends(enforce_rate_limit)]
)


@router.post("")
def run_nl_query(
    request: NLQueryRequest,
    repository: ListingRepository = Depends(get_listing_repository),
    settings: Settings = Depends(get_settings)
):
    """
    Parse a search phrase, validate it, then execute it against the catalog.
    """
    parsed = parse_filter_query(request.natural_language, request.category)

    if parsed.is_empty():
        raise UnparseableCommandError(
            "No filters, sorting or limit could be understood from the query"
        )

    # Validate query safety BEFORE executing
    if not validate_query_safety(parsed):
        raise UnsafeQueryError()

    query = ListingQuery.from_parsed(
        parsed,
        request.category,
        default_limit=settings.NL_QUERY_DEFAULT_RESULTS,
        max_limit=settings.NL_QUERY_MAX_RESULTS
    )
    listings = repository.search(request.category, query)

    result = NLQueryResult(
        id=f"QUERY_{int(time.time() * 1000)}",
        natural_language=request.natural_language,
        parsed_query=parsed,
        category=request.category,
        results_count=len(listings),
        results=[listing.to_record() for listing in listings]
    )

    logger.info(f"NL query on {request.category.value} returned {result.results_count} results")

    return {
        "success": True,
        "data": result.model_dump(by_alias=True, mode="json", exclude_none=True),
        "message": "Query executed successfully"
    }
