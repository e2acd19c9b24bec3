# api/dependencies.py
"""
FastAPI dependencies
Stores live on app.state (built in the lifespan) and reach routes via Depends.
"""

from datetime import datetime, timezone

from fastapi import Depends, Request, Response

from ..config import Settings
from ..errors import RateLimitExceededError
from ..interfaces import EditStore, ListingRepository, RateLimiter, SearchCache


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_listing_repository(request: Request) -> ListingRepository:
    return request.app.state.listing_repository


def get_edit_store(request: Request) -> EditStore:
    return request.app.state.edit_store


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_search_cache(request: Request) -> SearchCache:
    return request.app.state.search_cache


def client_identifier(request: Request) -> str:
    """Forwarded client address, falling back to the socket peer"""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"


def enforce_rate_limit(
    request: Request,
    response: Response,
    limiter: RateLimiter = Depends(get_rate_limiter)
) -> None:
    """
    Count the request against the caller's window

    Raises:
        RateLimitExceededError: once the window is full
    """
    result = limiter.check(client_identifier(request))
    reset_at = datetime.fromtimestamp(result.reset_at, tz=timezone.utc).isoformat()

    if not result.allowed:
        raise RateLimitExceededError(
            retry_after=result.retry_after(limiter.clock()),
            headers={
                "X-RateLimit-Limit": str(limiter.max_requests),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": reset_at,
            }
        )

    response.headers["X-RateLimit-Limit"] = str(limiter.max_requests)
    response.headers["X-RateLimit-Remaining"] = str(result.remaining)
    response.headers["X-RateLimit-Reset"] = reset_at
