# api/health.py
"""
Health API
Reports store connectivity: 200 when every store answers, 503 otherwise.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from .. import __version__


router = APIRouter(prefix="/api", tags=["Health"])


@router.get("/health")
def health_check(request: Request):
    """Detailed health check"""
    state = request.app.state
    listing_repository = state.listing_repository
    kv_store = state.kv_store

    components = {
        "listings": {
            "backend": listing_repository.backend,
            "status": "connected" if listing_repository.ping() else "unavailable",
        },
        "kv_store": {
            "backend": kv_store.backend,
            "status": "connected" if kv_store.ping() else "unavailable",
        },
    }
    healthy = all(c["status"] == "connected" for c in components.values())

    return JSONResponse(
        status_code=200 if healthy else 503,
        headers={"Cache-Control": "no-store, must-revalidate"},
        content={
            "status": "healthy" if healthy else "degraded",
            "service": "tripdesk-ai",
            "version": __version__,
            "components": components,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    )
