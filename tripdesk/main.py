"""
TripDesk AI Service - FastAPI Application
Natural-language search, content editing and recommendations for the
travel catalog (flights, hotels, buses, activities).
"""

import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from . import __version__
from .api import (
    content_edit_router, health_router, listings_router, nl_query_router, recommendations_router,
    search_router
)
from .config import Settings, settings as default_settings
from .errors import TripDeskError
from .interfaces import (
    EditStore, KeyValueStore, ListingRepository, RateLimiter, SearchCache,
    create_listing_repository, create_store
)


def configure_logging(level: str = "INFO"):
    """Single stderr sink at the configured level"""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="{time:YYYY-MM-DD HH:mm:ss} - {name} - {level} - {message}"
    )


def create_app(
    settings: Optional[Settings] = None,
    listing_repository: Optional[ListingRepository] = None,
    kv_store: Optional[KeyValueStore] = None
) -> FastAPI:
    """
    Build the application.

    Stores passed in are used as-is (tests); otherwise they are created from
    settings when the app starts and closed when it stops.
    """
    settings = settings or default_settings

    # ============================================
    # Application Lifespan
    # ============================================

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler"""
        logger.info("=" * 50)
        logger.info("Starting TripDesk AI Service")
        logger.info("=" * 50)
        logger.info(f"Environment: {settings.API_ENV}")

        store = kv_store or create_store(settings)
        repository = listing_repository or create_listing_repository(settings)

        app.state.settings = settings
        app.state.kv_store = store
        app.state.listing_repository = repository
        app.state.edit_store = EditStore.from_settings(store, settings)
        app.state.rate_limiter = RateLimiter.from_settings(store, settings)
        app.state.search_cache = SearchCache.from_settings(store, settings)

        logger.info(f"  ✓ key-value store: {store.backend}")
        logger.info(f"  ✓ listings: {repository.backend}")

        yield

        # Injected stores belong to the caller
        if kv_store is None:
            store.close()
        if listing_repository is None:
            repository.close()
        logger.info("TripDesk AI Service shutdown complete")

    # ============================================
    # FastAPI Application
    # ============================================

    app = FastAPI(
        title="TripDesk AI Service",
        description="Natural-language search, content editing and recommendations for travel listings.",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ============================================
    # Error Handlers
    # ============================================

    @app.exception_handler(TripDeskError)
    async def tripdesk_error_handler(request: Request, exc: TripDeskError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "Validation failed",
                "code": "VALIDATION_ERROR",
                "message": "Request body or parameters are invalid",
                "details": jsonable_encoder(exc.errors()),
            }
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Internal server error",
                "code": "INTERNAL_ERROR",
                "message": str(exc) or exc.__class__.__name__,
            }
        )

    # ============================================
    # Routes
    # ============================================

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "service": "TripDesk AI Service",
            "version": __version__,
            "status": "running",
            "docs": "/docs",
            "endpoints": [
                "/api/health",
                "/api/ai/nl-query",
                "/api/ai/content-edit",
                "/api/ai/recommendations",
                "/api/search",
                "/api/listings/{category}"
            ]
        }

    app.include_router(health_router)
    app.include_router(listings_router)
    app.include_router(nl_query_router)
    app.include_router(content_edit_router)
    app.include_router(recommendations_router)
    app.include_router(search_router)

    return app


configure_logging(default_settings.LOG_LEVEL)
app = create_app()


# ============================================
# Main
# ============================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "tripdesk.main:app",
        host=default_settings.API_HOST,
        port=default_settings.API_PORT,
        reload=default_settings.API_ENV == "development"
    )
