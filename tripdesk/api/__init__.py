# api/__init__.py
"""
API Routers
"""

from .nl_query import router as nl_query_router
from .content_edit import router as content_edit_router
from .recommendations import router as recommendations_router
from .listings import router as listings_router
from .health import router as health_router
from .search import router as search_router

__all__ = [
    "nl_query_router",
    "content_edit_router",
    "recommendations_router",
    "listings_router",
    "health_router",
    "search_router",
]
