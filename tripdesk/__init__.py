# tripdesk/__init__.py
"""
TripDesk AI Service Package

Deterministic natural-language tooling for a travel catalog:
- Natural-language search (phrase -> filters, sort, limit)
- Content editing (instruction -> previewed field delta -> apply/reject)
- Recommendations (weighted scoring of candidate listings)

Listings: flights, hotels, buses, activities
"""

__version__ = "1.0.0"

# Package structure:
# tripdesk/
# ├── __init__.py           <- This file
# ├── main.py               <- FastAPI application factory
# ├── config.py             <- Configuration settings
# ├── errors.py             <- API error hierarchy
# │
# ├── api/                  <- FastAPI Routers
# │   ├── nl_query.py       <- /api/ai/nl-query
# │   ├── content_edit.py   <- /api/ai/content-edit
# │   ├── recommendations.py <- /api/ai/recommendations
# │   ├── listings.py       <- /api/listings/{category}
# │   └── health.py         <- /api/health
# │
# ├── parsers/              <- Rule-table parsers
# │   ├── patterns.py       <- Rule groups and match policies
# │   ├── query_parser.py   <- Search phrase to filters
# │   ├── edit_parser.py    <- Edit instruction to field delta
# │   └── safety.py         <- Query safety validator
# │
# ├── algorithms/
# │   └── recommendation_scorer.py
# │
# ├── interfaces/           <- Data Stores
# │   ├── kv_store.py       <- Memory / Redis key-value store
# │   ├── listing_store.py  <- Memory / MySQL catalog
# │   ├── seed_catalog.py   <- Sample listings
# │   ├── edit_store.py     <- Edit previews
# │   └── rate_limiter.py   <- Fixed-window limiter
# │
# └── schemas/              <- Pydantic Models
#     └── travel_schemas.py
