# schemas/__init__.py
"""
Pydantic Schemas Package

Contains all Pydantic v2 models for:
- Listings (flight, hotel, bus, activity)
- Natural-language query results
- Content edits
- Recommendations
"""

from .travel_schemas import (
    # Enums
    Category, ListingType, EditStatus, EditAction,
    # Listings
    Flight, Hotel, Bus, Activity, Listing, LISTING_ADAPTER, LISTING_MODELS,
    listing_from_record, parse_duration_minutes,
    # Query
    SortSpec, ParsedFilterQuery, NLQueryRequest, NLQueryResult,
    # Edits
    ContentEdit, ContentEditRequest, ContentEditActionRequest,
    # Recommendations
    RecommendationContext, RecommendationRequest, Recommendation,
    # Search
    SearchRequest,
    utc_now_iso
)

__all__ = [
    # Enums
    "Category", "ListingType", "EditStatus", "EditAction",
    # Listings
    "Flight", "Hotel", "Bus", "Activity", "Listing", "LISTING_ADAPTER", "LISTING_MODELS",
    "listing_from_record", "parse_duration_minutes",
    # Query
    "SortSpec", "ParsedFilterQuery", "NLQueryRequest", "NLQueryResult",
    # Edits
    "ContentEdit", "ContentEditRequest", "ContentEditActionRequest",
    # Recommendations
    "RecommendationContext", "RecommendationRequest", "Recommendation",
    # Search
    "SearchRequest",
    "utc_now_iso"
]
