# api/listings.py
"""
Listings API
Catalog browse (filtered lists, single listings) and listing writes per category.
Writes hold the listing lock shared with edit apply and drop cached searches.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query

from ..errors import InvalidEditError, ListingNotFoundError
from ..interfaces import EditStore, ListingQuery, ListingRepository, SearchCache
from ..schemas import Category
from .dependencies import get_edit_store, get_listing_repository, get_search_cache


router = APIRouter(prefix="/api/listings", tags=["Listings"])


@router.get("/{category}")
def list_listings(
    category: Category,
    search: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    min_rating: Optional[float] = Query(None, alias="minRating", ge=0, le=5),
    class_type: Optional[str] = Query(None, alias="classType"),
    bus_type: Optional[str] = Query(None, alias="busType"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    repository: ListingRepository = Depends(get_listing_repository)
):
    """List listings in a category with optional filters, paginated"""
    query = ListingQuery(
        min_price=min_price,
        max_price=max_price,
        min_rating=min_rating,
        class_type=class_type if category is Category.FLIGHTS else None,
        bus_type=bus_type if category is Category.BUSES else None,
        search=search,
        limit=limit,
        offset=offset
    )
    listings = repository.search(category, query)

    return {
        "success": True,
        "data": [listing.to_record() for listing in listings],
        "count": len(listings)
    }


@router.get("/{category}/{listing_id}")
def get_listing(
    category: Category,
    listing_id: str,
    repository: ListingRepository = Depends(get_listing_repository)
):
    """Fetch one listing"""
    listing = repository.get(category.listing_type, listing_id)
    if listing is None:
        raise ListingNotFoundError(f"{category.listing_type.value.capitalize()} {listing_id} not found")

    return {"success": True, "data": listing.to_record()}


# ============================================
# Writes
# ============================================

@router.post("/{category}", status_code=201)
def create_listing(
    category: Category,
    record: Dict[str, Any] = Body(...),
    repository: ListingRepository = Depends(get_listing_repository),
    cache: SearchCache = Depends(get_search_cache)
):
    """Add a listing; the catalog assigns its id and createdAt"""
    listing = repository.create(category, record)
    cache.invalidate(category)

    return {
        "success": True,
        "data": listing.to_record(),
        "message": f"{category.listing_type.value.capitalize()} created successfully"
    }


@router.put("/{category}/{listing_id}")
def update_listing(
    category: Category,
    listing_id: str,
    changes: Dict[str, Any] = Body(...),
    repository: ListingRepository = Depends(get_listing_repository),
    edit_store: EditStore = Depends(get_edit_store),
    cache: SearchCache = Depends(get_search_cache)
):
    """Update some fields of a listing"""
    if not changes:
        raise InvalidEditError("No fields to update")

    with edit_store.listing_locked(category.listing_type, listing_id):
        listing = repository.update(category.listing_type, listing_id, changes)
    cache.invalidate(category)

    return {
        "success": True,
        "data": listing.to_record(),
        "message": f"{category.listing_type.value.capitalize()} updated successfully"
    }


@router.delete("/{category}/{listing_id}")
def delete_listing(
    category: Category,
    listing_id: str,
    repository: ListingRepository = Depends(get_listing_repository),
    edit_store: EditStore = Depends(get_edit_store),
    cache: SearchCache = Depends(get_search_cache)
):
    """Remove a listing"""
    with edit_store.listing_locked(category.listing_type, listing_id):
        listing = repository.delete(category.listing_type, listing_id)
    cache.invalidate(category)

    return {
        "success": True,
        "data": listing.to_record(),
        "message": f"{category.listing_type.value.capitalize()} deleted successfully"
    }
