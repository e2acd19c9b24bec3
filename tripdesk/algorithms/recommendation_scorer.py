"""
Recommendation Score Algorithm
Scores candidate listings for a user request (0-100)

Algorithm Components (summed on a base of 50, then clamped to 0-100):
1. Price Fit (-10 to +30 points) - Absolute price tiers, or price/budget ratio
2. Rating (rating x 15 points) - Heavily weighted, up to +75
3. Availability (0-15 points) - Seats, rooms or spots left
4. Category Bonus (0-45 points) - Direct flights, amenities, sleeper buses, ...

Each component that scores also contributes a human readable reason.
"""

from typing import Any, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union

from loguru import logger
from pydantic import ValidationError

from ..schemas import (
    Activity, Bus, Flight, Hotel, ListingType, RecommendationContext,
    listing_from_record
)
from ..schemas.travel_schemas import ListingBase


BASE_SCORE = 50
RATING_WEIGHT = 15

Item = Union[ListingBase, Mapping[str, Any]]
Context = Union[RecommendationContext, Mapping[str, Any], None]


class RecommendationScore(NamedTuple):
    """
    Breakdown of recommendation score components
    """
    price_score: int
    rating_score: float
    availability_score: int
    category_score: int
    total_score: float        # 0-100 after clamping
    reasons: List[str]

    def __repr__(self) -> str:
        return (
            f"RecommendationScore(total={self.total_score:.1f}, "
            f"price={self.price_score}, "
            f"rating={self.rating_score:.1f}, "
            f"availability={self.availability_score}, "
            f"category={self.category_score})"
        )


class ScoredListing(NamedTuple):
    item: Item
    score: RecommendationScore


def score_listing(
    item: Item,
    context: Context = None,
    listing_type: Optional[Union[ListingType, str]] = None
) -> RecommendationScore:
    """
    Score one candidate listing

    Args:
        item: Listing model, or a flat camelCase record
        context: Optional budget / price range for the request
        listing_type: Variant of a record that does not carry listingType

    Returns:
        RecommendationScore: Component scores, clamped total and reasons

    Example:
        >>> s = score_listing({"price": 4000, "rating": 4.6, "availableSeats": 25})
        >>> s.total_score, s.reasons
        (100, ['💰 Great value', '⭐ Highly rated', '✅ Excellent availability'])
    """
    listing = _as_listing(item, listing_type)
    budget = _budget(context)
    reasons: List[str] = []

    # ============================================
    # 1. Price Fit
    # ============================================
    price_score, reason = _calculate_price_score(_price_of(item, listing), budget)
    if reason:
        reasons.append(reason)

    # ============================================
    # 2. Rating
    # ============================================
    rating_score, reason = _calculate_rating_score(_rating_of(item, listing))
    if reason:
        reasons.append(reason)

    # ============================================
    # 3. Availability
    # ============================================
    availability_score, reason = _calculate_availability_score(_availability_of(item, listing))
    reasons.append(reason)

    # ============================================
    # 4. Category Bonus
    # ============================================
    category_score, category_reasons = _calculate_category_score(listing)
    reasons.extend(category_reasons)

    raw = BASE_SCORE + price_score + rating_score + availability_score + category_score
    total = max(0, min(100, raw))

    breakdown = RecommendationScore(
        price_score=price_score,
        rating_score=rating_score,
        availability_score=availability_score,
        category_score=category_score,
        total_score=total,
        reasons=reasons
    )

    logger.debug(f"Recommendation score calculated: {breakdown}")

    return breakdown


def calculate_confidence(score: float, reason_count: int) -> float:
    """
    Confidence in a recommendation (50-100)

    Base 50, plus +30/+20/+10 for scores of at least 80/60/40,
    plus 3 per reason up to 20.
    """
    confidence = 50

    if score >= 80:
        confidence += 30
    elif score >= 60:
        confidence += 20
    elif score >= 40:
        confidence += 10

    confidence += min(20, reason_count * 3)

    return min(100, confidence)


def recommend(
    items: Sequence[Item],
    context: Context = None,
    limit: int = 5,
    listing_type: Optional[Union[ListingType, str]] = None
) -> List[ScoredListing]:
    """
    Score candidates and keep the best ones

    Ties keep their candidate order.

    Args:
        items: Candidate listings
        context: Optional budget / price range
        limit: Maximum number of results (default: 5)
        listing_type: Variant of records that do not carry listingType

    Returns:
        List of ScoredListing sorted by score, highest first
    """
    scored = [
        ScoredListing(item=item, score=score_listing(item, context, listing_type))
        for item in items
    ]
    scored.sort(key=lambda s: s.score.total_score, reverse=True)

    logger.info(f"Ranked {len(scored)} candidates, returning top {min(limit, len(scored))}")
    return scored[:limit]


# ============================================
# Component scores
# ============================================

def _calculate_price_score(price: float, budget: Optional[float]) -> Tuple[int, Optional[str]]:
    """
    Price fit (-10 to +30)

    Without a budget:
    - Under 5000: +25
    - Under 15000: +15
    - Over 50000: +5
    - Otherwise: 0

    With a budget, by price/budget ratio:
    - <= 0.7: +30, <= 0.9: +20, <= 1.0: +10, over: -10
    """
    if not budget:
        if price < 5000:
            return 25, "💰 Great value"
        if price < 15000:
            return 15, "👌 Good price"
        if price > 50000:
            return 5, "💎 Premium"
        return 0, None

    ratio = price / budget
    if ratio <= 0.7:
        return 30, "💰 Well under budget"
    if ratio <= 0.9:
        return 20, "✅ Within budget"
    if ratio <= 1.0:
        return 10, "⚖️ At budget limit"
    return -10, "⚠️ Over budget"


def _calculate_rating_score(rating: Optional[float]) -> Tuple[float, Optional[str]]:
    if not rating:
        return 0, None

    score = rating * RATING_WEIGHT
    if rating >= 4.5:
        return score, "⭐ Highly rated"
    if rating >= 4.0:
        return score, "👍 Good rating"
    return score, None


def _calculate_availability_score(available: int) -> Tuple[int, str]:
    if available > 20:
        return 15, "✅ Excellent availability"
    if available > 10:
        return 10, "👍 Good availability"
    if available > 5:
        return 5, "⚡ Limited seats"
    return 0, "⚠️ Very limited"


def _calculate_category_score(listing: Optional[ListingBase]) -> Tuple[int, List[str]]:
    """Fixed bonuses per listing variant"""
    score = 0
    reasons: List[str] = []

    if isinstance(listing, Flight):
        if listing.is_direct:
            score += 20
            reasons.append("✈️ Direct flight")
        if listing.meal_included:
            score += 10
            reasons.append("🍽️ Meals included")
        if listing.class_type in ("business", "first"):
            score += 15
            reasons.append("👔 Premium class")

    elif isinstance(listing, Hotel):
        if len(listing.amenities) >= 5:
            score += 20
            reasons.append("🏨 Excellent amenities")
        elif len(listing.amenities) >= 3:
            score += 10
            reasons.append("🛎️ Good amenities")

    elif isinstance(listing, Bus):
        if listing.bus_type == "sleeper":
            score += 15
            reasons.append("🛏️ Sleeper bus")
        elif listing.bus_type == "semi-sleeper":
            score += 10
            reasons.append("💺 Semi-sleeper")

    elif isinstance(listing, Activity):
        minutes = listing.duration_minutes
        if minutes is not None and 4 * 60 <= minutes <= 8 * 60:
            score += 15
            reasons.append("⏱️ Perfect duration")
        if listing.max_participants > 20:
            score += 10
            reasons.append("🎉 Popular activity")

    return score, reasons


# ============================================
# Listing access
# ============================================

def _as_listing(item: Item, listing_type: Optional[Union[ListingType, str]]) -> Optional[ListingBase]:
    """Typed view of a candidate; None for partial records"""
    if isinstance(item, ListingBase):
        return item
    if listing_type is None and "listingType" not in item:
        return None
    try:
        return listing_from_record(dict(item), listing_type)
    except ValidationError as e:
        logger.debug(f"Scoring partial record {item.get('id')}: {e.error_count()} validation errors")
        return None


def _price_of(item: Item, listing: Optional[ListingBase]) -> float:
    if listing is not None:
        return listing.listing_price
    return item.get("price") or item.get("pricePerNight") or 0


def _rating_of(item: Item, listing: Optional[ListingBase]) -> Optional[float]:
    if listing is not None:
        return getattr(listing, "rating", None)
    return item.get("rating")


def _availability_of(item: Item, listing: Optional[ListingBase]) -> int:
    if listing is not None:
        return listing.availability
    return (
        item.get("availableSeats")
        or item.get("availableRooms")
        or item.get("availableSpots")
        or 0
    )


def _budget(context: Context) -> Optional[float]:
    if context is None:
        return None
    if isinstance(context, RecommendationContext):
        return context.budget
    return context.get("budget")

