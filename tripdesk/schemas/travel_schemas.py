# schemas/travel_schemas.py
"""
Pydantic v2 schemas for the TripDesk service
Listings, parsed queries, content edits, recommendations and API requests.
Wire format uses camelCase field names (catalog schema convention).
"""

import re
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated, Any, ClassVar, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator
from pydantic.alias_generators import to_camel


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ============================================
# Enums
# ============================================

class Category(str, Enum):
    """Search category (plural, as used by search endpoints)"""
    FLIGHTS = "flights"
    HOTELS = "hotels"
    BUSES = "buses"
    ACTIVITIES = "activities"

    @property
    def listing_type(self) -> "ListingType":
        return ListingType(CATEGORY_LISTING_TYPES[self.value])


class ListingType(str, Enum):
    """Listing kind (singular, as used by edit endpoints)"""
    FLIGHT = "flight"
    HOTEL = "hotel"
    BUS = "bus"
    ACTIVITY = "activity"

    @property
    def category(self) -> Category:
        return Category(LISTING_TYPE_CATEGORIES[self.value])


CATEGORY_LISTING_TYPES = {
    "flights": "flight",
    "hotels": "hotel",
    "buses": "bus",
    "activities": "activity",
}
LISTING_TYPE_CATEGORIES = {v: k for k, v in CATEGORY_LISTING_TYPES.items()}


class EditStatus(str, Enum):
    PREVIEW = "preview"
    APPLIED = "applied"
    REJECTED = "rejected"


class EditAction(str, Enum):
    APPLY = "apply"
    REJECT = "reject"
    ROLLBACK = "rollback"


class CamelModel(BaseModel):
    """Base model serialising to camelCase"""
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


# ============================================
# Listings (tagged union on listingType)
# ============================================

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)\s*(h|hr|hrs|hour|hours|m|min|mins|minutes)\b")


def parse_duration_minutes(duration: Optional[str]) -> Optional[float]:
    """'6h 30m' -> 390, '4 hours' -> 240; None when nothing parses"""
    if not duration:
        return None
    total = 0.0
    found = False
    for value, unit in _DURATION_PART.findall(duration.lower()):
        found = True
        total += float(value) * (60 if unit.startswith("h") else 1)
    return total if found else None


class ListingBase(CamelModel, ABC):
    """Fields shared by every listing"""
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="ignore")

    id: str
    created_at: Optional[str] = None

    # Wire names of the price and availability columns for this variant
    PRICE_FIELD: ClassVar[str] = "price"
    AVAILABILITY_FIELD: ClassVar[str] = "availableSeats"

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        # MySQL rows carry integer ids
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    @abstractmethod
    def listing_price(self) -> float:
        """Price used for filtering and scoring"""

    @property
    @abstractmethod
    def availability(self) -> int:
        """Seats, rooms or spots left"""

    @property
    def duration_minutes(self) -> Optional[float]:
        return parse_duration_minutes(getattr(self, "duration", None))

    def to_record(self) -> Dict[str, Any]:
        """Flat camelCase mapping, as stored and returned over the wire"""
        return self.model_dump(by_alias=True, mode="json")


class Flight(ListingBase):
    listing_type: Literal["flight"] = "flight"
    airline: str
    flight_number: str
    from_city: str
    to_city: str
    departure_time: str
    arrival_time: str
    duration: str
    price: int = Field(..., ge=0)
    available_seats: int = Field(..., ge=0)
    class_type: Literal["economy", "business", "first"] = "economy"
    stops: int = Field(0, ge=0)
    baggage_allowance: Optional[str] = None
    meal_included: bool = False
    rating: Optional[float] = Field(None, ge=0, le=5)

    @property
    def listing_price(self) -> float:
        return self.price

    @property
    def availability(self) -> int:
        return self.available_seats

    @property
    def is_direct(self) -> bool:
        return self.stops == 0 and "STOP" not in self.flight_number.upper()


class Hotel(ListingBase):
    listing_type: Literal["hotel"] = "hotel"
    name: str
    location: str
    city: str
    rating: float = Field(..., ge=0, le=5)
    price_per_night: int = Field(..., ge=0)
    amenities: List[str] = Field(default_factory=list)
    room_type: str
    available_rooms: int = Field(..., ge=0)
    check_in: str
    check_out: str

    PRICE_FIELD: ClassVar[str] = "pricePerNight"
    AVAILABILITY_FIELD: ClassVar[str] = "availableRooms"

    @property
    def listing_price(self) -> float:
        return self.price_per_night

    @property
    def availability(self) -> int:
        return self.available_rooms


class Bus(ListingBase):
    listing_type: Literal["bus"] = "bus"
    operator: str
    bus_number: str
    from_city: str
    to_city: str
    departure_time: str
    arrival_time: str
    duration: str
    price: int = Field(..., ge=0)
    available_seats: int = Field(..., ge=0)
    bus_type: Literal["seater", "sleeper", "semi-sleeper", "ac", "non-ac"] = "seater"
    amenities: List[str] = Field(default_factory=list)
    rating: Optional[float] = Field(None, ge=0, le=5)

    @property
    def listing_price(self) -> float:
        return self.price

    @property
    def availability(self) -> int:
        return self.available_seats


class Activity(ListingBase):
    listing_type: Literal["activity"] = "activity"
    title: str
    location: str
    city: str
    description: str
    category: str
    duration: str
    price: int = Field(..., ge=0)
    rating: float = Field(..., ge=0, le=5)
    max_participants: int = Field(..., ge=0)
    available_spots: int = Field(..., ge=0)
    includes: List[str] = Field(default_factory=list)

    AVAILABILITY_FIELD: ClassVar[str] = "availableSpots"

    @property
    def listing_price(self) -> float:
        return self.price

    @property
    def availability(self) -> int:
        return self.available_spots


Listing = Annotated[Union[Flight, Hotel, Bus, Activity], Field(discriminator="listing_type")]
LISTING_ADAPTER: TypeAdapter = TypeAdapter(Listing)

LISTING_MODELS = {
    ListingType.FLIGHT: Flight,
    ListingType.HOTEL: Hotel,
    ListingType.BUS: Bus,
    ListingType.ACTIVITY: Activity,
}


def listing_from_record(record: Dict[str, Any], listing_type: Optional[ListingType] = None):
    """Validate a flat mapping into the matching listing model"""
    data = dict(record)
    if listing_type is not None:
        data["listingType"] = ListingType(listing_type).value
    return LISTING_ADAPTER.validate_python(data)


# ============================================
# Natural-language query
# ============================================

class SortSpec(CamelModel):
    field: str
    order: Literal["asc", "desc"]


class ParsedFilterQuery(CamelModel):
    """Structured filter/sort/limit extracted from a search phrase"""
    filters: Dict[str, Any] = Field(default_factory=dict)
    sort: Optional[SortSpec] = None
    limit: Optional[int] = None

    def is_empty(self) -> bool:
        return not self.filters and self.sort is None and self.limit is None


class NLQueryRequest(CamelModel):
    natural_language: str = Field(..., min_length=1)
    category: Category


class NLQueryResult(CamelModel):
    id: str
    natural_language: str
    parsed_query: ParsedFilterQuery
    category: Category
    results_count: int
    results: List[Dict[str, Any]]
    created_at: str = Field(default_factory=utc_now_iso)
    is_safe: bool = True


# ============================================
# Content edits (preview -> apply / reject)
# ============================================

class ContentEdit(CamelModel):
    """Edit envelope; persisted in the edit store while in preview"""
    id: str
    target_type: ListingType
    target_id: str
    original_content: Dict[str, Any]
    proposed_content: Dict[str, Any]
    description: str
    status: EditStatus = EditStatus.PREVIEW
    created_by: str = "anonymous"
    created_at: str = Field(default_factory=utc_now_iso)
    changes: List[str]
    changed_fields: Dict[str, Any]
    applied_by: Optional[str] = None
    applied_at: Optional[str] = None
    rejected_by: Optional[str] = None
    rejected_at: Optional[str] = None


class ContentEditRequest(CamelModel):
    target_type: ListingType
    target_id: str = Field(..., min_length=1)
    natural_language_command: str = Field(..., min_length=1)
    user_id: Optional[str] = None

    @field_validator("target_id", mode="before")
    @classmethod
    def _coerce_target_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class ContentEditActionRequest(CamelModel):
    edit_id: str = Field(..., min_length=1)
    action: EditAction
    target_type: Optional[ListingType] = None
    target_id: Optional[str] = None
    # Optional echo of the previewed delta; must match the stored preview
    changed_fields: Optional[Dict[str, Any]] = None
    user_id: Optional[str] = None

    @field_validator("target_id", mode="before")
    @classmethod
    def _coerce_target_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


# ============================================
# Recommendations
# ============================================

class RecommendationContext(CamelModel):
    budget: Optional[float] = Field(None, ge=0)
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)


class RecommendationRequest(CamelModel):
    user_id: str = Field(..., min_length=1)
    category: Category
    context: Optional[RecommendationContext] = None


class Recommendation(CamelModel):
    id: str
    user_id: str
    item_id: str
    category: Category
    score: float = Field(..., ge=0, le=100)
    reason: str
    reasons: List[str] = Field(default_factory=list)
    confidence: float = Field(..., ge=0, le=100)
    item: Dict[str, Any]
    created_at: str = Field(default_factory=utc_now_iso)


# ============================================
# Multi-filter search
# ============================================

class SearchRequest(CamelModel):
    """
    Structured search. "from"/"to" match origin and destination cities;
    hotels and activities only use "to" (their city).
    """
    category: Category
    from_city: Optional[str] = Field(None, alias="from", min_length=2, max_length=100)
    to_city: Optional[str] = Field(None, alias="to", min_length=2, max_length=100)
    depart_date: Optional[date] = None
    class_type: Optional[Literal["economy", "business", "first"]] = Field(None, alias="class")
    price_range: Optional[Tuple[Annotated[float, Field(ge=0)], Annotated[float, Field(ge=0)]]] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    sort_by: Optional[Literal["price", "rating", "duration", "departure"]] = None
    sort_order: Literal["asc", "desc"] = "asc"

    @model_validator(mode="after")
    def _check_price_range(self) -> "SearchRequest":
        if self.price_range is not None and self.price_range[0] > self.price_range[1]:
            raise ValueError("priceRange minimum is above its maximum")
        return self
