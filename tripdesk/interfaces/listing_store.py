# interfaces/listing_store.py
"""
Listing Repository - Catalog Access Layer
Reads and writes flights, hotels, buses and activities.

Two backends:
- InMemoryListingRepository: seeded catalog, used in development and tests
- MySQLListingRepository: connection-pooled MySQL, one table per category,
  camelCase column names matching the wire format
"""

import copy
import json
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from loguru import logger
from mysql.connector import pooling, Error as MySQLError
from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from ..errors import InvalidEditError, InvalidListingError, ListingNotFoundError, StoreError
from ..schemas import (
    Category, ListingType, LISTING_MODELS, ParsedFilterQuery, SearchRequest,
    listing_from_record, utc_now_iso
)
from ..schemas.travel_schemas import ListingBase
from .seed_catalog import SEED_CATALOG


TABLES = {
    Category.FLIGHTS: "flights",
    Category.HOTELS: "hotels",
    Category.BUSES: "buses",
    Category.ACTIVITIES: "activities",
}

# Free-text search looks at these columns
SEARCH_COLUMNS = {
    Category.FLIGHTS: ("airline", "flightNumber", "fromCity", "toCity"),
    Category.HOTELS: ("name", "location", "city"),
    Category.BUSES: ("operator", "busNumber", "fromCity", "toCity"),
    Category.ACTIVITIES: ("title", "city", "category"),
}

# JSON-encoded list columns
JSON_COLUMNS = frozenset({"amenities", "includes"})

SORTABLE_FIELDS = frozenset({"price", "rating", "duration", "departure"})

# Id prefixes for listings created in the in-memory catalog
ID_PREFIXES = {
    Category.FLIGHTS: "FL",
    Category.HOTELS: "HT",
    Category.BUSES: "BS",
    Category.ACTIVITIES: "AC",
}

ROUTE_CATEGORIES = frozenset({Category.FLIGHTS, Category.BUSES})


def model_for(category: Category):
    return LISTING_MODELS[Category(category).listing_type]


def columns_for(category: Category) -> List[str]:
    """Wire names of every stored column for a category"""
    model = model_for(category)
    return [
        info.alias or to_camel(name)
        for name, info in model.model_fields.items()
        if name != "listing_type"
    ]


def editable_columns(category: Category) -> set:
    return set(columns_for(category)) - {"id", "createdAt"}


def has_rating(category: Category) -> bool:
    return "rating" in model_for(category).model_fields


def sort_column(category: Category, field: Optional[str]) -> Optional[str]:
    """Stored column behind a sort field, or None if the category cannot sort by it"""
    if field not in SORTABLE_FIELDS:
        return None
    column = {"price": model_for(category).PRICE_FIELD, "departure": "departureTime"}.get(field, field)
    return column if column in columns_for(category) else None


def _validation_details(e: ValidationError) -> List[Dict[str, Any]]:
    return e.errors(include_url=False, include_context=False, include_input=False)


@dataclass
class ListingQuery:
    """Structured catalog query shared by search endpoints and the NL query"""
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_rating: Optional[float] = None
    stops: Optional[int] = None
    class_type: Optional[str] = None
    bus_type: Optional[str] = None
    min_availability: Optional[int] = None
    search: Optional[str] = None
    # Case-insensitive substring matches
    from_city: Optional[str] = None
    to_city: Optional[str] = None
    city: Optional[str] = None
    # ISO date, matched against the start of departureTime
    depart_date: Optional[str] = None
    sort_field: Optional[str] = None
    sort_order: str = "asc"
    limit: int = 20
    offset: int = 0

    @classmethod
    def from_parsed(
        cls,
        parsed: ParsedFilterQuery,
        category: Union[Category, str],
        default_limit: int = 20,
        max_limit: int = 50
    ) -> "ListingQuery":
        """
        Map a parsed natural-language query onto catalog filters.
        Category-specific filters only apply to their own category.
        """
        category = Category(category)
        filters = parsed.filters
        query = cls(
            min_price=filters.get("minPrice"),
            max_price=filters.get("maxPrice"),
            min_rating=filters.get("minRating"),
            limit=min(parsed.limit, max_limit) if parsed.limit else default_limit
        )

        if category is Category.FLIGHTS:
            query.stops = filters.get("stops")
            query.class_type = filters.get("classType")
        elif category is Category.BUSES:
            query.bus_type = filters.get("busType")

        if parsed.sort is not None and parsed.sort.field in SORTABLE_FIELDS:
            query.sort_field = parsed.sort.field
            query.sort_order = parsed.sort.order

        return query

    @classmethod
    def from_search(cls, request: SearchRequest, limit: int = 50) -> "ListingQuery":
        """
        Map a structured search request onto catalog filters.
        Flights and buses match from/to against their route; hotels and
        activities match "to" against their city.
        """
        category = request.category
        query = cls(
            min_rating=request.rating,
            sort_field=request.sort_by,
            sort_order=request.sort_order,
            limit=limit
        )
        if request.price_range is not None:
            query.min_price, query.max_price = request.price_range

        if category in ROUTE_CATEGORIES:
            query.from_city = request.from_city
            query.to_city = request.to_city
            if request.depart_date is not None:
                query.depart_date = request.depart_date.isoformat()
        else:
            query.city = request.to_city

        if category is Category.FLIGHTS:
            query.class_type = request.class_type

        return query


class ListingRepository(ABC):
    """Catalog access used by the API routes"""

    backend: str = "abstract"

    @abstractmethod
    def get(self, listing_type: Union[ListingType, str], listing_id: str) -> Optional[ListingBase]:
        """Fetch one listing, or None if it does not exist"""

    @abstractmethod
    def search(self, category: Union[Category, str], query: ListingQuery) -> List[ListingBase]:
        """Listings in a category matching every filter in query"""

    @abstractmethod
    def create(self, category: Union[Category, str], record: Mapping[str, Any]) -> ListingBase:
        """Validate and store a new listing; the catalog assigns its id"""

    @abstractmethod
    def update(
        self,
        listing_type: Union[ListingType, str],
        listing_id: str,
        changes: Mapping[str, Any]
    ) -> ListingBase:
        """Write changed fields and return the updated listing"""

    @abstractmethod
    def delete(self, listing_type: Union[ListingType, str], listing_id: str) -> ListingBase:
        """Remove a listing and return it as it was"""

    @abstractmethod
    def ping(self) -> bool:
        """True if the backend is reachable"""

    def close(self) -> None:
        pass

    def _validate_new(self, category: Category, record: Mapping[str, Any], listing_id: str) -> ListingBase:
        """New listing from a wire record; raises InvalidListingError if it does not validate"""
        unknown = set(record) - editable_columns(category) - {"listingType"}
        if unknown:
            raise InvalidListingError(f"Unknown or read-only fields {sorted(unknown)} for {category.value}")
        try:
            return listing_from_record(
                {**record, "id": listing_id, "createdAt": utc_now_iso()},
                category.listing_type
            )
        except ValidationError as e:
            raise InvalidListingError(
                f"Invalid {category.listing_type.value} listing",
                details=_validation_details(e)
            ) from e

    def _validate_update(self, current: ListingBase, changes: Mapping[str, Any]) -> ListingBase:
        """Merged listing after changes; raises InvalidEditError if it no longer validates"""
        unknown = set(changes) - editable_columns(ListingType(current.listing_type).category)
        if unknown:
            raise InvalidEditError(f"Cannot update fields {sorted(unknown)} on {current.listing_type}")
        try:
            return listing_from_record({**current.to_record(), **changes})
        except ValidationError as e:
            raise InvalidEditError(
                "Edit would produce an invalid listing",
                details=_validation_details(e)
            ) from e


# ============================================
# In-memory backend
# ============================================

def _matches(listing: ListingBase, category: Category, query: ListingQuery) -> bool:
    price = listing.listing_price
    if query.min_price is not None and price < query.min_price:
        return False
    if query.max_price is not None and price > query.max_price:
        return False

    if query.min_rating is not None and has_rating(category):
        rating = getattr(listing, "rating", None)
        if rating is None or rating < query.min_rating:
            return False

    if query.stops is not None and getattr(listing, "stops", None) != query.stops:
        return False
    if query.class_type is not None and getattr(listing, "class_type", None) != query.class_type:
        return False
    if query.bus_type is not None and getattr(listing, "bus_type", None) != query.bus_type:
        return False

    if query.min_availability is not None and listing.availability < query.min_availability:
        return False

    if query.search:
        needle = query.search.lower()
        record = listing.to_record()
        if not any(needle in str(record.get(col, "")).lower() for col in SEARCH_COLUMNS[category]):
            return False

    for attr, needle in (("from_city", query.from_city), ("to_city", query.to_city), ("city", query.city)):
        if needle and needle.lower() not in str(getattr(listing, attr, "")).lower():
            return False

    if query.depart_date and not str(getattr(listing, "departure_time", "")).startswith(query.depart_date):
        return False

    return True


def _sort_value(listing: ListingBase, field: str) -> Optional[Any]:
    if field == "price":
        return listing.listing_price
    if field == "duration":
        return listing.duration_minutes
    if field == "departure":
        return getattr(listing, "departure_time", None)
    return getattr(listing, field, None)


def _sorted(listings: List[ListingBase], field: str, order: str) -> List[ListingBase]:
    # Listings without a value for the field go last in either direction
    present = [l for l in listings if _sort_value(l, field) is not None]
    missing = [l for l in listings if _sort_value(l, field) is None]
    present.sort(key=lambda l: _sort_value(l, field), reverse=(order == "desc"))
    return present + missing


class InMemoryListingRepository(ListingRepository):
    """Dictionary-backed catalog"""

    backend = "memory"

    def __init__(self, catalog: Optional[Mapping[Category, Iterable[Mapping[str, Any]]]] = None):
        self._listings: Dict[Category, Dict[str, ListingBase]] = {c: {} for c in Category}
        self._lock = threading.Lock()
        for category, records in (catalog if catalog is not None else SEED_CATALOG).items():
            category = Category(category)
            for record in records:
                listing = listing_from_record(copy.deepcopy(dict(record)), category.listing_type)
                self._listings[category][listing.id] = listing
        logger.info(
            "In-memory catalog loaded: "
            + ", ".join(f"{len(v)} {k.value}" for k, v in self._listings.items())
        )

    def _next_id(self, category: Category) -> str:
        listings = self._listings[category]
        n = len(listings) + 1
        while f"{ID_PREFIXES[category]}{n:03d}" in listings:
            n += 1
        return f"{ID_PREFIXES[category]}{n:03d}"

    def get(self, listing_type: Union[ListingType, str], listing_id: str) -> Optional[ListingBase]:
        category = ListingType(listing_type).category
        return self._listings[category].get(str(listing_id))

    def search(self, category: Union[Category, str], query: ListingQuery) -> List[ListingBase]:
        category = Category(category)
        results = [l for l in list(self._listings[category].values()) if _matches(l, category, query)]
        if query.sort_field:
            results = _sorted(results, query.sort_field, query.sort_order)
        return results[query.offset:query.offset + query.limit]

    def create(self, category: Union[Category, str], record: Mapping[str, Any]) -> ListingBase:
        category = Category(category)
        with self._lock:
            listing = self._validate_new(category, record, self._next_id(category))
            self._listings[category][listing.id] = listing
        logger.info(f"Created {category.listing_type.value} {listing.id}")
        return listing

    def update(
        self,
        listing_type: Union[ListingType, str],
        listing_id: str,
        changes: Mapping[str, Any]
    ) -> ListingBase:
        listing_type = ListingType(listing_type)
        with self._lock:
            current = self.get(listing_type, listing_id)
            if current is None:
                raise ListingNotFoundError(f"{listing_type.value} {listing_id} not found")

            updated = self._validate_update(current, changes)
            self._listings[listing_type.category][updated.id] = updated
        logger.info(f"Updated {listing_type.value} {listing_id}: {dict(changes)}")
        return updated

    def delete(self, listing_type: Union[ListingType, str], listing_id: str) -> ListingBase:
        listing_type = ListingType(listing_type)
        with self._lock:
            deleted = self._listings[listing_type.category].pop(str(listing_id), None)
        if deleted is None:
            raise ListingNotFoundError(f"{listing_type.value} {listing_id} not found")
        logger.info(f"Deleted {listing_type.value} {listing_id}")
        return deleted

    def ping(self) -> bool:
        return True


# ============================================
# MySQL backend
# ============================================

def _quote(column: str) -> str:
    return f"`{column}`"


def build_search_sql(category: Union[Category, str], query: ListingQuery) -> Tuple[str, List[Any]]:
    """
    Parameterised SELECT for a catalog query.
    Column names come only from the listing models, never from input.
    """
    category = Category(category)
    model = model_for(category)
    price_col = model.PRICE_FIELD

    conditions: List[str] = []
    params: List[Any] = []

    if query.min_price is not None:
        conditions.append(f"{_quote(price_col)} >= %s")
        params.append(query.min_price)
    if query.max_price is not None:
        conditions.append(f"{_quote(price_col)} <= %s")
        params.append(query.max_price)
    if query.min_rating is not None and has_rating(category):
        conditions.append("`rating` >= %s")
        params.append(query.min_rating)

    if category is Category.FLIGHTS:
        if query.stops is not None:
            conditions.append("`stops` = %s")
            params.append(query.stops)
        if query.class_type is not None:
            conditions.append("`classType` = %s")
            params.append(query.class_type)
    if category is Category.BUSES and query.bus_type is not None:
        conditions.append("`busType` = %s")
        params.append(query.bus_type)

    if query.min_availability is not None:
        conditions.append(f"{_quote(model.AVAILABILITY_FIELD)} >= %s")
        params.append(query.min_availability)

    if query.search:
        columns = SEARCH_COLUMNS[category]
        conditions.append("(" + " OR ".join(f"{_quote(c)} LIKE %s" for c in columns) + ")")
        params.extend([f"%{query.search}%"] * len(columns))

    for column, needle in (("fromCity", query.from_city), ("toCity", query.to_city), ("city", query.city)):
        if needle and column in columns_for(category):
            conditions.append(f"LOWER({_quote(column)}) LIKE %s")
            params.append(f"%{needle.lower()}%")

    if query.depart_date and "departureTime" in columns_for(category):
        conditions.append("`departureTime` LIKE %s")
        params.append(f"{query.depart_date}%")

    sql = f"SELECT * FROM {_quote(TABLES[category])}"
    if conditions:
        sql += " WHERE " + " AND ".join(conditions)

    sort_col = sort_column(category, query.sort_field)
    if sort_col is not None:
        direction = "DESC" if query.sort_order == "desc" else "ASC"
        sql += f" ORDER BY {_quote(sort_col)} {direction}"

    sql += " LIMIT %s OFFSET %s"
    params.extend([query.limit, query.offset])

    return sql, params


def build_update_sql(
    listing_type: Union[ListingType, str],
    listing_id: str,
    changes: Mapping[str, Any]
) -> Tuple[str, List[Any]]:
    """Parameterised UPDATE writing only known columns"""
    category = ListingType(listing_type).category
    unknown = set(changes) - editable_columns(category)
    if unknown or not changes:
        raise InvalidEditError(f"Cannot update fields {sorted(unknown) or '[]'} on {category.value}")

    assignments = ", ".join(f"{_quote(col)} = %s" for col in changes)
    params = [
        json.dumps(value) if col in JSON_COLUMNS else value
        for col, value in changes.items()
    ]
    params.append(listing_id)

    return f"UPDATE {_quote(TABLES[category])} SET {assignments} WHERE `id` = %s", params


def build_insert_sql(category: Union[Category, str], record: Mapping[str, Any]) -> Tuple[str, List[Any]]:
    """Parameterised INSERT of a new listing; the id column is left to the database"""
    category = Category(category)
    unknown = set(record) - (set(columns_for(category)) - {"id"})
    if unknown or not record:
        raise InvalidListingError(f"Cannot insert fields {sorted(unknown) or '[]'} into {category.value}")

    columns = [c for c in columns_for(category) if c in record]
    params = [
        json.dumps(record[col]) if col in JSON_COLUMNS else record[col]
        for col in columns
    ]
    placeholders = ", ".join(["%s"] * len(columns))
    column_list = ", ".join(_quote(c) for c in columns)

    return f"INSERT INTO {_quote(TABLES[category])} ({column_list}) VALUES ({placeholders})", params


def build_delete_sql(listing_type: Union[ListingType, str], listing_id: str) -> Tuple[str, List[Any]]:
    category = ListingType(listing_type).category
    return f"DELETE FROM {_quote(TABLES[category])} WHERE `id` = %s", [listing_id]


def _normalize_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """MySQL row to wire-format record"""
    record = {}
    for key, value in row.items():
        if key in JSON_COLUMNS and isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError:
                value = [v.strip() for v in value.split(",") if v.strip()]
        elif isinstance(value, (datetime, date)):
            value = value.isoformat()
        elif isinstance(value, Decimal):
            value = float(value)
        record[key] = value
    return record


class MySQLListingRepository(ListingRepository):
    """
    Catalog stored in MySQL, one table per category.
    The connection pool is created lazily on first use.
    """

    backend = "mysql"

    def __init__(self, mysql_config: Dict[str, Any], pool_size: int = 5):
        self._config = mysql_config
        self._pool_size = pool_size
        self._pool: Optional[pooling.MySQLConnectionPool] = None

    @classmethod
    def from_settings(cls, settings) -> "MySQLListingRepository":
        return cls(settings.get_mysql_config(), pool_size=settings.DB_POOL_SIZE)

    def _ensure_connected(self):
        """Ensure the connection pool is initialized"""
        if self._pool is not None:
            return

        try:
            self._pool = pooling.MySQLConnectionPool(
                pool_name="listings_pool",
                pool_size=self._pool_size,
                **self._config
            )
            logger.info(f"Listing repository connected to MySQL database {self._config.get('database')}")
        except MySQLError as e:
            logger.error(f"Failed to connect to MySQL: {e}")
            raise StoreError("Listing database unavailable") from e

    def _get_connection(self):
        self._ensure_connected()
        try:
            return self._pool.get_connection()
        except MySQLError as e:
            logger.error(f"Failed to get MySQL connection: {e}")
            raise StoreError("Listing database unavailable") from e

    def _fetch(self, sql: str, params: List[Any]) -> List[Dict[str, Any]]:
        conn = self._get_connection()
        try:
            cursor = conn.cursor(dictionary=True)
            cursor.execute(sql, params)
            rows = cursor.fetchall()
            cursor.close()
            return rows
        except MySQLError as e:
            logger.error(f"Listing query failed: {e}")
            raise StoreError("Listing query failed") from e
        finally:
            conn.close()

    def _to_listing(self, row: Dict[str, Any], category: Category) -> Optional[ListingBase]:
        try:
            return listing_from_record(_normalize_row(row), category.listing_type)
        except ValidationError as e:
            logger.warning(f"Skipping malformed {category.value} row {row.get('id')}: {e.error_count()} errors")
            return None

    def get(self, listing_type: Union[ListingType, str], listing_id: str) -> Optional[ListingBase]:
        category = ListingType(listing_type).category
        rows = self._fetch(f"SELECT * FROM {_quote(TABLES[category])} WHERE `id` = %s LIMIT 1", [listing_id])
        return self._to_listing(rows[0], category) if rows else None

    def search(self, category: Union[Category, str], query: ListingQuery) -> List[ListingBase]:
        category = Category(category)
        sql, params = build_search_sql(category, query)
        listings = [self._to_listing(row, category) for row in self._fetch(sql, params)]
        return [l for l in listings if l is not None]

    def _execute(self, sql: str, params: List[Any], action: str) -> Optional[int]:
        """Run one write in its own transaction; returns the inserted row id, if any"""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(sql, params)
            conn.commit()
            last_id = cursor.lastrowid
            cursor.close()
            return last_id
        except MySQLError as e:
            conn.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise StoreError(f"Listing write failed: {action}") from e
        finally:
            conn.close()

    def create(self, category: Union[Category, str], record: Mapping[str, Any]) -> ListingBase:
        category = Category(category)
        # Validate with a placeholder id; the table assigns the real one
        listing = self._validate_new(category, record, "0")
        row = {k: v for k, v in listing.to_record().items() if k not in ("id", "listingType")}

        sql, params = build_insert_sql(category, row)
        new_id = self._execute(sql, params, f"create {category.listing_type.value}")

        listing = listing.model_copy(update={"id": str(new_id)})
        logger.info(f"Created {category.listing_type.value} {listing.id}")
        return listing

    def update(
        self,
        listing_type: Union[ListingType, str],
        listing_id: str,
        changes: Mapping[str, Any]
    ) -> ListingBase:
        listing_type = ListingType(listing_type)
        current = self.get(listing_type, listing_id)
        if current is None:
            raise ListingNotFoundError(f"{listing_type.value} {listing_id} not found")

        updated = self._validate_update(current, changes)
        sql, params = build_update_sql(listing_type, listing_id, changes)
        self._execute(sql, params, f"update {listing_type.value} {listing_id}")

        logger.info(f"Updated {listing_type.value} {listing_id}: {dict(changes)}")
        return updated

    def delete(self, listing_type: Union[ListingType, str], listing_id: str) -> ListingBase:
        listing_type = ListingType(listing_type)
        current = self.get(listing_type, listing_id)
        if current is None:
            raise ListingNotFoundError(f"{listing_type.value} {listing_id} not found")

        sql, params = build_delete_sql(listing_type, listing_id)
        self._execute(sql, params, f"delete {listing_type.value} {listing_id}")

        logger.info(f"Deleted {listing_type.value} {listing_id}")
        return current

    def ping(self) -> bool:
        try:
            self._fetch("SELECT 1 AS ok", [])
            return True
        except StoreError:
            return False


def create_listing_repository(settings) -> ListingRepository:
    """Build the configured listing repository"""
    if settings.LISTING_BACKEND == "mysql":
        logger.info(f"Using MySQL listing repository at {settings.DB_HOST}:{settings.DB_PORT}")
        return MySQLListingRepository.from_settings(settings)

    return InMemoryListingRepository()
