# parsers/query_parser.py
"""
Filter-Query Parser
Turns a free-text search phrase into a structured query:
- Price bounds and ranges
- Minimum rating
- Category filters (non-stop, cabin class, bus type)
- Sort order and result limit
Pure rule-based parsing over the ordered tables below.
"""

from typing import Any, Dict, Optional, Tuple, Union

from loguru import logger

from .patterns import (
    MatchPolicy, RuleGroup, Trigger,
    const, evaluate_groups, keyword, regex
)
from ..schemas import Category, ParsedFilterQuery, SortSpec


# Optional currency marker before an amount: $, ₹, rs, rs.
_CURRENCY = r"(?:\$|₹|rs\.?)?"


def _int_group(name: str, index: int = 1):
    return lambda match, context: {name: int(match.group(index))}


def _min_rating(match, context) -> Dict[str, Any]:
    try:
        return {"minRating": float(match.group(1))}
    except ValueError:
        # "rated ." and similar
        return {}


def _sort(field: str, order: str):
    return const({"sort": {"field": field, "order": order}})


# ============================================
# Rule tables (evaluated top to bottom)
# ============================================

FILTER_RULES: Tuple[RuleGroup, ...] = (
    # Every price trigger applies; the range runs last so it overrides single bounds
    RuleGroup("price", MatchPolicy.ALL, (
        Trigger(
            "max_price",
            regex(rf"(?:under|less than|below|cheaper than)\s*{_CURRENCY}\s*(\d+)"),
            _int_group("maxPrice")
        ),
        Trigger(
            "min_price",
            regex(rf"(?:above|more than|over|at least)\s*{_CURRENCY}\s*(\d+)"),
            _int_group("minPrice")
        ),
        Trigger(
            "price_range",
            regex(rf"between\s*{_CURRENCY}\s*(\d+)\s*(?:and|to)\s*{_CURRENCY}\s*(\d+)"),
            lambda match, context: {
                "minPrice": int(match.group(1)),
                "maxPrice": int(match.group(2)),
            }
        ),
    )),
    RuleGroup("rating", MatchPolicy.FIRST, (
        Trigger(
            "min_rating",
            regex(r"(?:rating|rated)\s*(?:above|over|at least)?\s*([\d.]+)"),
            _min_rating
        ),
    )),
    RuleGroup("stops", MatchPolicy.FIRST, (
        Trigger("non_stop", keyword("non-stop", "nonstop", "direct"), const({"stops": 0})),
    ), scopes=frozenset({Category.FLIGHTS})),
    RuleGroup("class", MatchPolicy.FIRST, (
        Trigger("business", keyword("business class", "business"), const({"classType": "business"})),
        Trigger("economy", keyword("economy class", "economy"), const({"classType": "economy"})),
        Trigger("first", keyword("first class", "first"), const({"classType": "first"})),
    ), scopes=frozenset({Category.FLIGHTS})),
    RuleGroup("bus_type", MatchPolicy.FIRST, (
        # "semi-sleeper" also contains the word "sleeper"
        Trigger("sleeper", regex(r"(?<!semi-)(?<!semi )\bsleeper\b"), const({"busType": "sleeper"})),
        Trigger("semi_sleeper", keyword("semi-sleeper", "semi sleeper"), const({"busType": "semi-sleeper"})),
        Trigger("ac", keyword("ac", "air conditioned", "air-conditioned"), const({"busType": "ac"})),
    ), scopes=frozenset({Category.BUSES})),
)

SORT_RULES: Tuple[RuleGroup, ...] = (
    # Conflicting sort phrases: the last one listed here wins
    RuleGroup("sort", MatchPolicy.LAST, (
        Trigger("cheapest", keyword("cheapest", "lowest price", "most affordable"), _sort("price", "asc")),
        Trigger("priciest", keyword("most expensive", "highest price", "priciest"), _sort("price", "desc")),
        Trigger("top_rated", keyword("highest rated", "best rated", "top rated"), _sort("rating", "desc")),
        Trigger("fastest", keyword("fastest", "shortest duration", "quickest"), _sort("duration", "asc")),
    )),
)

LIMIT_RULES: Tuple[RuleGroup, ...] = (
    RuleGroup("limit", MatchPolicy.FIRST, (
        Trigger("top_n", regex(r"\b(?:top|best|first)\s+(\d+)\b"), _int_group("limit")),
        # Bare "top" / "best" means five
        Trigger("top_default", keyword("top", "best"), const({"limit": 5})),
    )),
)


class FilterQueryParser:
    """
    Parses natural language search phrases into ParsedFilterQuery objects.
    Tables are injectable so alternative vocabularies can be tested in isolation.
    """

    def __init__(
        self,
        filter_rules: Tuple[RuleGroup, ...] = FILTER_RULES,
        sort_rules: Tuple[RuleGroup, ...] = SORT_RULES,
        limit_rules: Tuple[RuleGroup, ...] = LIMIT_RULES
    ):
        self.filter_rules = filter_rules
        self.sort_rules = sort_rules
        self.limit_rules = limit_rules

    def parse(self, text: str, category: Union[Category, str]) -> ParsedFilterQuery:
        """
        Parse a search phrase for one category.

        Args:
            text: User's natural language search phrase
            category: flights, hotels, buses or activities

        Returns:
            ParsedFilterQuery with filters, optional sort and optional limit
        """
        category = Category(category)
        query = text.lower().strip()

        filters = evaluate_groups(self.filter_rules, query, scope=category)
        sort: Optional[Dict[str, str]] = evaluate_groups(self.sort_rules, query, scope=category).get("sort")
        limit: Optional[int] = evaluate_groups(self.limit_rules, query, scope=category).get("limit")

        parsed = ParsedFilterQuery(
            filters=filters,
            sort=SortSpec(**sort) if sort else None,
            limit=limit
        )

        logger.info(f"Parsed {category.value} query: filters={parsed.filters}, "
                    f"sort={sort}, limit={parsed.limit}")
        return parsed


# ============================================
# Global Instance
# ============================================

filter_query_parser = FilterQueryParser()


def parse_filter_query(text: str, category: Union[Category, str]) -> ParsedFilterQuery:
    """Parse a search phrase with the default rule tables"""
    return filter_query_parser.parse(text, category)
