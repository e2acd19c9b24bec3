# parsers/safety.py
"""
Query Safety Validator
Rejects parsed queries that carry injection markers or out-of-range values
before they reach any listing store. Fails closed: any error means unsafe.
"""

import json
import math
import re
from typing import Any, Dict, Mapping, Union

from loguru import logger
from pydantic import BaseModel


MAX_PRICE = 10_000_000
MAX_RATING = 5
MAX_LIMIT = 100

SQL_INJECTION_PATTERNS = [
    r"drop\s+table",
    r"delete\s+from",
    r"insert\s+into",
    r"update\s+.*\s+set",
    r";\s*drop",
    r"union\s+select",
    r"--",
    r"/\*",
    r"xp_",
]

XSS_PATTERNS = [
    r"<script",
    r"javascript:",
    r"onerror=",
    r"onclick=",
    r"onload=",
]

COMMAND_INJECTION_PATTERNS = [
    r"exec\s*\(",
    r"eval\s*\(",
    r"system\s*\(",
    r"passthru",
    r"shell_exec",
]

_UNSAFE_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in SQL_INJECTION_PATTERNS + XSS_PATTERNS + COMMAND_INJECTION_PATTERNS
]


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _in_range(value: Any, low: float, high: float) -> bool:
    return _is_number(value) and low <= value <= high


def _as_payload(parsed: Union[BaseModel, Mapping[str, Any]]) -> Dict[str, Any]:
    if isinstance(parsed, BaseModel):
        return parsed.model_dump(by_alias=True, exclude_none=True)
    return dict(parsed)


def validate_query_safety(parsed: Union[BaseModel, Mapping[str, Any]]) -> bool:
    """
    Check a parsed query before it is executed.

    Args:
        parsed: ParsedFilterQuery or an equivalent mapping

    Returns:
        bool: True only if the query is safe to execute
    """
    try:
        payload = _as_payload(parsed)
        serialized = json.dumps(payload, ensure_ascii=False, default=str)

        for pattern in _UNSAFE_PATTERNS:
            if pattern.search(serialized):
                logger.warning(f"Blocked unsafe query pattern: {pattern.pattern}")
                return False

        filters = payload.get("filters") or {}
        if not isinstance(filters, Mapping):
            return False

        for bound in ("minPrice", "maxPrice"):
            if bound in filters and not _in_range(filters[bound], 0, MAX_PRICE):
                logger.warning(f"Blocked query with invalid {bound}: {filters[bound]!r}")
                return False

        if "minRating" in filters and not _in_range(filters["minRating"], 0, MAX_RATING):
            logger.warning(f"Blocked query with invalid minRating: {filters['minRating']!r}")
            return False

        limit = payload.get("limit")
        if limit is not None:
            if not (isinstance(limit, int) and not isinstance(limit, bool) and 1 <= limit <= MAX_LIMIT):
                logger.warning(f"Blocked query with invalid limit: {limit!r}")
                return False

        return True

    except Exception as e:
        logger.warning(f"Query safety check failed, treating as unsafe: {e}")
        return False
