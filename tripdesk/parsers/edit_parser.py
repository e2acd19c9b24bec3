# parsers/edit_parser.py
"""
Content-Edit Parser
Turns a free-text instruction ("decrease price by 2000", "add 5 seats")
into a field delta against one listing snapshot, and builds the preview
envelope combining the snapshot with that delta.
"""

import re
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from loguru import logger

from .patterns import (
    MatchPolicy, RuleGroup, Trigger,
    all_of, const, keyword, phrase, regex
)
from ..errors import UnparseableCommandError
from ..schemas import ContentEdit, EditStatus, ListingType


DEFAULT_PRICE_STEP = 1000
MIN_PRICE_AFTER_DECREASE = 100
DEFAULT_AVAILABILITY_STEP = 5

_AMOUNT = re.compile(r"by\s+(\d+)|(\d+)")
_ADD_AMOUNT = re.compile(r"add\s+(\d+)")
_REMOVE_AMOUNT = re.compile(r"remove\s+(\d+)")


@dataclass(frozen=True)
class EditContext:
    command: str
    original: Mapping[str, Any]
    target_type: ListingType


# ============================================
# Field resolution per listing variant
# ============================================

def price_field(original: Mapping[str, Any]) -> str:
    """Hotels price per night; everything else has a flat price"""
    return "price" if "price" in original else "pricePerNight"


def availability_field(original: Mapping[str, Any], target_type: ListingType) -> str:
    if target_type in (ListingType.FLIGHT, ListingType.BUS):
        return "seats" if "seats" in original else "availableSeats"
    if target_type is ListingType.HOTEL:
        return "availableRooms"
    return "availableSpots"


def _amount_after(pattern, text: str, start: int, default: int) -> int:
    # Prefer the number following the trigger phrase over any earlier number
    match = pattern.search(text, start) or pattern.search(text)
    if not match:
        return default
    return int(next(g for g in match.groups() if g is not None))


def _current_price(ctx: EditContext) -> Tuple[str, Optional[float]]:
    field = price_field(ctx.original)
    value = ctx.original.get(field)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return field, None
    return field, value


# ============================================
# Effects
# ============================================

def _increase_price(match, ctx: EditContext) -> Dict[str, Any]:
    field, current = _current_price(ctx)
    if current is None:
        return {}
    amount = _amount_after(_AMOUNT, ctx.command, match.start(), DEFAULT_PRICE_STEP)
    return {field: current + amount}


def _decrease_price(match, ctx: EditContext) -> Dict[str, Any]:
    field, current = _current_price(ctx)
    if current is None:
        return {}
    amount = _amount_after(_AMOUNT, ctx.command, match.start(), DEFAULT_PRICE_STEP)
    # Floored at 100, never above the current price
    return {field: min(current, max(MIN_PRICE_AFTER_DECREASE, current - amount))}


def _set_price(match, ctx: EditContext) -> Dict[str, Any]:
    return {price_field(ctx.original): int(match.group(1))}


def _add_availability(match, ctx: EditContext) -> Dict[str, Any]:
    field = availability_field(ctx.original, ctx.target_type)
    amount = _amount_after(_ADD_AMOUNT, ctx.command, match.start(), DEFAULT_AVAILABILITY_STEP)
    return {field: (ctx.original.get(field) or 0) + amount}


def _remove_availability(match, ctx: EditContext) -> Dict[str, Any]:
    field = availability_field(ctx.original, ctx.target_type)
    amount = _amount_after(_REMOVE_AMOUNT, ctx.command, match.start(), DEFAULT_AVAILABILITY_STEP)
    return {field: max(0, (ctx.original.get(field) or 0) - amount)}


def _set_rating(match, ctx: EditContext) -> Dict[str, Any]:
    if "rating" not in ctx.original:
        return {}
    try:
        rating = float(match.group(1))
    except ValueError:
        return {}
    if 0 <= rating <= 5:
        return {"rating": rating}
    return {}


_INVENTORY_NOUN = phrase("seat", "room", "spot")


# ============================================
# Rule table (evaluated top to bottom)
# ============================================

EDIT_RULES: Tuple[RuleGroup, ...] = (
    RuleGroup("price", MatchPolicy.FIRST, (
        Trigger("increase_price", phrase("increase price", "raise price"), _increase_price),
        Trigger("decrease_price", phrase("decrease price", "reduce price", "lower price"), _decrease_price),
        Trigger("set_price", regex(r"(?:set|change) price to\s+(\d+)"), _set_price),
    )),
    RuleGroup("availability", MatchPolicy.FIRST, (
        Trigger("add_inventory", all_of(phrase("add"), _INVENTORY_NOUN), _add_availability),
        Trigger("remove_inventory", all_of(phrase("remove"), _INVENTORY_NOUN), _remove_availability),
    )),
    RuleGroup("rating", MatchPolicy.FIRST, (
        Trigger("set_rating", regex(r"(?:set|change) rating to\s+([\d.]+)"), _set_rating),
    )),
    RuleGroup("meal", MatchPolicy.FIRST, (
        Trigger("include_meal", phrase("include meal", "add meal"), const({"mealIncluded": True})),
        Trigger("exclude_meal", phrase("remove meal", "exclude meal"), const({"mealIncluded": False})),
    ), scopes=frozenset({ListingType.FLIGHT})),
    RuleGroup("class", MatchPolicy.FIRST, (
        Trigger("business", phrase("upgrade to business", "change to business"), const({"classType": "business"})),
        Trigger("economy", phrase("downgrade to economy", "change to economy"), const({"classType": "economy"})),
    ), scopes=frozenset({ListingType.FLIGHT})),
    RuleGroup("bus_type", MatchPolicy.FIRST, (
        Trigger("sleeper", phrase("change to sleeper", "upgrade to sleeper"), const({"busType": "sleeper"})),
        Trigger("ac", keyword("change to ac", "make it ac"), const({"busType": "ac"})),
    ), scopes=frozenset({ListingType.BUS})),
)


class EditCommandParser:
    """Parses edit instructions into field deltas for one listing"""

    def __init__(self, rules: Tuple[RuleGroup, ...] = EDIT_RULES):
        self.rules = rules

    def parse(
        self,
        command: str,
        original: Mapping[str, Any],
        target_type: Union[ListingType, str]
    ) -> Dict[str, Any]:
        """
        Derive the changed fields for an edit instruction.

        Args:
            command: Natural language instruction
            original: Flat camelCase snapshot of the listing
            target_type: flight, hotel, bus or activity

        Returns:
            dict: Only the fields that change; empty when nothing was understood
        """
        target_type = ListingType(target_type)
        ctx = EditContext(command=command.lower(), original=original, target_type=target_type)

        changes: Dict[str, Any] = {}
        for group in self.rules:
            if group.applies_to(target_type):
                changes.update(group.evaluate(ctx.command, ctx))

        logger.info(f"Parsed {target_type.value} edit '{command}': {changes}")
        return changes


# ============================================
# Global Instance
# ============================================

edit_command_parser = EditCommandParser()


def parse_edit(
    command: str,
    original: Mapping[str, Any],
    target_type: Union[ListingType, str]
) -> Dict[str, Any]:
    """Parse an edit instruction with the default rule table"""
    return edit_command_parser.parse(command, original, target_type)


def propose_edit(
    command: str,
    original: Mapping[str, Any],
    target_type: Union[ListingType, str],
    target_id: str,
    created_by: Optional[str] = None
) -> ContentEdit:
    """
    Build a preview edit for a listing snapshot.

    Raises:
        UnparseableCommandError: if the instruction produced no changes
    """
    changes = parse_edit(command, original, target_type)
    if not changes:
        raise UnparseableCommandError(
            "No valid changes detected from the natural language command"
        )

    return ContentEdit(
        id=f"EDIT_{uuid.uuid4().hex[:12]}",
        target_type=ListingType(target_type),
        target_id=str(target_id),
        original_content=dict(original),
        proposed_content={**original, **changes},
        description=command,
        status=EditStatus.PREVIEW,
        created_by=created_by or "anonymous",
        changes=list(changes),
        changed_fields=changes
    )
