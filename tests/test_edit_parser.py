"""
Tests for the content-edit instruction parser
"""

import pytest

from tripdesk.errors import UnparseableCommandError
from tripdesk.parsers import parse_edit, propose_edit
from tripdesk.schemas import EditStatus, ListingType


def test_decrease_price_by_amount():
    assert parse_edit("Decrease price by 2000", {"price": 12000}, "flight") == {"price": 10000}


def test_add_seats():
    assert parse_edit("Add 5 more seats", {"seats": 100}, "flight") == {"seats": 105}


def test_increase_price_default_amount():
    assert parse_edit("increase price", {"price": 1000}, "bus") == {"price": 2000}


def test_hotel_price_uses_price_per_night():
    changes = parse_edit("raise price by 2000", {"pricePerNight": 8000}, "hotel")

    assert changes == {"pricePerNight": 10000}


def test_decrease_is_floored():
    assert parse_edit("reduce price by 5000", {"price": 3000}, "flight") == {"price": 100}


def test_decrease_never_raises_price():
    assert parse_edit("lower price by 10", {"price": 50}, "activity") == {"price": 50}


def test_amount_after_trigger_phrase():
    changes = parse_edit("for 2 days, decrease price by 300", {"price": 1000}, "activity")

    assert changes == {"price": 700}


def test_set_price():
    assert parse_edit("Set price to 7500", {"price": 9000}, "flight") == {"price": 7500}


def test_remove_seats_floors_at_zero():
    changes = parse_edit("remove 10 seats", {"availableSeats": 4}, "bus")

    assert changes == {"availableSeats": 0}


@pytest.mark.parametrize("command, original, target_type, expected", [
    ("add 3 rooms", {"availableRooms": 7}, "hotel", {"availableRooms": 10}),
    ("add spots", {"availableSpots": 2}, "activity", {"availableSpots": 7}),
    ("add 2 seats", {"availableSeats": 40}, "flight", {"availableSeats": 42}),
])
def test_availability_field_per_listing_type(command, original, target_type, expected):
    assert parse_edit(command, original, target_type) == expected


def test_set_rating():
    assert parse_edit("set rating to 4.5", {"rating": 3.9}, "hotel") == {"rating": 4.5}


def test_out_of_range_rating_is_ignored():
    assert parse_edit("set rating to 7", {"rating": 3.9}, "hotel") == {}


def test_rating_needs_rating_field():
    assert parse_edit("change rating to 4", {"price": 100}, "activity") == {}


def test_meal_toggle_only_for_flights():
    assert parse_edit("include meal", {"mealIncluded": False}, "flight") == {"mealIncluded": True}
    assert parse_edit("exclude meal", {"mealIncluded": True}, "flight") == {"mealIncluded": False}
    assert parse_edit("include meal", {}, "bus") == {}


def test_class_change():
    assert parse_edit("upgrade to business", {}, "flight") == {"classType": "business"}
    assert parse_edit("downgrade to economy", {}, "flight") == {"classType": "economy"}


def test_bus_type_change():
    assert parse_edit("change to sleeper", {}, ListingType.BUS) == {"busType": "sleeper"}
    assert parse_edit("make it ac", {}, ListingType.BUS) == {"busType": "ac"}
    assert parse_edit("change to sleeper", {}, ListingType.FLIGHT) == {}


def test_groups_combine():
    original = {"price": 5000, "availableSeats": 10, "mealIncluded": False}

    changes = parse_edit("decrease price by 1000, add 2 seats and include meal", original, "flight")

    assert changes == {"price": 4000, "availableSeats": 12, "mealIncluded": True}


def test_nothing_understood():
    assert parse_edit("make it fancy", {"price": 100}, "flight") == {}


def test_propose_edit_builds_preview():
    original = {"id": "FL001", "price": 12000, "availableSeats": 30}

    edit = propose_edit("Decrease price by 2000", original, "flight", "FL001", created_by="u1")

    assert edit.id.startswith("EDIT_")
    assert edit.status is EditStatus.PREVIEW
    assert edit.created_by == "u1"
    assert edit.changed_fields == {"price": 10000}
    assert edit.changes == ["price"]
    assert edit.original_content == original
    assert edit.proposed_content == {**original, "price": 10000}


def test_propose_edit_defaults_to_anonymous():
    edit = propose_edit("add 1 seat", {"availableSeats": 1}, "bus", "BS001")

    assert edit.created_by == "anonymous"


def test_propose_edit_rejects_unparseable_command():
    with pytest.raises(UnparseableCommandError):
        propose_edit("make it fancy", {"price": 100}, "flight", "FL001")


@pytest.mark.parametrize("price", [100, 150, 999, 1000, 4500, 12000, 100000])
@pytest.mark.parametrize("amount", [1, 50, 500, 1000, 5000, 200000])
def test_decrease_stays_between_floor_and_original(price, amount):
    new = parse_edit(f"decrease price by {amount}", {"price": price}, "flight")["price"]

    assert 100 <= new <= price
    assert new == max(100, price - amount)


@pytest.mark.parametrize("price", [0, 1, 99])
def test_decrease_below_floor_leaves_price_unchanged(price):
    assert parse_edit("decrease price by 10", {"price": price}, "bus") == {"price": price}


@pytest.mark.parametrize("command, original, target_type", [
    ("Decrease price by 2000", {"price": 12000}, "flight"),
    ("add 3 seats and upgrade to business", {"availableSeats": 10, "classType": "economy"}, "flight"),
    ("set rating to 4.2, raise price", {"rating": 3.0, "pricePerNight": 5000}, "hotel"),
    ("change to sleeper and remove 2 seats", {"availableSeats": 1, "busType": "ac"}, "bus"),
])
def test_parsing_is_deterministic(command, original, target_type):
    first = parse_edit(command, dict(original), target_type)

    assert parse_edit(command, dict(original), target_type) == first
    assert first
