from decimal import Decimal

import pytest

from fake_api import seated_availability_payload
from ticketbooth.api.schemas.schemas import SeatingMode, availability_adapter
from ticketbooth.domain.exceptions import ShapeMismatchError
from ticketbooth.domain.selection import SeatSelection, TierSelection, new_selection


@pytest.mark.parametrize(
    "requested, expected",
    [(-5, 0), (0, 0), (1, 1), (3, 3), (4, 3), (1000, 3)],
)
def test_tier_quantity_is_clamped_to_remaining(ga_availability, requested, expected):
    selection = TierSelection()

    stored = selection.set_quantity(ga_availability, 1, requested)

    assert stored == expected
    assert selection.quantity(1) == expected


def test_zero_quantity_removes_entry(ga_availability):
    selection = TierSelection()
    selection.set_quantity(ga_availability, 1, 2)

    selection.set_quantity(ga_availability, 1, 0)

    assert selection.items() == {}
    assert selection.is_empty()


def test_set_quantity_is_idempotent(ga_availability):
    selection = TierSelection()
    selection.set_quantity(ga_availability, 2, 5)
    selection.set_quantity(ga_availability, 2, 5)

    assert selection.items() == {2: 5}


def test_unknown_tier_is_treated_as_zero(ga_availability):
    selection = TierSelection()

    assert selection.set_quantity(ga_availability, 99, 4) == 0
    assert selection.is_empty()


def test_tier_totals(ga_availability):
    selection = TierSelection()
    selection.set_quantity(ga_availability, 1, 2)
    selection.set_quantity(ga_availability, 2, 3)

    assert selection.total_selected_count() == 5
    assert selection.total_price(ga_availability) == Decimal("160")


def test_toggle_twice_restores_membership(seated_availability):
    selection = SeatSelection()
    selection.toggle(seated_availability, 102)

    assert selection.toggle(seated_availability, 101) is True
    assert selection.toggle(seated_availability, 101) is False
    assert selection.seat_ids() == frozenset({102})


def test_toggle_unavailable_seat_is_noop(seated_availability):
    selection = SeatSelection()

    assert selection.toggle(seated_availability, 103) is False
    assert selection.toggle(seated_availability, 999) is False
    assert selection.is_empty()


def test_toggle_of_selected_seat_that_became_unavailable_is_noop(seated_availability):
    selection = SeatSelection()
    selection.toggle(seated_availability, 101)
    refreshed = availability_with_seat_taken(101)

    assert selection.toggle(refreshed, 101) is True
    assert selection.toggle(refreshed, 101) is True
    assert selection.seat_ids() == frozenset({101})


def availability_with_seat_taken(seat_id):
    payload = seated_availability_payload()
    for section in payload["sections"]:
        for row in section["rows"]:
            for seat in row["seats"]:
                if seat["seatId"] == seat_id:
                    seat["available"] = False
    return availability_adapter.validate_python(payload)


def test_seat_totals(seated_availability):
    selection = SeatSelection()
    selection.toggle(seated_availability, 101)
    selection.toggle(seated_availability, 201)

    assert selection.total_selected_count() == 2
    assert selection.total_price(seated_availability) == Decimal("125.5")


def test_shape_mismatch_is_rejected(ga_availability, seated_availability):
    with pytest.raises(ShapeMismatchError):
        TierSelection().set_quantity(seated_availability, 1, 1)

    with pytest.raises(ShapeMismatchError):
        SeatSelection().toggle(ga_availability, 101)


def test_new_selection_follows_seating_mode():
    assert isinstance(new_selection(SeatingMode.GENERAL_ADMISSION), TierSelection)
    assert isinstance(new_selection(SeatingMode.SEATED), SeatSelection)
