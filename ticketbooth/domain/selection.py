"""
In-memory selection state for one event occurrence.

Exactly one shape is live per occurrence: tier quantities for
general admission, a set of seat ids for seated events. Both shapes
are mutated against the current availability snapshot, which is
passed in on every call because it can be replaced after a conflict.
"""

import logging
from decimal import Decimal
from typing import Dict, Set, Union

from ticketbooth.api.schemas.schemas import (
    GeneralAdmissionAvailability,
    SeatedAvailability,
    SeatingMode,
)
from ticketbooth.domain.exceptions import ShapeMismatchError


logger = logging.getLogger(__name__)


class TierSelection:
    """Tier id -> quantity. Zero quantities are never stored."""

    seating_mode = SeatingMode.GENERAL_ADMISSION

    def __init__(self) -> None:
        self._quantities: Dict[int, int] = {}

    def set_quantity(
        self,
        availability: GeneralAdmissionAvailability,
        tier_id: int,
        quantity: int,
    ) -> int:
        """
        Clamps quantity to [0, tier.remaining] and stores it.
        Returns the stored quantity.
        """
        if not isinstance(availability, GeneralAdmissionAvailability):
            raise ShapeMismatchError()

        tier = availability.find_tier(tier_id)
        if tier is None:
            logger.debug("Ignoring quantity for unknown tier %s", tier_id)
            clamped = 0
        else:
            clamped = max(0, min(quantity, tier.remaining))

        if clamped == 0:
            self._quantities.pop(tier_id, None)
        else:
            self._quantities[tier_id] = clamped
        return clamped

    def quantity(self, tier_id: int) -> int:
        return self._quantities.get(tier_id, 0)

    def items(self) -> Dict[int, int]:
        return dict(self._quantities)

    def is_empty(self) -> bool:
        return not self._quantities

    def total_selected_count(self) -> int:
        return sum(self._quantities.values())

    def total_price(self, availability: GeneralAdmissionAvailability) -> Decimal:
        if not isinstance(availability, GeneralAdmissionAvailability):
            raise ShapeMismatchError()

        total = Decimal(0)
        for tier in availability.tiers:
            total += tier.price * self.quantity(tier.id)
        return total


class SeatSelection:
    """Set of selected seat ids."""

    seating_mode = SeatingMode.SEATED

    def __init__(self) -> None:
        self._seat_ids: Set[int] = set()

    def toggle(self, availability: SeatedAvailability, seat_id: int) -> bool:
        """
        Flips membership of seat_id and returns whether it is now selected.
        Toggling a seat the snapshot does not offer is a no-op, even when
        it is already selected.
        """
        if not isinstance(availability, SeatedAvailability):
            raise ShapeMismatchError()

        seat = availability.find_seat(seat_id)
        if seat is None or not seat.available:
            logger.debug("Seat %s is not available, toggle ignored", seat_id)
            return seat_id in self._seat_ids

        if seat_id in self._seat_ids:
            self._seat_ids.discard(seat_id)
            return False

        self._seat_ids.add(seat_id)
        return True

    def is_selected(self, seat_id: int) -> bool:
        return seat_id in self._seat_ids

    def seat_ids(self) -> frozenset:
        return frozenset(self._seat_ids)

    def is_empty(self) -> bool:
        return not self._seat_ids

    def total_selected_count(self) -> int:
        return len(self._seat_ids)

    def total_price(self, availability: SeatedAvailability) -> Decimal:
        if not isinstance(availability, SeatedAvailability):
            raise ShapeMismatchError()

        return sum(
            (
                seat.price
                for seat in availability.iter_seats()
                if seat.seat_id in self._seat_ids
            ),
            Decimal(0),
        )


Selection = Union[TierSelection, SeatSelection]


def new_selection(seating_mode: SeatingMode) -> Selection:
    if seating_mode == SeatingMode.GENERAL_ADMISSION:
        return TierSelection()
    if seating_mode == SeatingMode.SEATED:
        return SeatSelection()
    raise ValueError(f"Unknown seating mode: {seating_mode}")
