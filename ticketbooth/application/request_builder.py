import logging
from typing import Dict, List

from ticketbooth.api.schemas.schemas import (
    AuthUser,
    AvailabilitySnapshot,
    BookingRequest,
    EventOccurrence,
    GeneralAdmissionAvailability,
    GeneralAdmissionBookingRequest,
    Seat,
    SeatedAvailability,
    SeatedBookingRequest,
    SeatingMode,
    SeatLine,
    TierLine,
    TierName,
)
from ticketbooth.domain.exceptions import (
    EmptySelectionError,
    MissingNameError,
    ShapeMismatchError,
    StaleSelectionError,
    UnauthenticatedError,
)
from ticketbooth.domain.selection import SeatSelection, Selection, TierSelection
from ticketbooth.infrastructure.config import DEFAULT_PAYMENT_SOURCE


logger = logging.getLogger(__name__)

# Used only when the availability payload omits a seat's ticketTypeId.
# Assumes the server numbers tiers in this order, which it does not guarantee.
FALLBACK_TIER_IDS: Dict[TierName, int] = {
    TierName.VIP: 1,
    TierName.FRONT_ROW: 2,
    TierName.GA: 3,
}


def build_request(
    selection: Selection,
    availability: AvailabilitySnapshot,
    occurrence: EventOccurrence,
    identity: AuthUser | None,
    customer_name: str | None,
    payment_source: str = DEFAULT_PAYMENT_SOURCE,
) -> BookingRequest:
    """
    Turns the current selection into a wire-ready booking request.

    Checks run in a fixed order and the first failure is raised:
    UnauthenticatedError, MissingNameError, EmptySelectionError,
    ShapeMismatchError. A selection that references tiers or seats
    missing from the snapshot raises StaleSelectionError.
    """
    if identity is None:
        raise UnauthenticatedError()

    name = (customer_name or "").strip()
    if not name:
        raise MissingNameError()

    if selection.total_selected_count() < 1:
        if isinstance(selection, SeatSelection):
            raise EmptySelectionError("Please select at least one seat")
        raise EmptySelectionError()

    _ensure_same_shape(selection, availability, occurrence)

    if isinstance(selection, TierSelection) and isinstance(
        availability, GeneralAdmissionAvailability
    ):
        return GeneralAdmissionBookingRequest(
            event_date_id=occurrence.id,
            customer_name=name,
            user_id=identity.id,
            payment_source=payment_source,
            tiers=tuple(_tier_lines(selection, availability)),
        )

    if isinstance(selection, SeatSelection) and isinstance(
        availability, SeatedAvailability
    ):
        return SeatedBookingRequest(
            event_date_id=occurrence.id,
            customer_name=name,
            user_id=identity.id,
            payment_source=payment_source,
            seats=tuple(_seat_lines(selection, availability)),
        )

    raise ShapeMismatchError()


def _ensure_same_shape(
    selection: Selection,
    availability: AvailabilitySnapshot,
    occurrence: EventOccurrence,
) -> None:
    modes = {
        SeatingMode(selection.seating_mode),
        SeatingMode(availability.seating_mode),
        SeatingMode(occurrence.seating_mode),
    }
    if len(modes) != 1:
        logger.error(
            "Seating mode mismatch for occurrence %s: %s",
            occurrence.id,
            sorted(mode.value for mode in modes),
        )
        raise ShapeMismatchError()


def _tier_lines(
    selection: TierSelection,
    availability: GeneralAdmissionAvailability,
) -> List[TierLine]:
    quantities = selection.items()

    unknown = set(quantities) - {tier.id for tier in availability.tiers}
    if unknown:
        logger.info("Selection references unknown tiers %s", sorted(unknown))
        raise StaleSelectionError()

    return [
        TierLine(ticket_type_id=tier.id, quantity=quantities[tier.id])
        for tier in availability.tiers
        if quantities.get(tier.id, 0) > 0
    ]


def _seat_lines(
    selection: SeatSelection,
    availability: SeatedAvailability,
) -> List[SeatLine]:
    selected = selection.seat_ids()
    seats = [seat for seat in availability.iter_seats() if seat.seat_id in selected]

    if len(seats) != len(selected):
        missing = selected - {seat.seat_id for seat in seats}
        logger.info("Selection references unknown seats %s", sorted(missing))
        raise StaleSelectionError()

    return [
        SeatLine(seat_id=seat.seat_id, ticket_type_id=_resolve_tier_id(seat))
        for seat in seats
    ]


def _resolve_tier_id(seat: Seat) -> int:
    if seat.ticket_type_id is not None:
        return seat.ticket_type_id

    tier_id = FALLBACK_TIER_IDS[seat.ticket_type]
    logger.warning(
        "Seat %s has no ticketTypeId; guessing %s from tier name %s. "
        "The server may number tiers differently.",
        seat.seat_id,
        tier_id,
        seat.ticket_type.value,
    )
    return tier_id
