import asyncio
import logging
from typing import Tuple

from ticketbooth.api.client.booking_api import BookingApi
from ticketbooth.api.schemas.schemas import AvailabilitySnapshot, EventOccurrence
from ticketbooth.domain.exceptions import (
    ApiResponseError,
    FetchError,
    OccurrenceNotFoundError,
    TransientFetchError,
)


logger = logging.getLogger(__name__)


async def fetch_occurrence_and_availability(
    api: BookingApi,
    occurrence_id: int,
) -> Tuple[EventOccurrence, AvailabilitySnapshot]:
    """
    Loads an occurrence and its availability concurrently.

    Raises:
        OccurrenceNotFoundError: either endpoint reported 404.
        TransientFetchError: any other failure. Not retried here.
    """
    results = await asyncio.gather(
        api.get_occurrence(occurrence_id),
        api.get_availability(occurrence_id),
        return_exceptions=True,
    )

    errors = [r for r in results if isinstance(r, BaseException)]
    for error in errors:
        if not isinstance(error, ApiResponseError):
            raise error
    if errors:
        raise _fetch_error(occurrence_id, errors) from errors[0]

    occurrence, availability = results
    if availability.seating_mode != occurrence.seating_mode:
        logger.warning(
            "Availability for occurrence %s is %s but occurrence is %s",
            occurrence_id,
            availability.seating_mode,
            occurrence.seating_mode.value,
        )

    logger.info(
        "Loaded occurrence %s (%s)",
        occurrence_id,
        occurrence.seating_mode.value,
    )
    return occurrence, availability


async def fetch_availability(
    api: BookingApi,
    occurrence_id: int,
) -> AvailabilitySnapshot:
    try:
        return await api.get_availability(occurrence_id)
    except ApiResponseError as exc:
        raise _fetch_error(occurrence_id, [exc]) from exc


def _fetch_error(occurrence_id: int, errors: list) -> FetchError:
    if any(error.status_code == 404 for error in errors):
        return OccurrenceNotFoundError(occurrence_id)

    logger.warning(
        "Loading occurrence %s failed: %s",
        occurrence_id,
        errors[0],
    )
    return TransientFetchError(occurrence_id)
