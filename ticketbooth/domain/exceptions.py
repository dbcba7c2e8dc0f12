from enum import Enum
from typing import Any


class TicketboothError(Exception):
    """
    Base exception for all client-side errors
    raised by the Ticketbooth booking client.
    """


class InvalidStateTransitionError(TicketboothError):
    """
    Raised when an illegal submission state transition is attempted.
    """

    def __init__(self, from_state: str, to_state: str):
        self.from_state = from_state
        self.to_state = to_state

        message = (
            f"Illegal state transition attempted: "
            f"{from_state} -> {to_state}"
        )
        super().__init__(message)


class ErrorCode(str, Enum):
    UNAUTHENTICATED = "UNAUTHENTICATED"
    MISSING_NAME = "MISSING_NAME"
    EMPTY_SELECTION = "EMPTY_SELECTION"
    SHAPE_MISMATCH = "SHAPE_MISMATCH"
    STALE_SELECTION = "STALE_SELECTION"
    PASSWORD_MISMATCH = "PASSWORD_MISMATCH"


class BookingValidationError(TicketboothError):
    """
    Local validation failure. Never involves a network round trip
    and is surfaced to the user verbatim.
    """

    code: ErrorCode
    default_message: str = "Invalid booking"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def __eq__(self, other: object) -> bool:
        return (
            type(self) is type(other)
            and self.message == other.message
        )

    def __hash__(self) -> int:
        return hash((type(self), self.message))


class UnauthenticatedError(BookingValidationError):
    code = ErrorCode.UNAUTHENTICATED
    default_message = "Please log in to book tickets"


class MissingNameError(BookingValidationError):
    code = ErrorCode.MISSING_NAME
    default_message = "Please enter a name for the tickets"


class EmptySelectionError(BookingValidationError):
    code = ErrorCode.EMPTY_SELECTION
    default_message = "Please select at least one ticket"


class ShapeMismatchError(BookingValidationError):
    """Selection, availability and occurrence disagree on seating mode."""

    code = ErrorCode.SHAPE_MISMATCH
    default_message = "Invalid seating mode"


class StaleSelectionError(BookingValidationError):
    """Selection references a tier or seat missing from the current snapshot."""

    code = ErrorCode.STALE_SELECTION
    default_message = "Your selection is out of date. Please review it and try again"


class PasswordMismatchError(BookingValidationError):
    code = ErrorCode.PASSWORD_MISMATCH
    default_message = "Passwords do not match"


class FetchError(TicketboothError):
    """Raised when an occurrence or its availability cannot be loaded."""

    def __init__(self, occurrence_id: int, message: str):
        self.occurrence_id = occurrence_id
        self.message = message
        super().__init__(message)


class OccurrenceNotFoundError(FetchError):
    def __init__(self, occurrence_id: int):
        super().__init__(occurrence_id, "Event not found")


class TransientFetchError(FetchError):
    def __init__(self, occurrence_id: int, message: str | None = None):
        super().__init__(
            occurrence_id,
            message or "Failed to load event details. Please try again.",
        )


class ApiResponseError(TicketboothError):
    """
    Raised by the HTTP collaborator for any non-2xx response.
    status_code is None when the request never got a response.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        payload: Any = None,
    ):
        self.status_code = status_code
        self.payload = payload
        super().__init__(message)
