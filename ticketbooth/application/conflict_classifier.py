from dataclasses import dataclass
from enum import Enum
from typing import Union

from ticketbooth.domain.exceptions import ApiResponseError


CONFLICT_STATUS_CODE = 409


class ConflictReason(str, Enum):
    INSUFFICIENT_INVENTORY = "INSUFFICIENT_INVENTORY"
    SEAT_ALREADY_TAKEN = "SEAT_ALREADY_TAKEN"


@dataclass(frozen=True)
class InventoryConflict:
    """Inventory ran out between load and submit. Recoverable by resync."""

    reason: ConflictReason
    message: str


@dataclass(frozen=True)
class OtherFailure:
    message: str


Classification = Union[InventoryConflict, OtherFailure]


def classify(error: BaseException) -> Classification:
    """
    An error is an InventoryConflict only when the API answered 409
    with a payload whose "error" names a recognized reason.
    """
    if not isinstance(error, ApiResponseError):
        return OtherFailure(message=str(error) or "Failed to create booking. Please try again.")

    payload = error.payload if isinstance(error.payload, dict) else {}
    message = payload.get("message")
    if not isinstance(message, str) or not message:
        message = str(error)

    if error.status_code != CONFLICT_STATUS_CODE:
        return OtherFailure(message=message)

    try:
        reason = ConflictReason(payload.get("error"))
    except ValueError:
        return OtherFailure(message=message)

    return InventoryConflict(reason=reason, message=message)
