import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, List, Optional, Tuple

from ticketbooth.api.client.booking_api import BookingApi
from ticketbooth.api.schemas.schemas import (
    AuthState,
    AvailabilitySnapshot,
    BookingConfirmation,
    EventOccurrence,
)
from ticketbooth.application.availability_service import (
    fetch_availability,
    fetch_occurrence_and_availability,
)
from ticketbooth.application.conflict_classifier import InventoryConflict, classify
from ticketbooth.application.request_builder import build_request
from ticketbooth.domain.exceptions import (
    ApiResponseError,
    BookingValidationError,
    ShapeMismatchError,
)
from ticketbooth.domain.selection import (
    SeatSelection,
    Selection,
    TierSelection,
    new_selection,
)
from ticketbooth.domain.state_machine import SubmissionStateMachine, SubmissionStatus
from ticketbooth.infrastructure.config import DEFAULT_PAYMENT_SOURCE
from ticketbooth.infrastructure.session_store import SessionStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    status: SubmissionStatus
    message: str | None = None
    confirmation: BookingConfirmation | None = None
    conflict: InventoryConflict | None = None
    error: Exception | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == SubmissionStatus.SUCCEEDED


class BookingWorkflow:
    """
    Booking flow for a single event occurrence.

    Owns the availability snapshot, the user's selection and the
    submission status. One instance lives as long as the user stays
    on the occurrence; call close() when they leave.
    """

    def __init__(
        self,
        api: BookingApi,
        session: SessionStore,
        occurrence_id: int,
        payment_source: str = DEFAULT_PAYMENT_SOURCE,
        on_success: Optional[Callable[[int], None]] = None,
    ):
        self.api = api
        self.session = session
        self.occurrence_id = occurrence_id
        self.payment_source = payment_source
        self.on_success = on_success

        self.status = SubmissionStatus.IDLE
        self.history: List[Tuple[SubmissionStatus, SubmissionStatus]] = []

        self.occurrence: EventOccurrence | None = None
        self.availability: AvailabilitySnapshot | None = None
        self.selection: Selection | None = None
        self.customer_name = ""
        self.message: str | None = None

        self._closed = False
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def closed(self) -> bool:
        return self._closed

    async def load(self) -> None:
        """
        Fetches the occurrence and its availability and starts an
        empty selection. FetchError propagates to the caller.
        """
        occurrence, availability = await fetch_occurrence_and_availability(
            self.api, self.occurrence_id
        )
        if self._closed:
            logger.debug("Discarding load for closed occurrence %s", self.occurrence_id)
            return

        self.occurrence = occurrence
        self.availability = availability
        self.selection = new_selection(occurrence.seating_mode)

        if self._unsubscribe is None:
            self._unsubscribe = self.session.subscribe(self._on_session_change)
        self._on_session_change(self.session.current())

    def close(self) -> None:
        self._closed = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # -----------------------------
    # Selection
    # -----------------------------
    def set_tier_quantity(self, tier_id: int, quantity: int) -> int:
        self._ensure_loaded()
        if not isinstance(self.selection, TierSelection):
            raise ShapeMismatchError()
        return self.selection.set_quantity(self.availability, tier_id, quantity)

    def toggle_seat(self, seat_id: int) -> bool:
        self._ensure_loaded()
        if not isinstance(self.selection, SeatSelection):
            raise ShapeMismatchError()
        return self.selection.toggle(self.availability, seat_id)

    def total_selected_count(self) -> int:
        self._ensure_loaded()
        return self.selection.total_selected_count()

    def total_price(self) -> Decimal:
        self._ensure_loaded()
        return self.selection.total_price(self.availability)

    @property
    def can_submit(self) -> bool:
        return (
            not self._closed
            and self.selection is not None
            and self.status == SubmissionStatus.IDLE
            and self.session.current_identity() is not None
            and bool(self.customer_name.strip())
            and not self.selection.is_empty()
        )

    # -----------------------------
    # Submission
    # -----------------------------
    async def submit(self, customer_name: str | None = None) -> SubmissionResult | None:
        """
        Validates and submits the current selection.

        Returns None without contacting the API when a submission is
        already in flight or the workflow has been closed.
        """
        if self._closed or not SubmissionStateMachine.accepts_submission(self.status):
            logger.debug(
                "Submit ignored for occurrence %s while %s",
                self.occurrence_id,
                self.status.value,
            )
            return None
        self._ensure_loaded()

        if customer_name is not None:
            self.customer_name = customer_name
        self.message = None
        self._transition(SubmissionStatus.VALIDATING)

        try:
            request = build_request(
                self.selection,
                self.availability,
                self.occurrence,
                self.session.current_identity(),
                self.customer_name,
                self.payment_source,
            )
        except BookingValidationError as exc:
            self._transition(SubmissionStatus.IDLE)
            self.message = exc.message
            return SubmissionResult(
                status=self.status,
                message=exc.message,
                error=exc,
            )

        self._transition(SubmissionStatus.SUBMITTING)
        logger.info(
            "Submitting booking for occurrence %s (%s tickets)",
            self.occurrence_id,
            self.selection.total_selected_count(),
        )

        try:
            confirmation = await self.api.submit_booking(request)
        except Exception as exc:
            if self._closed:
                logger.info("Ignoring failure for closed occurrence %s", self.occurrence_id)
                return None
            return await self._handle_failure(exc)

        if self._closed:
            logger.info(
                "Ignoring order %s for closed occurrence %s",
                confirmation.order_id,
                self.occurrence_id,
            )
            return None

        self._transition(SubmissionStatus.SUCCEEDED)
        logger.info(
            "Booked order %s for occurrence %s",
            confirmation.order_id,
            self.occurrence_id,
        )
        try:
            if self.on_success is not None:
                self.on_success(confirmation.order_id)
        finally:
            self.close()

        return SubmissionResult(status=self.status, confirmation=confirmation)

    async def _handle_failure(self, exc: Exception) -> SubmissionResult | None:
        classification = classify(exc)

        if isinstance(classification, InventoryConflict):
            logger.warning(
                "Booking for occurrence %s rejected: %s",
                self.occurrence_id,
                classification.reason.value,
            )
            self._transition(SubmissionStatus.CONFLICT_RECOVERING)
            await self._resync()
            if self._closed:
                return None

            self._transition(SubmissionStatus.IDLE)
            self.message = classification.message
            return SubmissionResult(
                status=self.status,
                message=classification.message,
                conflict=classification,
                error=exc,
            )

        if not isinstance(exc, ApiResponseError):
            logger.error("Unexpected error submitting booking", exc_info=exc)
        self._transition(SubmissionStatus.FAILED)
        self._transition(SubmissionStatus.IDLE)
        self.message = classification.message
        return SubmissionResult(
            status=self.status,
            message=classification.message,
            error=exc,
        )

    async def _resync(self) -> None:
        try:
            availability = await fetch_availability(self.api, self.occurrence_id)
        except Exception:
            logger.warning(
                "Could not refresh availability for occurrence %s after conflict",
                self.occurrence_id,
                exc_info=True,
            )
            return

        if self._closed:
            return
        self.availability = availability

    # -----------------------------
    # Internals
    # -----------------------------
    def _on_session_change(self, state: AuthState | None) -> None:
        self.customer_name = state.user.display_name if state else ""

    def _ensure_loaded(self) -> None:
        if self.occurrence is None or self.availability is None or self.selection is None:
            raise RuntimeError(
                f"Occurrence {self.occurrence_id} has not been loaded"
            )

    def _transition(self, to_status: SubmissionStatus) -> None:
        SubmissionStateMachine.validate_transition(self.status, to_status)
        logger.debug(
            "Occurrence %s submission %s -> %s",
            self.occurrence_id,
            self.status.value,
            to_status.value,
        )
        self.history.append((self.status, to_status))
        self.status = to_status
