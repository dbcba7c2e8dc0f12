# ticketbooth/domain/state_machine.py

from enum import Enum
from typing import Dict, Set

from ticketbooth.domain.exceptions import InvalidStateTransitionError


class SubmissionStatus(str, Enum):
    IDLE = "IDLE"
    VALIDATING = "VALIDATING"
    SUBMITTING = "SUBMITTING"
    SUCCEEDED = "SUCCEEDED"
    CONFLICT_RECOVERING = "CONFLICT_RECOVERING"
    FAILED = "FAILED"


class SubmissionStateMachine:
    """
    Central lifecycle controller for booking submission.
    Defines the legal state transitions.
    """

    _ALLOWED_TRANSITIONS: Dict[SubmissionStatus, Set[SubmissionStatus]] = {
        SubmissionStatus.IDLE: {
            SubmissionStatus.VALIDATING,
        },
        SubmissionStatus.VALIDATING: {
            SubmissionStatus.IDLE,
            SubmissionStatus.SUBMITTING,
        },
        SubmissionStatus.SUBMITTING: {
            SubmissionStatus.SUCCEEDED,
            SubmissionStatus.CONFLICT_RECOVERING,
            SubmissionStatus.FAILED,
        },
        SubmissionStatus.CONFLICT_RECOVERING: {
            SubmissionStatus.IDLE,
        },
        SubmissionStatus.FAILED: {
            SubmissionStatus.IDLE,
        },
        SubmissionStatus.SUCCEEDED: set(),
    }

    @classmethod
    def can_transition(
        cls,
        from_status: SubmissionStatus,
        to_status: SubmissionStatus,
    ) -> bool:
        """
        Returns True if transition is allowed.
        """
        cls._ensure_valid_status(from_status)
        cls._ensure_valid_status(to_status)

        return to_status in cls._ALLOWED_TRANSITIONS.get(from_status, set())

    @classmethod
    def validate_transition(
        cls,
        from_status: SubmissionStatus,
        to_status: SubmissionStatus,
    ) -> None:
        """
        Raises InvalidStateTransitionError if transition is illegal.
        """
        if not cls.can_transition(from_status, to_status):
            raise InvalidStateTransitionError(
                from_state=from_status.value,
                to_state=to_status.value,
            )

    @classmethod
    def is_terminal(cls, status: SubmissionStatus) -> bool:
        """
        Returns True if the state is terminal (no further transitions allowed).
        """
        cls._ensure_valid_status(status)
        return len(cls._ALLOWED_TRANSITIONS.get(status, set())) == 0

    @classmethod
    def accepts_submission(cls, status: SubmissionStatus) -> bool:
        """
        Only an idle workflow may start a new submission.
        """
        cls._ensure_valid_status(status)
        return status == SubmissionStatus.IDLE

    @staticmethod
    def _ensure_valid_status(status: SubmissionStatus) -> None:
        if not isinstance(status, SubmissionStatus):
            raise TypeError(
                f"Expected SubmissionStatus, got {type(status)}"
            )
