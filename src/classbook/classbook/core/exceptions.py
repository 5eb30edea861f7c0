from __future__ import annotations

from typing import Optional, Sequence


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "VALIDATION"


class CreditAlreadySpentError(ValidationError):
    """Raised when an excused mark is withdrawn after its makeup credit was used."""

    code = "CREDIT_ALREADY_SPENT"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class EligibilityError(DomainError):
    """A makeup booking was refused. ``code`` is stable and shown to the caller."""

    code = "NOT_ELIGIBLE"


class NoCreditError(EligibilityError):
    code = "NO_CREDIT"


class SlotUnavailableError(EligibilityError):
    code = "SLOT_UNAVAILABLE"


class TooLateError(EligibilityError):
    code = "TOO_LATE"


class AdjacentToRegularSessionError(EligibilityError):
    code = "ADJACENT_TO_REGULAR_SESSION"


class AdjacentToMakeupError(EligibilityError):
    code = "ADJACENT_TO_MAKEUP"


class ConcurrencyConflictError(DomainError):
    """The authoritative store changed under a staged edit for one student."""

    def __init__(self, student_id: int, reason: str):
        super().__init__(f"student {student_id}: {reason}")
        self.student_id = int(student_id)
        self.reason = reason


class StoreError(DomainError):
    """The external store failed a read or write."""

    def __init__(
        self,
        message: str,
        *,
        failed_student_ids: Optional[Sequence[int]] = None,
        committed_student_ids: Optional[Sequence[int]] = None,
    ):
        super().__init__(message)
        self.failed_student_ids = list(failed_student_ids or [])
        self.committed_student_ids = list(committed_student_ids or [])
