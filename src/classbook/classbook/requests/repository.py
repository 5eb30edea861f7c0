from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import RequestStatus
from .model import AbsenceRequest, MakeupRequest


class RequestRepository(Protocol):
    # Makeup requests
    def create_makeup(
        self,
        *,
        student_id: int,
        enrollment_id: Optional[int],
        original_class_id: Optional[int],
        original_session_date: Optional[date],
        new_class_id: int,
        new_session_date: date,
        reason: str,
        status: RequestStatus,
    ) -> int:
        raise NotImplementedError

    def list_makeups(
        self,
        *,
        student_id: Optional[int] = None,
        enrollment_id: Optional[int] = None,
        status: Optional[RequestStatus] = None,
    ) -> Sequence[MakeupRequest]:
        raise NotImplementedError

    def list_makeups_into(self, *, class_id: int, session_date: date, status: RequestStatus) -> Sequence[MakeupRequest]:
        """Requests whose target seat is (class_id, session_date)."""

        raise NotImplementedError

    def count_makeups(self, *, student_id: int, status: RequestStatus) -> int:
        raise NotImplementedError

    def decide_makeup(self, *, request_id: int, status: RequestStatus) -> bool:
        raise NotImplementedError

    # Absence requests
    def create_absence(
        self,
        *,
        student_id: int,
        enrollment_id: Optional[int],
        class_id: int,
        session_date: date,
        reason: str,
        status: RequestStatus,
    ) -> int:
        raise NotImplementedError

    def list_absences(self, *, student_id: Optional[int] = None) -> Sequence[AbsenceRequest]:
        raise NotImplementedError
