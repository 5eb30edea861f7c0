from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import RequestStatus


def _iso(d: Optional[date]) -> Optional[str]:
    return d.strftime("%Y-%m-%d") if d else None


@dataclass(frozen=True)
class MakeupRequest:
    request_id: int
    student_id: int
    new_class_id: int
    new_session_date: date
    reason: str
    status: RequestStatus
    enrollment_id: Optional[int] = None
    original_class_id: Optional[int] = None
    original_session_date: Optional[date] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "student_id": self.student_id,
            "enrollment_id": self.enrollment_id,
            "original_class_id": self.original_class_id,
            "original_session_date": _iso(self.original_session_date),
            "new_class_id": self.new_class_id,
            "new_session_date": _iso(self.new_session_date),
            "reason": self.reason,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class AbsenceRequest:
    request_id: int
    student_id: int
    class_id: int
    session_date: date
    reason: str
    status: RequestStatus
    enrollment_id: Optional[int] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "student_id": self.student_id,
            "enrollment_id": self.enrollment_id,
            "class_id": self.class_id,
            "session_date": _iso(self.session_date),
            "reason": self.reason,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class MakeupBooking:
    """A student's candidate makeup seat, before validation."""

    student_id: int
    new_class_id: int
    new_session_date: date
    reason: str
    enrollment_id: Optional[int] = None
    original_class_id: Optional[int] = None
    original_session_date: Optional[date] = None
