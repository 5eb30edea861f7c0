from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Authoritative attendance fact. Natural key: (student_id, class_id, session_date)."""

    attendance_id: int
    student_id: int
    class_id: int
    session_date: date
    status: AttendanceStatus
    note: Optional[str] = None
    marked_by: Optional[int] = None
    marked_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "attendance_id": self.attendance_id,
            "student_id": self.student_id,
            "class_id": self.class_id,
            "session_date": self.session_date.strftime("%Y-%m-%d"),
            "status": self.status.value,
            "note": self.note,
        }


@dataclass(frozen=True)
class AttendanceSummary:
    """Per-student counts over one enrollment window."""

    student_id: int
    total_sessions: int
    attended: int
    makeup: int
    excused: int
    absent: int

    @property
    def participation_rate(self) -> int:
        if self.total_sessions <= 0:
            return 0
        return round((self.attended + self.makeup) * 100 / self.total_sessions)
