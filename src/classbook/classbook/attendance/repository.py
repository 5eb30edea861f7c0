from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def list_for_session(self, *, class_id: int, session_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_student(self, student_id: int) -> Sequence[AttendanceRecord]:
        """All records for the student ordered by session_date ascending."""

        raise NotImplementedError

    def get(self, *, student_id: int, class_id: int, session_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def count_excused_until(self, *, student_id: int, until: date) -> int:
        raise NotImplementedError

    def upsert(
        self,
        *,
        student_id: int,
        class_id: int,
        session_date: date,
        status: AttendanceStatus,
        note: Optional[str] = None,
        marked_by: Optional[int] = None,
    ) -> int:
        """Create or update the record for the natural key. Returns attendance_id."""

        raise NotImplementedError

    def delete(self, *, student_id: int, class_id: int, session_date: date) -> bool:
        raise NotImplementedError
