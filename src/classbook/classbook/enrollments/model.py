from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.constants import DEFAULT_TOTAL_SESSIONS
from ..core.enums import EnrollmentStatus


@dataclass(frozen=True)
class Enrollment:
    enrollment_id: int
    student_id: int
    start_date: date
    end_date: date
    class_id: Optional[int] = None
    cycle_length: Optional[int] = None
    total_sessions: int = DEFAULT_TOTAL_SESSIONS
    status: EnrollmentStatus = EnrollmentStatus.ACTIVE

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    @property
    def is_open(self) -> bool:
        return self.status in {EnrollmentStatus.ACTIVE, EnrollmentStatus.PENDING}
