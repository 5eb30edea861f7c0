from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Enrollment


class EnrollmentRepository(Protocol):
    def get_by_id(self, enrollment_id: int) -> Optional[Enrollment]:
        raise NotImplementedError

    def list_for_student(self, student_id: int) -> Sequence[Enrollment]:
        """Enrollments ordered by start_date ascending."""

        raise NotImplementedError
