from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Cancellation, ClassDefinition


class ClassRepository(Protocol):
    def get_by_id(self, class_id: int) -> Optional[ClassDefinition]:
        raise NotImplementedError

    def list_for_student(self, student_id: int) -> Sequence[ClassDefinition]:
        """Active classes the student is enrolled in."""

        raise NotImplementedError

    def list_cancellations(self, class_id: int) -> Sequence[Cancellation]:
        raise NotImplementedError

    def create_cancellation(
        self,
        *,
        class_id: int,
        cancel_date: date,
        reason: str,
        cancelled_by: Optional[int] = None,
    ) -> Optional[int]:
        """Insert a cancellation.

        Returns the new id, or None when (class_id, cancel_date) already exists.
        """

        raise NotImplementedError

    def list_active(self) -> Sequence[ClassDefinition]:
        raise NotImplementedError
