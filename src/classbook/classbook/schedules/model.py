from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import FrozenSet, Optional, Tuple

from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class SessionTemplate:
    """One weekly slot of a class. day_of_week: 0 = Sunday ... 6 = Saturday."""

    day_of_week: int
    start_time: time
    end_time: time

    def __post_init__(self) -> None:
        if not 0 <= int(self.day_of_week) <= 6:
            raise ValidationError("day_of_week must be between 0 and 6")
        if self.start_time >= self.end_time:
            raise ValidationError("start_time must be before end_time")


@dataclass(frozen=True)
class ClassDefinition:
    class_id: int
    name: str
    templates: Tuple[SessionTemplate, ...]
    enrolled_student_ids: FrozenSet[int] = field(default_factory=frozenset)
    room: Optional[str] = None
    grade: Optional[int] = None
    max_students: Optional[int] = None
    is_active: bool = True


@dataclass(frozen=True)
class Cancellation:
    cancellation_id: int
    class_id: int
    cancel_date: date
    reason: str
    cancelled_by: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class SessionOccurrence:
    """A concrete dated session. Derived on demand, never stored."""

    class_id: int
    session_date: date
    start_time: time
    end_time: time
    room: Optional[str] = None

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.session_date, self.start_time)

    def to_dict(self) -> dict:
        return {
            "class_id": self.class_id,
            "session_date": self.session_date.strftime("%Y-%m-%d"),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "room": self.room,
        }


@dataclass(frozen=True)
class CancellationResult:
    cancellation: Cancellation
    credited_student_ids: Tuple[int, ...]
    skipped_student_ids: Tuple[int, ...]
    refunded_request_ids: Tuple[int, ...]
