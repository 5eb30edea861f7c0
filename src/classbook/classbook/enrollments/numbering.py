"""Session numbering ("3/4", "1/4", ...) from a student's attendance history.

Every function here is pure and total: incomplete data degrades the output,
it never raises.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import AbstractSet, Iterable, List, Optional, Sequence, Tuple

from ..attendance.model import AttendanceRecord
from ..core.enums import AttendanceStatus
from .model import Enrollment

NOT_YET = "Not yet"
FINISHED = "Finished"


@dataclass(frozen=True)
class SessionNumber:
    session_date: date
    ordinal: int
    numerator: int
    cycle_length: Optional[int]

    @property
    def label(self) -> str:
        if self.cycle_length:
            return f"{self.numerator}/{self.cycle_length}"
        return str(self.ordinal)


def history_for_enrollment(
    history: Iterable[AttendanceRecord],
    enrollment: Enrollment,
    *,
    makeup_keys: AbstractSet[Tuple[int, date]] = frozenset(),
) -> List[AttendanceRecord]:
    """Records that belong to one enrollment.

    Only dates inside the enrollment window count. When the enrollment is
    tied to a class, a record from another class counts only if it is a
    makeup whose (class_id, session_date) is in ``makeup_keys``.
    """
    out = []
    for r in history:
        if r is None or not enrollment.covers(r.session_date):
            continue
        if enrollment.class_id is not None and r.class_id != enrollment.class_id:
            if r.status != AttendanceStatus.MAKEUP or (r.class_id, r.session_date) not in makeup_keys:
                continue
        out.append(r)
    return out


def attended_in_order(history: Iterable[AttendanceRecord]) -> List[AttendanceRecord]:
    rows = [r for r in history if r is not None and r.status is not None and r.status.is_attended]
    rows.sort(key=lambda r: (r.session_date, r.attendance_id))
    return rows


def cycle_numerator(ordinal: int, cycle_length: Optional[int]) -> int:
    """Reduce an absolute ordinal into its cycle; remainder 0 shows as the cycle length."""
    if not cycle_length or cycle_length <= 0 or ordinal <= 0:
        return ordinal
    return ((ordinal - 1) % cycle_length) + 1


def number_attended_sessions(
    history: Sequence[AttendanceRecord],
    cycle_length: Optional[int],
) -> List[SessionNumber]:
    return [
        SessionNumber(
            session_date=r.session_date,
            ordinal=i,
            numerator=cycle_numerator(i, cycle_length),
            cycle_length=cycle_length if cycle_length and cycle_length > 0 else None,
        )
        for i, r in enumerate(attended_in_order(history), start=1)
    ]


def ordinal_for(history: Sequence[AttendanceRecord], target_date: date, *, since: Optional[date] = None) -> int:
    """Ordinal the session on ``target_date`` has (or will have) for this student."""
    earlier = [
        r
        for r in attended_in_order(history)
        if r.session_date < target_date and (since is None or r.session_date >= since)
    ]
    return len(earlier) + 1


def format_session_number(
    ordinal: int,
    cycle_length: Optional[int] = None,
    total_sessions: Optional[int] = None,
) -> str:
    if ordinal <= 0:
        return NOT_YET
    if total_sessions and total_sessions > 0 and ordinal > total_sessions:
        return FINISHED
    if cycle_length and cycle_length > 0:
        return f"{cycle_numerator(ordinal, cycle_length)}/{cycle_length}"
    if total_sessions and total_sessions > 0:
        return f"{ordinal}/{total_sessions}"
    return str(ordinal)
