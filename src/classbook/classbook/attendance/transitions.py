"""Attendance state machine and the points each status is worth.

States are ``None`` (unset) plus the AttendanceStatus values. Teachers move a
record between them with "mark" actions; points are only applied when the
session is finalized.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.constants import DEFAULT_POINTS_ABSENT, DEFAULT_POINTS_EXCUSED, DEFAULT_POINTS_PRESENT
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError

MARKABLE = frozenset({AttendanceStatus.PRESENT, AttendanceStatus.ABSENT, AttendanceStatus.EXCUSED})


@dataclass(frozen=True)
class Transition:
    previous: Optional[AttendanceStatus]
    current: Optional[AttendanceStatus]

    @property
    def changed(self) -> bool:
        return self.previous != self.current

    @property
    def grants_credit(self) -> bool:
        return self.changed and self.current == AttendanceStatus.EXCUSED

    @property
    def retracts_credit(self) -> bool:
        return self.changed and self.previous == AttendanceStatus.EXCUSED


def next_status(
    current: Optional[AttendanceStatus],
    requested: AttendanceStatus,
    *,
    makeup_slot: bool = False,
    toggle: bool = True,
) -> Transition:
    """Apply one teacher mark to ``current``.

    ``requested`` may be present/absent/excused; on a makeup-booked seat a
    present mark is stored as ``makeup``. Marking the status that is already
    active clears it back to unset when ``toggle`` is on, otherwise nothing
    changes.
    """
    requested = AttendanceStatus(requested)
    if requested == AttendanceStatus.MAKEUP:
        if not makeup_slot:
            raise ValidationError("makeup can only be recorded for a booked makeup seat")
        requested = AttendanceStatus.PRESENT
    if requested not in MARKABLE:
        raise ValidationError(f"Unsupported attendance status: {requested.value}")

    target = requested
    if makeup_slot and requested == AttendanceStatus.PRESENT:
        target = AttendanceStatus.MAKEUP

    if target == current:
        return Transition(previous=current, current=None if toggle else current)
    return Transition(previous=current, current=target)


@dataclass(frozen=True)
class PointsPolicy:
    present: int = DEFAULT_POINTS_PRESENT
    excused: int = DEFAULT_POINTS_EXCUSED
    absent: int = DEFAULT_POINTS_ABSENT
    makeup: Optional[int] = None

    def points_for(self, status: Optional[AttendanceStatus]) -> int:
        if status is None:
            return 0
        if status == AttendanceStatus.PRESENT:
            return self.present
        if status == AttendanceStatus.MAKEUP:
            return self.present if self.makeup is None else self.makeup
        if status == AttendanceStatus.EXCUSED:
            return self.excused
        return self.absent

    def adjustment(self, old: Optional[AttendanceStatus], new: Optional[AttendanceStatus]) -> int:
        if old == new:
            return 0
        return self.points_for(new) - self.points_for(old)
