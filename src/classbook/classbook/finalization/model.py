from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from ..attendance.model import AttendanceRecord
from ..core.exceptions import ConcurrencyConflictError
from ..profiles.model import StudentProfile


@dataclass(frozen=True)
class PointOperation:
    student_id: int
    points: int


@dataclass(frozen=True)
class GoldOperation:
    student_id: int
    amount: int


@dataclass(frozen=True)
class FinalizeResult:
    updated_attendance: Tuple[AttendanceRecord, ...] = ()
    updated_profiles: Tuple[StudentProfile, ...] = ()
    point_operations: Tuple[PointOperation, ...] = ()
    gold_operations: Tuple[GoldOperation, ...] = ()
    conflicts: Tuple[ConcurrencyConflictError, ...] = field(default=())

    @property
    def wrote_anything(self) -> bool:
        return bool(self.updated_attendance or self.point_operations or self.gold_operations)

    def to_dict(self) -> dict:
        return {
            "updated_attendance": [r.to_dict() for r in self.updated_attendance],
            "updated_profiles": [p.to_dict() for p in self.updated_profiles],
            "point_operations": [{"student_id": o.student_id, "points": o.points} for o in self.point_operations],
            "gold_operations": [{"student_id": o.student_id, "amount": o.amount} for o in self.gold_operations],
            "conflicts": [{"student_id": c.student_id, "reason": c.reason} for c in self.conflicts],
        }
