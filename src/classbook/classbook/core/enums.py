from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role of the signed-in user, provided by the identity collaborator."""

    TEACHER = "teacher"
    STUDENT = "student"


class AttendanceStatus(str, Enum):
    """Attendance outcome stored for one (student, class, session date)."""

    PRESENT = "present"
    ABSENT = "absent"
    EXCUSED = "excused"
    MAKEUP = "makeup"

    @property
    def is_attended(self) -> bool:
        return self in {AttendanceStatus.PRESENT, AttendanceStatus.MAKEUP}


class RequestStatus(str, Enum):
    """Approval state of makeup and absence requests."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class EnrollmentStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DEFERRED = "deferred"


class RankMove(str, Enum):
    UP = "up"
    DOWN = "down"
    SAME = "same"
