from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import EnrollmentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Enrollment
from .repository import EnrollmentRepository

_COLUMNS = "enrollment_id, student_id, class_id, start_date, end_date, cycle_length, total_sessions, status"


def _row_to_enrollment(r: dict) -> Enrollment:
    return Enrollment(
        enrollment_id=int(r["enrollment_id"]),
        student_id=int(r["student_id"]),
        class_id=int(r["class_id"]) if r.get("class_id") is not None else None,
        start_date=r["start_date"],
        end_date=r["end_date"],
        cycle_length=int(r["cycle_length"]) if r.get("cycle_length") else None,
        total_sessions=int(r["total_sessions"]),
        status=EnrollmentStatus(r["status"]),
    )


class MySQLEnrollmentRepository(EnrollmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, enrollment_id: int) -> Optional[Enrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM enrollments WHERE enrollment_id=%s", (int(enrollment_id),))
            r = fetchone(cur)
            return _row_to_enrollment(r) if r else None

    def list_for_student(self, student_id: int) -> Sequence[Enrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM enrollments
                WHERE student_id=%s
                ORDER BY start_date ASC, enrollment_id ASC
                """,
                (int(student_id),),
            )
            return [_row_to_enrollment(r) for r in fetchall(cur)]
