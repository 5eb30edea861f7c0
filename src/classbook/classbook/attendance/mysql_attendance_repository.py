from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, student_id, class_id, session_date, status, note, marked_by, marked_at"


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        student_id=int(r["student_id"]),
        class_id=int(r["class_id"]),
        session_date=r["session_date"],
        status=AttendanceStatus(r["status"]),
        note=r.get("note"),
        marked_by=int(r["marked_by"]) if r.get("marked_by") is not None else None,
        marked_at=r.get("marked_at"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_session(self, *, class_id: int, session_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE class_id=%s AND session_date=%s
                ORDER BY student_id
                """,
                (int(class_id), session_date),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_for_student(self, student_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE student_id=%s
                ORDER BY session_date ASC, attendance_id ASC
                """,
                (int(student_id),),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def get(self, *, student_id: int, class_id: int, session_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE student_id=%s AND class_id=%s AND session_date=%s
                """,
                (int(student_id), int(class_id), session_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def count_excused_until(self, *, student_id: int, until: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS n
                FROM attendance_records
                WHERE student_id=%s AND status=%s AND session_date<=%s
                """,
                (int(student_id), AttendanceStatus.EXCUSED.value, until),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(student_id, class_id, session_date, status, note, marked_by)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE status=VALUES(status), note=COALESCE(VALUES(note), note),
                    marked_by=VALUES(marked_by)
                """,
                (int(student_id), int(class_id), session_date, status.value, note, marked_by),
            )

            # If it was an update, lastrowid can be 0; fetch attendance_id.
            if cur.lastrowid:
                return int(cur.lastrowid)

            cur.execute(
                "SELECT attendance_id FROM attendance_records WHERE student_id=%s AND class_id=%s AND session_date=%s",
                (int(student_id), int(class_id), session_date),
            )
            r = fetchone(cur)
            return int(r["attendance_id"]) if r else 0

    def delete(self, *, student_id: int, class_id: int, session_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM attendance_records WHERE student_id=%s AND class_id=%s AND session_date=%s",
                (int(student_id), int(class_id), session_date),
            )
            return cur.rowcount > 0
