from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AbsenceRequest, MakeupRequest
from .repository import RequestRepository

_MAKEUP_COLUMNS = (
    "request_id, student_id, enrollment_id, original_class_id, original_session_date, "
    "new_class_id, new_session_date, reason, status, created_at"
)
_ABSENCE_COLUMNS = "request_id, student_id, enrollment_id, class_id, session_date, reason, status, created_at"


def _opt_int(value) -> Optional[int]:
    return int(value) if value is not None else None


def _row_to_makeup(r: dict) -> MakeupRequest:
    return MakeupRequest(
        request_id=int(r["request_id"]),
        student_id=int(r["student_id"]),
        enrollment_id=_opt_int(r.get("enrollment_id")),
        original_class_id=_opt_int(r.get("original_class_id")),
        original_session_date=r.get("original_session_date"),
        new_class_id=int(r["new_class_id"]),
        new_session_date=r["new_session_date"],
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        created_at=r.get("created_at"),
    )


def _row_to_absence(r: dict) -> AbsenceRequest:
    return AbsenceRequest(
        request_id=int(r["request_id"]),
        student_id=int(r["student_id"]),
        enrollment_id=_opt_int(r.get("enrollment_id")),
        class_id=int(r["class_id"]),
        session_date=r["session_date"],
        reason=r["reason"],
        status=RequestStatus(r["status"]),
        created_at=r.get("created_at"),
    )


class MySQLRequestRepository(RequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # Makeup requests
    def create_makeup(
        self,
        *,
        student_id: int,
        enrollment_id: Optional[int],
        original_class_id: Optional[int],
        original_session_date: Optional[date],
        new_class_id: int,
        new_session_date: date,
        reason: str,
        status: RequestStatus,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO makeup_requests(
                    student_id, enrollment_id, original_class_id, original_session_date,
                    new_class_id, new_session_date, reason, status
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(student_id),
                    enrollment_id,
                    original_class_id,
                    original_session_date,
                    int(new_class_id),
                    new_session_date,
                    reason,
                    status.value,
                ),
            )
            return int(cur.lastrowid)

    def list_makeups(
        self,
        *,
        student_id: Optional[int] = None,
        enrollment_id: Optional[int] = None,
        status: Optional[RequestStatus] = None,
    ) -> Sequence[MakeupRequest]:
        clauses: list[str] = []
        params: list[object] = []
        if student_id is not None:
            clauses.append("student_id=%s")
            params.append(int(student_id))
        if enrollment_id is not None:
            clauses.append("enrollment_id=%s")
            params.append(int(enrollment_id))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_MAKEUP_COLUMNS} FROM makeup_requests {where} ORDER BY new_session_date ASC, request_id ASC",
                tuple(params),
            )
            return [_row_to_makeup(r) for r in fetchall(cur)]

    def list_makeups_into(self, *, class_id: int, session_date: date, status: RequestStatus) -> Sequence[MakeupRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_MAKEUP_COLUMNS}
                FROM makeup_requests
                WHERE new_class_id=%s AND new_session_date=%s AND status=%s
                ORDER BY request_id
                """,
                (int(class_id), session_date, status.value),
            )
            return [_row_to_makeup(r) for r in fetchall(cur)]

    def count_makeups(self, *, student_id: int, status: RequestStatus) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM makeup_requests WHERE student_id=%s AND status=%s",
                (int(student_id), status.value),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def decide_makeup(self, *, request_id: int, status: RequestStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE makeup_requests SET status=%s WHERE request_id=%s",
                (status.value, int(request_id)),
            )
            return cur.rowcount > 0

    # Absence requests
    def create_absence(
        self,
        *,
        student_id: int,
        enrollment_id: Optional[int],
        class_id: int,
        session_date: date,
        reason: str,
        status: RequestStatus,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO absence_requests(student_id, enrollment_id, class_id, session_date, reason, status)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(student_id), enrollment_id, int(class_id), session_date, reason, status.value),
            )
            return int(cur.lastrowid)

    def list_absences(self, *, student_id: Optional[int] = None) -> Sequence[AbsenceRequest]:
        where = "WHERE student_id=%s" if student_id is not None else ""
        params = (int(student_id),) if student_id is not None else ()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ABSENCE_COLUMNS} FROM absence_requests {where} ORDER BY session_date DESC, request_id DESC",
                params,
            )
            return [_row_to_absence(r) for r in fetchall(cur)]
