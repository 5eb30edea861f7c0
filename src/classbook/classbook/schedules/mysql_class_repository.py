from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

import mysql.connector

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, normalize_mysql_time
from .model import Cancellation, ClassDefinition, SessionTemplate
from .repository import ClassRepository


class MySQLClassRepository(ClassRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load(self, cur, rows: list[dict]) -> list[ClassDefinition]:
        if not rows:
            return []
        ids = [int(r["class_id"]) for r in rows]

        cur.execute(
            f"""
            SELECT class_id, day_of_week, start_time, end_time
            FROM class_sessions
            WHERE class_id IN ({in_clause(ids)})
            ORDER BY class_id, day_of_week, start_time
            """,
            tuple(ids),
        )
        templates: dict[int, list[SessionTemplate]] = {i: [] for i in ids}
        for r in fetchall(cur):
            templates[int(r["class_id"])].append(
                SessionTemplate(
                    day_of_week=int(r["day_of_week"]),
                    start_time=normalize_mysql_time(r["start_time"]),
                    end_time=normalize_mysql_time(r["end_time"]),
                )
            )

        cur.execute(
            f"SELECT class_id, student_id FROM class_students WHERE class_id IN ({in_clause(ids)})",
            tuple(ids),
        )
        students: dict[int, set[int]] = {i: set() for i in ids}
        for r in fetchall(cur):
            students[int(r["class_id"])].add(int(r["student_id"]))

        return [
            ClassDefinition(
                class_id=int(r["class_id"]),
                name=r["class_name"],
                templates=tuple(templates[int(r["class_id"])]),
                enrolled_student_ids=frozenset(students[int(r["class_id"])]),
                room=r.get("room"),
                grade=int(r["grade"]) if r.get("grade") is not None else None,
                max_students=int(r["max_students"]) if r.get("max_students") is not None else None,
                is_active=bool(r["is_active"]),
            )
            for r in rows
        ]

    def get_by_id(self, class_id: int) -> Optional[ClassDefinition]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT class_id, class_name, grade, room, max_students, is_active
                FROM classes
                WHERE class_id=%s
                """,
                (int(class_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return self._load(cur, [r])[0]

    def list_for_student(self, student_id: int) -> Sequence[ClassDefinition]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT c.class_id, c.class_name, c.grade, c.room, c.max_students, c.is_active
                FROM classes c
                JOIN class_students cs ON cs.class_id = c.class_id
                WHERE cs.student_id=%s AND c.is_active=1
                ORDER BY c.class_id
                """,
                (int(student_id),),
            )
            return self._load(cur, fetchall(cur))

    def list_cancellations(self, class_id: int) -> Sequence[Cancellation]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT cancellation_id, class_id, cancel_date, reason, cancelled_by, created_at
                FROM class_cancellations
                WHERE class_id=%s
                ORDER BY cancel_date
                """,
                (int(class_id),),
            )
            return [
                Cancellation(
                    cancellation_id=int(r["cancellation_id"]),
                    class_id=int(r["class_id"]),
                    cancel_date=r["cancel_date"],
                    reason=r["reason"],
                    cancelled_by=int(r["cancelled_by"]) if r.get("cancelled_by") is not None else None,
                    created_at=r.get("created_at"),
                )
                for r in fetchall(cur)
            ]

    def create_cancellation(
        self,
        *,
        class_id: int,
        cancel_date: date,
        reason: str,
        cancelled_by: Optional[int] = None,
    ) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    INSERT INTO class_cancellations(class_id, cancel_date, reason, cancelled_by)
                    VALUES(%s,%s,%s,%s)
                    """,
                    (int(class_id), cancel_date, reason, cancelled_by),
                )
            except mysql.connector.IntegrityError:
                # uq_cancellation: the date is already cancelled.
                return None
            return int(cur.lastrowid)

    def list_active(self) -> Sequence[ClassDefinition]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT class_id, class_name, grade, room, max_students, is_active
                FROM classes
                WHERE is_active=1
                ORDER BY class_id
                """
            )
            return self._load(cur, fetchall(cur))
