from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import StudentProfile
from .repository import ProfileRepository

_COLUMNS = "student_id, full_name, grade, current_season, current_season_score, lifetime_score, gold"


def _row_to_profile(r: dict) -> StudentProfile:
    return StudentProfile(
        student_id=int(r["student_id"]),
        full_name=r["full_name"],
        grade=int(r["grade"]) if r.get("grade") is not None else None,
        current_season=int(r["current_season"]),
        current_season_score=int(r["current_season_score"]),
        lifetime_score=int(r["lifetime_score"]),
        gold=int(r["gold"]),
    )


class MySQLProfileRepository(ProfileRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, student_id: int) -> Optional[StudentProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM student_profiles WHERE student_id=%s", (int(student_id),))
            r = fetchone(cur)
            return _row_to_profile(r) if r else None

    def list_by_ids(self, student_ids: Sequence[int]) -> Sequence[StudentProfile]:
        ids = [int(i) for i in student_ids]
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM student_profiles WHERE student_id IN ({in_clause(ids)})",
                tuple(ids),
            )
            by_id = {p.student_id: p for p in (_row_to_profile(r) for r in fetchall(cur))}
        return [by_id[i] for i in ids if i in by_id]

    def list_all(self) -> Sequence[StudentProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM student_profiles ORDER BY student_id")
            return [_row_to_profile(r) for r in fetchall(cur)]

    def add_points(self, *, student_id: int, points: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE student_profiles
                SET current_season_score = current_season_score + %s,
                    lifetime_score = lifetime_score + %s
                WHERE student_id=%s
                """,
                (int(points), int(points), int(student_id)),
            )
            return cur.rowcount > 0

    def add_gold(self, *, student_id: int, amount: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE student_profiles SET gold = GREATEST(0, gold + %s) WHERE student_id=%s",
                (int(amount), int(student_id)),
            )
            return cur.rowcount > 0

    def start_new_season(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO season_scores(student_id, season, score)
                SELECT student_id, current_season, current_season_score FROM student_profiles
                ON DUPLICATE KEY UPDATE score=VALUES(score)
                """
            )
            cur.execute(
                "UPDATE student_profiles SET current_season = current_season + 1, current_season_score = 0"
            )
            return int(cur.rowcount)
