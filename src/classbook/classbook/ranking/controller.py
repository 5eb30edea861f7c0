from __future__ import annotations

from flask import Flask

from ..common.web import api_errors, current_role, ensure_self_or_teacher, json_body, login_required, ok, teacher_required
from ..core.exceptions import ValidationError
from ..container import Container
from .engine import RankingSnapshot


def register(app: Flask, container: Container) -> None:
    @app.route("/api/ranking", methods=["POST"], endpoint="ranking_snapshot")
    @login_required
    @api_errors
    def ranking_snapshot():
        data = json_body()
        student_ids = data.get("student_ids")
        if not isinstance(student_ids, list):
            raise ValidationError("student_ids must be a list")
        previous = None
        if data.get("previous"):
            try:
                previous = RankingSnapshot.from_dict(data["previous"])
            except (KeyError, TypeError, ValueError) as e:
                raise ValidationError("previous snapshot is malformed") from e

        snapshot = container.ranking_service.ranking_snapshot(student_ids, previous=previous)
        return ok(
            snapshot=snapshot.to_dict(),
            highlighted=[e.student_id for e in snapshot.highlighted(snapshot.taken_at)],
        )

    @app.route("/api/students/<int:student_id>/standing", methods=["GET"], endpoint="student_standing")
    @login_required
    @api_errors
    def student_standing(student_id: int):
        ensure_self_or_teacher(student_id)
        s = container.ranking_service.standing_for(student_id)
        return ok(
            student_id=s.student_id,
            current_season_score=s.current_season_score,
            global_rank=s.global_rank,
            global_total=s.global_total,
            grade_rank=s.grade_rank,
            grade_total=s.grade_total,
        )

    @app.route("/api/seasons/reset", methods=["POST"], endpoint="season_reset")
    @teacher_required
    @api_errors
    def season_reset():
        count = container.profile_service.reset_season(current_role=current_role())
        return ok(students=count)
