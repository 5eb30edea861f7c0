from __future__ import annotations

from datetime import timedelta

from flask import Flask

from ..common.datetime_utils import today_local
from ..common.web import (
    api_errors,
    current_role,
    current_user_id,
    date_arg,
    ensure_self_or_teacher,
    json_body,
    login_required,
    ok,
    parse_date,
    teacher_required,
)
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/classes/<int:class_id>/occurrences", methods=["GET"], endpoint="class_occurrences")
    @login_required
    @api_errors
    def class_occurrences(class_id: int):
        start = date_arg("start", today_local())
        end = date_arg("end", start + timedelta(days=28))
        occurrences = container.schedule_service.list_occurrences(class_id, start, end)
        return ok(occurrences=[o.to_dict() for o in occurrences])

    @app.route("/api/students/<int:student_id>/occurrences", methods=["GET"], endpoint="student_occurrences")
    @login_required
    @api_errors
    def student_occurrences(student_id: int):
        ensure_self_or_teacher(student_id)
        start = date_arg("start", today_local())
        end = date_arg("end", start + timedelta(days=28))
        occurrences = container.schedule_service.occurrences_for_student(student_id, start, end)
        return ok(occurrences=[o.to_dict() for o in occurrences])

    @app.route("/api/classes/<int:class_id>/cancel", methods=["POST"], endpoint="class_cancel")
    @teacher_required
    @api_errors
    def class_cancel(class_id: int):
        data = json_body()
        result = container.schedule_service.cancel_class(
            current_role=current_role(),
            class_id=class_id,
            cancel_date=parse_date(data.get("date"), "date"),
            reason=data.get("reason") or "",
            cancelled_by=current_user_id(),
        )
        return ok(
            201,
            cancellation_id=result.cancellation.cancellation_id,
            credited_student_ids=list(result.credited_student_ids),
            skipped_student_ids=list(result.skipped_student_ids),
            refunded_request_ids=list(result.refunded_request_ids),
        )
