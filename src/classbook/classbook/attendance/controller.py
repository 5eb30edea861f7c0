from __future__ import annotations

from flask import Flask, request

from ..common.web import api_errors, date_arg, ensure_self_or_teacher, login_required, ok, parse_date, teacher_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/students/<int:student_id>/session-number", methods=["GET"], endpoint="student_session_number")
    @login_required
    @api_errors
    def student_session_number(student_id: int):
        ensure_self_or_teacher(student_id)
        session_date = date_arg("date")
        label = container.attendance_service.session_number_for(student_id, session_date)
        return ok(student_id=student_id, date=session_date.isoformat(), session_number=label)

    @app.route("/api/students/<int:student_id>/attendance-summary", methods=["GET"], endpoint="student_attendance_summary")
    @login_required
    @api_errors
    def student_attendance_summary(student_id: int):
        ensure_self_or_teacher(student_id)
        enrollment_id = request.args.get("enrollment_id", type=int)
        summary = container.attendance_service.summary_for(student_id, enrollment_id=enrollment_id)
        return ok(
            student_id=summary.student_id,
            total_sessions=summary.total_sessions,
            attended=summary.attended,
            makeup=summary.makeup,
            excused=summary.excused,
            absent=summary.absent,
            participation_rate=summary.participation_rate,
        )

    @app.route("/api/sessions/<int:class_id>/<session_date>/roster", methods=["GET"], endpoint="session_roster")
    @teacher_required
    @api_errors
    def session_roster(class_id: int, session_date: str):
        day = parse_date(session_date, "session_date")
        rows = container.attendance_service.session_roster(class_id, day)
        return ok(class_id=class_id, date=day.isoformat(), students=[r.to_dict() for r in rows])

    @app.route("/api/students/<int:student_id>/attendance-history", methods=["GET"], endpoint="student_attendance_history")
    @login_required
    @api_errors
    def student_attendance_history(student_id: int):
        ensure_self_or_teacher(student_id)
        numbers = container.attendance_service.numbered_history(
            student_id, enrollment_id=request.args.get("enrollment_id", type=int)
        )
        return ok(sessions=[{"session_date": n.session_date.isoformat(), "label": n.label} for n in numbers])
