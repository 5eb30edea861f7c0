from __future__ import annotations

from flask import Flask

from ..common.validators import require_bool
from ..common.web import api_errors, current_user_id, json_body, ok, parse_date, teacher_required
from ..core.exceptions import ValidationError
from ..container import Container
from .model import StagedEdit, StagedEntry


def register(app: Flask, container: Container) -> None:
    service = container.staged_edit_service

    @app.route("/api/sessions/<int:class_id>/<session_date>/staged", methods=["GET"], endpoint="staged_open")
    @teacher_required
    @api_errors
    def staged_open(class_id: int, session_date: str):
        edit = service.open_staged_edits(class_id, parse_date(session_date, "session_date"))
        return ok(staged=edit.to_dict())

    @app.route("/api/sessions/<int:class_id>/<session_date>/staged", methods=["PUT"], endpoint="staged_save")
    @teacher_required
    @api_errors
    def staged_save(class_id: int, session_date: str):
        data = json_body()
        try:
            entries = [StagedEntry.from_dict(e) for e in data.get("entries") or []]
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError("Malformed staged entries") from e
        edit = StagedEdit(
            class_id=class_id,
            session_date=parse_date(session_date, "session_date"),
            entries={e.student_id: e for e in entries},
        )
        return ok(staged=service.save_staged_edits(edit).to_dict())

    @app.route("/api/sessions/<int:class_id>/<session_date>/staged", methods=["DELETE"], endpoint="staged_discard")
    @teacher_required
    @api_errors
    def staged_discard(class_id: int, session_date: str):
        removed = service.discard(class_id, parse_date(session_date, "session_date"))
        return ok(removed=removed)

    @app.route(
        "/api/sessions/<int:class_id>/<session_date>/staged/<int:student_id>",
        methods=["POST"],
        endpoint="staged_stage",
    )
    @teacher_required
    @api_errors
    def staged_stage(class_id: int, session_date: str, student_id: int):
        data = json_body()
        day = parse_date(session_date, "session_date")
        kind = data.get("field")
        args = {"class_id": class_id, "session_date": day, "student_id": student_id}

        if kind == "score":
            edit = service.stage_score(score=data.get("value"), **args)
        elif kind == "gold":
            edit = service.stage_gold(amount=data.get("value"), **args)
        elif kind == "attendance":
            toggle = require_bool(data.get("toggle", True), "toggle")
            edit = service.stage_attendance(status=data.get("value"), toggle=toggle, **args)
        elif kind == "clear":
            edit = service.unstage(**args)
        else:
            raise ValidationError("field must be one of score, gold, attendance, clear")
        return ok(staged=edit.to_dict())

    @app.route("/api/sessions/<int:class_id>/<session_date>/finalize", methods=["POST"], endpoint="session_finalize")
    @teacher_required
    @api_errors
    def session_finalize(class_id: int, session_date: str):
        result = container.finalizer.finalize_session(
            class_id, parse_date(session_date, "session_date"), marked_by=current_user_id()
        )
        return ok(**result.to_dict())
