from __future__ import annotations

from datetime import timedelta
from typing import Optional

from flask import Flask, request

from ..common.datetime_utils import today_local
from ..common.validators import require_positive_id
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
)
from ..core.enums import RequestStatus, Role
from ..core.exceptions import ValidationError
from ..container import Container
from .model import MakeupBooking


def _optional_id(data: dict, name: str) -> Optional[int]:
    value = data.get(name)
    return require_positive_id(value, name) if value not in (None, "") else None


def _booking_from(data: dict) -> MakeupBooking:
    original_date = data.get("original_session_date")
    return MakeupBooking(
        student_id=current_user_id(),
        new_class_id=require_positive_id(data.get("new_class_id"), "new_class_id"),
        new_session_date=parse_date(data.get("new_session_date"), "new_session_date"),
        reason=str(data.get("reason") or ""),
        enrollment_id=_optional_id(data, "enrollment_id"),
        original_class_id=_optional_id(data, "original_class_id"),
        original_session_date=parse_date(original_date, "original_session_date") if original_date else None,
    )


def _status_arg() -> Optional[RequestStatus]:
    raw = request.args.get("status")
    if not raw:
        return None
    try:
        return RequestStatus(raw)
    except ValueError as e:
        raise ValidationError(f"Unknown status: {raw}") from e


def register(app: Flask, container: Container) -> None:
    def _scoped_student_id() -> Optional[int]:
        """Students only ever see their own requests; teachers may filter."""
        if current_role() == Role.STUDENT:
            return current_user_id()
        return request.args.get("student_id", type=int)

    @app.route("/api/students/<int:student_id>/makeup-credits", methods=["GET"], endpoint="student_makeup_credits")
    @login_required
    @api_errors
    def student_makeup_credits(student_id: int):
        ensure_self_or_teacher(student_id)
        return ok(student_id=student_id, remaining=container.request_service.remaining_makeup_credits(student_id))

    @app.route("/api/makeups/check", methods=["POST"], endpoint="makeup_check")
    @login_required
    @api_errors
    def makeup_check():
        """Dry run of a booking: the target session, or the first rule it breaks."""
        occurrence = container.request_service.validate_makeup_booking(_booking_from(json_body()))
        return ok(eligible=True, occurrence=occurrence.to_dict())

    @app.route("/api/makeups", methods=["POST"], endpoint="makeup_create")
    @login_required
    @api_errors
    def makeup_create():
        booking = _booking_from(json_body())
        created = container.request_service.book_makeup(
            current_role=current_role(),
            current_user_id=current_user_id(),
            booking=booking,
        )
        return ok(201, makeup=created.to_dict())

    @app.route("/api/makeups", methods=["GET"], endpoint="makeup_list")
    @login_required
    @api_errors
    def makeup_list():
        rows = container.request_service.list_makeups(
            student_id=_scoped_student_id(),
            enrollment_id=request.args.get("enrollment_id", type=int),
            status=_status_arg(),
        )
        return ok(makeups=[r.to_dict() for r in rows])

    @app.route("/api/makeups/available", methods=["GET"], endpoint="makeup_available")
    @login_required
    @api_errors
    def makeup_available():
        student_id = _scoped_student_id()
        if student_id is None:
            raise ValidationError("student_id is required")
        start = date_arg("start", today_local())
        end = date_arg("end", start + timedelta(days=14))
        slots = container.request_service.available_makeup_slots(student_id, start=start, end=end)
        return ok(slots=[s.to_dict() for s in slots])

    @app.route("/api/absences", methods=["POST"], endpoint="absence_create")
    @login_required
    @api_errors
    def absence_create():
        data = json_body()
        student_id = _optional_id(data, "student_id") or current_user_id()
        created = container.request_service.request_absence(
            current_role=current_role(),
            current_user_id=current_user_id(),
            student_id=student_id,
            class_id=require_positive_id(data.get("class_id"), "class_id"),
            session_date=parse_date(data.get("session_date"), "session_date"),
            reason=str(data.get("reason") or ""),
            enrollment_id=_optional_id(data, "enrollment_id"),
        )
        return ok(201, absence=created.to_dict())

    @app.route("/api/absences", methods=["GET"], endpoint="absence_list")
    @login_required
    @api_errors
    def absence_list():
        rows = container.request_service.list_absences(student_id=_scoped_student_id())
        return ok(absences=[r.to_dict() for r in rows])
