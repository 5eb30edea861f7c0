"""Helpers shared by the JSON controllers.

Identity lives outside this app: ``session["user_id"]`` and ``session["role"]``
are set by whoever authenticates the user.
"""
from __future__ import annotations

from datetime import date
from functools import wraps
from typing import Optional

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    ConcurrencyConflictError,
    EligibilityError,
    StoreError,
    ValidationError,
)
from .datetime_utils import parse_iso_date
from .logging import get_logger

log = get_logger(__name__)


def fail(message: str, status: int, **extra):
    body = {"success": False, "message": message}
    body.update(extra)
    return jsonify(body), status


def ok(status: int = 200, **payload):
    body = {"success": True}
    body.update(payload)
    return jsonify(body), status


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Role:
    return Role(session.get("role"))


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session or session.get("role") not in {r.value for r in Role}:
            return fail("Login required", 401)
        return view(*args, **kwargs)

    return wrapper


def teacher_required(view):
    @wraps(view)
    @login_required
    def wrapper(*args, **kwargs):
        if session.get("role") != Role.TEACHER.value:
            return fail("Teachers only", 403)
        return view(*args, **kwargs)

    return wrapper


def api_errors(view):
    """Map domain errors onto HTTP responses."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except EligibilityError as e:
            return fail(str(e), 400, code=e.code)
        except ValidationError as e:
            return fail(str(e), 400, code=e.code)
        except AuthorizationError as e:
            return fail(str(e), 403)
        except ConcurrencyConflictError as e:
            return fail(str(e), 409, student_id=e.student_id)
        except StoreError as e:
            log.error("api.store_error", path=request.path, error=str(e))
            return fail(
                "The data store is unavailable, please retry",
                503,
                failed_student_ids=e.failed_student_ids,
                committed_student_ids=e.committed_student_ids,
            )

    return wrapper


def date_arg(name: str, default: Optional[date] = None) -> date:
    raw = request.args.get(name)
    if not raw:
        if default is None:
            raise ValidationError(f"{name} is required")
        return default
    return parse_date(raw, name)


def parse_date(raw: object, name: str = "date") -> date:
    try:
        return parse_iso_date(str(raw))
    except ValueError as e:
        raise ValidationError(f"{name} must be YYYY-MM-DD") from e


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Expected a JSON object")
    return data


def ensure_self_or_teacher(student_id: int) -> None:
    if current_role() != Role.TEACHER and current_user_id() != int(student_id):
        raise AuthorizationError("Students can only see their own data")
