from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..common.locks import KeyedLocks
from ..common.logging import get_logger
from ..common.validators import require_non_empty, require_positive_id
from ..core.constants import DEFAULT_ABSENCE_LEAD_HOURS
from ..core.enums import AttendanceStatus, RequestStatus, Role
from ..core.exceptions import AuthorizationError, EligibilityError, NoCreditError, ValidationError
from ..schedules.model import SessionOccurrence
from ..schedules.service import ScheduleService
from .credits import MakeupCreditLedger
from .model import AbsenceRequest, MakeupBooking, MakeupRequest
from .repository import RequestRepository
from .validator import MakeupBookingValidator

log = get_logger(__name__)


class RequestService:
    """Student-side makeup and absence requests. Both are auto-approved."""

    def __init__(
        self,
        requests: RequestRepository,
        attendance: AttendanceRepository,
        schedules: ScheduleService,
        credits: MakeupCreditLedger,
        validator: MakeupBookingValidator,
        *,
        absence_lead_hours: int = DEFAULT_ABSENCE_LEAD_HOURS,
        locks: Optional[KeyedLocks] = None,
    ):
        self._requests = requests
        self._attendance = attendance
        self._schedules = schedules
        self._credits = credits
        self._validator = validator
        self._absence_lead_hours = int(absence_lead_hours)
        self._locks = locks or KeyedLocks()

    def remaining_makeup_credits(self, student_id: int, *, today: Optional[date] = None) -> int:
        return self._credits.remaining_makeup_credits(int(student_id), today=today)

    def validate_makeup_booking(self, booking: MakeupBooking, *, now: Optional[datetime] = None) -> SessionOccurrence:
        return self._validator.validate(booking, now=now)

    def book_makeup(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        booking: MakeupBooking,
        now: Optional[datetime] = None,
    ) -> MakeupRequest:
        if current_role != Role.STUDENT or int(current_user_id) != int(booking.student_id):
            raise AuthorizationError("Students can only book makeups for themselves")

        now = now or now_local()
        with self._locks.hold(("makeup", int(booking.student_id))):
            self._validator.validate(booking, now=now)

            # Re-read right before the write; another request may have used the last credit.
            if self._credits.raw_balance(booking.student_id, today=now.date()) <= 0:
                raise NoCreditError("No makeup credits left")

            request_id = self._requests.create_makeup(
                student_id=int(booking.student_id),
                enrollment_id=booking.enrollment_id,
                original_class_id=booking.original_class_id,
                original_session_date=booking.original_session_date,
                new_class_id=int(booking.new_class_id),
                new_session_date=booking.new_session_date,
                reason=booking.reason.strip(),
                status=RequestStatus.APPROVED,
            )

            # A writer outside this process may have raced us; the lowest request ids keep the credits.
            approved = sorted(
                r.request_id
                for r in self._requests.list_makeups(student_id=int(booking.student_id), status=RequestStatus.APPROVED)
            )
            earned = self._credits.earned(booking.student_id, today=now.date())
            if request_id in approved and approved.index(request_id) >= earned:
                self._requests.decide_makeup(request_id=request_id, status=RequestStatus.REJECTED)
                log.warning("makeup.lost_race", student_id=booking.student_id, request_id=request_id)
                raise NoCreditError("No makeup credits left")

        log.info(
            "makeup.booked",
            student_id=booking.student_id,
            request_id=request_id,
            class_id=booking.new_class_id,
            session_date=booking.new_session_date.isoformat(),
        )
        return MakeupRequest(
            request_id=request_id,
            student_id=int(booking.student_id),
            enrollment_id=booking.enrollment_id,
            original_class_id=booking.original_class_id,
            original_session_date=booking.original_session_date,
            new_class_id=int(booking.new_class_id),
            new_session_date=booking.new_session_date,
            reason=booking.reason.strip(),
            status=RequestStatus.APPROVED,
        )

    def available_makeup_slots(
        self,
        student_id: int,
        *,
        start: date,
        end: date,
        now: Optional[datetime] = None,
    ) -> list[SessionOccurrence]:
        """Occurrences of other classes the student could book right now."""
        now = now or now_local()
        own = {c.class_id for c in self._schedules.list_for_student(int(student_id))}

        slots: list[SessionOccurrence] = []
        for class_def in self._schedules.list_active_classes():
            if class_def.class_id in own:
                continue
            for occ in self._schedules.list_occurrences(class_def.class_id, start, end):
                probe = MakeupBooking(
                    student_id=int(student_id),
                    new_class_id=occ.class_id,
                    new_session_date=occ.session_date,
                    reason="availability check",
                )
                try:
                    self._validator.validate(probe, now=now)
                except NoCreditError:
                    return []
                except EligibilityError:
                    continue
                slots.append(occ)
        slots.sort(key=lambda o: (o.session_date, o.start_time, o.class_id))
        return slots

    def request_absence(
        self,
        *,
        current_role: Role,
        current_user_id: int,
        student_id: int,
        class_id: int,
        session_date: date,
        reason: str,
        enrollment_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> AbsenceRequest:
        """Excuse a student from an upcoming session ahead of time.

        Students must ask at least ``absence_lead_hours`` before the session
        starts; teachers may record it at any time.
        """
        marked_by_teacher = current_role == Role.TEACHER
        if not marked_by_teacher and int(current_user_id) != int(student_id):
            raise AuthorizationError("Students can only request absences for themselves")

        student_id = require_positive_id(student_id, "student_id")
        reason = require_non_empty(reason, "reason")
        now = now or now_local()

        matches = self._schedules.list_occurrences(int(class_id), session_date, session_date)
        if not matches:
            raise ValidationError("The class has no session on that date")
        class_def = self._schedules.get_class(int(class_id))
        if class_def is None or student_id not in class_def.enrolled_student_ids:
            raise ValidationError("Student is not enrolled in that class")

        if not marked_by_teacher and matches[0].starts_at - now < timedelta(hours=self._absence_lead_hours):
            raise ValidationError(
                f"Absence must be requested at least {self._absence_lead_hours} hours before the session"
            )

        request_id = self._requests.create_absence(
            student_id=student_id,
            enrollment_id=enrollment_id,
            class_id=int(class_id),
            session_date=session_date,
            reason=reason,
            status=RequestStatus.APPROVED,
        )

        existing = self._attendance.get(student_id=student_id, class_id=int(class_id), session_date=session_date)
        if existing is None:
            self._attendance.upsert(
                student_id=student_id,
                class_id=int(class_id),
                session_date=session_date,
                status=AttendanceStatus.EXCUSED,
                note=reason,
                marked_by=int(current_user_id),
            )

        log.info("absence.requested", student_id=student_id, class_id=class_id, session_date=session_date.isoformat())
        return AbsenceRequest(
            request_id=request_id,
            student_id=student_id,
            enrollment_id=enrollment_id,
            class_id=int(class_id),
            session_date=session_date,
            reason=reason,
            status=RequestStatus.APPROVED,
        )

    def list_makeups(
        self,
        *,
        student_id: Optional[int] = None,
        enrollment_id: Optional[int] = None,
        status: Optional[RequestStatus] = None,
    ) -> Sequence[MakeupRequest]:
        return self._requests.list_makeups(student_id=student_id, enrollment_id=enrollment_id, status=status)

    def list_absences(self, *, student_id: Optional[int] = None) -> Sequence[AbsenceRequest]:
        return self._requests.list_absences(student_id=student_id)
