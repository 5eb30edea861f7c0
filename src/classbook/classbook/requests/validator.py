from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import days_apart, now_local
from ..common.validators import require_non_empty, require_positive_id
from ..core.constants import DEFAULT_ADJACENCY_DAYS, DEFAULT_MAKEUP_LEAD_DAYS
from ..core.enums import AttendanceStatus, RequestStatus
from ..core.exceptions import (
    AdjacentToMakeupError,
    AdjacentToRegularSessionError,
    NoCreditError,
    SlotUnavailableError,
    TooLateError,
    ValidationError,
)
from ..schedules.model import SessionOccurrence
from ..schedules.service import ScheduleService
from .credits import MakeupCreditLedger
from .model import MakeupBooking
from .repository import RequestRepository


class MakeupBookingValidator:
    """Eligibility rules for a makeup seat, checked in a fixed order.

    Each failed rule raises its own EligibilityError subclass. Nothing is
    written here.
    """

    def __init__(
        self,
        schedules: ScheduleService,
        attendance: AttendanceRepository,
        requests: RequestRepository,
        credits: MakeupCreditLedger,
        *,
        lead_days: int = DEFAULT_MAKEUP_LEAD_DAYS,
        adjacency_days: int = DEFAULT_ADJACENCY_DAYS,
    ):
        self._schedules = schedules
        self._attendance = attendance
        self._requests = requests
        self._credits = credits
        self._lead_days = int(lead_days)
        self._adjacency_days = int(adjacency_days)

    def validate(self, booking: MakeupBooking, *, now: Optional[datetime] = None) -> SessionOccurrence:
        """Return the target occurrence when every rule passes."""
        now = now or now_local()
        today = now.date()

        require_positive_id(booking.student_id, "student_id")
        require_positive_id(booking.new_class_id, "new_class_id")
        require_non_empty(booking.reason, "reason")
        if not isinstance(booking.new_session_date, date):
            raise ValidationError("new_session_date is invalid")

        if self._credits.remaining_makeup_credits(booking.student_id, today=today) <= 0:
            raise NoCreditError("No makeup credits left")

        occurrence = self._check_slot(booking, now=now)

        if (booking.new_session_date - today).days < self._lead_days:
            raise TooLateError(f"Makeup must be booked at least {self._lead_days} day(s) ahead")

        self._check_regular_sessions(booking, today=today)
        self._check_other_makeups(booking)
        return occurrence

    def _check_slot(self, booking: MakeupBooking, *, now: datetime) -> SessionOccurrence:
        class_def = self._schedules.get_class(booking.new_class_id)
        if class_def is None or not class_def.is_active:
            raise SlotUnavailableError("Class not found")

        day = booking.new_session_date
        if self._schedules.is_cancelled(booking.new_class_id, day):
            raise SlotUnavailableError("That session is cancelled")

        matches = self._schedules.list_occurrences(booking.new_class_id, day, day)
        if not matches:
            raise SlotUnavailableError("The class has no session on that date")
        occurrence = matches[0]
        if occurrence.starts_at <= now:
            raise SlotUnavailableError("That session has already started")

        if class_def.max_students is not None:
            booked = self._requests.list_makeups_into(
                class_id=booking.new_class_id, session_date=day, status=RequestStatus.APPROVED
            )
            if len(class_def.enrolled_student_ids) + len(booked) >= class_def.max_students:
                raise SlotUnavailableError("Class is full")
        return occurrence

    def _check_regular_sessions(self, booking: MakeupBooking, *, today: date) -> None:
        day = booking.new_session_date
        window = timedelta(days=self._adjacency_days)
        start = max(today, day - window)
        for occ in self._schedules.occurrences_for_student(booking.student_id, start, day + window):
            if days_apart(occ.session_date, day) > self._adjacency_days:
                continue
            record = self._attendance.get(
                student_id=booking.student_id, class_id=occ.class_id, session_date=occ.session_date
            )
            if record is not None and record.status == AttendanceStatus.EXCUSED:
                continue
            raise AdjacentToRegularSessionError(
                f"Too close to your regular session on {occ.session_date:%Y-%m-%d}"
            )

    def _check_other_makeups(self, booking: MakeupBooking) -> None:
        for other in self._requests.list_makeups(student_id=booking.student_id, status=RequestStatus.APPROVED):
            if days_apart(other.new_session_date, booking.new_session_date) <= self._adjacency_days:
                raise AdjacentToMakeupError(
                    f"Too close to your makeup session on {other.new_session_date:%Y-%m-%d}"
                )
