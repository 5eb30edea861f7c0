from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

from ..common.datetime_utils import today_local
from ..core.enums import AttendanceStatus, RequestStatus
from ..core.exceptions import ValidationError
from ..enrollments.model import Enrollment
from ..enrollments.numbering import (
    NOT_YET,
    SessionNumber,
    format_session_number,
    history_for_enrollment,
    number_attended_sessions,
    ordinal_for,
)
from ..enrollments.repository import EnrollmentRepository
from ..requests.repository import RequestRepository
from ..schedules.service import ScheduleService
from .model import AttendanceRecord, AttendanceSummary
from .repository import AttendanceRepository


@dataclass(frozen=True)
class RosterRow:
    student_id: int
    status: Optional[AttendanceStatus]
    is_makeup: bool = False

    def to_dict(self) -> dict:
        return {
            "student_id": self.student_id,
            "status": self.status.value if self.status else None,
            "is_makeup": self.is_makeup,
        }


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        enrollments: EnrollmentRepository,
        schedules: ScheduleService,
        requests: RequestRepository,
    ):
        self._attendance = attendance
        self._enrollments = enrollments
        self._schedules = schedules
        self._requests = requests

    def _enrollment_for(self, student_id: int, session_date: date) -> Optional[Enrollment]:
        enrollments = [e for e in self._enrollments.list_for_student(int(student_id)) if e.is_open]
        covering = [e for e in enrollments if e.covers(session_date)]
        if covering:
            return max(covering, key=lambda e: e.start_date)
        started = [e for e in enrollments if e.start_date <= session_date]
        if started:
            return max(started, key=lambda e: e.start_date)
        return min(enrollments, key=lambda e: e.start_date) if enrollments else None

    def _owns_makeup(self, student_id: int, enrollment: Enrollment, record: AttendanceRecord, requests: dict) -> bool:
        req = requests.get((record.class_id, record.session_date))
        if req is not None and req.enrollment_id is not None:
            return req.enrollment_id == enrollment.enrollment_id
        if req is not None and req.original_class_id is not None:
            return req.original_class_id == enrollment.class_id
        owner = self._enrollment_for(student_id, record.session_date)
        return owner is not None and owner.enrollment_id == enrollment.enrollment_id

    def _history_for(self, student_id: int, enrollment: Enrollment) -> List[AttendanceRecord]:
        history = self._attendance.list_for_student(int(student_id))
        requests = {
            (r.new_class_id, r.new_session_date): r
            for r in self._requests.list_makeups(student_id=int(student_id), status=RequestStatus.APPROVED)
        }
        makeup_keys = {
            (r.class_id, r.session_date)
            for r in history
            if r.status == AttendanceStatus.MAKEUP
            and r.class_id != enrollment.class_id
            and self._owns_makeup(student_id, enrollment, r, requests)
        }
        return history_for_enrollment(history, enrollment, makeup_keys=makeup_keys)

    def session_number_for(self, student_id: int, session_date: date) -> str:
        """Display number ("3/4", "Not yet", "Finished") of the student's session on a date."""
        enrollment = self._enrollment_for(student_id, session_date)
        if enrollment is None:
            return format_session_number(ordinal_for(self._attendance.list_for_student(int(student_id)), session_date))
        if session_date < enrollment.start_date:
            return NOT_YET
        ordinal = ordinal_for(self._history_for(student_id, enrollment), session_date, since=enrollment.start_date)
        return format_session_number(ordinal, enrollment.cycle_length, enrollment.total_sessions)

    def numbered_history(self, student_id: int, *, enrollment_id: Optional[int] = None) -> List[SessionNumber]:
        """Attended sessions of one enrollment, numbered within its cycle.

        Without ``enrollment_id`` the student's current enrollment is used.
        A student with no enrollment gets the whole history, uncycled.
        """
        if enrollment_id is not None:
            enrollment = self._enrollments.get_by_id(int(enrollment_id))
            if enrollment is None or enrollment.student_id != int(student_id):
                raise ValidationError("Enrollment not found")
        else:
            enrollment = self._enrollment_for(student_id, today_local())
        if enrollment is None:
            return number_attended_sessions(self._attendance.list_for_student(int(student_id)), None)
        return number_attended_sessions(self._history_for(student_id, enrollment), enrollment.cycle_length)

    def list_for_session(self, class_id: int, session_date: date) -> Sequence[AttendanceRecord]:
        return self._attendance.list_for_session(class_id=int(class_id), session_date=session_date)

    def session_roster(self, class_id: int, session_date: date) -> List[RosterRow]:
        """Enrolled students plus anyone holding an approved makeup seat."""
        class_def = self._schedules.get_class(int(class_id))
        enrolled = set(class_def.enrolled_student_ids) if class_def else set()
        makeups = {
            r.student_id
            for r in self._requests.list_makeups_into(
                class_id=int(class_id), session_date=session_date, status=RequestStatus.APPROVED
            )
        }
        statuses = {r.student_id: r.status for r in self.list_for_session(class_id, session_date)}
        return [
            RosterRow(student_id=sid, status=statuses.get(sid), is_makeup=sid in makeups and sid not in enrolled)
            for sid in sorted(enrolled | makeups)
        ]

    def summary_for(self, student_id: int, *, enrollment_id: Optional[int] = None) -> AttendanceSummary:
        enrollment = self._enrollments.get_by_id(int(enrollment_id)) if enrollment_id else None
        if enrollment_id and (enrollment is None or enrollment.student_id != int(student_id)):
            raise ValidationError("Enrollment not found")
        if enrollment is None:
            records = list(self._attendance.list_for_student(int(student_id)))
        else:
            records = self._history_for(student_id, enrollment)

        def count(status: AttendanceStatus) -> int:
            return sum(1 for r in records if r.status == status)

        return AttendanceSummary(
            student_id=int(student_id),
            total_sessions=enrollment.total_sessions if enrollment else len(records),
            attended=count(AttendanceStatus.PRESENT),
            makeup=count(AttendanceStatus.MAKEUP),
            excused=count(AttendanceStatus.EXCUSED),
            absent=count(AttendanceStatus.ABSENT),
        )
