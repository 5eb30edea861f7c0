from __future__ import annotations

from datetime import date
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..common.logging import get_logger
from ..common.validators import require_non_empty
from ..core.constants import MAX_OCCURRENCE_WINDOW_DAYS
from ..core.enums import AttendanceStatus, RequestStatus, Role
from ..core.exceptions import AuthorizationError, ValidationError
from ..enrollments.repository import EnrollmentRepository
from ..requests.repository import RequestRepository
from .model import Cancellation, CancellationResult, ClassDefinition, SessionOccurrence
from .occurrences import expand_occurrences, is_scheduled_on
from .repository import ClassRepository

log = get_logger(__name__)


class ScheduleService:
    def __init__(
        self,
        classes: ClassRepository,
        enrollments: EnrollmentRepository,
        attendance: AttendanceRepository,
        requests: RequestRepository,
    ):
        self._classes = classes
        self._enrollments = enrollments
        self._attendance = attendance
        self._requests = requests

    def get_class(self, class_id: int) -> Optional[ClassDefinition]:
        return self._classes.get_by_id(int(class_id))

    def _require_class(self, class_id: int) -> ClassDefinition:
        class_def = self.get_class(class_id)
        if not class_def:
            raise ValidationError("Class not found")
        return class_def

    def cancelled_dates(self, class_id: int) -> frozenset[date]:
        return frozenset(c.cancel_date for c in self._classes.list_cancellations(int(class_id)))

    def is_cancelled(self, class_id: int, day: date) -> bool:
        return day in self.cancelled_dates(class_id)

    @staticmethod
    def _check_window(start: date, end: date) -> None:
        if (end - start).days > MAX_OCCURRENCE_WINDOW_DAYS:
            raise ValidationError(f"Date range is limited to {MAX_OCCURRENCE_WINDOW_DAYS} days")

    def list_occurrences(self, class_id: int, start: date, end: date) -> list[SessionOccurrence]:
        self._check_window(start, end)
        class_def = self._require_class(class_id)
        return expand_occurrences(class_def, start, end, self.cancelled_dates(class_def.class_id))

    def occurrences_for_student(self, student_id: int, start: date, end: date) -> list[SessionOccurrence]:
        """Regular sessions of every class the student is enrolled in."""
        self._check_window(start, end)

        open_enrollments = [e for e in self._enrollments.list_for_student(int(student_id)) if e.is_open]
        out: list[SessionOccurrence] = []
        for class_def in self._classes.list_for_student(int(student_id)):
            windows = [e for e in open_enrollments if e.class_id in (None, class_def.class_id)]
            for occ in expand_occurrences(class_def, start, end, self.cancelled_dates(class_def.class_id)):
                if windows and not any(e.covers(occ.session_date) for e in windows):
                    continue
                out.append(occ)
        out.sort(key=lambda o: (o.session_date, o.start_time, o.class_id))
        return out

    def cancel_class(
        self,
        *,
        current_role: Role,
        class_id: int,
        cancel_date: date,
        reason: str,
        cancelled_by: Optional[int] = None,
    ) -> CancellationResult:
        """Cancel one occurrence and compensate the enrolled students.

        Students without a record for that date get an excused record, which
        is what earns them a makeup credit, plus an approved absence request
        for their history. Approved makeups booked into the cancelled session
        are rejected so their credit returns.

        Cancelling a date that is already cancelled resumes any compensation
        an earlier, interrupted call left undone. It is refused only when
        there is nothing left to do.
        """
        if current_role != Role.TEACHER:
            raise AuthorizationError("Only teachers can cancel a class")

        reason = require_non_empty(reason, "reason")
        class_def = self._require_class(class_id)
        if not is_scheduled_on(class_def, cancel_date):
            raise ValidationError("The class has no session on that date")

        cancellation = self._find_cancellation(class_def.class_id, cancel_date)
        resumed = cancellation is not None
        if cancellation is None:
            cancellation_id = self._classes.create_cancellation(
                class_id=class_def.class_id,
                cancel_date=cancel_date,
                reason=reason,
                cancelled_by=cancelled_by,
            )
            if cancellation_id is None:
                raise ValidationError("This date is already cancelled")
            cancellation = Cancellation(
                cancellation_id=int(cancellation_id),
                class_id=class_def.class_id,
                cancel_date=cancel_date,
                reason=reason,
                cancelled_by=cancelled_by,
            )

        credited: list[int] = []
        skipped: list[int] = []
        existing = {
            r.student_id: r
            for r in self._attendance.list_for_session(class_id=class_def.class_id, session_date=cancel_date)
        }
        for student_id in sorted(class_def.enrolled_student_ids):
            if student_id in existing:
                skipped.append(student_id)
                continue
            self._record_absence(class_def.class_id, cancel_date, student_id, cancellation.reason)
            self._attendance.upsert(
                student_id=student_id,
                class_id=class_def.class_id,
                session_date=cancel_date,
                status=AttendanceStatus.EXCUSED,
                note=f"Class cancelled: {cancellation.reason}",
                marked_by=cancelled_by,
            )
            credited.append(student_id)

        refunded: list[int] = []
        for req in self._requests.list_makeups_into(
            class_id=class_def.class_id, session_date=cancel_date, status=RequestStatus.APPROVED
        ):
            if self._requests.decide_makeup(request_id=req.request_id, status=RequestStatus.REJECTED):
                refunded.append(req.request_id)

        if resumed and not credited and not refunded:
            raise ValidationError("This date is already cancelled")

        log.info(
            "class.cancelled",
            class_id=class_def.class_id,
            cancel_date=cancel_date.isoformat(),
            resumed=resumed,
            credited=len(credited),
            skipped=len(skipped),
            refunded=len(refunded),
        )
        return CancellationResult(
            cancellation=cancellation,
            credited_student_ids=tuple(credited),
            skipped_student_ids=tuple(skipped),
            refunded_request_ids=tuple(refunded),
        )

    def _find_cancellation(self, class_id: int, cancel_date: date) -> Optional[Cancellation]:
        return next((c for c in self._classes.list_cancellations(class_id) if c.cancel_date == cancel_date), None)

    def _record_absence(self, class_id: int, session_date: date, student_id: int, reason: str) -> None:
        already = any(
            a.class_id == class_id and a.session_date == session_date
            for a in self._requests.list_absences(student_id=student_id)
        )
        if already:
            return
        enrollment = next(
            (
                e
                for e in self._enrollments.list_for_student(student_id)
                if e.class_id in (None, class_id) and e.covers(session_date)
            ),
            None,
        )
        self._requests.create_absence(
            student_id=student_id,
            enrollment_id=enrollment.enrollment_id if enrollment else None,
            class_id=class_id,
            session_date=session_date,
            reason=f"Class cancelled: {reason}",
            status=RequestStatus.APPROVED,
        )

    def list_active_classes(self) -> list[ClassDefinition]:
        return list(self._classes.list_active())

    def list_for_student(self, student_id: int) -> list[ClassDefinition]:
        return list(self._classes.list_for_student(int(student_id)))
