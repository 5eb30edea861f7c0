from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Callable, Optional

from ..attendance.repository import AttendanceRepository
from ..attendance.transitions import next_status
from ..common.datetime_utils import now_local, today_local
from ..common.locks import KeyedLocks
from ..common.logging import get_logger
from ..common.validators import require_int, require_positive_id
from ..core.enums import AttendanceStatus, RequestStatus
from ..core.exceptions import CreditAlreadySpentError, ValidationError
from ..profiles.repository import ProfileRepository
from ..requests.credits import MakeupCreditLedger
from ..requests.repository import RequestRepository
from .model import StagedEdit, StagedEntry
from .repository import StagedEditRepository

log = get_logger(__name__)


def session_lock_key(class_id: int, session_date: date) -> tuple:
    return ("session", int(class_id), session_date)


class StagedEditService:
    """Teacher-side buffer of score, gold and attendance edits for one session.

    Every stage call is persisted straight away so a reload never loses work.
    Nothing here touches profiles or attendance; that happens on finalize.
    """

    def __init__(
        self,
        staged: StagedEditRepository,
        profiles: ProfileRepository,
        attendance: AttendanceRepository,
        requests: RequestRepository,
        credits: MakeupCreditLedger,
        *,
        locks: Optional[KeyedLocks] = None,
    ):
        self._staged = staged
        self._profiles = profiles
        self._attendance = attendance
        self._requests = requests
        self._credits = credits
        self._locks = locks or KeyedLocks()

    def open_staged_edits(self, class_id: int, session_date: date) -> StagedEdit:
        class_id = require_positive_id(class_id, "class_id")
        return self._staged.load(class_id=class_id, session_date=session_date) or StagedEdit(
            class_id=class_id, session_date=session_date
        )

    def save_staged_edits(self, edit: StagedEdit) -> StagedEdit:
        if edit.is_empty:
            self._staged.delete(class_id=edit.class_id, session_date=edit.session_date)
            return replace(edit, entries={}, updated_at=None)
        edit = replace(edit, updated_at=now_local())
        self._staged.save(edit)
        return edit

    def discard(self, class_id: int, session_date: date) -> bool:
        with self._locks.hold(session_lock_key(class_id, session_date)):
            removed = self._staged.delete(class_id=int(class_id), session_date=session_date)
        log.info("staged.discarded", class_id=class_id, session_date=session_date.isoformat(), removed=removed)
        return removed

    def _baseline(self, class_id: int, session_date: date, student_id: int) -> StagedEntry:
        profile = self._profiles.get_by_id(student_id)
        if profile is None:
            raise ValidationError("Student profile not found")
        record = self._attendance.get(student_id=student_id, class_id=class_id, session_date=session_date)
        return StagedEntry(
            student_id=student_id,
            baseline_score=profile.current_season_score,
            baseline_attendance=record.status if record else None,
        )

    def _update(
        self,
        class_id: int,
        session_date: date,
        student_id: object,
        change: Callable[[StagedEntry], StagedEntry],
    ) -> StagedEdit:
        class_id = require_positive_id(class_id, "class_id")
        student_id = require_positive_id(student_id, "student_id")
        with self._locks.hold(session_lock_key(class_id, session_date)):
            edit = self.open_staged_edits(class_id, session_date)
            entry = edit.entry(student_id) or self._baseline(class_id, session_date, student_id)
            return self.save_staged_edits(edit.with_entry(change(entry)))

    def stage_score(self, *, class_id: int, session_date: date, student_id: int, score: object) -> StagedEdit:
        """Stage an absolute season score; ``None`` drops a staged score."""
        value = None if score is None else require_int(score, "score")
        return self._update(class_id, session_date, student_id, lambda e: replace(e, score=value))

    def stage_gold(self, *, class_id: int, session_date: date, student_id: int, amount: object) -> StagedEdit:
        """Accumulate a gold change on top of whatever is already staged."""
        amount = require_int(amount, "amount")
        return self._update(
            class_id,
            session_date,
            student_id,
            lambda e: replace(e, gold_delta=(e.gold_delta or 0) + amount),
        )

    def stage_attendance(
        self,
        *,
        class_id: int,
        session_date: date,
        student_id: int,
        status: object,
        toggle: bool = True,
        today: Optional[date] = None,
    ) -> StagedEdit:
        try:
            requested = AttendanceStatus(status)
        except ValueError as e:
            raise ValidationError(f"Unsupported attendance status: {status!r}") from e
        today = today or today_local()
        makeup_slot = self._is_makeup_seat(int(class_id), session_date, int(student_id))

        def change(entry: StagedEntry) -> StagedEntry:
            current = entry.attendance if entry.attendance_touched else entry.baseline_attendance
            transition = next_status(current, requested, makeup_slot=makeup_slot, toggle=toggle)
            if not transition.changed:
                return entry
            if transition.current == entry.baseline_attendance:
                return entry.without_attendance()
            if entry.baseline_attendance == AttendanceStatus.EXCUSED and not self._credits.retraction_allowed(
                entry.student_id, session_date, today=today
            ):
                raise CreditAlreadySpentError(
                    "The makeup credit from this excused absence has already been used"
                )
            return replace(entry, attendance=transition.current, attendance_touched=True)

        return self._update(class_id, session_date, student_id, change)

    def unstage(self, *, class_id: int, session_date: date, student_id: int) -> StagedEdit:
        with self._locks.hold(session_lock_key(class_id, session_date)):
            edit = self.open_staged_edits(class_id, session_date)
            entry = edit.entry(student_id)
            if entry is None:
                return edit
            # Points already tied to a written attendance change must survive.
            if entry.carried_points:
                residue = StagedEntry(
                    student_id=entry.student_id,
                    baseline_score=entry.baseline_score,
                    baseline_attendance=entry.baseline_attendance,
                    carried_points=entry.carried_points,
                )
                return self.save_staged_edits(edit.with_entry(residue))
            return self.save_staged_edits(edit.without(student_id))

    def _is_makeup_seat(self, class_id: int, session_date: date, student_id: int) -> bool:
        return any(
            r.student_id == student_id
            for r in self._requests.list_makeups_into(
                class_id=class_id, session_date=session_date, status=RequestStatus.APPROVED
            )
        )
