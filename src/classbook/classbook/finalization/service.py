from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..attendance.transitions import PointsPolicy
from ..common.datetime_utils import today_local
from ..common.locks import KeyedLocks
from ..common.logging import get_logger
from ..core.enums import AttendanceStatus
from ..core.exceptions import ConcurrencyConflictError, StoreError
from ..profiles.repository import ProfileRepository
from ..requests.credits import MakeupCreditLedger
from ..staging.model import StagedEdit, StagedEntry
from ..staging.service import StagedEditService, session_lock_key
from .model import FinalizeResult, GoldOperation, PointOperation

log = get_logger(__name__)


class SessionFinalizer:
    """Commit a session's staged buffer against the authoritative store.

    Points are always written as additive deltas, so finalizing the same
    buffer twice, or finalizing an empty one, never double-counts.
    """

    def __init__(
        self,
        staging: StagedEditService,
        attendance: AttendanceRepository,
        profiles: ProfileRepository,
        credits: MakeupCreditLedger,
        *,
        points: Optional[PointsPolicy] = None,
        locks: Optional[KeyedLocks] = None,
    ):
        self._staging = staging
        self._attendance = attendance
        self._profiles = profiles
        self._credits = credits
        self._points = points or PointsPolicy()
        self._locks = locks or KeyedLocks()

    def finalize_session(
        self,
        class_id: int,
        session_date: date,
        *,
        marked_by: Optional[int] = None,
        today: Optional[date] = None,
    ) -> FinalizeResult:
        today = today or today_local()
        with self._locks.hold(session_lock_key(class_id, session_date)):
            edit = self._staging.open_staged_edits(class_id, session_date)
            if edit.is_empty:
                return FinalizeResult()

            # Staleness barrier: everything below is diffed against this read.
            fresh = {
                r.student_id: r.status
                for r in self._attendance.list_for_session(class_id=int(class_id), session_date=session_date)
            }

            attendance_written: list[int] = []
            point_ops: list[PointOperation] = []
            gold_ops: list[GoldOperation] = []
            conflicts: list[ConcurrencyConflictError] = []
            committed: list[int] = []

            for student_id in sorted(edit.entries):
                entry = edit.entries[student_id]
                fresh_status = fresh.get(student_id)
                conflict = self._conflict_for(entry, fresh_status, session_date=session_date, today=today)
                if conflict is not None:
                    # Hold back only the attendance, rebased so a repeated finalize can commit it.
                    entry = replace(entry, baseline_attendance=fresh_status)
                    conflicts.append(conflict)
                    log.warning(
                        "finalize.conflict",
                        class_id=class_id,
                        session_date=session_date.isoformat(),
                        student_id=student_id,
                        reason=conflict.reason,
                    )

                # The stored buffer gives up this student's deltas before they are
                # written, so it can never lag behind the profile ledger.
                remainder = _held_back(entry) if conflict is not None else None
                claimed = edit.with_entry(remainder) if remainder is not None else edit.without(student_id)
                try:
                    self._staging.save_staged_edits(claimed)
                except StoreError as e:
                    log.error(
                        "finalize.claim_failed",
                        class_id=class_id,
                        session_date=session_date.isoformat(),
                        student_id=student_id,
                        committed=committed,
                    )
                    raise StoreError(
                        str(e), failed_student_ids=[student_id], committed_student_ids=committed
                    ) from e

                progress = {student_id: entry}
                try:
                    self._commit_entry(
                        progress,
                        student_id,
                        class_id=int(class_id),
                        session_date=session_date,
                        fresh_status=fresh_status,
                        write_attendance=conflict is None,
                        marked_by=marked_by,
                        attendance_written=attendance_written,
                        point_ops=point_ops,
                        gold_ops=gold_ops,
                    )
                except StoreError as e:
                    self._persist_residue(claimed.with_entry(progress[student_id]))
                    log.error(
                        "finalize.store_failed",
                        class_id=class_id,
                        session_date=session_date.isoformat(),
                        student_id=student_id,
                        committed=committed,
                    )
                    raise StoreError(
                        str(e), failed_student_ids=[student_id], committed_student_ids=committed
                    ) from e

                edit = claimed
                committed.append(student_id)

            affected = sorted(set(attendance_written) | {o.student_id for o in point_ops} | {o.student_id for o in gold_ops})
            written = set(attendance_written)
            updated_attendance = tuple(
                r
                for r in self._attendance.list_for_session(class_id=int(class_id), session_date=session_date)
                if r.student_id in written
            )
            updated_profiles = tuple(self._profiles.list_by_ids(affected)) if affected else ()

        log.info(
            "finalize.done",
            class_id=class_id,
            session_date=session_date.isoformat(),
            attendance=len(attendance_written),
            points=len(point_ops),
            gold=len(gold_ops),
            conflicts=len(conflicts),
        )
        return FinalizeResult(
            updated_attendance=updated_attendance,
            updated_profiles=updated_profiles,
            point_operations=tuple(point_ops),
            gold_operations=tuple(gold_ops),
            conflicts=tuple(conflicts),
        )

    def _conflict_for(
        self,
        entry: StagedEntry,
        fresh_status: Optional[AttendanceStatus],
        *,
        session_date: date,
        today: date,
    ) -> Optional[ConcurrencyConflictError]:
        if not entry.attendance_touched or entry.attendance == fresh_status:
            return None
        if entry.baseline_attendance != fresh_status:
            return ConcurrencyConflictError(
                entry.student_id, "attendance was changed by someone else since it was staged"
            )
        if fresh_status == AttendanceStatus.EXCUSED and not self._credits.retraction_allowed(
            entry.student_id, session_date, today=today
        ):
            return ConcurrencyConflictError(
                entry.student_id, "the makeup credit from this excused absence has already been used"
            )
        return None

    def _commit_entry(
        self,
        progress: dict,
        student_id: int,
        *,
        class_id: int,
        session_date: date,
        fresh_status: Optional[AttendanceStatus],
        write_attendance: bool,
        marked_by: Optional[int],
        attendance_written: list,
        point_ops: list,
        gold_ops: list,
    ) -> None:
        """Write one student's changes.

        ``progress[student_id]`` is replaced after every successful write with
        what is left to do, so a failure part way leaves only the residue.
        """
        entry: StagedEntry = progress[student_id]

        if write_attendance and entry.attendance_touched and entry.attendance != fresh_status:
            if entry.attendance is None:
                self._attendance.delete(student_id=student_id, class_id=class_id, session_date=session_date)
            else:
                self._attendance.upsert(
                    student_id=student_id,
                    class_id=class_id,
                    session_date=session_date,
                    status=entry.attendance,
                    marked_by=marked_by,
                )
            attendance_written.append(student_id)
            entry = progress[student_id] = replace(
                entry.without_attendance(),
                baseline_attendance=entry.attendance,
                carried_points=entry.carried_points + self._points.adjustment(fresh_status, entry.attendance),
            )
        elif write_attendance and entry.attendance_touched:
            # Already in the staged state; nothing to write and no adjustment.
            entry = progress[student_id] = replace(entry.without_attendance(), baseline_attendance=fresh_status)

        points = entry.score_delta + entry.carried_points
        if points:
            self._profiles.add_points(student_id=student_id, points=points)
            point_ops.append(PointOperation(student_id=student_id, points=points))
        entry = progress[student_id] = replace(
            entry, score=None, carried_points=0, baseline_score=entry.baseline_score + points
        )

        if entry.gold_delta:
            self._profiles.add_gold(student_id=student_id, amount=entry.gold_delta)
            gold_ops.append(GoldOperation(student_id=student_id, amount=entry.gold_delta))
        progress[student_id] = replace(entry, gold_delta=None)

    def _persist_residue(self, edit: StagedEdit) -> None:
        try:
            self._staging.save_staged_edits(edit)
        except StoreError as e:
            # The original failure is re-raised by the caller.
            log.error(
                "finalize.residue_not_saved",
                class_id=edit.class_id,
                session_date=edit.session_date.isoformat(),
                error=str(e),
            )


def _held_back(entry: StagedEntry) -> StagedEntry:
    """What stays staged once the score and gold of ``entry`` are written."""
    points = entry.score_delta + entry.carried_points
    return replace(
        entry, score=None, gold_delta=None, carried_points=0, baseline_score=entry.baseline_score + points
    )
