"""In-memory repositories and a wired-up service graph for the tests.

Nothing here talks to MySQL. The fakes honour the same contracts as the
MySQL repositories (natural keys, additive ledger updates, JSON round trip
of the staged buffer).
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from typing import Optional


from classbook.attendance.model import AttendanceRecord
from classbook.attendance.service import AttendanceService
from classbook.attendance.transitions import PointsPolicy
from classbook.common.locks import KeyedLocks
from classbook.core.enums import AttendanceStatus, RequestStatus
from classbook.core.exceptions import StoreError
from classbook.enrollments.model import Enrollment
from classbook.finalization.service import SessionFinalizer
from classbook.profiles.model import StudentProfile
from classbook.profiles.service import ProfileService
from classbook.ranking.service import RankingService
from classbook.requests.credits import MakeupCreditLedger
from classbook.requests.model import AbsenceRequest, MakeupRequest
from classbook.requests.service import RequestService
from classbook.requests.validator import MakeupBookingValidator
from classbook.schedules.model import Cancellation, ClassDefinition, SessionTemplate
from classbook.schedules.service import ScheduleService
from classbook.staging.model import StagedEdit, edit_key
from classbook.staging.service import StagedEditService

# 2026-10-19 is a Monday.
NOW = datetime(2026, 10, 19, 12, 0)
TODAY = NOW.date()

MON, TUE, WED, FRI, SAT = 1, 2, 3, 5, 6


class InMemoryClasses:
    def __init__(self, classes: list[ClassDefinition]):
        self.classes = {c.class_id: c for c in classes}
        self.cancellations: list[Cancellation] = []

    def get_by_id(self, class_id):
        return self.classes.get(int(class_id))

    def list_for_student(self, student_id):
        return [c for c in self.classes.values() if c.is_active and int(student_id) in c.enrolled_student_ids]

    def list_cancellations(self, class_id):
        return [c for c in self.cancellations if c.class_id == int(class_id)]

    def create_cancellation(self, *, class_id, cancel_date, reason, cancelled_by=None):
        if any(c.class_id == class_id and c.cancel_date == cancel_date for c in self.cancellations):
            return None
        cid = len(self.cancellations) + 1
        self.cancellations.append(
            Cancellation(cid, int(class_id), cancel_date, reason, cancelled_by=cancelled_by, created_at=NOW)
        )
        return cid

    def list_active(self):
        return [c for c in self.classes.values() if c.is_active]


@dataclass
class InMemoryEnrollments:
    enrollments: list[Enrollment] = field(default_factory=list)

    def get_by_id(self, enrollment_id):
        return next((e for e in self.enrollments if e.enrollment_id == int(enrollment_id)), None)

    def list_for_student(self, student_id):
        return sorted((e for e in self.enrollments if e.student_id == int(student_id)), key=lambda e: e.start_date)


class InMemoryAttendance:
    def __init__(self):
        self.records: dict[tuple[int, int, date], AttendanceRecord] = {}
        self.writes: list[tuple] = []
        self.fail_writes_for: set[int] = set()
        self.fail_reads = False
        self._id = 0

    def put(self, student_id, class_id, session_date, status):
        """Seed a record without counting it as a write."""
        self._id += 1
        self.records[(student_id, class_id, session_date)] = AttendanceRecord(
            self._id, student_id, class_id, session_date, AttendanceStatus(status)
        )

    def list_for_session(self, *, class_id, session_date):
        if self.fail_reads:
            raise StoreError("read failed")
        return sorted(
            (r for (_, c, d), r in self.records.items() if c == int(class_id) and d == session_date),
            key=lambda r: r.student_id,
        )

    def list_for_student(self, student_id):
        return sorted(
            (r for r in self.records.values() if r.student_id == int(student_id)),
            key=lambda r: (r.session_date, r.attendance_id),
        )

    def get(self, *, student_id, class_id, session_date):
        return self.records.get((int(student_id), int(class_id), session_date))

    def count_excused_until(self, *, student_id, until):
        return sum(
            1
            for r in self.records.values()
            if r.student_id == int(student_id) and r.status == AttendanceStatus.EXCUSED and r.session_date <= until
        )

    def upsert(self, *, student_id, class_id, session_date, status, note=None, marked_by=None):
        if int(student_id) in self.fail_writes_for:
            raise StoreError("write failed")
        key = (int(student_id), int(class_id), session_date)
        existing = self.records.get(key)
        if existing:
            self.records[key] = replace(existing, status=status, note=note, marked_by=marked_by)
        else:
            self._id += 1
            self.records[key] = AttendanceRecord(
                self._id, key[0], key[1], session_date, status, note=note, marked_by=marked_by
            )
        self.writes.append(("upsert", key, status))
        return self.records[key].attendance_id

    def delete(self, *, student_id, class_id, session_date):
        if int(student_id) in self.fail_writes_for:
            raise StoreError("write failed")
        key = (int(student_id), int(class_id), session_date)
        self.writes.append(("delete", key, None))
        return self.records.pop(key, None) is not None


class InMemoryRequests:
    def __init__(self):
        self.makeups: dict[int, MakeupRequest] = {}
        self.absences: dict[int, AbsenceRequest] = {}
        self._id = 0
        # Called just before a makeup is created, to simulate another writer.
        self.before_create = None

    def _next(self):
        self._id += 1
        return self._id

    def create_makeup(self, *, student_id, enrollment_id, original_class_id, original_session_date,
                      new_class_id, new_session_date, reason, status):
        if self.before_create:
            hook, self.before_create = self.before_create, None
            hook()
        rid = self._next()
        self.makeups[rid] = MakeupRequest(
            request_id=rid,
            student_id=int(student_id),
            new_class_id=int(new_class_id),
            new_session_date=new_session_date,
            reason=reason,
            status=status,
            enrollment_id=enrollment_id,
            original_class_id=original_class_id,
            original_session_date=original_session_date,
            created_at=NOW,
        )
        return rid

    def approve(self, student_id, class_id, session_date):
        """Seed an approved makeup directly."""
        return self.create_makeup(
            student_id=student_id, enrollment_id=None, original_class_id=None, original_session_date=None,
            new_class_id=class_id, new_session_date=session_date, reason="seed", status=RequestStatus.APPROVED,
        )

    def list_makeups(self, *, student_id=None, enrollment_id=None, status=None):
        return [
            r for r in sorted(self.makeups.values(), key=lambda r: r.request_id)
            if (student_id is None or r.student_id == int(student_id))
            and (enrollment_id is None or r.enrollment_id == int(enrollment_id))
            and (status is None or r.status == status)
        ]

    def list_makeups_into(self, *, class_id, session_date, status):
        return [
            r for r in self.makeups.values()
            if r.new_class_id == int(class_id) and r.new_session_date == session_date and r.status == status
        ]

    def count_makeups(self, *, student_id, status):
        return len(self.list_makeups(student_id=student_id, status=status))

    def decide_makeup(self, *, request_id, status):
        req = self.makeups.get(int(request_id))
        if req is None or req.status == status:
            return False
        self.makeups[req.request_id] = replace(req, status=status)
        return True

    def create_absence(self, *, student_id, enrollment_id, class_id, session_date, reason, status):
        rid = self._next()
        self.absences[rid] = AbsenceRequest(
            request_id=rid, student_id=int(student_id), class_id=int(class_id), session_date=session_date,
            reason=reason, status=status, enrollment_id=enrollment_id, created_at=NOW,
        )
        return rid

    def list_absences(self, *, student_id=None):
        return [a for a in self.absences.values() if student_id is None or a.student_id == int(student_id)]


class InMemoryProfiles:
    def __init__(self, profiles: list[StudentProfile]):
        self.profiles = {p.student_id: p for p in profiles}
        self.point_calls: list[tuple[int, int]] = []
        self.gold_calls: list[tuple[int, int]] = []
        self.fail_points_for: set[int] = set()

    def get_by_id(self, student_id):
        return self.profiles.get(int(student_id))

    def list_by_ids(self, student_ids):
        return [self.profiles[i] for i in student_ids if i in self.profiles]

    def list_all(self):
        return [self.profiles[i] for i in sorted(self.profiles)]

    def add_points(self, *, student_id, points):
        if int(student_id) in self.fail_points_for:
            raise StoreError("write failed")
        p = self.profiles[int(student_id)]
        self.profiles[p.student_id] = replace(
            p,
            current_season_score=p.current_season_score + points,
            lifetime_score=p.lifetime_score + points,
        )
        self.point_calls.append((p.student_id, points))
        return True

    def add_gold(self, *, student_id, amount):
        p = self.profiles[int(student_id)]
        self.profiles[p.student_id] = replace(p, gold=max(0, p.gold + amount))
        self.gold_calls.append((p.student_id, amount))
        return True

    def start_new_season(self):
        for sid, p in list(self.profiles.items()):
            self.profiles[sid] = replace(p, current_season=p.current_season + 1, current_season_score=0)
        return len(self.profiles)


class InMemoryStaged:
    """Stores the JSON form, like the staged_edits table does."""

    def __init__(self):
        self.rows: dict[str, dict] = {}
        self.fail_saves = False
        self.fail_deletes = False

    def load(self, *, class_id, session_date):
        payload = self.rows.get(edit_key(class_id, session_date))
        return StagedEdit.from_dict(payload) if payload else None

    def save(self, edit):
        if self.fail_saves:
            raise StoreError("save failed")
        self.rows[edit.key] = edit.to_dict()

    def delete(self, *, class_id, session_date):
        if self.fail_deletes:
            raise StoreError("delete failed")
        return self.rows.pop(edit_key(class_id, session_date), None) is not None


def evening(dow: int) -> SessionTemplate:
    return SessionTemplate(dow, time(17, 30), time(19, 0))


@dataclass
class World:
    classes: InMemoryClasses
    enrollments: InMemoryEnrollments
    attendance: InMemoryAttendance
    requests: InMemoryRequests
    profiles: InMemoryProfiles
    staged: InMemoryStaged
    schedules: ScheduleService
    attendance_service: AttendanceService
    credits: MakeupCreditLedger
    validator: MakeupBookingValidator
    request_service: RequestService
    staging: StagedEditService
    finalizer: SessionFinalizer
    profile_service: ProfileService
    ranking: RankingService


def build_world(*, max_students: Optional[int] = 12) -> World:
    """Three classes.

    1 "Math A": Mon + Wed evenings, students 1 and 2.
    2 "Math B": Tue + Fri evenings, students 3 and 4.
    3 "Math C": Mon 20:00 and Sat morning, nobody enrolled.
    """
    classes = InMemoryClasses(
        [
            ClassDefinition(1, "Math A", (evening(MON), evening(WED)), frozenset({1, 2}), room="R101", grade=5),
            ClassDefinition(2, "Math B", (evening(TUE), evening(FRI)), frozenset({3, 4}), room="R102", grade=5,
                            max_students=max_students),
            ClassDefinition(
                3,
                "Math C",
                (SessionTemplate(MON, time(20, 0), time(21, 0)), SessionTemplate(SAT, time(9, 0), time(10, 30))),
                frozenset(),
                room="R103",
                grade=6,
            ),
        ]
    )
    enrollments = InMemoryEnrollments(
        [
            Enrollment(1, 1, date(2026, 9, 1), date(2026, 12, 31), class_id=1, cycle_length=4, total_sessions=12),
            Enrollment(2, 2, date(2026, 9, 1), date(2026, 12, 31), class_id=1, total_sessions=12),
        ]
    )
    attendance = InMemoryAttendance()
    requests = InMemoryRequests()
    profiles = InMemoryProfiles(
        [
            StudentProfile(1, "An", current_season_score=300, lifetime_score=900, gold=5, grade=5),
            StudentProfile(2, "Binh", current_season_score=250, lifetime_score=250, grade=5),
            StudentProfile(3, "Chi", current_season_score=400, lifetime_score=400, grade=6),
            StudentProfile(4, "Dung", current_season_score=100, lifetime_score=100, grade=6),
        ]
    )
    staged = InMemoryStaged()

    locks = KeyedLocks()
    schedules = ScheduleService(classes, enrollments, attendance, requests)
    credits = MakeupCreditLedger(attendance, requests)
    validator = MakeupBookingValidator(schedules, attendance, requests, credits, lead_days=1, adjacency_days=1)
    request_service = RequestService(
        requests, attendance, schedules, credits, validator, absence_lead_hours=6, locks=locks
    )
    staging = StagedEditService(staged, profiles, attendance, requests, credits, locks=locks)
    finalizer = SessionFinalizer(staging, attendance, profiles, credits, points=PointsPolicy(), locks=locks)

    return World(
        classes=classes,
        enrollments=enrollments,
        attendance=attendance,
        requests=requests,
        profiles=profiles,
        staged=staged,
        schedules=schedules,
        attendance_service=AttendanceService(attendance, enrollments, schedules, requests),
        credits=credits,
        validator=validator,
        request_service=request_service,
        staging=staging,
        finalizer=finalizer,
        profile_service=ProfileService(profiles),
        ranking=RankingService(profiles),
    )
