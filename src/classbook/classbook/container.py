from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .attendance.transitions import PointsPolicy
from .common.locks import KeyedLocks
from .core.constants import (
    DEFAULT_ABSENCE_LEAD_HOURS,
    DEFAULT_ADJACENCY_DAYS,
    DEFAULT_MAKEUP_LEAD_DAYS,
    DEFAULT_POINTS_ABSENT,
    DEFAULT_POINTS_EXCUSED,
    DEFAULT_POINTS_PRESENT,
)
from .database.connection import DBConfig, DatabaseConnection
from .enrollments.mysql_enrollment_repository import MySQLEnrollmentRepository
from .finalization.service import SessionFinalizer
from .profiles.mysql_profile_repository import MySQLProfileRepository
from .profiles.service import ProfileService
from .ranking.service import RankingService
from .requests.credits import MakeupCreditLedger
from .requests.mysql_request_repository import MySQLRequestRepository
from .requests.service import RequestService
from .requests.validator import MakeupBookingValidator
from .schedules.mysql_class_repository import MySQLClassRepository
from .schedules.service import ScheduleService
from .staging.mysql_staged_edit_repository import MySQLStagedEditRepository
from .staging.service import StagedEditService


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    classes_repo: MySQLClassRepository
    enrollments_repo: MySQLEnrollmentRepository
    attendance_repo: MySQLAttendanceRepository
    requests_repo: MySQLRequestRepository
    profiles_repo: MySQLProfileRepository
    staged_repo: MySQLStagedEditRepository

    schedule_service: ScheduleService
    attendance_service: AttendanceService
    credit_ledger: MakeupCreditLedger
    request_service: RequestService
    staged_edit_service: StagedEditService
    finalizer: SessionFinalizer
    profile_service: ProfileService
    ranking_service: RankingService


def build_container(*, db_config: dict, settings: Optional[Any] = None) -> Container:
    """Wire repositories and services. ``settings`` is a config module (or None for defaults)."""
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    def opt(name: str, default: int) -> int:
        return int(getattr(settings, name, default))

    classes_repo = MySQLClassRepository(conn)
    enrollments_repo = MySQLEnrollmentRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    requests_repo = MySQLRequestRepository(conn)
    profiles_repo = MySQLProfileRepository(conn)
    staged_repo = MySQLStagedEditRepository(conn)

    # Shared so staging and finalize serialize on the same session keys.
    locks = KeyedLocks()
    points = PointsPolicy(
        present=opt("POINTS_PRESENT", DEFAULT_POINTS_PRESENT),
        excused=opt("POINTS_EXCUSED", DEFAULT_POINTS_EXCUSED),
        absent=opt("POINTS_ABSENT", DEFAULT_POINTS_ABSENT),
    )

    schedule_service = ScheduleService(classes_repo, enrollments_repo, attendance_repo, requests_repo)
    attendance_service = AttendanceService(attendance_repo, enrollments_repo, schedule_service, requests_repo)
    credit_ledger = MakeupCreditLedger(attendance_repo, requests_repo)
    validator = MakeupBookingValidator(
        schedule_service,
        attendance_repo,
        requests_repo,
        credit_ledger,
        lead_days=opt("MAKEUP_LEAD_DAYS", DEFAULT_MAKEUP_LEAD_DAYS),
        adjacency_days=opt("ADJACENCY_DAYS", DEFAULT_ADJACENCY_DAYS),
    )
    request_service = RequestService(
        requests_repo,
        attendance_repo,
        schedule_service,
        credit_ledger,
        validator,
        absence_lead_hours=opt("ABSENCE_LEAD_HOURS", DEFAULT_ABSENCE_LEAD_HOURS),
        locks=locks,
    )
    staged_edit_service = StagedEditService(
        staged_repo, profiles_repo, attendance_repo, requests_repo, credit_ledger, locks=locks
    )
    finalizer = SessionFinalizer(
        staged_edit_service, attendance_repo, profiles_repo, credit_ledger, points=points, locks=locks
    )
    profile_service = ProfileService(profiles_repo)
    ranking_service = RankingService(profiles_repo)

    return Container(
        conn=conn,
        classes_repo=classes_repo,
        enrollments_repo=enrollments_repo,
        attendance_repo=attendance_repo,
        requests_repo=requests_repo,
        profiles_repo=profiles_repo,
        staged_repo=staged_repo,
        schedule_service=schedule_service,
        attendance_service=attendance_service,
        credit_ledger=credit_ledger,
        request_service=request_service,
        staged_edit_service=staged_edit_service,
        finalizer=finalizer,
        profile_service=profile_service,
        ranking_service=ranking_service,
    )
