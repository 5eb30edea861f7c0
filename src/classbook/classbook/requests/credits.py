from __future__ import annotations

from datetime import date
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import today_local
from ..core.enums import RequestStatus
from .repository import RequestRepository


class MakeupCreditLedger:
    """Derived makeup-credit balance.

    balance = excused sessions up to today - approved makeup requests.
    Nothing is stored; every call recomputes from the two source sets.
    """

    def __init__(self, attendance: AttendanceRepository, requests: RequestRepository):
        self._attendance = attendance
        self._requests = requests

    def earned(self, student_id: int, *, today: Optional[date] = None) -> int:
        return self._attendance.count_excused_until(student_id=int(student_id), until=today or today_local())

    def spent(self, student_id: int) -> int:
        return self._requests.count_makeups(student_id=int(student_id), status=RequestStatus.APPROVED)

    def raw_balance(self, student_id: int, *, today: Optional[date] = None) -> int:
        return self.earned(student_id, today=today) - self.spent(student_id)

    def remaining_makeup_credits(self, student_id: int, *, today: Optional[date] = None) -> int:
        return max(0, self.raw_balance(student_id, today=today))

    def retraction_allowed(self, student_id: int, session_date: date, *, today: Optional[date] = None) -> bool:
        """Whether an excused record on ``session_date`` may stop being excused.

        An excused session in the future has not earned anything yet. One in
        the past may only be retracted while a spare credit remains.
        """
        today = today or today_local()
        if session_date > today:
            return True
        return self.raw_balance(student_id, today=today) >= 1
