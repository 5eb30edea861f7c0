from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import StudentProfile


class ProfileRepository(Protocol):
    def get_by_id(self, student_id: int) -> Optional[StudentProfile]:
        raise NotImplementedError

    def list_by_ids(self, student_ids: Sequence[int]) -> Sequence[StudentProfile]:
        raise NotImplementedError

    def list_all(self) -> Sequence[StudentProfile]:
        raise NotImplementedError

    def add_points(self, *, student_id: int, points: int) -> bool:
        """Add to current season and lifetime score (negative subtracts)."""

        raise NotImplementedError

    def add_gold(self, *, student_id: int, amount: int) -> bool:
        """Add to gold; the balance never drops below zero."""

        raise NotImplementedError

    def start_new_season(self) -> int:
        """Archive every current season score and start the next season at 0.

        Returns the number of profiles rolled over.
        """

        raise NotImplementedError
