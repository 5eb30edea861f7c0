from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.exceptions import ValidationError
from ..profiles.repository import ProfileRepository
from .engine import RankingSnapshot, build_snapshot, rank_scores


@dataclass(frozen=True)
class Standing:
    student_id: int
    current_season_score: int
    global_rank: Optional[int]
    global_total: int
    grade_rank: Optional[int]
    grade_total: int


class RankingService:
    def __init__(self, profiles: ProfileRepository):
        self._profiles = profiles

    def ranking_snapshot(
        self,
        student_ids: Sequence[int],
        *,
        previous: Optional[RankingSnapshot] = None,
        now: Optional[datetime] = None,
    ) -> RankingSnapshot:
        profiles = self._profiles.list_by_ids([int(i) for i in student_ids])
        scores = [(p.student_id, p.current_season_score) for p in profiles]
        return build_snapshot(scores, previous, taken_at=now or now_local())

    def standing_for(self, student_id: int) -> Standing:
        profiles = list(self._profiles.list_all())
        me = next((p for p in profiles if p.student_id == int(student_id)), None)
        if me is None:
            raise ValidationError("Student profile not found")

        def rank_in(pool) -> Optional[int]:
            for rank, sid, _ in rank_scores((p.student_id, p.current_season_score) for p in pool):
                if sid == me.student_id:
                    return rank
            return None

        same_grade = [p for p in profiles if me.grade is not None and p.grade == me.grade]
        return Standing(
            student_id=me.student_id,
            current_season_score=me.current_season_score,
            global_rank=rank_in(profiles),
            global_total=len(profiles),
            grade_rank=rank_in(same_grade) if same_grade else None,
            grade_total=len(same_grade),
        )
