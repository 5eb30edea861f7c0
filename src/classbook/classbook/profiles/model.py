from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StudentProfile:
    """Ledger fields of a student. Changed only through additive operations."""

    student_id: int
    full_name: str
    current_season_score: int = 0
    lifetime_score: int = 0
    gold: int = 0
    current_season: int = 1
    grade: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "student_id": self.student_id,
            "full_name": self.full_name,
            "grade": self.grade,
            "current_season": self.current_season,
            "current_season_score": self.current_season_score,
            "lifetime_score": self.lifetime_score,
            "gold": self.gold,
        }
