"""Standings by season score and the rank/score diff between two snapshots.

Snapshots are immutable and timestamped; the previous one is always passed in
by the caller.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Mapping, Optional, Sequence, Tuple

from ..core.constants import RANK_HIGHLIGHT_SECONDS
from ..core.enums import RankMove

HIGHLIGHT_WINDOW = timedelta(seconds=RANK_HIGHLIGHT_SECONDS)


@dataclass(frozen=True)
class RankingEntry:
    student_id: int
    rank: int
    score: int
    moved: RankMove = RankMove.SAME
    delta_score: int = 0
    previous_rank: Optional[int] = None

    @property
    def changed(self) -> bool:
        return self.moved != RankMove.SAME or self.delta_score != 0

    def to_dict(self) -> dict:
        return {
            "student_id": self.student_id,
            "rank": self.rank,
            "score": self.score,
            "moved": self.moved.value,
            "delta_score": self.delta_score,
            "previous_rank": self.previous_rank,
        }


@dataclass(frozen=True)
class RankingSnapshot:
    entries: Tuple[RankingEntry, ...]
    taken_at: datetime

    def by_student(self) -> Mapping[int, RankingEntry]:
        return {e.student_id: e for e in self.entries}

    def highlighted(self, now: datetime) -> Tuple[RankingEntry, ...]:
        """Entries to flash; empty once the highlight window has passed."""
        if now - self.taken_at >= HIGHLIGHT_WINDOW:
            return ()
        return tuple(e for e in self.entries if e.changed)

    def to_dict(self) -> dict:
        return {
            "taken_at": self.taken_at.isoformat(),
            "entries": [e.to_dict() for e in self.entries],
        }

    @classmethod
    def from_dict(cls, payload: dict) -> "RankingSnapshot":
        return cls(
            entries=tuple(
                RankingEntry(
                    student_id=int(e["student_id"]),
                    rank=int(e["rank"]),
                    score=int(e["score"]),
                    moved=RankMove(e.get("moved", RankMove.SAME.value)),
                    delta_score=int(e.get("delta_score", 0)),
                    previous_rank=e.get("previous_rank"),
                )
                for e in payload.get("entries", [])
            ),
            taken_at=datetime.fromisoformat(payload["taken_at"]),
        )


def _move(previous_rank: Optional[int], rank: int) -> RankMove:
    if previous_rank is None or previous_rank == rank:
        return RankMove.SAME
    # Lower rank number is better.
    return RankMove.UP if rank < previous_rank else RankMove.DOWN


def rank_scores(scores: Iterable[Tuple[int, int]]) -> list[Tuple[int, int, int]]:
    """(student_id, score) -> (rank, student_id, score), score desc, stable on ties."""
    ordered = sorted(scores, key=lambda item: -item[1])
    return [(i, sid, score) for i, (sid, score) in enumerate(ordered, start=1)]


def build_snapshot(
    scores: Sequence[Tuple[int, int]],
    previous: Optional[RankingSnapshot] = None,
    *,
    taken_at: datetime,
) -> RankingSnapshot:
    before = previous.by_student() if previous else {}
    entries = []
    for rank, student_id, score in rank_scores(scores):
        prev = before.get(student_id)
        entries.append(
            RankingEntry(
                student_id=student_id,
                rank=rank,
                score=score,
                moved=_move(prev.rank if prev else None, rank),
                delta_score=score - prev.score if prev else 0,
                previous_rank=prev.rank if prev else None,
            )
        )
    return RankingSnapshot(entries=tuple(entries), taken_at=taken_at)
