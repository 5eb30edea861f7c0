from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional

from ..core.enums import AttendanceStatus


def _status_or_none(value: Any) -> Optional[AttendanceStatus]:
    return AttendanceStatus(value) if value is not None else None


@dataclass(frozen=True)
class StagedEntry:
    """Pending changes for one student in one session.

    ``score`` is the absolute season score the teacher typed; ``None`` means
    untouched. ``attendance`` is only meaningful when ``attendance_touched``,
    in which case ``None`` is an explicit "clear".
    """

    student_id: int
    baseline_score: int = 0
    score: Optional[int] = None
    gold_delta: Optional[int] = None
    attendance: Optional[AttendanceStatus] = None
    attendance_touched: bool = False
    baseline_attendance: Optional[AttendanceStatus] = None
    carried_points: int = 0

    @property
    def is_empty(self) -> bool:
        return (
            self.score is None
            and not self.gold_delta
            and not self.attendance_touched
            and not self.carried_points
        )

    @property
    def score_delta(self) -> int:
        return 0 if self.score is None else self.score - self.baseline_score

    def without_attendance(self) -> "StagedEntry":
        return replace(self, attendance=None, attendance_touched=False)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "student_id": self.student_id,
            "baseline_score": self.baseline_score,
            "baseline_attendance": self.baseline_attendance.value if self.baseline_attendance else None,
        }
        if self.score is not None:
            out["score"] = self.score
        if self.gold_delta is not None:
            out["gold_delta"] = self.gold_delta
        if self.attendance_touched:
            out["attendance"] = self.attendance.value if self.attendance else None
        if self.carried_points:
            out["carried_points"] = self.carried_points
        return out

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "StagedEntry":
        return cls(
            student_id=int(payload["student_id"]),
            baseline_score=int(payload.get("baseline_score") or 0),
            score=int(payload["score"]) if payload.get("score") is not None else None,
            gold_delta=int(payload["gold_delta"]) if payload.get("gold_delta") is not None else None,
            attendance=_status_or_none(payload.get("attendance")),
            attendance_touched="attendance" in payload,
            baseline_attendance=_status_or_none(payload.get("baseline_attendance")),
            carried_points=int(payload.get("carried_points") or 0),
        )


def edit_key(class_id: int, session_date: date) -> str:
    return f"{int(class_id)}:{session_date:%Y-%m-%d}"


@dataclass(frozen=True)
class StagedEdit:
    """The teacher's unsaved work for one (class, date)."""

    class_id: int
    session_date: date
    entries: Mapping[int, StagedEntry] = field(default_factory=dict)
    updated_at: Optional[datetime] = None

    @property
    def key(self) -> str:
        return edit_key(self.class_id, self.session_date)

    @property
    def is_empty(self) -> bool:
        return all(e.is_empty for e in self.entries.values())

    def entry(self, student_id: int) -> Optional[StagedEntry]:
        return self.entries.get(int(student_id))

    def with_entry(self, entry: StagedEntry) -> "StagedEdit":
        entries = dict(self.entries)
        if entry.is_empty:
            entries.pop(entry.student_id, None)
        else:
            entries[entry.student_id] = entry
        return replace(self, entries=entries)

    def without(self, student_id: int) -> "StagedEdit":
        entries = dict(self.entries)
        entries.pop(int(student_id), None)
        return replace(self, entries=entries)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "class_id": self.class_id,
            "session_date": self.session_date.strftime("%Y-%m-%d"),
            "entries": [self.entries[sid].to_dict() for sid in sorted(self.entries)],
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "StagedEdit":
        entries = [StagedEntry.from_dict(e) for e in payload.get("entries") or []]
        updated_at = payload.get("updated_at")
        return cls(
            class_id=int(payload["class_id"]),
            session_date=date.fromisoformat(str(payload["session_date"])),
            entries={e.student_id: e for e in entries},
            updated_at=datetime.fromisoformat(updated_at) if updated_at else None,
        )
