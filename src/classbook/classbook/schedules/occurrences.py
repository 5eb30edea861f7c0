"""Expansion of weekly class templates into dated sessions."""
from __future__ import annotations

from datetime import date
from typing import AbstractSet, List

from ..common.datetime_utils import iter_days, school_day_of_week
from .model import ClassDefinition, SessionOccurrence


def expand_occurrences(
    class_def: ClassDefinition,
    start: date,
    end: date,
    cancelled_dates: AbstractSet[date] = frozenset(),
) -> List[SessionOccurrence]:
    """Every occurrence of ``class_def`` in [start, end] minus cancelled dates.

    Pure and deterministic; output is ordered by (date, start time).
    """
    out: list[SessionOccurrence] = []
    templates = sorted(class_def.templates, key=lambda t: (t.start_time, t.end_time))

    for day in iter_days(start, end):
        if day in cancelled_dates:
            continue
        dow = school_day_of_week(day)
        for t in templates:
            if t.day_of_week != dow:
                continue
            out.append(
                SessionOccurrence(
                    class_id=class_def.class_id,
                    session_date=day,
                    start_time=t.start_time,
                    end_time=t.end_time,
                    room=class_def.room,
                )
            )
    return out


def is_scheduled_on(class_def: ClassDefinition, day: date) -> bool:
    dow = school_day_of_week(day)
    return any(t.day_of_week == dow for t in class_def.templates)
