from __future__ import annotations

from datetime import date, time, timedelta

import pytest

from classbook.core.exceptions import ValidationError
from classbook.enrollments.model import Enrollment
from classbook.schedules.model import ClassDefinition, SessionTemplate
from classbook.schedules.occurrences import expand_occurrences, is_scheduled_on

from support import MON, WED, evening


def _class(*templates):
    return ClassDefinition(7, "Robotics", tuple(templates), frozenset({1}), room="Lab")


def test_expands_every_matching_weekday_in_order():
    cls = _class(evening(WED), evening(MON))

    occ = expand_occurrences(cls, date(2026, 10, 19), date(2026, 10, 28))

    assert [o.session_date for o in occ] == [
        date(2026, 10, 19),
        date(2026, 10, 21),
        date(2026, 10, 26),
        date(2026, 10, 28),
    ]
    assert all(o.room == "Lab" and o.start_time == time(17, 30) for o in occ)


def test_two_slots_on_one_day_sorted_by_start_time():
    cls = _class(SessionTemplate(MON, time(19, 0), time(20, 0)), SessionTemplate(MON, time(8, 0), time(9, 0)))

    occ = expand_occurrences(cls, date(2026, 10, 19), date(2026, 10, 19))

    assert [o.start_time for o in occ] == [time(8, 0), time(19, 0)]


def test_cancelled_date_is_skipped_and_superset_range_agrees():
    cls = _class(evening(MON), evening(WED))
    cancelled = frozenset({date(2026, 10, 21)})
    start, end = date(2026, 10, 19), date(2026, 11, 1)

    occ = expand_occurrences(cls, start, end, cancelled)
    wider = expand_occurrences(cls, start - timedelta(days=30), end + timedelta(days=30), cancelled)

    assert date(2026, 10, 21) not in {o.session_date for o in occ}
    assert occ == [o for o in wider if start <= o.session_date <= end]


def test_empty_when_start_after_end():
    assert expand_occurrences(_class(evening(MON)), date(2026, 10, 26), date(2026, 10, 19)) == []


def test_sunday_is_day_zero():
    cls = _class(SessionTemplate(0, time(9, 0), time(10, 0)))

    assert is_scheduled_on(cls, date(2026, 10, 25))
    assert not is_scheduled_on(cls, date(2026, 10, 24))


@pytest.mark.parametrize(
    "dow,start,end",
    [(7, time(9, 0), time(10, 0)), (-1, time(9, 0), time(10, 0)), (1, time(10, 0), time(10, 0))],
)
def test_template_rejects_bad_values(dow, start, end):
    with pytest.raises(ValidationError):
        SessionTemplate(dow, start, end)


def test_service_rejects_unknown_class_and_huge_window(world):
    with pytest.raises(ValidationError):
        world.schedules.list_occurrences(99, date(2026, 10, 19), date(2026, 10, 26))
    with pytest.raises(ValidationError):
        world.schedules.list_occurrences(1, date(2026, 1, 1), date(2027, 6, 1))


def test_student_calendar_covers_own_classes_within_enrollment(world):
    world.enrollments.enrollments[0] = Enrollment(
        1, 1, date(2026, 10, 20), date(2026, 12, 31), class_id=1
    )

    occ = world.schedules.occurrences_for_student(1, date(2026, 10, 19), date(2026, 10, 26))

    assert [(o.class_id, o.session_date) for o in occ] == [(1, date(2026, 10, 21)), (1, date(2026, 10, 26))]
