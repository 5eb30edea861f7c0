from __future__ import annotations

from datetime import date, datetime

import pytest

from classbook.core.enums import AttendanceStatus, RequestStatus, Role
from classbook.core.exceptions import (
    AdjacentToMakeupError,
    AdjacentToRegularSessionError,
    AuthorizationError,
    NoCreditError,
    SlotUnavailableError,
    TooLateError,
    ValidationError,
)
from classbook.requests.model import MakeupBooking

from support import NOW, build_world

FRIDAY = date(2026, 10, 23)
SATURDAY = date(2026, 10, 24)
TUESDAY = date(2026, 10, 20)


def _earn(world, *dates):
    for d in dates:
        world.attendance.put(1, 1, d, AttendanceStatus.EXCUSED)


def _book(world, class_id, day, *, now=NOW, student_id=1, role=Role.STUDENT):
    return world.request_service.book_makeup(
        current_role=role,
        current_user_id=student_id,
        booking=MakeupBooking(student_id=student_id, new_class_id=class_id, new_session_date=day, reason="missed"),
        now=now,
    )


def test_two_excused_minus_one_approved_leaves_one_credit(world):
    _earn(world, date(2026, 10, 12), date(2026, 10, 14))
    world.requests.approve(1, 2, date(2026, 10, 13))

    assert world.request_service.remaining_makeup_credits(1, today=NOW.date()) == 1


def test_future_excused_sessions_do_not_count_yet(world):
    _earn(world, date(2026, 10, 26))

    assert world.credits.remaining_makeup_credits(1, today=NOW.date()) == 0


def test_booking_spends_the_last_credit_then_runs_out(world):
    _earn(world, date(2026, 10, 12), date(2026, 10, 14))
    world.requests.approve(1, 2, date(2026, 10, 13))

    created = _book(world, 2, FRIDAY)

    assert created.status == RequestStatus.APPROVED
    assert world.credits.remaining_makeup_credits(1, today=NOW.date()) == 0
    with pytest.raises(NoCreditError):
        _book(world, 3, date(2026, 10, 31))
    assert world.credits.raw_balance(1, today=NOW.date()) == 0


def test_refused_booking_leaves_credit_untouched(world):
    _earn(world, date(2026, 10, 12), date(2026, 10, 14))
    world.requests.approve(1, 2, date(2026, 10, 13))

    with pytest.raises(AdjacentToRegularSessionError):
        _book(world, 2, TUESDAY)

    assert world.credits.remaining_makeup_credits(1, today=NOW.date()) == 1
    assert world.requests.count_makeups(student_id=1, status=RequestStatus.APPROVED) == 1


def test_credit_is_checked_before_anything_else(world):
    with pytest.raises(NoCreditError):
        world.validator.validate(MakeupBooking(1, 99, FRIDAY, "missed"), now=NOW)


def test_missing_reason_is_a_validation_error(world):
    _earn(world, date(2026, 10, 12))
    with pytest.raises(ValidationError):
        world.validator.validate(MakeupBooking(1, 2, FRIDAY, " "), now=NOW)


def test_adjacent_regular_session_is_allowed_once_excused(world):
    _earn(world, date(2026, 10, 12))
    world.attendance.put(1, 1, date(2026, 10, 19), AttendanceStatus.EXCUSED)

    # Wednesday the 21st is still a regular session the day after.
    with pytest.raises(AdjacentToRegularSessionError):
        world.validator.validate(MakeupBooking(1, 2, TUESDAY, "missed"), now=NOW)

    world.attendance.put(1, 1, date(2026, 10, 21), AttendanceStatus.EXCUSED)
    occurrence = world.validator.validate(MakeupBooking(1, 2, TUESDAY, "missed"), now=NOW)

    assert occurrence.session_date == TUESDAY


def test_same_day_booking_is_too_late(world):
    _earn(world, date(2026, 10, 12))

    with pytest.raises(TooLateError):
        _book(world, 3, date(2026, 10, 19))


def test_session_that_already_started_is_unavailable(world):
    _earn(world, date(2026, 10, 12))

    with pytest.raises(SlotUnavailableError):
        _book(world, 3, date(2026, 10, 19), now=datetime(2026, 10, 19, 20, 30))


@pytest.mark.parametrize("class_id,day", [(99, FRIDAY), (2, date(2026, 10, 22))])
def test_unknown_class_or_day_without_session_is_unavailable(world, class_id, day):
    _earn(world, date(2026, 10, 12))

    with pytest.raises(SlotUnavailableError):
        _book(world, class_id, day)


def test_cancelled_session_is_unavailable(world):
    _earn(world, date(2026, 10, 12))
    world.classes.create_cancellation(class_id=2, cancel_date=FRIDAY, reason="Holiday")

    with pytest.raises(SlotUnavailableError):
        _book(world, 2, FRIDAY)


def test_full_class_is_unavailable():
    world = build_world(max_students=3)
    _earn(world, date(2026, 10, 12))
    world.requests.approve(4, 2, FRIDAY)

    with pytest.raises(SlotUnavailableError):
        _book(world, 2, FRIDAY)


def test_second_makeup_a_day_apart_is_rejected(world):
    _earn(world, date(2026, 10, 12), date(2026, 10, 14))
    _book(world, 2, FRIDAY)

    with pytest.raises(AdjacentToMakeupError):
        _book(world, 3, SATURDAY)
    assert world.credits.remaining_makeup_credits(1, today=NOW.date()) == 1


def test_only_the_student_books_for_themself(world):
    _earn(world, date(2026, 10, 12))

    with pytest.raises(AuthorizationError):
        _book(world, 2, FRIDAY, role=Role.TEACHER)
    with pytest.raises(AuthorizationError):
        world.request_service.book_makeup(
            current_role=Role.STUDENT,
            current_user_id=2,
            booking=MakeupBooking(1, 2, FRIDAY, "missed"),
            now=NOW,
        )


def test_loser_of_a_race_for_the_last_credit_gets_no_credit_error(world):
    _earn(world, date(2026, 10, 12))
    world.requests.before_create = lambda: world.requests.approve(1, 3, date(2026, 10, 31))

    with pytest.raises(NoCreditError):
        _book(world, 2, FRIDAY)

    approved = world.requests.list_makeups(student_id=1, status=RequestStatus.APPROVED)
    assert [r.new_class_id for r in approved] == [3]
    assert world.credits.raw_balance(1, today=NOW.date()) == 0


def test_available_slots_skip_ineligible_sessions(world):
    _earn(world, date(2026, 10, 12))

    slots = world.request_service.available_makeup_slots(1, start=TUESDAY, end=date(2026, 10, 25), now=NOW)

    assert [(s.class_id, s.session_date) for s in slots] == [(2, FRIDAY), (3, SATURDAY)]


def test_no_slots_without_credit(world):
    assert world.request_service.available_makeup_slots(1, start=TUESDAY, end=SATURDAY, now=NOW) == []


def test_validate_makeup_booking_returns_the_slot_and_writes_nothing(world):
    _earn(world, date(2026, 10, 12))
    booking = MakeupBooking(student_id=1, new_class_id=2, new_session_date=FRIDAY, reason="missed")

    occurrence = world.request_service.validate_makeup_booking(booking, now=NOW)

    assert (occurrence.class_id, occurrence.session_date) == (2, FRIDAY)
    assert world.requests.makeups == {}
    assert world.credits.remaining_makeup_credits(1, today=NOW.date()) == 1
