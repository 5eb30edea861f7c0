from __future__ import annotations

import pytest

from classbook.attendance.transitions import PointsPolicy, next_status
from classbook.core.enums import AttendanceStatus as S
from classbook.core.exceptions import ValidationError


@pytest.mark.parametrize("requested", [S.PRESENT, S.ABSENT, S.EXCUSED])
def test_unset_moves_to_requested(requested):
    t = next_status(None, requested)

    assert t.previous is None
    assert t.current == requested
    assert t.changed


def test_marking_active_status_again_clears_it():
    t = next_status(S.PRESENT, S.PRESENT)

    assert t.current is None
    assert t.changed


def test_marking_active_status_again_without_toggle_is_noop():
    t = next_status(S.ABSENT, S.ABSENT, toggle=False)

    assert t.current == S.ABSENT
    assert not t.changed


def test_present_on_a_makeup_seat_is_recorded_as_makeup():
    assert next_status(None, S.PRESENT, makeup_slot=True).current == S.MAKEUP
    assert next_status(S.MAKEUP, S.PRESENT, makeup_slot=True).current is None
    assert next_status(None, S.ABSENT, makeup_slot=True).current == S.ABSENT


def test_makeup_cannot_be_marked_on_a_regular_seat():
    with pytest.raises(ValidationError):
        next_status(None, S.MAKEUP)


def test_credit_flags():
    assert next_status(S.ABSENT, S.EXCUSED).grants_credit
    assert next_status(S.EXCUSED, S.PRESENT).retracts_credit
    assert next_status(S.EXCUSED, S.EXCUSED).retracts_credit
    assert not next_status(S.EXCUSED, S.EXCUSED, toggle=False).retracts_credit


def test_points_policy_defaults_and_adjustment():
    policy = PointsPolicy()

    assert policy.points_for(None) == 0
    assert policy.points_for(S.PRESENT) == 100
    assert policy.points_for(S.MAKEUP) == 100
    assert policy.points_for(S.EXCUSED) == 50
    assert policy.points_for(S.ABSENT) == 0
    assert policy.adjustment(S.ABSENT, S.PRESENT) == 100
    assert policy.adjustment(S.PRESENT, S.EXCUSED) == -50
    assert policy.adjustment(S.PRESENT, None) == -100
    assert policy.adjustment(S.PRESENT, S.PRESENT) == 0


def test_points_policy_is_configurable():
    policy = PointsPolicy(present=10, excused=5, absent=-1, makeup=8)

    assert policy.points_for(S.MAKEUP) == 8
    assert policy.adjustment(None, S.ABSENT) == -1
