from __future__ import annotations

from datetime import date

import pytest

from classbook.core.enums import AttendanceStatus
from classbook.core.exceptions import CreditAlreadySpentError, ValidationError
from classbook.staging.model import StagedEdit, StagedEntry

from support import TODAY

MONDAY = date(2026, 10, 19)


def _stage(world, student_id=1, day=MONDAY):
    return {"class_id": 1, "session_date": day, "student_id": student_id}


def test_staged_score_survives_a_reload(world):
    world.staging.stage_score(score=350, **_stage(world))

    reopened = world.staging.open_staged_edits(1, MONDAY)

    entry = reopened.entry(1)
    assert entry.score == 350
    assert entry.baseline_score == 300
    assert entry.score_delta == 50
    assert reopened.updated_at is not None


def test_fresh_buffer_when_nothing_staged(world):
    edit = world.staging.open_staged_edits(1, MONDAY)

    assert edit.is_empty
    assert edit.key == "1:2026-10-19"


def test_gold_accumulates(world):
    world.staging.stage_gold(amount=3, **_stage(world))
    edit = world.staging.stage_gold(amount=-1, **_stage(world))

    assert edit.entry(1).gold_delta == 2


def test_attendance_toggle_back_to_baseline_drops_the_entry(world):
    edit = world.staging.stage_attendance(status="present", today=TODAY, **_stage(world))
    assert edit.entry(1).attendance == AttendanceStatus.PRESENT

    edit = world.staging.stage_attendance(status="present", today=TODAY, **_stage(world))

    assert edit.entry(1) is None
    assert world.staged.rows == {}


def test_clearing_a_stored_status_is_kept_as_explicit_none(world):
    world.attendance.put(2, 1, MONDAY, AttendanceStatus.ABSENT)

    edit = world.staging.stage_attendance(status="absent", today=TODAY, **_stage(world, student_id=2))

    entry = edit.entry(2)
    assert entry.attendance_touched
    assert entry.attendance is None
    assert entry.to_dict()["attendance"] is None


def test_present_on_a_makeup_seat_is_staged_as_makeup(world):
    world.requests.approve(3, 1, MONDAY)

    edit = world.staging.stage_attendance(status="present", today=TODAY, **_stage(world, student_id=3))

    assert edit.entry(3).attendance == AttendanceStatus.MAKEUP


def test_unknown_status_is_rejected(world):
    with pytest.raises(ValidationError):
        world.staging.stage_attendance(status="late", today=TODAY, **_stage(world))


def test_unmarking_excused_after_its_credit_was_spent_is_refused(world):
    last_monday = date(2026, 10, 12)
    world.attendance.put(1, 1, last_monday, AttendanceStatus.EXCUSED)
    world.requests.approve(1, 2, date(2026, 10, 13))

    with pytest.raises(CreditAlreadySpentError):
        world.staging.stage_attendance(status="present", today=TODAY, **_stage(world, day=last_monday))

    assert world.staged.rows == {}


def test_unmarking_excused_is_fine_while_a_spare_credit_remains(world):
    world.attendance.put(1, 1, date(2026, 10, 12), AttendanceStatus.EXCUSED)
    world.attendance.put(1, 1, date(2026, 10, 14), AttendanceStatus.EXCUSED)
    world.requests.approve(1, 2, date(2026, 10, 13))

    edit = world.staging.stage_attendance(status="present", today=TODAY, **_stage(world, day=date(2026, 10, 12)))

    assert edit.entry(1).attendance == AttendanceStatus.PRESENT


def test_unmarking_a_future_excused_session_is_fine(world):
    world.attendance.put(1, 1, date(2026, 10, 26), AttendanceStatus.EXCUSED)

    edit = world.staging.stage_attendance(
        status="excused", today=TODAY, **_stage(world, day=date(2026, 10, 26))
    )

    assert edit.entry(1).attendance is None
    assert edit.entry(1).attendance_touched


def test_unstage_and_discard(world):
    world.staging.stage_score(score=310, **_stage(world, student_id=1))
    world.staging.stage_score(score=260, **_stage(world, student_id=2))

    edit = world.staging.unstage(**_stage(world, student_id=1))
    assert sorted(edit.entries) == [2]

    assert world.staging.discard(1, MONDAY) is True
    assert world.staging.open_staged_edits(1, MONDAY).is_empty


def test_saving_an_empty_buffer_deletes_it(world):
    world.staging.stage_score(score=310, **_stage(world))

    world.staging.save_staged_edits(StagedEdit(class_id=1, session_date=MONDAY))

    assert world.staged.rows == {}


def test_unknown_student_is_rejected(world):
    with pytest.raises(ValidationError):
        world.staging.stage_score(score=10, **_stage(world, student_id=99))


def test_json_form_only_carries_touched_keys():
    entry = StagedEntry(student_id=4, baseline_score=100, gold_delta=2)

    payload = entry.to_dict()

    assert "score" not in payload
    assert "attendance" not in payload
    assert payload["gold_delta"] == 2
    assert StagedEntry.from_dict(payload) == entry
