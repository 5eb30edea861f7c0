from __future__ import annotations

from pathlib import Path

from classbook.database.bootstrap import iter_sql_statements

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def test_splits_on_semicolons_outside_quotes():
    sql = "INSERT INTO t VALUES ('a;b');\nUPDATE t SET x = 1;  SELECT 1"

    assert list(iter_sql_statements(sql)) == ["INSERT INTO t VALUES ('a;b')", "UPDATE t SET x = 1", "SELECT 1"]


def test_schema_declares_every_table():
    statements = list(iter_sql_statements(SCHEMA.read_text(encoding="utf-8")))
    tables = {s.split()[5] for s in statements if s.upper().startswith("CREATE TABLE")}

    assert tables == {
        "student_profiles",
        "season_scores",
        "classes",
        "class_sessions",
        "class_students",
        "class_cancellations",
        "enrollments",
        "attendance_records",
        "makeup_requests",
        "absence_requests",
        "staged_edits",
    }
