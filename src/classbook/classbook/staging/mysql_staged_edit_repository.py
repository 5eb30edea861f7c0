from __future__ import annotations

import json
from datetime import date
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import StagedEdit, edit_key
from .repository import StagedEditRepository


class MySQLStagedEditRepository(StagedEditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def load(self, *, class_id: int, session_date: date) -> Optional[StagedEdit]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT payload, updated_at FROM staged_edits WHERE edit_key=%s",
                (edit_key(class_id, session_date),),
            )
            r = fetchone(cur)
        if not r:
            return None
        payload = r["payload"]
        if isinstance(payload, (bytes, bytearray)):
            payload = payload.decode("utf-8")
        data = json.loads(payload) if isinstance(payload, str) else dict(payload)
        edit = StagedEdit.from_dict(data)
        if edit.updated_at is None and r.get("updated_at") is not None:
            edit = StagedEdit(
                class_id=edit.class_id,
                session_date=edit.session_date,
                entries=edit.entries,
                updated_at=r["updated_at"],
            )
        return edit

    def save(self, edit: StagedEdit) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO staged_edits(edit_key, class_id, session_date, payload)
                VALUES (%s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE payload=VALUES(payload)
                """,
                (edit.key, int(edit.class_id), edit.session_date, json.dumps(edit.to_dict())),
            )

    def delete(self, *, class_id: int, session_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM staged_edits WHERE edit_key=%s", (edit_key(class_id, session_date),))
            return cur.rowcount > 0
