from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from .model import StagedEdit


class StagedEditRepository(Protocol):
    def load(self, *, class_id: int, session_date: date) -> Optional[StagedEdit]:
        raise NotImplementedError

    def save(self, edit: StagedEdit) -> None:
        raise NotImplementedError

    def delete(self, *, class_id: int, session_date: date) -> bool:
        raise NotImplementedError
