from __future__ import annotations

from ..common.logging import get_logger
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ValidationError
from .model import StudentProfile
from .repository import ProfileRepository

log = get_logger(__name__)


class ProfileService:
    def __init__(self, profiles: ProfileRepository):
        self._profiles = profiles

    def get(self, student_id: int) -> StudentProfile:
        profile = self._profiles.get_by_id(int(student_id))
        if not profile:
            raise ValidationError("Student profile not found")
        return profile

    def reset_season(self, *, current_role: Role) -> int:
        """Close the current season for every student; lifetime scores are kept."""
        if current_role != Role.TEACHER:
            raise AuthorizationError("Only teachers can reset the season")
        count = self._profiles.start_new_season()
        log.info("season.reset", students=count)
        return count
