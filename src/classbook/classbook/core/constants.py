"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
Most of them can be overridden from the settings module.
"""

DEFAULT_POINTS_PRESENT = 100
DEFAULT_POINTS_EXCUSED = 50
DEFAULT_POINTS_ABSENT = 0

DEFAULT_TOTAL_SESSIONS = 12

# Makeup booking windows, in calendar days.
DEFAULT_MAKEUP_LEAD_DAYS = 1
DEFAULT_ADJACENCY_DAYS = 1

DEFAULT_ABSENCE_LEAD_HOURS = 6

MAX_OCCURRENCE_WINDOW_DAYS = 366

RANK_HIGHLIGHT_SECONDS = 1.2
