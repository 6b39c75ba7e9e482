"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_TIMEZONE = "Asia/Kolkata"

# Saturday, Sunday (datetime.date.weekday numbering)
DEFAULT_WEEKEND_DAYS = (5, 6)

LEAVE_QUOTA_DAYS = 12
STANDARD_WORK_HOURS = 8

DEFAULT_ABSENCE_MARKING_TIME = "12:00"
DEFAULT_WORK_START = "09:00"
DEFAULT_WORK_END = "18:00"
DEFAULT_LATE_THRESHOLD_MINUTES = 15
DEFAULT_HALF_DAY_THRESHOLD_HOURS = 4
DEFAULT_AUTO_CHECKOUT_HOURS = 16

DEFAULT_ABSENCE_RUN_DEADLINE_SECONDS = 300
DEFAULT_HISTORY_LIMIT = 30
DEFAULT_PAGE_SIZE = 20

AUTO_ABSENT_NOTE_PREFIX = "auto-marked"
AUTO_CHECKOUT_NOTE = "auto checkout"
