from __future__ import annotations

from datetime import datetime

from ...common.datetime_utils import WorkCalendar, whole_minutes
from ...core.enums import AttendanceStatus
from ...settings.model import AttendanceSettings
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Late check-in; minutes are counted from the start of working hours."""

    def decide_checkin(self, *, now: datetime, settings: AttendanceSettings, calendar: WorkCalendar) -> StatusDecision:
        start = calendar.at(calendar.local_date(now), settings.work_start)
        return StatusDecision(status=AttendanceStatus.LATE, late_minutes=max(0, whole_minutes(now - start)))

    def decide_checkout(self, *, worked_hours: float, current: AttendanceStatus) -> StatusDecision:
        return StatusDecision(status=current)
