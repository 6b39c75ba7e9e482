from __future__ import annotations

from datetime import datetime

from ...common.datetime_utils import WorkCalendar
from ...core.enums import AttendanceStatus
from ...settings.model import AttendanceSettings
from .base import AttendanceStrategy, StatusDecision


class HalfDayStrategy(AttendanceStrategy):
    """Check-out below the half-day threshold."""

    def decide_checkin(self, *, now: datetime, settings: AttendanceSettings, calendar: WorkCalendar) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)

    def decide_checkout(self, *, worked_hours: float, current: AttendanceStatus) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.HALF_DAY)
