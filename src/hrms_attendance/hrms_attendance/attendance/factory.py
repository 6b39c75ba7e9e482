from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..common.datetime_utils import WorkCalendar
from ..settings.model import AttendanceSettings
from .strategies.base import AttendanceStrategy
from .strategies.half_day_strategy import HalfDayStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    def for_checkin(self, *, now: datetime, settings: AttendanceSettings, calendar: WorkCalendar) -> AttendanceStrategy:
        start = calendar.at(calendar.local_date(now), settings.work_start)
        if calendar.localize(now) <= start:
            return NormalStrategy()
        return LateStrategy()

    def for_checkout(self, *, worked_hours: float, settings: AttendanceSettings) -> AttendanceStrategy:
        if worked_hours < float(settings.half_day_threshold_hours):
            return HalfDayStrategy()
        return NormalStrategy()
