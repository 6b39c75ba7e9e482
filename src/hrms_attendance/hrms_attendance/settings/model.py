from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from typing import Optional

from ..common.datetime_utils import format_12h, format_hhmm
from ..core import constants


def _t(value: str) -> time:
    h, m = value.split(":")
    return time(int(h), int(m))


@dataclass(frozen=True)
class AttendanceSettings:
    """Domain entity: the single live attendance configuration."""

    settings_id: int
    auto_absence_enabled: bool = True
    absence_marking_time: time = _t(constants.DEFAULT_ABSENCE_MARKING_TIME)
    work_start: time = _t(constants.DEFAULT_WORK_START)
    work_end: time = _t(constants.DEFAULT_WORK_END)
    late_threshold_minutes: int = constants.DEFAULT_LATE_THRESHOLD_MINUTES
    half_day_threshold_hours: float = constants.DEFAULT_HALF_DAY_THRESHOLD_HOURS
    auto_checkout_hours: int = constants.DEFAULT_AUTO_CHECKOUT_HOURS
    description: str = ""
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "autoAbsenceEnabled": self.auto_absence_enabled,
            "absenceMarkingTime": format_hhmm(self.absence_marking_time),
            "formattedAbsenceMarkingTime": format_12h(self.absence_marking_time),
            "workingHours": {
                "startTime": format_hhmm(self.work_start),
                "endTime": format_hhmm(self.work_end),
            },
            "lateThresholdMinutes": self.late_threshold_minutes,
            "halfDayThresholdHours": self.half_day_threshold_hours,
            "autoCheckoutHours": self.auto_checkout_hours,
            "description": self.description,
            "createdBy": self.created_by,
            "updatedBy": self.updated_by,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
