from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from ...common.datetime_utils import WorkCalendar
from ...core.enums import AttendanceStatus
from ...settings.model import AttendanceSettings


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    late_minutes: int = 0


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide an attendance status."""

    @abstractmethod
    def decide_checkin(self, *, now: datetime, settings: AttendanceSettings, calendar: WorkCalendar) -> StatusDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_checkout(self, *, worked_hours: float, current: AttendanceStatus) -> StatusDecision:
        raise NotImplementedError
