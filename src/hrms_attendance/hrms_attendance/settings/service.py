from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Optional

from ..common.datetime_utils import Clock, parse_hhmm
from ..common.validators import require_manager, require_range
from ..core.enums import Role
from ..core.exceptions import ValidationError
from .model import AttendanceSettings
from .repository import SettingsRepository

logger = logging.getLogger(__name__)

SettingsListener = Callable[[AttendanceSettings], None]


class SettingsService:
    """Use case: read and update the attendance settings singleton.

    Settings writes notify subscribers (the absence scheduler reschedules
    itself from here).
    """

    def __init__(self, settings: SettingsRepository, *, clock: Clock):
        self._settings = settings
        self._clock = clock
        self._listeners: list[SettingsListener] = []

    def subscribe(self, listener: SettingsListener) -> None:
        self._listeners.append(listener)

    def get(self, *, actor_id: Optional[int] = None) -> AttendanceSettings:
        current = self._settings.get()
        if current is None:
            logger.info("No attendance settings found, creating defaults")
            current = self._settings.create_default(created_by=actor_id)
        return current

    def update(self, *, current_role: Role, actor_id: int, changes: dict) -> AttendanceSettings:
        require_manager(current_role)

        current = self.get(actor_id=actor_id)
        updated = self._apply_changes(current, changes or {})
        updated = replace(updated, updated_by=int(actor_id), updated_at=self._clock.now())

        saved = self._settings.save(updated)
        logger.info("Attendance settings updated by %s", actor_id)

        for listener in self._listeners:
            try:
                listener(saved)
            except Exception:
                # Settings are persisted; a failing subscriber must not undo that.
                logger.exception("Settings listener %r failed", listener)
        return saved

    @staticmethod
    def _apply_changes(current: AttendanceSettings, changes: dict) -> AttendanceSettings:
        fields: dict = {}

        if changes.get("autoAbsenceEnabled") is not None:
            value = changes["autoAbsenceEnabled"]
            if not isinstance(value, bool):
                raise ValidationError("autoAbsenceEnabled must be a boolean")
            fields["auto_absence_enabled"] = value

        if changes.get("absenceMarkingTime"):
            fields["absence_marking_time"] = parse_hhmm(changes["absenceMarkingTime"])

        working_hours = changes.get("workingHours") or {}
        if working_hours.get("startTime"):
            fields["work_start"] = parse_hhmm(working_hours["startTime"])
        if working_hours.get("endTime"):
            fields["work_end"] = parse_hhmm(working_hours["endTime"])

        if changes.get("lateThresholdMinutes") is not None:
            value = require_range(changes["lateThresholdMinutes"], "lateThresholdMinutes", low=0, high=480)
            fields["late_threshold_minutes"] = int(value)

        if changes.get("halfDayThresholdHours") is not None:
            value = require_range(changes["halfDayThresholdHours"], "halfDayThresholdHours", low=1, high=12)
            fields["half_day_threshold_hours"] = float(value)

        if changes.get("autoCheckoutHours") is not None:
            value = require_range(changes["autoCheckoutHours"], "autoCheckoutHours", low=1, high=48)
            fields["auto_checkout_hours"] = int(value)

        if changes.get("description"):
            fields["description"] = str(changes["description"]).strip()

        updated = replace(current, **fields)
        if updated.work_end <= updated.work_start:
            raise ValidationError("Working hours end time must be after the start time")
        return updated
