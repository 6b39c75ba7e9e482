from __future__ import annotations

from typing import Optional, Protocol

from .model import AttendanceSettings


class SettingsRepository(Protocol):
    def get(self) -> Optional[AttendanceSettings]:
        raise NotImplementedError

    def create_default(self, *, created_by: Optional[int]) -> AttendanceSettings:
        """Insert the singleton with default values unless it already exists.

        Returns the live instance.
        """

        raise NotImplementedError

    def save(self, settings: AttendanceSettings) -> AttendanceSettings:
        raise NotImplementedError
