from __future__ import annotations

from typing import Optional
from zoneinfo import ZoneInfo

from ..common.datetime_utils import from_storage, to_storage
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, normalize_mysql_time
from .model import AttendanceSettings
from .repository import SettingsRepository

_COLUMNS = """
    settings_id, auto_absence_enabled, absence_marking_time, work_start_time, work_end_time,
    late_threshold_minutes, half_day_threshold_hours, auto_checkout_hours, description,
    created_by, updated_by, updated_at
"""


class MySQLSettingsRepository(SettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, tz: ZoneInfo):
        self._conn_factory = conn_factory
        self._tz = tz

    def _to_model(self, r: dict) -> AttendanceSettings:
        return AttendanceSettings(
            settings_id=int(r["settings_id"]),
            auto_absence_enabled=bool(r["auto_absence_enabled"]),
            absence_marking_time=normalize_mysql_time(r["absence_marking_time"]),
            work_start=normalize_mysql_time(r["work_start_time"]),
            work_end=normalize_mysql_time(r["work_end_time"]),
            late_threshold_minutes=int(r["late_threshold_minutes"]),
            half_day_threshold_hours=float(r["half_day_threshold_hours"]),
            auto_checkout_hours=int(r["auto_checkout_hours"]),
            description=r.get("description") or "",
            created_by=r.get("created_by"),
            updated_by=r.get("updated_by"),
            updated_at=from_storage(r.get("updated_at"), self._tz),
        )

    def get(self) -> Optional[AttendanceSettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_settings WHERE singleton_key=1")
            r = fetchone(cur)
            return self._to_model(r) if r else None

    def create_default(self, *, created_by: Optional[int]) -> AttendanceSettings:
        defaults = AttendanceSettings(settings_id=0)
        with db_cursor(self._conn_factory) as (_, cur):
            # The unique singleton_key turns a concurrent second insert into a no-op.
            cur.execute(
                """
                INSERT IGNORE INTO attendance_settings(
                    singleton_key, auto_absence_enabled, absence_marking_time, work_start_time,
                    work_end_time, late_threshold_minutes, half_day_threshold_hours,
                    auto_checkout_hours, description, created_by
                )
                VALUES(1,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(defaults.auto_absence_enabled),
                    defaults.absence_marking_time,
                    defaults.work_start,
                    defaults.work_end,
                    defaults.late_threshold_minutes,
                    defaults.half_day_threshold_hours,
                    defaults.auto_checkout_hours,
                    defaults.description,
                    created_by,
                ),
            )
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_settings WHERE singleton_key=1")
            return self._to_model(fetchone(cur))

    def save(self, settings: AttendanceSettings) -> AttendanceSettings:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_settings
                SET auto_absence_enabled=%s, absence_marking_time=%s, work_start_time=%s,
                    work_end_time=%s, late_threshold_minutes=%s, half_day_threshold_hours=%s,
                    auto_checkout_hours=%s, description=%s, updated_by=%s, updated_at=%s
                WHERE singleton_key=1
                """,
                (
                    int(settings.auto_absence_enabled),
                    settings.absence_marking_time,
                    settings.work_start,
                    settings.work_end,
                    int(settings.late_threshold_minutes),
                    float(settings.half_day_threshold_hours),
                    int(settings.auto_checkout_hours),
                    settings.description,
                    settings.updated_by,
                    to_storage(settings.updated_at),
                ),
            )
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_settings WHERE singleton_key=1")
            return self._to_model(fetchone(cur))
