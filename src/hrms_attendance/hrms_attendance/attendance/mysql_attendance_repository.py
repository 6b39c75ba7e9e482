from __future__ import annotations

from datetime import date
from typing import Optional, Sequence
from zoneinfo import ZoneInfo

from mysql.connector.errors import IntegrityError

from ..common.datetime_utils import from_storage, to_storage
from ..core.enums import AttendanceStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceRecord, Break, Geolocation, NewAttendance, Punch
from .repository import AttendanceRepository

_COLUMNS = """
    ar.attendance_id, ar.employee_id, ar.work_date, ar.status,
    ar.check_in_time, ar.check_in_location, ar.check_in_latitude, ar.check_in_longitude,
    ar.check_out_time, ar.check_out_location, ar.check_out_latitude, ar.check_out_longitude,
    ar.total_break_minutes, ar.late_minutes, ar.overtime_minutes,
    ar.production_hours, ar.total_working_hours, ar.notes, ar.is_active, ar.created_at
"""


def _geo_params(punch: Optional[Punch]) -> tuple:
    if punch is None:
        return (None, "", None, None)
    geo = punch.geolocation or Geolocation()
    return (to_storage(punch.time), punch.location, geo.latitude, geo.longitude)


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, tz: ZoneInfo):
        self._conn_factory = conn_factory
        self._tz = tz

    # -------- mapping --------
    def _punch(self, r: dict, prefix: str) -> Optional[Punch]:
        t = r.get(f"{prefix}_time")
        if t is None:
            return None
        lat = r.get(f"{prefix}_latitude")
        lng = r.get(f"{prefix}_longitude")
        return Punch(
            time=from_storage(t, self._tz),
            location=r.get(f"{prefix}_location") or "",
            geolocation=Geolocation(latitude=lat, longitude=lng) if lat is not None and lng is not None else None,
        )

    def _load_breaks(self, cur, ids: list[int]) -> dict[int, tuple[Break, ...]]:
        if not ids:
            return {}
        placeholders = ",".join(["%s"] * len(ids))
        cur.execute(
            f"""
            SELECT attendance_id, start_time, end_time, duration_minutes
            FROM attendance_breaks
            WHERE attendance_id IN ({placeholders})
            ORDER BY attendance_id ASC, seq ASC
            """,
            tuple(ids),
        )
        out: dict[int, list[Break]] = {}
        for b in fetchall(cur):
            out.setdefault(int(b["attendance_id"]), []).append(
                Break(
                    start=from_storage(b["start_time"], self._tz),
                    end=from_storage(b.get("end_time"), self._tz),
                    duration_minutes=int(b["duration_minutes"] or 0),
                )
            )
        return {k: tuple(v) for k, v in out.items()}

    def _to_records(self, cur, rows: list[dict]) -> list[AttendanceRecord]:
        breaks = self._load_breaks(cur, [int(r["attendance_id"]) for r in rows])
        return [
            AttendanceRecord(
                attendance_id=int(r["attendance_id"]),
                employee_id=int(r["employee_id"]),
                work_date=r["work_date"],
                status=AttendanceStatus(r["status"]),
                check_in=self._punch(r, "check_in"),
                check_out=self._punch(r, "check_out"),
                breaks=breaks.get(int(r["attendance_id"]), ()),
                total_break_minutes=int(r["total_break_minutes"] or 0),
                late_minutes=int(r["late_minutes"] or 0),
                overtime_minutes=int(r["overtime_minutes"] or 0),
                production_hours=float(r["production_hours"] or 0),
                total_working_hours=float(r["total_working_hours"] or 0),
                notes=r.get("notes") or "",
                is_active=bool(r["is_active"]),
                created_at=from_storage(r.get("created_at"), self._tz),
            )
            for r in rows
        ]

    def _select_one(self, cur, where: str, params: tuple) -> Optional[AttendanceRecord]:
        cur.execute(f"SELECT {_COLUMNS} FROM attendance_records ar WHERE {where} LIMIT 1", params)
        r = fetchone(cur)
        if not r:
            return None
        return self._to_records(cur, [r])[0]

    # -------- queries --------
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select_one(cur, "ar.attendance_id=%s", (int(attendance_id),))

    def get_active_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select_one(
                cur,
                "ar.employee_id=%s AND ar.work_date=%s AND ar.is_active=1",
                (int(employee_id), work_date),
            )

    def get_latest_open_for_employee(self, employee_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records ar
                WHERE ar.employee_id=%s AND ar.is_active=1
                  AND ar.check_in_time IS NOT NULL AND ar.check_out_time IS NULL
                ORDER BY ar.work_date DESC
                LIMIT 1
                """,
                (int(employee_id),),
            )
            r = fetchone(cur)
            return self._to_records(cur, [r])[0] if r else None

    def list_for_employee(
        self,
        employee_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        status: Optional[AttendanceStatus] = None,
    ) -> Sequence[AttendanceRecord]:
        records, _ = self.list_range(start=start, end=end, employee_id=employee_id, status=status, limit=0)
        return records

    def list_range(
        self,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        employee_id: Optional[int] = None,
        status: Optional[AttendanceStatus] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[Sequence[AttendanceRecord], int]:
        clauses = ["ar.is_active=1"]
        params: list[object] = []

        if start is not None:
            clauses.append("ar.work_date>=%s")
            params.append(start)
        if end is not None:
            clauses.append("ar.work_date<=%s")
            params.append(end)
        if employee_id is not None:
            clauses.append("ar.employee_id=%s")
            params.append(int(employee_id))
        if status is not None:
            clauses.append("ar.status=%s")
            params.append(status.value)

        where = " AND ".join(clauses)
        page = ""
        page_params: list[object] = []
        if limit:
            page = "LIMIT %s OFFSET %s"
            page_params = [int(limit), int(offset)]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM attendance_records ar WHERE {where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records ar
                WHERE {where}
                ORDER BY ar.work_date DESC, ar.employee_id ASC
                {page}
                """,
                tuple(params + page_params),
            )
            return self._to_records(cur, fetchall(cur)), total

    def list_for_date(self, work_date: date) -> Sequence[AttendanceRecord]:
        records, _ = self.list_range(start=work_date, end=work_date, limit=0)
        return records

    def list_auto_marked_absences(self, *, note_prefix: str, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records ar
                WHERE ar.is_active=1 AND ar.status=%s AND ar.notes LIKE %s
                ORDER BY ar.created_at DESC
                LIMIT %s
                """,
                (AttendanceStatus.ABSENT.value, f"{note_prefix}%", int(limit)),
            )
            return self._to_records(cur, fetchall(cur))

    # -------- writes --------
    def create(self, new: NewAttendance) -> AttendanceRecord:
        in_time, in_loc, in_lat, in_lng = _geo_params(new.check_in)
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        employee_id, work_date, status,
                        check_in_time, check_in_location, check_in_latitude, check_in_longitude,
                        late_minutes, notes
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(new.employee_id),
                        new.work_date,
                        new.status.value,
                        in_time,
                        in_loc,
                        in_lat,
                        in_lng,
                        int(new.late_minutes),
                        new.notes,
                    ),
                )
                return self._select_one(cur, "ar.attendance_id=%s", (int(cur.lastrowid),))
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise ConflictError("An attendance record already exists for this day") from e
            raise

    def update(self, record: AttendanceRecord) -> AttendanceRecord:
        in_time, in_loc, in_lat, in_lng = _geo_params(record.check_in)
        out_time, out_loc, out_lat, out_lng = _geo_params(record.check_out)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s,
                    check_in_time=%s, check_in_location=%s, check_in_latitude=%s, check_in_longitude=%s,
                    check_out_time=%s, check_out_location=%s, check_out_latitude=%s, check_out_longitude=%s,
                    total_break_minutes=%s, late_minutes=%s, overtime_minutes=%s,
                    production_hours=%s, total_working_hours=%s, notes=%s
                WHERE attendance_id=%s
                """,
                (
                    record.status.value,
                    in_time,
                    in_loc,
                    in_lat,
                    in_lng,
                    out_time,
                    out_loc,
                    out_lat,
                    out_lng,
                    int(record.total_break_minutes),
                    int(record.late_minutes),
                    int(record.overtime_minutes),
                    float(record.production_hours),
                    float(record.total_working_hours),
                    record.notes,
                    int(record.attendance_id),
                ),
            )
            cur.execute("DELETE FROM attendance_breaks WHERE attendance_id=%s", (int(record.attendance_id),))
            for seq, b in enumerate(record.breaks, start=1):
                cur.execute(
                    """
                    INSERT INTO attendance_breaks(attendance_id, seq, start_time, end_time, duration_minutes)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (int(record.attendance_id), seq, to_storage(b.start), to_storage(b.end), int(b.duration_minutes)),
                )
            return self._select_one(cur, "ar.attendance_id=%s", (int(record.attendance_id),))

    def deactivate(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_records SET is_active=0 WHERE attendance_id=%s AND is_active=1",
                (int(attendance_id),),
            )
            return cur.rowcount > 0

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0
