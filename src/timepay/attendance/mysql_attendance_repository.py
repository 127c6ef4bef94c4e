from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..common.geofence import GeoPoint
from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, from_db_instant, to_db_instant
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, employee_id, work_date, status, clock_in, clock_out,
    clock_in_lat, clock_in_lng, clock_out_lat, clock_out_lng,
    work_duration, notes, outside_schedule, late_minutes, early_out_minutes, adjustment_request_id
"""


def _point(lat, lng) -> Optional[GeoPoint]:
    if lat is None or lng is None:
        return None
    return GeoPoint(float(lat), float(lng))


def _coords(point: Optional[GeoPoint]) -> tuple:
    if point is None:
        return None, None
    return point.latitude, point.longitude


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        clock_in=from_db_instant(r.get("clock_in")),
        clock_out=from_db_instant(r.get("clock_out")),
        clock_in_location=_point(r.get("clock_in_lat"), r.get("clock_in_lng")),
        clock_out_location=_point(r.get("clock_out_lat"), r.get("clock_out_lng")),
        work_duration=int(r["work_duration"]) if r.get("work_duration") is not None else None,
        notes=r.get("notes"),
        outside_schedule=as_bool(r.get("outside_schedule")),
        late_minutes=int(r.get("late_minutes") or 0),
        early_out_minutes=int(r.get("early_out_minutes") or 0),
        adjustment_request_id=r.get("adjustment_request_id"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance WHERE employee_id=%s AND work_date=%s",
                (int(employee_id), work_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def list_for_employee(self, employee_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance
                WHERE employee_id=%s AND work_date BETWEEN %s AND %s
                ORDER BY work_date DESC
                """,
                (int(employee_id), start, end),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def create_clock_in(
        self,
        *,
        employee_id: int,
        work_date: date,
        clock_in: datetime,
        location: Optional[GeoPoint],
        status: AttendanceStatus,
        notes: Optional[str],
        outside_schedule: bool,
        late_minutes: int,
    ) -> AttendanceRecord:
        lat, lng = _coords(location)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(
                    employee_id, work_date, clock_in, clock_in_lat, clock_in_lng,
                    status, notes, outside_schedule, late_minutes
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    work_date,
                    to_db_instant(clock_in),
                    lat,
                    lng,
                    status.value,
                    notes,
                    1 if outside_schedule else 0,
                    int(late_minutes),
                ),
            )
            attendance_id = int(cur.lastrowid)
        return self.get_by_id(attendance_id)

    def set_clock_in(
        self,
        *,
        attendance_id: int,
        clock_in: datetime,
        location: Optional[GeoPoint],
        status: AttendanceStatus,
        notes: Optional[str],
        outside_schedule: bool,
        late_minutes: int,
    ) -> bool:
        lat, lng = _coords(location)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET clock_in=%s, clock_in_lat=%s, clock_in_lng=%s, status=%s, notes=%s,
                    outside_schedule=%s, late_minutes=%s, updated_at=CURRENT_TIMESTAMP
                WHERE attendance_id=%s AND clock_in IS NULL
                """,
                (
                    to_db_instant(clock_in),
                    lat,
                    lng,
                    status.value,
                    notes,
                    1 if outside_schedule else 0,
                    int(late_minutes),
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

    def set_clock_out(
        self,
        *,
        attendance_id: int,
        clock_out: datetime,
        location: Optional[GeoPoint],
        work_duration: int,
        notes: Optional[str],
        outside_schedule: bool,
        early_out_minutes: int,
    ) -> bool:
        lat, lng = _coords(location)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET clock_out=%s, clock_out_lat=%s, clock_out_lng=%s, work_duration=%s, notes=%s,
                    outside_schedule=%s, early_out_minutes=%s, updated_at=CURRENT_TIMESTAMP
                WHERE attendance_id=%s AND clock_in IS NOT NULL AND clock_out IS NULL
                """,
                (
                    to_db_instant(clock_out),
                    lat,
                    lng,
                    int(work_duration),
                    notes,
                    1 if outside_schedule else 0,
                    int(early_out_minutes),
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

    def apply_adjustment(
        self,
        *,
        attendance_id: int,
        clock_in: Optional[datetime],
        clock_out: Optional[datetime],
        work_duration: Optional[int],
        adjustment_request_id: int,
    ) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET clock_in=%s, clock_out=%s, work_duration=%s,
                    adjustment_request_id=%s, updated_at=CURRENT_TIMESTAMP
                WHERE attendance_id=%s
                """,
                (
                    to_db_instant(clock_in),
                    to_db_instant(clock_out),
                    work_duration,
                    int(adjustment_request_id),
                    int(attendance_id),
                ),
            )
        return self.get_by_id(attendance_id)
