from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..common.geofence import GeoPoint
from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_for_employee(self, employee_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

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
        """Insert the day's record. A second insert for the same day raises ConflictError."""

        raise NotImplementedError

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
        """Fill clock-in on an existing record that has none. False if it already had one."""

        raise NotImplementedError

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
        """Fill clock-out when clocked in and not yet out. False otherwise."""

        raise NotImplementedError

    def apply_adjustment(
        self,
        *,
        attendance_id: int,
        clock_in: Optional[datetime],
        clock_out: Optional[datetime],
        work_duration: Optional[int],
        adjustment_request_id: int,
    ) -> AttendanceRecord:
        raise NotImplementedError
