from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.geofence import GeoPoint
from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """One row per (employee, business day)."""

    attendance_id: int
    employee_id: int
    work_date: date
    status: AttendanceStatus
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    clock_in_location: Optional[GeoPoint] = None
    clock_out_location: Optional[GeoPoint] = None
    work_duration: Optional[int] = None
    notes: Optional[str] = None
    outside_schedule: bool = False
    late_minutes: int = 0
    early_out_minutes: int = 0
    adjustment_request_id: Optional[int] = None

    @property
    def is_clocked_in(self) -> bool:
        return self.clock_in is not None

    @property
    def is_clocked_out(self) -> bool:
        return self.clock_out is not None
