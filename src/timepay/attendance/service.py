from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..common.datetime_utils import BusinessCalendar
from ..common.geofence import GeoPoint, enforce_geofence
from ..common.validators import optional_text
from ..core.constants import OUTSIDE_SCHEDULE_CLOCK_IN_NOTE, OUTSIDE_SCHEDULE_CLOCK_OUT_NOTE
from ..core.context import Actor
from ..core.enums import AttendanceStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeDirectory
from ..policies.service import PolicyService
from ..requests.workflow import ensure_can_view
from ..schedules.model import ShiftSchedule
from ..schedules.service import ScheduleService
from .calculator import compute_duration, early_out_minutes, late_minutes
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def _with_note(notes: Optional[str], suffix: str) -> str:
    return f"{notes} | {suffix}" if notes else suffix


def _location(latitude: Optional[float], longitude: Optional[float]) -> Optional[GeoPoint]:
    if latitude is None or longitude is None:
        return None
    return GeoPoint(float(latitude), float(longitude))


class AttendanceService:
    """Clock-in/clock-out state machine for one employee and business day.

    no record -> clocked in -> clocked out. The schedule, geofence and
    ordering checks all run before anything is written.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        directory: EmployeeDirectory,
        schedules: ScheduleService,
        policies: PolicyService,
        calendar: BusinessCalendar,
    ):
        self._attendance = attendance
        self._directory = directory
        self._schedules = schedules
        self._policies = policies
        self._calendar = calendar

    def _employee_of(self, actor: Actor) -> Employee:
        if actor.employee_id is None:
            raise ValidationError("Your account has no employee profile")
        employee = self._directory.get_employee(actor.employee_id)
        if not employee or employee.company_id != actor.company_id:
            raise NotFoundError("Employee not found")
        return employee

    def _require_shift(self, actor: Actor, employee_id: int, today: date) -> Optional[ShiftSchedule]:
        schedule = self._schedules.get_for_date(employee_id, today)
        if schedule is None and not actor.is_owner:
            raise ValidationError(
                "You do not have a shift scheduled for today. Please contact your manager to schedule a shift."
            )
        return schedule

    def _enforce_geofence(self, company_id: int, point: Optional[GeoPoint]) -> None:
        company = self._directory.get_company(company_id)
        if not company:
            raise NotFoundError("Company not found")
        enforce_geofence(company.geofence, point)

    def _scheduled_bounds(self, schedule: ShiftSchedule, day: date) -> tuple:
        start = self._calendar.localize(datetime.combine(day, schedule.start_time))
        end = self._calendar.localize(datetime.combine(day, schedule.end_time))
        if schedule.is_overnight:
            end += timedelta(days=1)
        return start, end

    def clock_in(
        self,
        *,
        actor: Actor,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = self._calendar.localize(now) if now else self._calendar.now()
        today = self._calendar.today_business_day(now)
        employee = self._employee_of(actor)

        existing = self._attendance.get_for_employee_and_date(employee.employee_id, today)
        if existing and existing.is_clocked_in:
            raise ConflictError("Already clocked in today")

        schedule = self._require_shift(actor, employee.employee_id, today)
        point = _location(latitude, longitude)
        self._enforce_geofence(employee.company_id, point)
        rules = self._policies.attendance_rules(employee.company_id)

        outside = not self._schedules.is_within_schedule(employee.employee_id, now)
        notes = optional_text(notes)
        if outside:
            notes = _with_note(notes, OUTSIDE_SCHEDULE_CLOCK_IN_NOTE)
        late = 0
        if schedule is not None:
            late = late_minutes(now, self._scheduled_bounds(schedule, today)[0], rules.grace_period_minutes)

        if existing:
            ok = self._attendance.set_clock_in(
                attendance_id=existing.attendance_id,
                clock_in=now,
                location=point,
                status=AttendanceStatus.PRESENT,
                notes=notes,
                outside_schedule=outside,
                late_minutes=late,
            )
            if not ok:
                raise ConflictError("Already clocked in today")
            record = self._attendance.get_by_id(existing.attendance_id)
        else:
            record = self._attendance.create_clock_in(
                employee_id=employee.employee_id,
                work_date=today,
                clock_in=now,
                location=point,
                status=AttendanceStatus.PRESENT,
                notes=notes,
                outside_schedule=outside,
                late_minutes=late,
            )

        logger.info("Employee %s clocked in on %s (outside_schedule=%s)", employee.employee_id, today, outside)
        return record

    def clock_out(
        self,
        *,
        actor: Actor,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = self._calendar.localize(now) if now else self._calendar.now()
        today = self._calendar.today_business_day(now)
        employee = self._employee_of(actor)

        record = self._attendance.get_for_employee_and_date(employee.employee_id, today)
        if not record or not record.is_clocked_in:
            raise ConflictError("Must clock in first")

        schedule = self._require_shift(actor, employee.employee_id, today)
        if record.is_clocked_out:
            raise ConflictError("Already clocked out today")

        point = _location(latitude, longitude)
        self._enforce_geofence(employee.company_id, point)
        rules = self._policies.attendance_rules(employee.company_id)

        outside_now = not self._schedules.is_within_schedule(employee.employee_id, now)
        merged_notes = optional_text(notes)
        if outside_now:
            merged_notes = _with_note(merged_notes, OUTSIDE_SCHEDULE_CLOCK_OUT_NOTE)
        duration = compute_duration(record.clock_in, now, rules)
        early = 0
        if schedule is not None:
            early = early_out_minutes(now, self._scheduled_bounds(schedule, today)[1], rules.grace_period_minutes)

        ok = self._attendance.set_clock_out(
            attendance_id=record.attendance_id,
            clock_out=now,
            location=point,
            work_duration=duration,
            notes=merged_notes or record.notes,
            outside_schedule=record.outside_schedule or outside_now,
            early_out_minutes=early,
        )
        if not ok:
            raise ConflictError("Already clocked out today")

        logger.info("Employee %s clocked out on %s after %s minutes", employee.employee_id, today, duration)
        return self._attendance.get_by_id(record.attendance_id)

    def get_today(self, *, actor: Actor, now: Optional[datetime] = None) -> Optional[AttendanceRecord]:
        employee = self._employee_of(actor)
        today = self._calendar.today_business_day(now)
        return self._attendance.get_for_employee_and_date(employee.employee_id, today)

    def list_attendance(
        self,
        *,
        actor: Actor,
        start: date,
        end: date,
        employee_id: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        if end < start:
            raise ValidationError("End date must be on or after start date")
        target = employee_id if employee_id is not None else actor.employee_id
        if target is None:
            raise ValidationError("employee_id is required")
        employee = ensure_can_view(actor, self._directory.get_employee(int(target)))
        return self._attendance.list_for_employee(employee.employee_id, start, end)
