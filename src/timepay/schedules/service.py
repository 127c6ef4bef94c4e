from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime, time
from typing import Optional, Sequence

from ..common.datetime_utils import BusinessCalendar, day_of_week
from ..common.validators import optional_text, parse_hhmm
from ..core.context import Actor
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError
from ..employees.repository import EmployeeDirectory
from ..requests.workflow import ensure_can_view, ensure_same_company
from .model import DateSpecificSlot, RecurringSlot, ShiftSchedule, make_slot
from .repository import ScheduleRepository

logger = logging.getLogger(__name__)


class ScheduleService:
    def __init__(self, schedules: ScheduleRepository, directory: EmployeeDirectory, calendar: BusinessCalendar):
        self._schedules = schedules
        self._directory = directory
        self._calendar = calendar

    @staticmethod
    def _ensure_planner(actor: Actor) -> None:
        if not (actor.is_owner or actor.is_manager):
            raise AuthorizationError("Only owners and managers can manage shift schedules")

    def _ensure_slot_free(self, employee_id: int, slot, *, ignore_id: Optional[int] = None) -> None:
        existing = self._schedules.find_by_slot(employee_id=employee_id, slot=slot)
        if existing and existing.schedule_id != ignore_id:
            if isinstance(slot, DateSpecificSlot):
                raise ConflictError("Shift schedule already exists for this employee on this date")
            raise ConflictError("Shift schedule already exists for this employee on this day of week")

    def _get_owned(self, actor: Actor, schedule_id: int) -> ShiftSchedule:
        schedule = self._schedules.get_by_id(schedule_id=int(schedule_id))
        if not schedule or schedule.company_id != actor.company_id:
            raise NotFoundError("Shift schedule not found")
        return schedule

    def create_schedule(
        self,
        *,
        actor: Actor,
        employee_id: int,
        start_time: str,
        end_time: str,
        day_of_week: Optional[int] = None,
        on_date: Optional[date] = None,
        notes: Optional[str] = None,
        is_active: bool = True,
    ) -> ShiftSchedule:
        self._ensure_planner(actor)
        employee = ensure_same_company(actor, self._directory.get_employee(int(employee_id)))
        slot = make_slot(day_of_week=day_of_week, on_date=on_date)
        start = parse_hhmm(start_time, "start_time")
        end = parse_hhmm(end_time, "end_time")

        self._ensure_slot_free(employee.employee_id, slot)
        return self._schedules.create(
            company_id=actor.company_id,
            employee_id=employee.employee_id,
            slot=slot,
            start_time=start,
            end_time=end,
            is_active=is_active,
            notes=optional_text(notes),
            created_by=actor.user_id,
        )

    def update_schedule(
        self,
        *,
        actor: Actor,
        schedule_id: int,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        day_of_week: Optional[int] = None,
        on_date: Optional[date] = None,
        notes: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> ShiftSchedule:
        self._ensure_planner(actor)
        schedule = self._get_owned(actor, schedule_id)

        slot = schedule.slot
        if day_of_week is not None or on_date is not None:
            slot = make_slot(day_of_week=day_of_week, on_date=on_date)
            if slot != schedule.slot:
                self._ensure_slot_free(schedule.employee_id, slot, ignore_id=schedule.schedule_id)

        updated = dataclasses.replace(
            schedule,
            slot=slot,
            start_time=parse_hhmm(start_time, "start_time") if start_time is not None else schedule.start_time,
            end_time=parse_hhmm(end_time, "end_time") if end_time is not None else schedule.end_time,
            notes=optional_text(notes) if notes is not None else schedule.notes,
            is_active=schedule.is_active if is_active is None else bool(is_active),
        )
        return self._schedules.update(schedule=updated, updated_by=actor.user_id)

    def delete_schedule(self, *, actor: Actor, schedule_id: int) -> None:
        self._ensure_planner(actor)
        schedule = self._get_owned(actor, schedule_id)
        if not self._schedules.delete(schedule_id=schedule.schedule_id):
            raise NotFoundError("Shift schedule not found")

    def list_schedules(
        self,
        *,
        actor: Actor,
        employee_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[ShiftSchedule]:
        if employee_id is None and not (actor.is_owner or actor.is_manager):
            employee_id = actor.employee_id
        if employee_id is not None:
            ensure_can_view(actor, self._directory.get_employee(int(employee_id)))
        return self._schedules.list_active(company_id=actor.company_id, employee_id=employee_id, start=start, end=end)

    # -------- Clock gate --------
    def get_for_date(self, employee_id: int, day: date) -> Optional[ShiftSchedule]:
        """Date-specific slot if one exists, else the recurring slot of that weekday."""
        specific = self._schedules.find_by_slot(employee_id=int(employee_id), slot=DateSpecificSlot(date=day))
        if specific and specific.is_active:
            return specific
        recurring = self._schedules.find_by_slot(
            employee_id=int(employee_id), slot=RecurringSlot(day_of_week=day_of_week(day))
        )
        if recurring and recurring.is_active:
            return recurring
        return None

    def has_shift(self, employee_id: int, day: date) -> bool:
        return self.get_for_date(employee_id, day) is not None

    def is_within_schedule(self, employee_id: int, instant: datetime) -> bool:
        local = self._calendar.localize(instant)
        schedule = self.get_for_date(employee_id, local.date())
        if schedule is None:
            return False
        return schedule.covers(time(local.hour, local.minute, local.second))
