from __future__ import annotations

from datetime import date, time
from typing import Optional, Protocol, Sequence

from .model import ShiftSchedule, Slot


class ScheduleRepository(Protocol):
    def get_by_id(self, *, schedule_id: int) -> Optional[ShiftSchedule]:
        raise NotImplementedError

    def find_by_slot(self, *, employee_id: int, slot: Slot) -> Optional[ShiftSchedule]:
        """Any schedule (active or not) occupying the slot."""

        raise NotImplementedError

    def list_active(
        self,
        *,
        company_id: int,
        employee_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[ShiftSchedule]:
        """Active schedules; with a range, recurring slots plus date-specific slots inside it."""

        raise NotImplementedError

    def create(
        self,
        *,
        company_id: int,
        employee_id: int,
        slot: Slot,
        start_time: time,
        end_time: time,
        is_active: bool,
        notes: Optional[str],
        created_by: int,
    ) -> ShiftSchedule:
        raise NotImplementedError

    def update(self, *, schedule: ShiftSchedule, updated_by: int) -> ShiftSchedule:
        raise NotImplementedError

    def delete(self, *, schedule_id: int) -> bool:
        raise NotImplementedError
