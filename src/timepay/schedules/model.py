from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Optional, Union

from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class RecurringSlot:
    """Repeats every week on `day_of_week` (0 = Sunday)."""

    day_of_week: int


@dataclass(frozen=True)
class DateSpecificSlot:
    """Applies to one calendar date and overrides the recurring slot of that weekday."""

    date: date


Slot = Union[RecurringSlot, DateSpecificSlot]


def make_slot(*, day_of_week: Optional[int] = None, on_date: Optional[date] = None) -> Slot:
    if day_of_week is None and on_date is None:
        raise ValidationError("Either day_of_week (recurring) or date (specific date) must be provided")
    if day_of_week is not None and on_date is not None:
        raise ValidationError("Cannot specify both day_of_week and date")
    if on_date is not None:
        return DateSpecificSlot(date=on_date)
    if not 0 <= int(day_of_week) <= 6:
        raise ValidationError("day_of_week must be between 0 (Sunday) and 6 (Saturday)")
    return RecurringSlot(day_of_week=int(day_of_week))


@dataclass(frozen=True)
class ShiftSchedule:
    schedule_id: int
    employee_id: int
    company_id: int
    slot: Slot
    start_time: time
    end_time: time
    is_active: bool = True
    notes: Optional[str] = None

    @property
    def is_overnight(self) -> bool:
        return self.end_time <= self.start_time

    def covers(self, moment: time) -> bool:
        if self.is_overnight:
            return moment >= self.start_time or moment <= self.end_time
        return self.start_time <= moment <= self.end_time
