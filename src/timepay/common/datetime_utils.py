from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo

from ..core.constants import DEFAULT_BUSINESS_TIMEZONE, NON_WORKING_WEEKDAY
from ..core.exceptions import ValidationError

DateInput = Union[datetime, date, str]


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date (expected YYYY-MM-DD): {value!r}")


def day_of_week(value: date) -> int:
    """0 = Sunday, 1 = Monday, ..., 6 = Saturday."""
    return value.isoweekday() % 7


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """First and last calendar day of a month."""
    if not 1 <= int(month) <= 12:
        raise ValidationError("Month must be between 1 and 12")
    last = calendar.monthrange(int(year), int(month))[1]
    return date(int(year), int(month), 1), date(int(year), int(month), last)


def previous_period(year: int, month: int) -> Tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def months_between(start_year: int, start_month: int, end_year: int, end_month: int) -> int:
    return (end_year - start_year) * 12 + (end_month - start_month)


def count_leave_days(start: date, end: date) -> int:
    """Inclusive day count between two dates, skipping the weekly non-working day."""
    if end < start:
        raise ValidationError("End date must be on or after start date")
    days = 0
    current = start
    while current <= end:
        if day_of_week(current) != NON_WORKING_WEEKDAY:
            days += 1
        current += timedelta(days=1)
    return days


class BusinessCalendar:
    """Maps instants onto the company's business days.

    Every calendar date stored by the engine (attendance day, leave and
    overtime dates) is a business day in a single fixed timezone. Naive
    datetimes are taken to be business-local already.
    """

    def __init__(self, timezone: str = DEFAULT_BUSINESS_TIMEZONE):
        self._tz = ZoneInfo(timezone)

    @property
    def tz(self) -> ZoneInfo:
        return self._tz

    def now(self) -> datetime:
        return datetime.now(self._tz)

    def localize(self, instant: datetime) -> datetime:
        if instant.tzinfo is None:
            return instant.replace(tzinfo=self._tz)
        return instant.astimezone(self._tz)

    def normalize_to_business_day(self, value: DateInput) -> date:
        if isinstance(value, datetime):
            return self.localize(value).date()
        if isinstance(value, date):
            return value
        if isinstance(value, str):
            text = value.strip()
            if len(text) == 10:
                return parse_iso_date(text)
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                raise ValidationError(f"Invalid date: {value!r}")
            return self.localize(parsed).date()
        raise ValidationError(f"Unsupported date value: {value!r}")

    def today_business_day(self, now: Optional[datetime] = None) -> date:
        return self.normalize_to_business_day(now or self.now())

    def day_of_week(self, value: DateInput) -> int:
        return day_of_week(self.normalize_to_business_day(value))
