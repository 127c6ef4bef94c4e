from __future__ import annotations

from datetime import datetime
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal

from ..policies.model import AttendanceRules


def _minutes_between(start: datetime, end: datetime) -> Decimal:
    return Decimal(str((end - start).total_seconds())) / Decimal(60)


def round_to_nearest(value: Decimal, interval: int) -> int:
    """Round half-up to a multiple of `interval` minutes."""
    steps = (Decimal(value) / Decimal(interval)).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return int(steps) * int(interval)


def compute_duration(clock_in: datetime, clock_out: datetime, rules: AttendanceRules) -> int:
    """Worked minutes between clock-in and clock-out, never negative."""
    minutes = _minutes_between(clock_in, clock_out)
    if rules.rounding_enabled:
        duration = round_to_nearest(minutes, rules.rounding_interval)
    else:
        duration = int(minutes.to_integral_value(rounding=ROUND_FLOOR))
    return max(0, duration)


def late_minutes(clock_in: datetime, scheduled_start: datetime, grace_minutes: int) -> int:
    offset = int(_minutes_between(scheduled_start, clock_in))
    return offset if offset > grace_minutes else 0


def early_out_minutes(clock_out: datetime, scheduled_end: datetime, grace_minutes: int) -> int:
    offset = int(_minutes_between(clock_out, scheduled_end))
    return offset if offset > grace_minutes else 0
