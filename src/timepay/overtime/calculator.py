"""Overtime pay.

Pay is `hourly rate x hours x multiplier`, hours optionally capped per day
type, lifted to the rule's minimum payment when one is configured.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from ..common.datetime_utils import day_of_week
from ..common.money import ZERO, quantize_money
from ..core.constants import STANDARD_DAILY_HOURS, STANDARD_MONTHLY_HOURS, WEEKEND_DAYS
from ..core.enums import DayType, EmploymentType
from ..employees.model import Employment
from ..policies.model import OvertimeRule


def classify_day(day: date, is_holiday: bool = False) -> DayType:
    if is_holiday:
        return DayType.HOLIDAY
    if day_of_week(day) in WEEKEND_DAYS:
        return DayType.WEEKEND
    return DayType.WEEKDAY


def hourly_equivalent(employment: Employment) -> Decimal:
    """Hourly rate implied by the contract; zero when the contract has no rate for its type."""
    if employment.type == EmploymentType.MONTHLY:
        rate, divisor = employment.base_salary, STANDARD_MONTHLY_HOURS
    elif employment.type == EmploymentType.DAILY:
        rate, divisor = employment.daily_rate, STANDARD_DAILY_HOURS
    else:
        rate, divisor = employment.hourly_rate, Decimal("1")
    if not rate:
        return ZERO
    return Decimal(rate) / divisor


def compute_pay(duration_minutes: int, employment: Employment, rule: OvertimeRule) -> Decimal:
    if not rule.enabled:
        return ZERO

    hours = Decimal(max(int(duration_minutes), 0)) / Decimal(60)
    if rule.max_hours:
        hours = min(hours, rule.max_hours)

    pay = hourly_equivalent(employment) * hours * rule.multiplier
    if rule.minimum_payment > 0:
        pay = max(pay, rule.minimum_payment)
    return quantize_money(pay)
