from datetime import date
from decimal import Decimal

from timepay.core.enums import DayType, EmploymentType
from timepay.employees.model import Employment
from timepay.overtime.calculator import classify_day, compute_pay, hourly_equivalent
from timepay.policies.model import OvertimeRule

MONTHLY = Employment(employee_id=3, type=EmploymentType.MONTHLY, base_salary=Decimal("3460000"))
WEEKDAY_RULE = OvertimeRule(enabled=True, multiplier=Decimal("1.5"))


def test_classify_day():
    assert classify_day(date(2025, 3, 5)) == DayType.WEEKDAY
    assert classify_day(date(2025, 3, 8)) == DayType.WEEKEND
    assert classify_day(date(2025, 3, 9)) == DayType.WEEKEND
    assert classify_day(date(2025, 3, 5), is_holiday=True) == DayType.HOLIDAY


def test_hourly_equivalent_by_employment_type():
    assert hourly_equivalent(MONTHLY) == Decimal("20000")
    daily = Employment(employee_id=3, type=EmploymentType.DAILY, daily_rate=Decimal("200000"))
    assert hourly_equivalent(daily) == Decimal("25000")
    hourly = Employment(employee_id=3, type=EmploymentType.HOURLY, hourly_rate=Decimal("30000"))
    assert hourly_equivalent(hourly) == Decimal("30000")
    assert hourly_equivalent(Employment(employee_id=3, type=EmploymentType.HOURLY)) == Decimal("0")


def test_monthly_weekday_overtime():
    assert compute_pay(120, MONTHLY, WEEKDAY_RULE) == Decimal("60000.00")


def test_hours_are_capped_by_rule():
    rule = OvertimeRule(enabled=True, multiplier=Decimal("1.5"), max_hours=Decimal("1"))
    assert compute_pay(180, MONTHLY, rule) == Decimal("30000.00")


def test_minimum_payment_lifts_small_amounts():
    rule = OvertimeRule(enabled=True, multiplier=Decimal("1.5"), minimum_payment=Decimal("50000"))
    assert compute_pay(30, MONTHLY, rule) == Decimal("50000.00")


def test_disabled_rule_pays_nothing():
    assert compute_pay(120, MONTHLY, OvertimeRule()) == Decimal("0")
