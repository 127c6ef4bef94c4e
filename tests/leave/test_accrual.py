from decimal import Decimal

from timepay.leave.accrual import accrue, fixed_allowance
from timepay.leave.model import LeaveBalance, LeaveType

ANNUAL = LeaveType(
    leave_type_id=1,
    company_id=1,
    code="ANNUAL",
    name="Annual leave",
    accrual_rate=Decimal("1"),
    max_balance=Decimal("12"),
    carryover_allowed=True,
    carryover_max=Decimal("5"),
)


def _balance(year, month, balance):
    return LeaveBalance(employee_id=3, leave_type_id=1, period_year=year, period_month=month, balance=Decimal(balance))


def test_monthly_accrual_adds_rate_to_previous_balance():
    result = accrue(ANNUAL, _balance(2025, 2, 5), 2025, 3)
    assert result.accrued == Decimal("1")
    assert result.entitlement == Decimal("6")
    assert result.available(Decimal("2")) == Decimal("4")


def test_accrual_is_capped_at_max_balance():
    assert accrue(ANNUAL, _balance(2025, 2, 12), 2025, 3).entitlement == Decimal("12")


def test_first_month_starts_from_zero():
    assert accrue(ANNUAL, None, 2025, 3).entitlement == Decimal("1")


def test_january_carries_over_capped_december_balance():
    result = accrue(ANNUAL, _balance(2024, 12, 8), 2025, 1, reference_balance=Decimal("8"))
    assert result.carried_over == Decimal("5")
    assert result.entitlement == Decimal("14")


def test_no_carryover_outside_january_or_when_disabled():
    assert accrue(ANNUAL, _balance(2025, 1, 8), 2025, 2, reference_balance=Decimal("8")).carried_over == 0
    no_carry = LeaveType(leave_type_id=2, company_id=1, code="SICK", name="Sick", accrual_rate=Decimal("1"))
    assert accrue(no_carry, None, 2025, 1, reference_balance=Decimal("8")).carried_over == 0


def test_old_balance_expires_all_at_once():
    expiring = LeaveType(
        leave_type_id=3, company_id=1, code="COMP", name="Comp", accrual_rate=Decimal("0"), expires_after_months=3
    )
    assert accrue(expiring, _balance(2025, 1, 4), 2025, 3).expired == 0
    result = accrue(expiring, _balance(2024, 12, 4), 2025, 3)
    assert result.expired == Decimal("4")
    assert result.entitlement == Decimal("0")


def test_fixed_allowance_uses_cap_or_unlimited():
    assert fixed_allowance(ANNUAL).entitlement == Decimal("12")
    unlimited = LeaveType(leave_type_id=4, company_id=1, code="UNPAID", name="Unpaid", is_paid=False)
    assert fixed_allowance(unlimited).entitlement == Decimal("999")
