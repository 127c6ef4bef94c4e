"""Monthly leave accrual.

Balances are recomputed from the previous month's stored balance every time
they are read, so the same inputs always produce the same figures.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import months_between
from ..core.constants import CARRYOVER_MONTH, UNLIMITED_LEAVE_BALANCE
from .model import LeaveBalance, LeaveType

ZERO = Decimal("0")


@dataclass(frozen=True)
class AccrualResult:
    entitlement: Decimal
    accrued: Decimal
    carried_over: Decimal
    expired: Decimal

    def available(self, used: Decimal) -> Decimal:
        return self.entitlement - used


def expired_amount(leave_type: LeaveType, previous: Optional[LeaveBalance], year: int, month: int) -> Decimal:
    """All-or-nothing expiry of the previous balance once it is old enough."""
    months = leave_type.expires_after_months or 0
    if months <= 0 or previous is None:
        return ZERO
    age = months_between(previous.period_year, previous.period_month, year, month)
    return previous.balance if age >= months else ZERO


def carried_over_amount(leave_type: LeaveType, month: int, reference_balance: Optional[Decimal]) -> Decimal:
    if not leave_type.carryover_allowed or month != CARRYOVER_MONTH or reference_balance is None:
        return ZERO
    cap = leave_type.carryover_max if leave_type.carryover_max is not None else ZERO
    return min(reference_balance, cap)


def accrue(
    leave_type: LeaveType,
    previous: Optional[LeaveBalance],
    year: int,
    month: int,
    reference_balance: Optional[Decimal] = None,
) -> AccrualResult:
    """Entitlement for (year, month) before this month's usage is deducted.

    `reference_balance` is last December's balance and only matters in January.
    """
    accrued = leave_type.accrual_rate or ZERO
    previous_balance = previous.balance if previous is not None else ZERO

    capped = previous_balance + accrued
    if leave_type.max_balance is not None:
        capped = min(capped, leave_type.max_balance)

    carried_over = carried_over_amount(leave_type, month, reference_balance)
    expired = expired_amount(leave_type, previous, year, month)
    return AccrualResult(
        entitlement=capped + carried_over - expired,
        accrued=accrued,
        carried_over=carried_over,
        expired=expired,
    )


def fixed_allowance(leave_type: LeaveType) -> AccrualResult:
    """Entitlement when the company disables accrual: the cap, or an effectively unlimited allowance."""
    cap = leave_type.max_balance if leave_type.max_balance is not None else UNLIMITED_LEAVE_BALANCE
    return AccrualResult(entitlement=cap, accrued=ZERO, carried_over=ZERO, expired=ZERO)
