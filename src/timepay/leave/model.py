from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import ApprovalStatus, Role


@dataclass(frozen=True)
class LeaveType:
    leave_type_id: int
    company_id: int
    code: str
    name: str
    is_paid: bool = True
    max_balance: Optional[Decimal] = None
    accrual_rate: Optional[Decimal] = None
    carryover_allowed: bool = False
    carryover_max: Optional[Decimal] = None
    expires_after_months: Optional[int] = None
    requires_attachment: bool = False
    is_active: bool = True


@dataclass(frozen=True)
class LeaveBalance:
    """Balance of one leave type for one employee and month. `balance` is what is still available."""

    employee_id: int
    leave_type_id: int
    period_year: int
    period_month: int
    balance: Decimal
    accrued: Decimal = Decimal("0")
    used: Decimal = Decimal("0")
    carried_over: Decimal = Decimal("0")
    expired: Decimal = Decimal("0")


@dataclass(frozen=True)
class LeaveRequest:
    request_id: int
    employee_id: int
    leave_type_id: int
    start_date: date
    end_date: date
    days: Decimal
    requested_by: int
    requester_role: Role
    status: ApprovalStatus
    reason: Optional[str] = None
    attachment_url: Optional[str] = None
    approved_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    rejected_reason: Optional[str] = None
    requested_at: Optional[datetime] = None
