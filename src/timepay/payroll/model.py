from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..core.enums import EmploymentType, PayrollStatus
from ..employees.model import Employee, Employment
from ..overtime.model import OvertimeRequest
from ..policies.model import PayrollConfig

ZERO = Decimal("0")


@dataclass(frozen=True)
class PayrollRun:
    run_id: int
    company_id: int
    period_year: int
    period_month: int
    status: PayrollStatus
    total_amount: Decimal = ZERO
    notes: Optional[str] = None
    run_date: Optional[datetime] = None
    created_by: Optional[int] = None
    locked_by: Optional[int] = None
    locked_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None

    @property
    def is_locked(self) -> bool:
        return self.status in (PayrollStatus.LOCKED, PayrollStatus.PAID)


@dataclass(frozen=True)
class PayrollInput:
    """Everything the calculator needs for one employee and period."""

    employee_id: int
    period_year: int
    period_month: int
    employment: Employment
    attendance: Sequence[AttendanceRecord]
    overtime: Sequence[OvertimeRequest]
    config: PayrollConfig
    allowances: Decimal = ZERO
    bonuses: Decimal = ZERO
    deductions: Decimal = ZERO


@dataclass(frozen=True)
class PayrollCalculation:
    base_pay: Decimal
    overtime_pay: Decimal
    allowances: Decimal
    bonuses: Decimal
    transport_bonus: Decimal
    lunch_bonus: Decimal
    holiday_bonus: Decimal
    deductions: Decimal
    health_employee: Decimal
    health_employer: Decimal
    employment_employee: Decimal
    employment_employer: Decimal
    withholding_tax: Decimal
    gross_pay: Decimal
    net_pay: Decimal
    breakdown: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PayrollItem:
    """Frozen pay snapshot of one employee in one run."""

    item_id: int
    run_id: int
    employee_id: int
    employment_type: EmploymentType
    base_salary: Optional[Decimal]
    hourly_rate: Optional[Decimal]
    daily_rate: Optional[Decimal]
    base_pay: Decimal
    overtime_pay: Decimal
    allowances: Decimal
    bonuses: Decimal
    transport_bonus: Decimal
    lunch_bonus: Decimal
    holiday_bonus: Decimal
    deductions: Decimal
    health_employee: Decimal
    health_employer: Decimal
    employment_employee: Decimal
    employment_employer: Decimal
    withholding_tax: Decimal
    gross_pay: Decimal
    net_pay: Decimal
    breakdown: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Payslip:
    run: PayrollRun
    employee: Employee
    item: PayrollItem


@dataclass(frozen=True)
class PayrollRunDetail:
    run: PayrollRun
    items: Sequence[PayrollItem]
