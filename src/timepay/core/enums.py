from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    OWNER = "OWNER"
    MANAGER = "MANAGER"
    STOCK_MANAGER = "STOCK_MANAGER"
    SUPERVISOR = "SUPERVISOR"
    EMPLOYEE = "EMPLOYEE"


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    HALF_DAY = "HALF_DAY"
    ON_LEAVE = "ON_LEAVE"


class ApprovalStatus(str, Enum):
    """Approval workflow state shared by adjustment, leave and overtime requests."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class EmploymentType(str, Enum):
    MONTHLY = "MONTHLY"
    HOURLY = "HOURLY"
    DAILY = "DAILY"


class EmployeeStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    TERMINATED = "TERMINATED"


class CompensationType(str, Enum):
    PAYOUT = "PAYOUT"
    TIME_IN_LIEU = "TIME_IN_LIEU"


class PolicyType(str, Enum):
    ATTENDANCE_RULES = "ATTENDANCE_RULES"
    OVERTIME_POLICY = "OVERTIME_POLICY"
    LEAVE_POLICY = "LEAVE_POLICY"
    PAYROLL_CONFIG = "PAYROLL_CONFIG"


class PayrollStatus(str, Enum):
    """Payroll run lifecycle. LOCKED and PAID runs are immutable."""

    DRAFT = "DRAFT"
    PROCESSING = "PROCESSING"
    LOCKED = "LOCKED"
    PAID = "PAID"


class DayType(str, Enum):
    WEEKDAY = "WEEKDAY"
    WEEKEND = "WEEKEND"
    HOLIDAY = "HOLIDAY"


class ContributionType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    LOCK = "LOCK"
    PAY = "PAY"
