from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import ApprovalStatus, CompensationType, Role


@dataclass(frozen=True)
class OvertimeRequest:
    """Overtime worked on one business day. `duration_minutes` is what was requested, not what was clocked."""

    request_id: int
    employee_id: int
    ot_date: date
    duration_minutes: int
    requested_by: int
    requester_role: Role
    status: ApprovalStatus
    compensation_type: CompensationType = CompensationType.PAYOUT
    calculated_amount: Decimal = Decimal("0")
    reason: Optional[str] = None
    approved_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    rejected_reason: Optional[str] = None
    requested_at: Optional[datetime] = None

    @property
    def hours(self) -> Decimal:
        return Decimal(self.duration_minutes) / Decimal(60)
