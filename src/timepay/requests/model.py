from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ApprovalStatus, Role


@dataclass(frozen=True)
class AdjustmentRequest:
    """Proposed replacement clock times for one attendance record.

    `requested_by` is the user who raised it (the employee or their manager);
    `requester_role` is that user's role when the request was raised.
    """

    adjustment_id: int
    attendance_id: int
    employee_id: int
    requested_by: int
    requester_role: Role
    reason: str
    status: ApprovalStatus
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    approved_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    rejected_reason: Optional[str] = None
    requested_at: Optional[datetime] = None
