from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..attendance.calculator import compute_duration
from ..attendance.repository import AttendanceRepository
from ..audit.model import AuditedResult
from ..audit.recorder import AuditRecorder, audited
from ..common.datetime_utils import BusinessCalendar
from ..common.validators import require_non_empty
from ..core.context import Actor
from ..core.enums import ApprovalStatus, AuditAction
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..core.transactions import NullTransactionManager, TransactionManager
from ..employees.repository import EmployeeDirectory
from ..policies.service import PolicyService
from .model import AdjustmentRequest
from .repository import AdjustmentRepository
from .workflow import (
    authorize_decision,
    ensure_can_act_for,
    ensure_can_view,
    ensure_pending,
    ensure_requester,
    require_reason,
)

logger = logging.getLogger(__name__)


def _snapshot(adj: AdjustmentRequest) -> dict:
    return {
        "attendanceId": adj.attendance_id,
        "clockIn": adj.clock_in,
        "clockOut": adj.clock_out,
        "reason": adj.reason,
        "status": adj.status,
    }


class AdjustmentService:
    """Attendance adjustment requests and their settlement onto attendance records."""

    def __init__(
        self,
        adjustments: AdjustmentRepository,
        attendance: AttendanceRepository,
        directory: EmployeeDirectory,
        policies: PolicyService,
        calendar: BusinessCalendar,
        *,
        audit: Optional[AuditRecorder] = None,
        tx: Optional[TransactionManager] = None,
    ):
        self._adjustments = adjustments
        self._attendance = attendance
        self._directory = directory
        self._policies = policies
        self._calendar = calendar
        self._audit = audit or AuditRecorder()
        self._tx = tx or NullTransactionManager()

    def _localize(self, value: Optional[datetime]) -> Optional[datetime]:
        return self._calendar.localize(value) if value is not None else None

    def _validated_times(self, clock_in: Optional[datetime], clock_out: Optional[datetime]) -> tuple:
        clock_in, clock_out = self._localize(clock_in), self._localize(clock_out)
        if clock_in is None and clock_out is None:
            raise ValidationError("Provide at least one of clock-in or clock-out")
        if clock_in is not None and clock_out is not None and clock_out <= clock_in:
            raise ValidationError("Clock-out must be after clock-in")
        return clock_in, clock_out

    def _get(self, actor: Actor, adjustment_id: int) -> AdjustmentRequest:
        adj = self._adjustments.get_by_id(int(adjustment_id))
        if not adj:
            raise NotFoundError("Adjustment request not found")
        employee = self._directory.get_employee(adj.employee_id)
        if not employee or employee.company_id != actor.company_id:
            raise NotFoundError("Adjustment request not found")
        return adj

    @audited(AuditAction.CREATE, "AttendanceAdjustment")
    def request_adjustment(
        self,
        *,
        actor: Actor,
        attendance_id: int,
        reason: str,
        clock_in: Optional[datetime] = None,
        clock_out: Optional[datetime] = None,
    ) -> AuditedResult:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFoundError("Attendance not found")
        ensure_can_act_for(actor, self._directory.get_employee(record.employee_id))
        reason = require_non_empty(reason, "Reason")
        clock_in, clock_out = self._validated_times(clock_in, clock_out)

        existing = self._adjustments.get_for_attendance(record.attendance_id)
        if existing is not None:
            if existing.status != ApprovalStatus.REJECTED:
                raise ConflictError("An adjustment request already exists for this attendance record")
            ensure_requester(actor, existing.requested_by, "resubmit")
            ok = self._adjustments.resubmit(
                adjustment_id=existing.adjustment_id,
                requested_by=actor.user_id,
                requester_role=actor.role,
                clock_in=clock_in,
                clock_out=clock_out,
                reason=reason,
            )
            if not ok:
                raise ConflictError("Adjustment request was modified concurrently")
            adj = self._adjustments.get_by_id(existing.adjustment_id)
            return AuditedResult(value=adj, entity_id=adj.adjustment_id, before=_snapshot(existing), after=_snapshot(adj), reason=reason)

        adj = self._adjustments.create(
            attendance_id=record.attendance_id,
            employee_id=record.employee_id,
            requested_by=actor.user_id,
            requester_role=actor.role,
            clock_in=clock_in,
            clock_out=clock_out,
            reason=reason,
        )
        return AuditedResult(value=adj, entity_id=adj.adjustment_id, after=_snapshot(adj), reason=reason)

    def list_adjustments(self, *, actor: Actor, employee_id: int) -> Sequence[AdjustmentRequest]:
        employee = ensure_can_view(actor, self._directory.get_employee(int(employee_id)))
        return self._adjustments.list_for_employee(employee.employee_id)

    @audited(AuditAction.APPROVE, "AttendanceAdjustment")
    def approve_adjustment(self, *, actor: Actor, adjustment_id: int) -> AuditedResult:
        adj = self._get(actor, adjustment_id)
        authorize_decision(actor, subject=self._directory.get_employee(adj.employee_id), requester_role=adj.requester_role)
        ensure_pending(adj.status, "approve")

        record = self._attendance.get_by_id(adj.attendance_id)
        if not record:
            raise NotFoundError("Attendance not found")
        clock_in = adj.clock_in or record.clock_in
        clock_out = adj.clock_out or record.clock_out
        if clock_in is not None and clock_out is not None and clock_out <= clock_in:
            raise ValidationError("Adjusted clock-out must be after clock-in")

        duration = record.work_duration
        if clock_in is not None and clock_out is not None:
            rules = self._policies.attendance_rules(actor.company_id)
            duration = compute_duration(clock_in, clock_out, rules)

        with self._tx.transaction():
            if not self._adjustments.decide(
                adjustment_id=adj.adjustment_id, status=ApprovalStatus.APPROVED, decided_by=actor.user_id
            ):
                raise ConflictError("Adjustment already processed")
            updated = self._attendance.apply_adjustment(
                attendance_id=record.attendance_id,
                clock_in=clock_in,
                clock_out=clock_out,
                work_duration=duration,
                adjustment_request_id=adj.adjustment_id,
            )

        logger.info("Adjustment %s approved by user %s", adj.adjustment_id, actor.user_id)
        return AuditedResult(
            value=updated,
            entity_id=adj.adjustment_id,
            before={"status": adj.status, "clockIn": record.clock_in, "clockOut": record.clock_out},
            after={"status": ApprovalStatus.APPROVED, "clockIn": updated.clock_in, "clockOut": updated.clock_out},
        )

    @audited(AuditAction.REJECT, "AttendanceAdjustment")
    def reject_adjustment(self, *, actor: Actor, adjustment_id: int, reason: str) -> AuditedResult:
        adj = self._get(actor, adjustment_id)
        authorize_decision(actor, subject=self._directory.get_employee(adj.employee_id), requester_role=adj.requester_role)
        ensure_pending(adj.status, "reject")
        reason = require_reason(reason)

        if not self._adjustments.decide(
            adjustment_id=adj.adjustment_id,
            status=ApprovalStatus.REJECTED,
            decided_by=actor.user_id,
            rejected_reason=reason,
        ):
            raise ConflictError("Adjustment already processed")

        rejected = self._adjustments.get_by_id(adj.adjustment_id)
        return AuditedResult(
            value=rejected,
            entity_id=adj.adjustment_id,
            before={"status": adj.status},
            after={"status": ApprovalStatus.REJECTED, "rejectedReason": reason},
            reason=reason,
        )

    @audited(AuditAction.UPDATE, "AttendanceAdjustment")
    def update_adjustment(
        self,
        *,
        actor: Actor,
        adjustment_id: int,
        clock_in: Optional[datetime] = None,
        clock_out: Optional[datetime] = None,
        reason: Optional[str] = None,
    ) -> AuditedResult:
        adj = self._get(actor, adjustment_id)
        ensure_requester(actor, adj.requested_by, "update")
        ensure_pending(adj.status, "update")

        new_in, new_out = self._validated_times(
            clock_in if clock_in is not None else adj.clock_in,
            clock_out if clock_out is not None else adj.clock_out,
        )
        new_reason = require_non_empty(reason, "Reason") if reason is not None else adj.reason
        if not self._adjustments.update_pending(
            adjustment_id=adj.adjustment_id, clock_in=new_in, clock_out=new_out, reason=new_reason
        ):
            raise ConflictError("Can only update pending requests")

        updated = self._adjustments.get_by_id(adj.adjustment_id)
        return AuditedResult(value=updated, entity_id=adj.adjustment_id, before=_snapshot(adj), after=_snapshot(updated))

    @audited(AuditAction.DELETE, "AttendanceAdjustment")
    def delete_adjustment(self, *, actor: Actor, adjustment_id: int) -> AuditedResult:
        adj = self._get(actor, adjustment_id)
        ensure_requester(actor, adj.requested_by, "delete")
        ensure_pending(adj.status, "delete")

        if not self._adjustments.delete_pending(adj.adjustment_id):
            raise ConflictError("Can only delete pending requests")
        return AuditedResult(value=None, entity_id=adj.adjustment_id, before=_snapshot(adj))
