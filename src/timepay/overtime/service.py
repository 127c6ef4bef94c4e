from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..audit.model import AuditedResult
from ..audit.recorder import AuditRecorder, audited
from ..common.datetime_utils import BusinessCalendar, DateInput
from ..common.validators import optional_text, require_positive_int
from ..core.context import Actor
from ..core.enums import ApprovalStatus, AuditAction, CompensationType
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..core.transactions import NullTransactionManager, TransactionManager
from ..employees.model import Employee
from ..employees.repository import EmployeeDirectory
from ..policies.service import PolicyService
from ..requests.workflow import (
    authorize_decision,
    ensure_can_act_for,
    ensure_can_view,
    ensure_pending,
    ensure_requester,
    require_reason,
)
from .calculator import classify_day, compute_pay
from .model import OvertimeRequest
from .repository import OvertimeRepository

logger = logging.getLogger(__name__)


def _snapshot(req: OvertimeRequest) -> dict:
    return {
        "otDate": req.ot_date,
        "durationMinutes": req.duration_minutes,
        "compensationType": req.compensation_type,
        "calculatedAmount": req.calculated_amount,
        "status": req.status,
    }


def _compensation(value) -> CompensationType:
    try:
        return CompensationType(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown compensation type: {value}") from exc


class OvertimeService:
    def __init__(
        self,
        overtime: OvertimeRepository,
        directory: EmployeeDirectory,
        policies: PolicyService,
        calendar: BusinessCalendar,
        *,
        audit: Optional[AuditRecorder] = None,
        tx: Optional[TransactionManager] = None,
    ):
        self._overtime = overtime
        self._directory = directory
        self._policies = policies
        self._calendar = calendar
        self._audit = audit or AuditRecorder()
        self._tx = tx or NullTransactionManager()

    def calculate_amount(self, employee: Employee, ot_date: date, duration_minutes: int) -> Decimal:
        """Pay for the overtime under the company's current policy."""
        employment = self._directory.get_employment(employee.employee_id)
        if employment is None:
            raise ValidationError("Employee has no employment contract")
        policy = self._policies.overtime_policy(employee.company_id)
        is_holiday = self._directory.is_public_holiday(employee.company_id, ot_date)
        rule = policy.rule_for(classify_day(ot_date, is_holiday))
        return compute_pay(duration_minutes, employment, rule)

    def _validated_date(self, ot_date: DateInput, now: Optional[datetime]) -> date:
        day = self._calendar.normalize_to_business_day(ot_date)
        if day > self._calendar.today_business_day(now):
            raise ValidationError("Overtime cannot be requested for a future date")
        return day

    def _ensure_no_active(self, employee_id: int, day: date, exclude_request_id: Optional[int] = None) -> None:
        existing = self._overtime.find_active(
            employee_id=employee_id, ot_date=day, exclude_request_id=exclude_request_id
        )
        if existing:
            raise ConflictError("An overtime request already exists for this date")

    def _get(self, actor: Actor, request_id: int) -> OvertimeRequest:
        req = self._overtime.get_by_id(int(request_id))
        if not req:
            raise NotFoundError("Overtime request not found")
        employee = self._directory.get_employee(req.employee_id)
        if not employee or employee.company_id != actor.company_id:
            raise NotFoundError("Overtime request not found")
        return req

    @audited(AuditAction.CREATE, "OvertimeRequest")
    def create_overtime_request(
        self,
        *,
        actor: Actor,
        ot_date: DateInput,
        duration_minutes: int,
        reason: Optional[str] = None,
        compensation_type=CompensationType.PAYOUT,
        employee_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> AuditedResult:
        target = employee_id if employee_id is not None else actor.employee_id
        if target is None:
            raise ValidationError("Your account has no employee profile")
        employee = ensure_can_act_for(actor, self._directory.get_employee(int(target)))
        day = self._validated_date(ot_date, now)
        minutes = require_positive_int(duration_minutes, "duration_minutes")
        compensation = _compensation(compensation_type)

        self._ensure_no_active(employee.employee_id, day)
        amount = self.calculate_amount(employee, day, minutes)
        req = self._overtime.create(
            employee_id=employee.employee_id,
            ot_date=day,
            duration_minutes=minutes,
            reason=optional_text(reason),
            compensation_type=compensation,
            calculated_amount=amount,
            requested_by=actor.user_id,
            requester_role=actor.role,
        )
        logger.info("Overtime request %s created for employee %s (%s)", req.request_id, employee.employee_id, amount)
        return AuditedResult(value=req, entity_id=req.request_id, after=_snapshot(req))

    def list_overtime_requests(
        self,
        *,
        actor: Actor,
        employee_id: Optional[int] = None,
        start: Optional[DateInput] = None,
        end: Optional[DateInput] = None,
    ) -> Sequence[OvertimeRequest]:
        target = employee_id if employee_id is not None else actor.employee_id
        if target is None:
            raise ValidationError("employee_id is required")
        employee = ensure_can_view(actor, self._directory.get_employee(int(target)))
        return self._overtime.list_for_employee(
            employee_id=employee.employee_id,
            start=self._calendar.normalize_to_business_day(start) if start is not None else None,
            end=self._calendar.normalize_to_business_day(end) if end is not None else None,
        )

    @audited(AuditAction.APPROVE, "OvertimeRequest")
    def approve_overtime_request(self, *, actor: Actor, request_id: int) -> AuditedResult:
        req = self._get(actor, request_id)
        subject = self._directory.get_employee(req.employee_id)
        authorize_decision(actor, subject=subject, requester_role=req.requester_role)
        ensure_pending(req.status, "approve")

        amount = self.calculate_amount(subject, req.ot_date, req.duration_minutes)
        with self._tx.transaction():
            if not self._overtime.decide(
                request_id=req.request_id,
                status=ApprovalStatus.APPROVED,
                decided_by=actor.user_id,
                calculated_amount=amount,
            ):
                raise ConflictError("Overtime request already processed")

        approved = self._overtime.get_by_id(req.request_id)
        return AuditedResult(
            value=approved,
            entity_id=req.request_id,
            before=_snapshot(req),
            after={"status": ApprovalStatus.APPROVED, "calculatedAmount": amount, "approvedBy": actor.user_id},
        )

    @audited(AuditAction.REJECT, "OvertimeRequest")
    def reject_overtime_request(self, *, actor: Actor, request_id: int, reason: str) -> AuditedResult:
        req = self._get(actor, request_id)
        subject = self._directory.get_employee(req.employee_id)
        authorize_decision(actor, subject=subject, requester_role=req.requester_role)
        ensure_pending(req.status, "reject")
        reason = require_reason(reason)

        if not self._overtime.decide(
            request_id=req.request_id,
            status=ApprovalStatus.REJECTED,
            decided_by=actor.user_id,
            rejected_reason=reason,
        ):
            raise ConflictError("Overtime request already processed")

        return AuditedResult(
            value=self._overtime.get_by_id(req.request_id),
            entity_id=req.request_id,
            before={"status": req.status},
            after={"status": ApprovalStatus.REJECTED, "rejectedReason": reason},
            reason=reason,
        )

    @audited(AuditAction.UPDATE, "OvertimeRequest")
    def update_overtime_request(
        self,
        *,
        actor: Actor,
        request_id: int,
        ot_date: Optional[DateInput] = None,
        duration_minutes: Optional[int] = None,
        reason: Optional[str] = None,
        compensation_type=None,
        now: Optional[datetime] = None,
    ) -> AuditedResult:
        req = self._get(actor, request_id)
        ensure_requester(actor, req.requested_by, "update")
        ensure_pending(req.status, "update")

        day = self._validated_date(ot_date, now) if ot_date is not None else req.ot_date
        minutes = (
            require_positive_int(duration_minutes, "duration_minutes")
            if duration_minutes is not None
            else req.duration_minutes
        )
        if day != req.ot_date:
            self._ensure_no_active(req.employee_id, day, exclude_request_id=req.request_id)

        subject = self._directory.get_employee(req.employee_id)
        changed = dataclasses.replace(
            req,
            ot_date=day,
            duration_minutes=minutes,
            reason=optional_text(reason) if reason is not None else req.reason,
            compensation_type=(
                _compensation(compensation_type) if compensation_type is not None else req.compensation_type
            ),
            calculated_amount=self.calculate_amount(subject, day, minutes),
        )
        if not self._overtime.update_pending(changed):
            raise ConflictError("Can only update pending requests")
        return AuditedResult(value=changed, entity_id=req.request_id, before=_snapshot(req), after=_snapshot(changed))

    @audited(AuditAction.DELETE, "OvertimeRequest")
    def delete_overtime_request(self, *, actor: Actor, request_id: int) -> AuditedResult:
        req = self._get(actor, request_id)
        ensure_requester(actor, req.requested_by, "delete")
        ensure_pending(req.status, "delete")

        if not self._overtime.delete_pending(req.request_id):
            raise ConflictError("Can only delete pending requests")
        return AuditedResult(value=None, entity_id=req.request_id, before=_snapshot(req))
