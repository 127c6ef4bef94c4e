"""Guards shared by every approval flow (attendance adjustments, leave, overtime).

All requests move PENDING -> APPROVED | REJECTED; only PENDING requests can
be decided, edited or withdrawn, and only their requester may edit or
withdraw them.
"""

from __future__ import annotations

from typing import Optional

from ..common.validators import require_non_empty
from ..core.context import Actor
from ..core.enums import ApprovalStatus, Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError
from ..employees.model import Employee


def ensure_same_company(actor: Actor, subject: Optional[Employee], what: str = "Employee") -> Employee:
    if subject is None or subject.company_id != actor.company_id:
        raise NotFoundError(f"{what} not found")
    return subject


def ensure_pending(status: ApprovalStatus, verb: str = "process") -> None:
    if status != ApprovalStatus.PENDING:
        raise ConflictError(f"Can only {verb} pending requests (current status: {status.value})")


def ensure_requester(actor: Actor, requested_by: int, verb: str = "modify") -> None:
    if int(requested_by) != int(actor.user_id):
        raise AuthorizationError(f"You can only {verb} your own requests")


def require_reason(reason: Optional[str]) -> str:
    return require_non_empty(reason or "", "Rejection reason")


def authorize_decision(actor: Actor, *, subject: Employee, requester_role: Role) -> None:
    """Who may approve or reject a request about `subject`.

    Requests raised by a manager escalate to the owner. Otherwise a manager
    may decide for direct reports only; the owner may always decide.
    """
    ensure_same_company(actor, subject)
    if actor.is_owner:
        return
    if not actor.is_manager:
        raise AuthorizationError("Only owners and managers can approve or reject requests")
    if requester_role == Role.MANAGER:
        raise AuthorizationError("Requests raised by a manager can only be decided by the owner")
    if actor.employee_id is None or subject.manager_id != actor.employee_id:
        raise AuthorizationError("Can only decide requests of direct reports")


def _has_access(actor: Actor, subject: Employee) -> bool:
    if actor.is_owner or subject.employee_id == actor.employee_id:
        return True
    return actor.is_manager and actor.employee_id is not None and subject.manager_id == actor.employee_id


def ensure_can_view(actor: Actor, subject: Optional[Employee]) -> Employee:
    subject = ensure_same_company(actor, subject)
    if not _has_access(actor, subject):
        raise AuthorizationError("Access denied")
    return subject


def ensure_can_act_for(actor: Actor, subject: Optional[Employee]) -> Employee:
    """Raising a request about someone else's records is limited to their manager (and the owner)."""
    subject = ensure_same_company(actor, subject)
    if not _has_access(actor, subject):
        raise AuthorizationError("You can only raise requests for your own records")
    return subject
