from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence, Type, TypeVar

import pydantic

from ..audit.model import AuditedResult
from ..audit.recorder import AuditRecorder, audited
from ..core.context import Actor
from ..core.enums import AuditAction, PolicyType
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.transactions import NullTransactionManager, TransactionManager
from .model import (
    POLICY_MODELS,
    AttendanceRules,
    LeavePolicy,
    OvertimePolicy,
    PayrollConfig,
    Policy,
    PolicyModel,
)
from .repository import PolicyRepository

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=PolicyModel)


def parse_policy_config(model: Type[M], config: Dict[str, Any]) -> M:
    try:
        return model.model_validate(config or {})
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid {model.__name__} configuration: {exc.errors()[0]['msg']}") from exc


class PolicyService:
    """Versioned, company-scoped policy store.

    Raw JSON configs are parsed into typed models here and nowhere else.
    """

    def __init__(
        self,
        policies: PolicyRepository,
        *,
        audit: Optional[AuditRecorder] = None,
        tx: Optional[TransactionManager] = None,
    ):
        self._policies = policies
        self._audit = audit or AuditRecorder()
        self._tx = tx or NullTransactionManager()

    def _active_model(self, company_id: int, policy_type: PolicyType, model: Type[M]) -> Optional[M]:
        policy = self._policies.get_active(company_id=int(company_id), policy_type=policy_type)
        if not policy:
            return None
        return parse_policy_config(model, policy.config)

    def attendance_rules(self, company_id: int) -> AttendanceRules:
        return self._active_model(company_id, PolicyType.ATTENDANCE_RULES, AttendanceRules) or AttendanceRules()

    def overtime_policy(self, company_id: int) -> OvertimePolicy:
        policy = self._active_model(company_id, PolicyType.OVERTIME_POLICY, OvertimePolicy)
        if policy is None:
            raise NotFoundError("No active overtime policy for this company")
        return policy

    def leave_policy(self, company_id: int) -> LeavePolicy:
        return self._active_model(company_id, PolicyType.LEAVE_POLICY, LeavePolicy) or LeavePolicy()

    def payroll_config(self, company_id: int) -> PayrollConfig:
        return self._active_model(company_id, PolicyType.PAYROLL_CONFIG, PayrollConfig) or PayrollConfig()

    # -------- Policy management --------
    def list_policies(self, *, actor: Actor) -> Sequence[Policy]:
        return self._policies.list_for_company(company_id=actor.company_id)

    def get_active_config(self, *, actor: Actor, policy_type: PolicyType) -> Policy:
        policy = self._policies.get_active(company_id=actor.company_id, policy_type=policy_type)
        if not policy:
            raise NotFoundError(f"Active policy of type {policy_type.value} not found")
        return policy

    @audited(AuditAction.CREATE, "Policy")
    def create_policy(
        self,
        *,
        actor: Actor,
        policy_type: PolicyType,
        config: Dict[str, Any],
        is_active: bool = True,
    ) -> AuditedResult:
        if not actor.is_owner:
            raise AuthorizationError("Only the owner can manage policies")
        if not isinstance(config, dict):
            raise ValidationError("Policy config must be an object")
        parse_policy_config(POLICY_MODELS[policy_type], config)

        with self._tx.transaction():
            version = self._policies.latest_version(company_id=actor.company_id, policy_type=policy_type) + 1
            if is_active:
                self._policies.deactivate_all(company_id=actor.company_id, policy_type=policy_type)
            policy = self._policies.create(
                company_id=actor.company_id,
                policy_type=policy_type,
                version=version,
                config=config,
                is_active=is_active,
            )

        logger.info("Policy %s v%s created for company %s", policy_type.value, version, actor.company_id)
        return AuditedResult(
            value=policy,
            entity_id=policy.policy_id,
            after={"type": policy.type, "version": policy.version, "isActive": policy.is_active, "config": config},
        )

    @audited(AuditAction.UPDATE, "Policy")
    def update_policy(
        self,
        *,
        actor: Actor,
        policy_id: int,
        config: Optional[Dict[str, Any]] = None,
        is_active: Optional[bool] = None,
    ) -> AuditedResult:
        if not actor.is_owner:
            raise AuthorizationError("Only the owner can manage policies")

        policy = self._policies.get_by_id(policy_id=int(policy_id))
        if not policy or policy.company_id != actor.company_id:
            raise NotFoundError("Policy not found")
        if config is not None:
            if not isinstance(config, dict):
                raise ValidationError("Policy config must be an object")
            parse_policy_config(POLICY_MODELS[policy.type], config)

        with self._tx.transaction():
            if is_active and not policy.is_active:
                self._policies.deactivate_all(company_id=actor.company_id, policy_type=policy.type)
            updated = self._policies.update(policy_id=policy.policy_id, config=config, is_active=is_active)

        return AuditedResult(
            value=updated,
            entity_id=updated.policy_id,
            before={"config": policy.config, "isActive": policy.is_active},
            after={"config": updated.config, "isActive": updated.is_active},
        )
