from decimal import Decimal

import pytest

from timepay.core.enums import AuditAction, ContributionType, DayType, PolicyType
from timepay.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from timepay.policies.model import PayrollConfig


def test_payroll_config_accepts_legacy_rate_keys():
    config = PayrollConfig.model_validate({"bpjsKesehatanRate": 4, "employmentRate": "1.5"})
    assert config.health_insurance.type == ContributionType.PERCENTAGE
    assert config.health_insurance.value == Decimal("4")
    assert config.employment_insurance.value == Decimal("1.5")


def test_payroll_config_prefers_current_keys():
    config = PayrollConfig.model_validate(
        {
            "healthInsurance": {"type": "fixed", "value": 50000, "employerValue": 150000},
            "bpjsKesehatanRate": 4,
        }
    )
    assert config.health_insurance.type == ContributionType.FIXED
    assert config.health_insurance.effective_employer_value == Decimal("150000")
    assert config.employment_insurance.value == Decimal("2")


def test_defaults_when_no_policy(policy_service, owner):
    rules = policy_service.attendance_rules(owner.company_id)
    assert rules.grace_period_minutes == 15
    assert rules.rounding_interval == 15
    assert policy_service.leave_policy(owner.company_id).manual_quota is False
    with pytest.raises(NotFoundError):
        policy_service.overtime_policy(owner.company_id)


def test_new_version_supersedes_active(policy_service, owner, audit_sink):
    first = policy_service.create_policy(
        actor=owner, policy_type=PolicyType.ATTENDANCE_RULES, config={"gracePeriodMinutes": 5}
    )
    second = policy_service.create_policy(
        actor=owner, policy_type=PolicyType.ATTENDANCE_RULES, config={"gracePeriodMinutes": 10}
    )
    assert (first.version, second.version) == (1, 2)
    assert policy_service.attendance_rules(owner.company_id).grace_period_minutes == 10
    assert policy_service.get_active_config(actor=owner, policy_type=PolicyType.ATTENDANCE_RULES).policy_id == (
        second.policy_id
    )
    assert [e.action for e in audit_sink.events] == [AuditAction.CREATE, AuditAction.CREATE]


def test_reactivating_old_version(policy_service, owner, policy_repo):
    first = policy_service.create_policy(actor=owner, policy_type=PolicyType.LEAVE_POLICY, config={})
    policy_service.create_policy(actor=owner, policy_type=PolicyType.LEAVE_POLICY, config={"manualQuota": True})
    assert policy_service.leave_policy(owner.company_id).manual_quota is True

    policy_service.update_policy(actor=owner, policy_id=first.policy_id, is_active=True)
    active = [p for p in policy_repo.list_for_company(company_id=owner.company_id) if p.is_active]
    assert [p.policy_id for p in active] == [first.policy_id]


def test_overtime_policy_parses_rules_per_day_type(policy_service, owner):
    policy_service.create_policy(
        actor=owner,
        policy_type=PolicyType.OVERTIME_POLICY,
        config={"rules": {"WEEKDAY": {"enabled": True, "multiplier": "1.5", "maxHours": 3}}},
    )
    policy = policy_service.overtime_policy(owner.company_id)
    assert policy.rule_for(DayType.WEEKDAY).multiplier == Decimal("1.5")
    assert policy.rule_for(DayType.WEEKDAY).max_hours == Decimal("3")
    assert policy.rule_for(DayType.HOLIDAY).enabled is False


def test_invalid_config_is_rejected(policy_service, owner):
    with pytest.raises(ValidationError):
        policy_service.create_policy(
            actor=owner, policy_type=PolicyType.ATTENDANCE_RULES, config={"gracePeriodMinutes": -1}
        )
    with pytest.raises(ValidationError):
        policy_service.create_policy(actor=owner, policy_type=PolicyType.ATTENDANCE_RULES, config=["nope"])


def test_only_owner_manages_policies(policy_service, manager):
    with pytest.raises(AuthorizationError):
        policy_service.create_policy(actor=manager, policy_type=PolicyType.LEAVE_POLICY, config={})
