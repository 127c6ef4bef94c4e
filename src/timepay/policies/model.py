from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from ..core.constants import (
    DEFAULT_EMPLOYMENT_CONTRIBUTION_RATE,
    DEFAULT_GRACE_PERIOD_MINUTES,
    DEFAULT_HEALTH_CONTRIBUTION_RATE,
    DEFAULT_MINIMUM_HOURS,
    DEFAULT_ROUNDING_INTERVAL_MINUTES,
)
from ..core.enums import ContributionType, DayType, PolicyType


@dataclass(frozen=True)
class Policy:
    """Stored, versioned policy row. `config` is the raw JSON object."""

    policy_id: int
    company_id: int
    type: PolicyType
    version: int
    is_active: bool
    config: Dict[str, Any]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PolicyModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class AttendanceRules(PolicyModel):
    grace_period_minutes: int = Field(default=DEFAULT_GRACE_PERIOD_MINUTES, ge=0)
    rounding_enabled: bool = True
    rounding_interval: int = Field(default=DEFAULT_ROUNDING_INTERVAL_MINUTES, gt=0)
    minimum_work_hours: Decimal = Field(default=Decimal(DEFAULT_MINIMUM_HOURS), ge=0)


class OvertimeRule(PolicyModel):
    enabled: bool = False
    multiplier: Decimal = Field(default=Decimal("1"), ge=0)
    max_hours: Optional[Decimal] = Field(default=None, ge=0)
    minimum_payment: Decimal = Field(default=Decimal("0"), ge=0)


class OvertimePolicy(PolicyModel):
    rules: Dict[DayType, OvertimeRule] = Field(default_factory=dict)

    def rule_for(self, day_type: DayType) -> OvertimeRule:
        return self.rules.get(day_type) or OvertimeRule()


class LeavePolicy(PolicyModel):
    accrual_method: Optional[str] = None
    manual_quota: bool = False

    @property
    def accrual_disabled(self) -> bool:
        return (self.accrual_method or "").upper() == "NONE"


class ContributionScheme(PolicyModel):
    type: ContributionType = ContributionType.PERCENTAGE
    value: Decimal = Field(ge=0)
    employer_value: Optional[Decimal] = Field(default=None, ge=0)

    @property
    def effective_employer_value(self) -> Decimal:
        return self.value if self.employer_value is None else self.employer_value


_LEGACY_SCHEME_KEYS = {
    "healthInsurance": ("bpjsKesehatan", "bpjsKesehatanRate", "healthRate"),
    "employmentInsurance": ("bpjsKetenagakerjaan", "bpjsKetenagakerjaanRate", "employmentRate"),
}


class PayrollConfig(PolicyModel):
    health_insurance: ContributionScheme = Field(
        default_factory=lambda: ContributionScheme(value=DEFAULT_HEALTH_CONTRIBUTION_RATE)
    )
    employment_insurance: ContributionScheme = Field(
        default_factory=lambda: ContributionScheme(value=DEFAULT_EMPLOYMENT_CONTRIBUTION_RATE)
    )

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key, (scheme_key, rate_key, short_rate_key) in _LEGACY_SCHEME_KEYS.items():
            if key in data or to_snake(key) in data:
                continue
            if scheme_key in data:
                data[key] = data[scheme_key]
            elif rate_key in data:
                data[key] = {"type": "percentage", "value": data[rate_key]}
            elif short_rate_key in data:
                data[key] = {"type": "percentage", "value": data[short_rate_key]}
        return data


def to_snake(camel: str) -> str:
    return "".join("_" + c.lower() if c.isupper() else c for c in camel)


POLICY_MODELS = {
    PolicyType.ATTENDANCE_RULES: AttendanceRules,
    PolicyType.OVERTIME_POLICY: OvertimePolicy,
    PolicyType.LEAVE_POLICY: LeavePolicy,
    PolicyType.PAYROLL_CONFIG: PayrollConfig,
}
