from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from ..common.geofence import GeofenceConfig
from ..core.enums import EmployeeStatus, EmploymentType, Role


@dataclass(frozen=True)
class Company:
    company_id: int
    name: str
    geofence: GeofenceConfig = field(default_factory=lambda: GeofenceConfig(enabled=False))


@dataclass(frozen=True)
class Employee:
    employee_id: int
    company_id: int
    user_id: int
    full_name: str
    role: Role
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    manager_id: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE


@dataclass(frozen=True)
class Employment:
    """Employment contract terms that drive pay."""

    employee_id: int
    type: EmploymentType
    base_salary: Optional[Decimal] = None
    hourly_rate: Optional[Decimal] = None
    daily_rate: Optional[Decimal] = None
    has_statutory_insurance: bool = False
    transport_bonus: Optional[Decimal] = None
    lunch_bonus: Optional[Decimal] = None
    holiday_bonus: Optional[Decimal] = None
