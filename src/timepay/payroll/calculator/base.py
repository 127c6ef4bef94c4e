from __future__ import annotations

import dataclasses
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Mapping

from ...attendance.model import AttendanceRecord
from ...common.money import quantize_money
from ...common.validators import require_non_negative_decimal
from ...core.exceptions import ValidationError
from ..model import PayrollCalculation, PayrollInput, PayrollItem

OVERRIDABLE_FIELDS = (
    "allowances",
    "bonuses",
    "transport_bonus",
    "lunch_bonus",
    "holiday_bonus",
    "deductions",
    "withholding_tax",
)


def gross_of(
    *,
    base_pay: Decimal,
    overtime_pay: Decimal,
    allowances: Decimal,
    bonuses: Decimal,
    transport_bonus: Decimal,
    lunch_bonus: Decimal,
    holiday_bonus: Decimal,
    deductions: Decimal,
) -> Decimal:
    return base_pay + overtime_pay + allowances + bonuses + transport_bonus + lunch_bonus + holiday_bonus - deductions


def net_of(*, gross_pay: Decimal, health_employee: Decimal, employment_employee: Decimal, withholding_tax: Decimal) -> Decimal:
    return gross_pay - health_employee - employment_employee - withholding_tax


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def worked_minutes(self, record: AttendanceRecord) -> Decimal:
        raise NotImplementedError

    @abstractmethod
    def calculate(self, inp: PayrollInput) -> PayrollCalculation:
        raise NotImplementedError

    def apply_overrides(self, item: PayrollItem, overrides: Mapping[str, Any]) -> PayrollItem:
        """Replace manual components and re-derive gross and net from the stored figures.

        Base pay, overtime pay and contributions are never recomputed here.
        """
        unknown = set(overrides) - set(OVERRIDABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot override: {', '.join(sorted(unknown))}")

        values = {
            key: quantize_money(require_non_negative_decimal(value, key))
            for key, value in overrides.items()
            if value is not None
        }
        changed = dataclasses.replace(item, **values)
        gross = gross_of(
            base_pay=changed.base_pay,
            overtime_pay=changed.overtime_pay,
            allowances=changed.allowances,
            bonuses=changed.bonuses,
            transport_bonus=changed.transport_bonus,
            lunch_bonus=changed.lunch_bonus,
            holiday_bonus=changed.holiday_bonus,
            deductions=changed.deductions,
        )
        net = net_of(
            gross_pay=gross,
            health_employee=changed.health_employee,
            employment_employee=changed.employment_employee,
            withholding_tax=changed.withholding_tax,
        )
        return dataclasses.replace(changed, gross_pay=gross, net_pay=net)
