"""Statutory health and employment insurance contributions."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ...common.money import ZERO, quantize_money
from ...core.enums import ContributionType
from ...policies.model import ContributionScheme

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class ContributionSplit:
    employee: Decimal
    employer: Decimal


NO_CONTRIBUTION = ContributionSplit(employee=ZERO, employer=ZERO)


def _amount(scheme_type: ContributionType, value: Decimal, base_pay: Decimal) -> Decimal:
    if scheme_type == ContributionType.PERCENTAGE:
        return quantize_money(base_pay * value / HUNDRED)
    return quantize_money(value)


def contribution(scheme: ContributionScheme, base_pay: Decimal, *, enrolled: bool) -> ContributionSplit:
    """Percentage schemes apply to base pay only; fixed schemes are flat amounts.

    Nothing is due when the employee is not enrolled.
    """
    if not enrolled:
        return NO_CONTRIBUTION
    return ContributionSplit(
        employee=_amount(scheme.type, scheme.value, base_pay),
        employer=_amount(scheme.type, scheme.effective_employer_value, base_pay),
    )
