from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable

from ...attendance.model import AttendanceRecord
from ...common.money import ZERO, quantize_money, to_decimal
from ...core.enums import AttendanceStatus, CompensationType, EmploymentType
from ...overtime.model import OvertimeRequest
from ..model import PayrollCalculation, PayrollInput
from .base import PayrollCalculator, gross_of, net_of
from .contributions import contribution

SIXTY = Decimal("60")
HALF = Decimal("0.5")

_PAID_STATUSES = (AttendanceStatus.PRESENT, AttendanceStatus.HALF_DAY)


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: base pay by employment type plus approved payout overtime and contract bonuses."""

    def worked_minutes(self, record: AttendanceRecord) -> Decimal:
        if record.status not in _PAID_STATUSES:
            return ZERO
        if record.work_duration:
            return Decimal(max(record.work_duration, 0))
        if record.clock_in and record.clock_out:
            seconds = int((record.clock_out - record.clock_in).total_seconds())
            if seconds > 0:
                return Decimal(seconds) / SIXTY
        return ZERO

    def total_hours(self, attendance: Iterable[AttendanceRecord]) -> Decimal:
        return sum((self.worked_minutes(r) for r in attendance), ZERO) / SIXTY

    @staticmethod
    def worked_days(attendance: Iterable[AttendanceRecord]) -> Decimal:
        days = ZERO
        for r in attendance:
            if r.status == AttendanceStatus.PRESENT:
                days += 1
            elif r.status == AttendanceStatus.HALF_DAY:
                days += HALF
        return days

    @staticmethod
    def overtime_payout(overtime: Iterable[OvertimeRequest]) -> Decimal:
        return sum(
            (ot.calculated_amount for ot in overtime if ot.compensation_type == CompensationType.PAYOUT),
            ZERO,
        )

    def calculate(self, inp: PayrollInput) -> PayrollCalculation:
        employment = inp.employment
        hours = self.total_hours(inp.attendance)
        breakdown: Dict[str, Any] = {
            "attendances": len(inp.attendance),
            "totalHours": quantize_money(hours),
            "overtimeHours": quantize_money(sum((ot.hours for ot in inp.overtime), ZERO)),
            "employmentType": employment.type,
        }

        if employment.type == EmploymentType.MONTHLY:
            base_pay = to_decimal(employment.base_salary)
        elif employment.type == EmploymentType.HOURLY:
            base_pay = to_decimal(employment.hourly_rate) * hours
        else:
            days = self.worked_days(inp.attendance)
            daily_rate = to_decimal(employment.daily_rate)
            base_pay = daily_rate * days
            breakdown["totalDays"] = days
            breakdown["dailyRate"] = daily_rate
        base_pay = quantize_money(base_pay)

        overtime_pay = quantize_money(self.overtime_payout(inp.overtime))
        allowances = quantize_money(inp.allowances)
        bonuses = quantize_money(inp.bonuses)
        deductions = quantize_money(inp.deductions)
        transport_bonus = quantize_money(to_decimal(employment.transport_bonus))
        lunch_bonus = quantize_money(to_decimal(employment.lunch_bonus))
        holiday_bonus = quantize_money(to_decimal(employment.holiday_bonus))

        gross = gross_of(
            base_pay=base_pay,
            overtime_pay=overtime_pay,
            allowances=allowances,
            bonuses=bonuses,
            transport_bonus=transport_bonus,
            lunch_bonus=lunch_bonus,
            holiday_bonus=holiday_bonus,
            deductions=deductions,
        )

        enrolled = employment.has_statutory_insurance
        health = contribution(inp.config.health_insurance, base_pay, enrolled=enrolled)
        employment_ins = contribution(inp.config.employment_insurance, base_pay, enrolled=enrolled)
        # withholding tax is entered manually per item
        withholding_tax = ZERO

        net = net_of(
            gross_pay=gross,
            health_employee=health.employee,
            employment_employee=employment_ins.employee,
            withholding_tax=withholding_tax,
        )
        return PayrollCalculation(
            base_pay=base_pay,
            overtime_pay=overtime_pay,
            allowances=allowances,
            bonuses=bonuses,
            transport_bonus=transport_bonus,
            lunch_bonus=lunch_bonus,
            holiday_bonus=holiday_bonus,
            deductions=deductions,
            health_employee=health.employee,
            health_employer=health.employer,
            employment_employee=employment_ins.employee,
            employment_employer=employment_ins.employer,
            withholding_tax=withholding_tax,
            gross_pay=gross,
            net_pay=net,
            breakdown=breakdown,
        )
