from datetime import date, time

import pytest

from timepay.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from timepay.schedules.model import DateSpecificSlot, RecurringSlot


def test_manager_plans_recurring_and_dated_shifts(schedule_service, manager, employee):
    weekly = schedule_service.create_schedule(
        actor=manager, employee_id=employee.employee_id, day_of_week=3, start_time="08:00", end_time="17:00"
    )
    dated = schedule_service.create_schedule(
        actor=manager,
        employee_id=employee.employee_id,
        on_date=date(2025, 3, 5),
        start_time="12:00",
        end_time="20:00",
        notes="  stocktake ",
    )
    assert weekly.slot == RecurringSlot(day_of_week=3)
    assert dated.slot == DateSpecificSlot(date=date(2025, 3, 5))
    assert dated.notes == "stocktake"

    assert schedule_service.get_for_date(employee.employee_id, date(2025, 3, 5)) == dated
    assert schedule_service.get_for_date(employee.employee_id, date(2025, 3, 12)) == weekly
    assert schedule_service.get_for_date(employee.employee_id, date(2025, 3, 13)) is None
    assert schedule_service.has_shift(employee.employee_id, date(2025, 3, 19))
    assert not schedule_service.has_shift(employee.employee_id, date(2025, 3, 20))


def test_slot_is_unique_per_employee(schedule_service, manager, employee):
    schedule_service.create_schedule(
        actor=manager, employee_id=employee.employee_id, day_of_week=1, start_time="08:00", end_time="17:00"
    )
    with pytest.raises(ConflictError):
        schedule_service.create_schedule(
            actor=manager, employee_id=employee.employee_id, day_of_week=1, start_time="09:00", end_time="18:00"
        )


def test_slot_must_be_exactly_one_kind(schedule_service, manager, employee):
    with pytest.raises(ValidationError):
        schedule_service.create_schedule(
            actor=manager, employee_id=employee.employee_id, start_time="08:00", end_time="17:00"
        )
    with pytest.raises(ValidationError):
        schedule_service.create_schedule(
            actor=manager,
            employee_id=employee.employee_id,
            day_of_week=1,
            on_date=date(2025, 3, 3),
            start_time="08:00",
            end_time="17:00",
        )
    with pytest.raises(ValidationError):
        schedule_service.create_schedule(
            actor=manager, employee_id=employee.employee_id, day_of_week=7, start_time="08:00", end_time="17:00"
        )
    with pytest.raises(ValidationError):
        schedule_service.create_schedule(
            actor=manager, employee_id=employee.employee_id, day_of_week=2, start_time="8am", end_time="17:00"
        )


def test_employees_cannot_plan_but_see_their_own(schedule_service, manager, employee):
    with pytest.raises(AuthorizationError):
        schedule_service.create_schedule(
            actor=employee, employee_id=employee.employee_id, day_of_week=2, start_time="08:00", end_time="17:00"
        )
    schedule_service.create_schedule(
        actor=manager, employee_id=employee.employee_id, day_of_week=2, start_time="08:00", end_time="17:00"
    )
    assert len(schedule_service.list_schedules(actor=employee)) == 1


def test_update_and_delete(schedule_service, manager, employee):
    schedule = schedule_service.create_schedule(
        actor=manager, employee_id=employee.employee_id, day_of_week=2, start_time="08:00", end_time="17:00"
    )
    updated = schedule_service.update_schedule(actor=manager, schedule_id=schedule.schedule_id, end_time="16:00")
    assert updated.end_time == time(16, 0)
    assert updated.slot == schedule.slot

    schedule_service.delete_schedule(actor=manager, schedule_id=schedule.schedule_id)
    with pytest.raises(NotFoundError):
        schedule_service.delete_schedule(actor=manager, schedule_id=schedule.schedule_id)
