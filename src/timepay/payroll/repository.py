from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional, Protocol, Sequence, Tuple

from ..core.enums import PayrollStatus
from ..employees.model import Employment
from .model import PayrollCalculation, PayrollItem, PayrollRun


class PayrollRepository(Protocol):
    # -------- Runs --------
    def get_run(self, run_id: int) -> Optional[PayrollRun]:
        raise NotImplementedError

    def find_run(self, *, company_id: int, year: int, month: int) -> Optional[PayrollRun]:
        raise NotImplementedError

    def list_runs(self, *, company_id: int) -> Sequence[PayrollRun]:
        raise NotImplementedError

    def create_run(
        self,
        *,
        company_id: int,
        year: int,
        month: int,
        notes: Optional[str],
        created_by: int,
    ) -> PayrollRun:
        raise NotImplementedError

    def update_run(self, run: PayrollRun) -> bool:
        """Period and notes of an unlocked run; False when the run is locked or gone."""

        raise NotImplementedError

    def set_total(self, run_id: int, total: Decimal) -> None:
        raise NotImplementedError

    def transition(
        self,
        *,
        run_id: int,
        from_statuses: Iterable[PayrollStatus],
        to_status: PayrollStatus,
        actor_id: int,
        total: Optional[Decimal] = None,
    ) -> bool:
        raise NotImplementedError

    def delete_run(self, run_id: int) -> bool:
        """Delete an unlocked run together with its items."""

        raise NotImplementedError

    # -------- Items --------
    def create_item(
        self,
        *,
        run_id: int,
        employee_id: int,
        employment: Employment,
        calculation: PayrollCalculation,
    ) -> PayrollItem:
        raise NotImplementedError

    def get_item(self, item_id: int) -> Optional[PayrollItem]:
        raise NotImplementedError

    def find_item(self, *, run_id: int, employee_id: int) -> Optional[PayrollItem]:
        raise NotImplementedError

    def list_items(self, run_id: int) -> Sequence[PayrollItem]:
        raise NotImplementedError

    def update_item(self, item: PayrollItem) -> None:
        raise NotImplementedError

    def list_employee_items(
        self, *, employee_id: int, statuses: Iterable[PayrollStatus]
    ) -> Sequence[Tuple[PayrollRun, PayrollItem]]:
        raise NotImplementedError
