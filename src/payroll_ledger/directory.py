"""Employee directory port.

The employee/department directory lives outside this service. The engine
only needs a read-only lookup of base salary and employment status.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, runtime_checkable
from uuid import UUID

from payroll_ledger.exceptions import EmployeeNotFoundError


@dataclass(frozen=True)
class EmployeeRecord:
    """What payroll needs to know about an employee."""

    employee_id: UUID
    base_salary: Decimal
    active: bool = True


@runtime_checkable
class EmployeeDirectory(Protocol):
    """Read-only employee lookup used by the calculation engine."""

    async def lookup(self, employee_id: UUID) -> EmployeeRecord | None:
        ...

    async def employee_exists(self, employee_id: UUID) -> bool:
        ...

    async def get_base_salary(self, employee_id: UUID) -> Decimal:
        ...


class InMemoryEmployeeDirectory:
    """Directory backed by a dict, for wiring, demos, and tests."""

    def __init__(self, records: list[EmployeeRecord] | None = None):
        self._records: dict[UUID, EmployeeRecord] = {}
        for record in records or []:
            self._records[record.employee_id] = record

    def add(
        self, employee_id: UUID, base_salary: Decimal, active: bool = True
    ) -> EmployeeRecord:
        record = EmployeeRecord(employee_id=employee_id, base_salary=base_salary, active=active)
        self._records[employee_id] = record
        return record

    def remove(self, employee_id: UUID) -> None:
        self._records.pop(employee_id, None)

    async def lookup(self, employee_id: UUID) -> EmployeeRecord | None:
        return self._records.get(employee_id)

    async def employee_exists(self, employee_id: UUID) -> bool:
        record = self._records.get(employee_id)
        return record is not None and record.active

    async def get_base_salary(self, employee_id: UUID) -> Decimal:
        record = self._records.get(employee_id)
        if record is None or not record.active:
            raise EmployeeNotFoundError(employee_id)
        return record.base_salary
