"""Read-only snapshot of the portfolio consumed by the profit/loss engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Optional, Tuple


PROJECT_STATUSES: Tuple[str, ...] = ("planning", "in-progress", "completed", "on-hold", "cancelled")


@dataclass(frozen=True)
class ProjectExtension:
    id: str
    new_end_date: Optional[date] = None
    extended_budget: Optional[Decimal] = None
    actual_completion_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class StatusChange:
    status: str
    changed_at: datetime
    notes: Optional[str] = None


@dataclass(frozen=True)
class Assignment:
    employee_id: str
    assigned_at: datetime
    unassigned_at: Optional[datetime] = None


@dataclass(frozen=True)
class ProjectRecord:
    id: str
    name: str
    start_date: date
    end_date: date
    budget: Decimal
    status: str = "planning"
    client_id: Optional[str] = None
    completion_date: Optional[date] = None
    extensions: Tuple[ProjectExtension, ...] = ()
    status_history: Tuple[StatusChange, ...] = ()
    assignments: Tuple[Assignment, ...] = ()

    @property
    def assigned_employee_ids(self) -> frozenset:
        return frozenset(a.employee_id for a in self.assignments)


@dataclass(frozen=True)
class SalaryRecord:
    employee_id: str
    financial_year: str
    annual_salary: Decimal
    effective_from: date


@dataclass(frozen=True)
class EmployeeRecord:
    id: str
    name: str
    salary: Optional[Decimal] = None
    salary_history: Tuple[SalaryRecord, ...] = ()


@dataclass(frozen=True)
class PortfolioSnapshot:
    projects: Tuple[ProjectRecord, ...] = ()
    employees: Tuple[EmployeeRecord, ...] = ()
    fetched_at: Optional[datetime] = None

    _employee_index: Dict[str, EmployeeRecord] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_employee_index", {emp.id: emp for emp in self.employees})

    def employee(self, employee_id: str) -> Optional[EmployeeRecord]:
        return self._employee_index.get(employee_id)
