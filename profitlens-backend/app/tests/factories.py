from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from app.models import (
    Assignment,
    EmployeeRecord,
    ProjectExtension,
    ProjectRecord,
    SalaryRecord,
    StatusChange,
)


def utc(year: int, month: int, day: int, hour: int = 0) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def project(
    project_id: str = "p-1",
    *,
    start: date = date(2024, 5, 1),
    end: date = date(2024, 5, 10),
    budget: str = "5000.00",
    status: str = "in-progress",
    completion: Optional[date] = None,
    extensions=(),
    history=(),
    assignments=(),
) -> ProjectRecord:
    return ProjectRecord(
        id=project_id,
        name=f"Project {project_id}",
        client_id="c-1",
        start_date=start,
        end_date=end,
        completion_date=completion,
        budget=Decimal(budget),
        status=status,
        extensions=tuple(extensions),
        status_history=tuple(history),
        assignments=tuple(assignments),
    )


def employee(employee_id: str = "e-1", *, salary: Optional[str] = None, history=()) -> EmployeeRecord:
    return EmployeeRecord(
        id=employee_id,
        name=f"Employee {employee_id}",
        salary=Decimal(salary) if salary is not None else None,
        salary_history=tuple(history),
    )


def salary_record(employee_id: str, label: str, amount: str, effective_from: date) -> SalaryRecord:
    return SalaryRecord(
        employee_id=employee_id,
        financial_year=label,
        annual_salary=Decimal(amount),
        effective_from=effective_from,
    )


def assigned(employee_id: str, start: datetime, end: Optional[datetime] = None) -> Assignment:
    return Assignment(employee_id=employee_id, assigned_at=start, unassigned_at=end)


def status_event(status: str, changed_at: datetime) -> StatusChange:
    return StatusChange(status=status, changed_at=changed_at)


def extension(ext_id: str, **kwargs) -> ProjectExtension:
    return ProjectExtension(id=ext_id, **kwargs)
