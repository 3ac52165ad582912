"""Salary lookups scoped to financial years (April 1 to March 31)."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..models import EmployeeRecord, SalaryRecord
from .dates import as_date

DAYS_PER_YEAR = 365
FY_START_MONTH = 4


def financial_year_start(day: date) -> int:
    return day.year if day.month >= FY_START_MONTH else day.year - 1


def financial_year_label(day: date) -> str:
    """``date(2024, 5, 1)`` -> ``"2024-25"``; ``date(2025, 3, 31)`` -> ``"2024-25"``."""
    start = financial_year_start(day)
    return f"{start}-{(start + 1) % 100:02d}"


def legacy_financial_year_label(day: date) -> str:
    """Older records spell the year out in full: ``"2024-2025"``."""
    start = financial_year_start(day)
    return f"{start}-{start + 1}"


class SalarySource(str, enum.Enum):
    EXACT_MATCH = "exact_match"
    LEGACY_LABEL_MATCH = "legacy_label_match"
    ANY_RECORD_MATCH = "any_record_match"
    LEGACY_FLAT_FIELD = "legacy_flat_field"
    NO_DATA = "no_data"


@dataclass(frozen=True)
class SalaryResolution:
    source: SalarySource
    annual_amount: float = 0.0
    record: Optional[SalaryRecord] = None

    @property
    def daily_rate(self) -> float:
        return self.annual_amount / DAYS_PER_YEAR

    @property
    def has_cost(self) -> bool:
        return self.annual_amount > 0


NO_SALARY = SalaryResolution(SalarySource.NO_DATA)


def _to_float(value) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(Decimal(str(value)))
    except (InvalidOperation, ValueError):
        return None


def _latest_effective(records: Iterable[SalaryRecord], day: date) -> Optional[SalaryRecord]:
    best: Optional[SalaryRecord] = None
    best_from: Optional[date] = None
    for record in records:
        effective_from = as_date(record.effective_from)
        if effective_from is None or effective_from > day:
            continue
        if best_from is None or effective_from >= best_from:
            best, best_from = record, effective_from
    return best


def resolve_salary(employee: Optional[EmployeeRecord], day: date) -> SalaryResolution:
    """Annual salary in force for ``employee`` on ``day``.

    Tries records labelled with the day's financial year, then the legacy
    long-form label, then any record for the employee, taking the latest
    effective-from on or before ``day`` within the first tier that has one.
    Falls back to the flat ``salary`` field, then to NO_DATA (zero cost).
    """
    if employee is None:
        return NO_SALARY

    history: Sequence[SalaryRecord] = employee.salary_history
    label = financial_year_label(day)
    legacy_label = legacy_financial_year_label(day)
    tiers: List[Tuple[SalarySource, Iterable[SalaryRecord]]] = [
        (SalarySource.EXACT_MATCH, [r for r in history if r.financial_year == label]),
        (SalarySource.LEGACY_LABEL_MATCH, [r for r in history if r.financial_year == legacy_label]),
        (SalarySource.ANY_RECORD_MATCH, history),
    ]
    for source, candidates in tiers:
        record = _latest_effective(candidates, day)
        if record is None:
            continue
        amount = _to_float(record.annual_salary)
        if amount is None:
            continue
        return SalaryResolution(source=source, annual_amount=amount, record=record)

    flat = _to_float(employee.salary)
    if flat is not None and flat > 0:
        return SalaryResolution(source=SalarySource.LEGACY_FLAT_FIELD, annual_amount=flat)
    return NO_SALARY


class SalaryResolver:
    """Memoised salary lookups for a single report computation."""

    def __init__(self, employees: Iterable[EmployeeRecord]):
        self._employees: Dict[str, EmployeeRecord] = {emp.id: emp for emp in employees}
        self._memo: Dict[Tuple[str, date], SalaryResolution] = {}

    def resolve(self, employee_id: str, day: date) -> SalaryResolution:
        key = (employee_id, day)
        cached = self._memo.get(key)
        if cached is not None:
            return cached
        resolution = resolve_salary(self._employees.get(employee_id), day)
        self._memo[key] = resolution
        return resolution

    def daily_rate(self, employee_id: str, day: date) -> float:
        return self.resolve(employee_id, day).daily_rate

    @property
    def lookups(self) -> int:
        return len(self._memo)
