from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal
from time import perf_counter
from typing import Dict, List

from psycopg.rows import dict_row

from ..db import pool
from ..models import (
    Assignment,
    EmployeeRecord,
    PortfolioSnapshot,
    ProjectExtension,
    ProjectRecord,
    SalaryRecord,
    StatusChange,
)
from ..services.dates import as_date, as_utc_datetime

logger = logging.getLogger(__name__)


class PortfolioRepo:
    """Read-only access to projects, assignments and salary history."""

    def fetch_snapshot(self) -> PortfolioSnapshot:
        start = perf_counter()
        with pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute("SET search_path TO profitlens, public")
                cur.execute(
                    """
                    SELECT id, name, client_id, start_date, end_date, completion_date, budget, status
                    FROM profitlens.projects
                    ORDER BY created_at DESC
                    """
                )
                project_rows = cur.fetchall()
                cur.execute(
                    """
                    SELECT id, project_id, new_end_date, extended_budget, actual_completion_date, notes, created_at
                    FROM profitlens.project_extensions
                    ORDER BY created_at DESC
                    """
                )
                extension_rows = cur.fetchall()
                cur.execute(
                    """
                    SELECT project_id, status, changed_at, notes
                    FROM profitlens.project_status_events
                    ORDER BY changed_at, id
                    """
                )
                status_rows = cur.fetchall()
                cur.execute(
                    """
                    SELECT project_id, employee_id, assigned_at, unassigned_at
                    FROM profitlens.project_employees
                    ORDER BY assigned_at
                    """
                )
                assignment_rows = cur.fetchall()
                cur.execute(
                    """
                    SELECT id, name, salary
                    FROM profitlens.employees
                    ORDER BY name
                    """
                )
                employee_rows = cur.fetchall()
                cur.execute(
                    """
                    SELECT employee_id, financial_year, annual_salary, effective_from
                    FROM profitlens.employee_salaries
                    ORDER BY effective_from
                    """
                )
                salary_rows = cur.fetchall()
        elapsed = (perf_counter() - start) * 1000
        logger.debug(
            "fetch_snapshot projects=%s extensions=%s status_events=%s assignments=%s employees=%s salaries=%s elapsed_ms=%.2f",
            len(project_rows),
            len(extension_rows),
            len(status_rows),
            len(assignment_rows),
            len(employee_rows),
            len(salary_rows),
            elapsed,
        )
        return build_snapshot(
            project_rows,
            extension_rows,
            status_rows,
            assignment_rows,
            employee_rows,
            salary_rows,
        )


def build_snapshot(
    project_rows: List[dict],
    extension_rows: List[dict],
    status_rows: List[dict],
    assignment_rows: List[dict],
    employee_rows: List[dict],
    salary_rows: List[dict],
) -> PortfolioSnapshot:
    extensions: Dict[str, List[ProjectExtension]] = defaultdict(list)
    for row in extension_rows:
        extensions[row["project_id"]].append(
            ProjectExtension(
                id=str(row["id"]),
                new_end_date=as_date(row.get("new_end_date")),
                extended_budget=_decimal(row.get("extended_budget")),
                actual_completion_date=as_date(row.get("actual_completion_date")),
                notes=row.get("notes"),
                created_at=as_utc_datetime(row.get("created_at")),
            )
        )

    history: Dict[str, List[StatusChange]] = defaultdict(list)
    for row in status_rows:
        changed_at = as_utc_datetime(row.get("changed_at"))
        if changed_at is None:
            continue
        history[row["project_id"]].append(StatusChange(status=row["status"], changed_at=changed_at, notes=row.get("notes")))

    assignments: Dict[str, List[Assignment]] = defaultdict(list)
    for row in assignment_rows:
        assigned_at = as_utc_datetime(row.get("assigned_at"))
        if assigned_at is None:
            continue
        assignments[row["project_id"]].append(
            Assignment(
                employee_id=str(row["employee_id"]),
                assigned_at=assigned_at,
                unassigned_at=as_utc_datetime(row.get("unassigned_at")),
            )
        )

    salaries: Dict[str, List[SalaryRecord]] = defaultdict(list)
    for row in salary_rows:
        effective_from = as_date(row.get("effective_from"))
        amount = _decimal(row.get("annual_salary"))
        if effective_from is None or amount is None:
            continue
        salaries[str(row["employee_id"])].append(
            SalaryRecord(
                employee_id=str(row["employee_id"]),
                financial_year=str(row["financial_year"]).strip(),
                annual_salary=amount,
                effective_from=effective_from,
            )
        )

    projects = []
    for row in project_rows:
        start_date = as_date(row.get("start_date"))
        end_date = as_date(row.get("end_date"))
        if start_date is None or end_date is None:
            logger.warning("Project %s has no usable schedule; excluded from snapshot", row.get("id"))
            continue
        project_id = str(row["id"])
        projects.append(
            ProjectRecord(
                id=project_id,
                name=row["name"],
                client_id=row.get("client_id"),
                start_date=start_date,
                end_date=end_date,
                completion_date=as_date(row.get("completion_date")),
                budget=_decimal(row.get("budget")) or Decimal("0"),
                status=row.get("status") or "planning",
                extensions=tuple(extensions.get(project_id, ())),
                status_history=tuple(history.get(project_id, ())),
                assignments=tuple(assignments.get(project_id, ())),
            )
        )

    employees = tuple(
        EmployeeRecord(
            id=str(row["id"]),
            name=row["name"],
            salary=_decimal(row.get("salary")),
            salary_history=tuple(salaries.get(str(row["id"]), ())),
        )
        for row in employee_rows
    )
    return PortfolioSnapshot(
        projects=tuple(projects),
        employees=employees,
        fetched_at=datetime.now(timezone.utc),
    )


def _decimal(value) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except ArithmeticError:
        return None
