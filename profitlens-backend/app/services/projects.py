from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from fastapi import HTTPException, status
from psycopg import errors
from psycopg.rows import dict_row

from ..db import pool
from ..models import (
    AssignmentCreate,
    ClientCreate,
    ClientUpdate,
    EmployeeCreate,
    EmployeeUpdate,
    ExtensionCreate,
    ProjectCreate,
    ProjectDetail,
    ProjectFinancials,
    ProjectStats,
    ProjectUpdate,
    SalaryRecordCreate,
    StatusChangeCreate,
)
from ..repos.portfolio_repo import build_snapshot
from .dates import as_date
from .profit_loss import clear_report_cache, extension_budget_cents, revenue_cents, to_cents
from .timeline import current_status, resolve_timeline

logger = logging.getLogger(__name__)


def _ensure_exists(cur, table: str, record_id: str, label: str) -> None:
    cur.execute(f"SELECT 1 FROM profitlens.{table} WHERE id = %s", (record_id,))
    if not cur.fetchone():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")


def _serialize_row(row) -> dict:
    return {key: float(value) if isinstance(value, Decimal) else value for key, value in dict(row).items()}


def _update_row(cur, table: str, record_id: str, fields: dict) -> Optional[dict]:
    assignments = [f"{column} = %s" for column in fields]
    params: List = list(fields.values())
    params.append(record_id)
    cur.execute(
        f"""
        UPDATE profitlens.{table}
        SET {', '.join(assignments)}
        WHERE id = %s
        RETURNING *
        """,
        params,
    )
    return cur.fetchone()


def list_clients() -> List[dict]:
    with pool.connection() as conn:
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute("SELECT * FROM profitlens.clients ORDER BY created_at DESC")
            return [_serialize_row(row) for row in cur.fetchall()]


def create_client(payload: ClientCreate) -> dict:
    with pool.connection() as conn:
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                INSERT INTO profitlens.clients (name, email, phone, company, source)
                VALUES (%s, %s, %s, %s, %s)
                RETURNING *
                """,
                (payload.name, payload.email, payload.phone, payload.company, payload.source),
            )
            row = cur.fetchone()
        conn.commit()
    clear_report_cache()
    logger.info("Client %s created", row["id"])
    return _serialize_row(row)


def update_client(client_id: str, payload: ClientUpdate) -> dict:
    fields = payload.model_dump(exclude_none=True)
    with pool.connection() as conn:
        with conn.cursor(row_factory=dict_row) as cur:
            _ensure_exists(cur, "clients", client_id, "Client")
            if not fields:
                cur.execute("SELECT * FROM profitlens.clients WHERE id = %s", (client_id,))
                return _serialize_row(cur.fetchone())
            row = _update_row(cur, "clients", client_id, fields)
        conn.commit()
    clear_report_cache()
    return _serialize_row(row)


def list_projects() -> List[dict]:
    with pool.connection() as conn:
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT p.*, c.name AS client_name
                FROM profitlens.projects p
                LEFT JOIN profitlens.clients c ON c.id = p.client_id
                ORDER BY p.created_at DESC
                """
            )
            return [_serialize_row(row) for row in cur.fetchall()]


def get_project(project_id: str) -> ProjectDetail:
    with pool.connection() as conn:
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT p.*, c.name AS client_name
                FROM profitlens.projects p
                LEFT JOIN profitlens.clients c ON c.id = p.client_id
                WHERE p.id = %s
                """,
                (project_id,),
            )
            project_row = cur.fetchone()
            if not project_row:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
            cur.execute(
                """
                SELECT id, new_end_date, extended_budget, actual_completion_date, notes, created_at
                FROM profitlens.project_extensions
                WHERE project_id = %s
                ORDER BY created_at
                """,
                (project_id,),
            )
            extension_rows = cur.fetchall()
            cur.execute(
                """
                SELECT status, changed_at, notes
                FROM profitlens.project_status_events
                WHERE project_id = %s
                ORDER BY changed_at, id
                """,
                (project_id,),
            )
            status_rows = cur.fetchall()
            cur.execute(
                """
                SELECT pe.id, pe.employee_id, e.name, e.designation, pe.assigned_at, pe.unassigned_at
                FROM profitlens.project_employees pe
                JOIN profitlens.employees e ON e.id = pe.employee_id
                WHERE pe.project_id = %s
                ORDER BY pe.assigned_at
                """,
                (project_id,),
            )
            employee_rows = cur.fetchall()

    row = _serialize_row(project_row)
    return ProjectDetail(
        id=str(row["id"]),
        name=row["name"],
        client_id=str(row["client_id"]),
        client_name=row.get("client_name"),
        start_date=as_date(row["start_date"]),
        end_date=as_date(row["end_date"]),
        completion_date=as_date(row.get("completion_date")),
        budget=row["budget"],
        status=status_rows[-1]["status"] if status_rows else row["status"],
        extensions=[_serialize_row(ext) for ext in extension_rows],
        status_history=[_serialize_row(event) for event in status_rows],
        employees=[_serialize_row(assignment) for assignment in employee_rows],
    )


def create_project(payload: ProjectCreate) -> dict:
    with pool.connection() as conn:
        with conn.cursor(row_factory=dict_row) as cur:
            _ensure_exists(cur, "clients", payload.client_id, "Client")
            cur.execute(
                """
                INSERT INTO profitlens.projects (name, client_id, start_date, end_date, completion_date, budget, status)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                RETURNING *
                """,
                (
                    payload.name,
                    payload.client_id,
                    payload.start_date,
                    payload.end_date,
                    payload.completion_date,
                    payload.budget,
                    payload.status,
                ),
            )
            row = cur.fetchone()
            # The opening status is history too
            cur.execute(
                """
                INSERT INTO profitlens.project_status_events (project_id, status, changed_at, notes)
                VALUES (%s, %s, NOW(), 'created')
                """,
                (row["id"], payload.status),
            )
        conn.commit()
    clear_report_cache()
    logger.info("Project %s created for client %s", row["id"], payload.client_id)
    return _serialize_row(row)


def update_project(project_id: str, payload: ProjectUpdate) -> dict:
    fields = payload.model_dump(exclude_none=True)
    with pool.connection() as conn:
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute("SELECT * FROM profitlens.projects WHERE id = %s", (project_id,))
            current = cur.fetchone()
            if not current:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
            start = fields.get("start_date") or as_date(current["start_date"])
            end = fields.get("end_date") or as_date(current["end_date"])
            if start and end and start > end:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="startDate must not be after endDate")
            if "client_id" in fields:
                _ensure_exists(cur, "clients", fields["client_id"], "Client")
            if not fields:
                return _serialize_row(current)
            fields["updated_at"] = datetime.now(timezone.utc)
            row = _update_row(cur, "projects", project_id, fields)
        conn.commit()
    clear_report_cache()
    return _serialize_row(row)


def list_employees() -> List[dict]:
    with pool.connection() as conn:
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute("SELECT * FROM profitlens.employees ORDER BY name")
            return [_serialize_row(row) for row in cur.fetchall()]


def create_employee(payload: EmployeeCreate) -> dict:
    with pool.connection() as conn:
        with conn.cursor(row_factory=dict_row) as cur:
            try:
                cur.execute(
                    """
                    INSERT INTO profitlens.employees (name, employee_code, designation, salary)
                    VALUES (%s, %s, %s, %s)
                    RETURNING *
                    """,
                    (payload.name, payload.employee_code, payload.designation, payload.salary),
                )
            except errors.UniqueViolation:
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Employee code already exists")
            row = cur.fetchone()
        conn.commit()
    clear_report_cache()
    logger.info("Employee %s created", row["id"])
    return _serialize_row(row)


def update_employee(employee_id: str, payload: EmployeeUpdate) -> dict:
    fields = payload.model_dump(exclude_none=True)
    with pool.connection() as conn:
        with conn.cursor(row_factory=dict_row) as cur:
            _ensure_exists(cur, "employees", employee_id, "Employee")
            if not fields:
                cur.execute("SELECT * FROM profitlens.employees WHERE id = %s", (employee_id,))
                return _serialize_row(cur.fetchone())
            try:
                row = _update_row(cur, "employees", employee_id, fields)
            except errors.UniqueViolation:
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Employee code already exists")
        conn.commit()
    clear_report_cache()
    return _serialize_row(row)


def get_project_stats() -> ProjectStats:
    with pool.connection() as conn:
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT
                  (SELECT COUNT(*) FROM profitlens.projects) AS total_projects,
                  (SELECT COUNT(*) FROM profitlens.projects WHERE status = 'completed') AS completed_projects,
                  (SELECT COUNT(*) FROM profitlens.projects WHERE status = 'in-progress') AS in_progress_projects,
                  (SELECT COUNT(*) FROM profitlens.clients) AS total_clients,
                  (SELECT COUNT(*) FROM profitlens.employees) AS total_employees
                """
            )
            row = cur.fetchone()
    return ProjectStats(**row)


def get_project_financials(project_id: str) -> ProjectFinancials:
    with pool.connection() as conn:
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                SELECT id, name, client_id, start_date, end_date, completion_date, budget, status
                FROM profitlens.projects
                WHERE id = %s
                """,
                (project_id,),
            )
            project_rows = cur.fetchall()
            if not project_rows:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
            cur.execute(
                """
                SELECT id, project_id, new_end_date, extended_budget, actual_completion_date, notes, created_at
                FROM profitlens.project_extensions
                WHERE project_id = %s
                """,
                (project_id,),
            )
            extension_rows = cur.fetchall()
            cur.execute(
                """
                SELECT project_id, status, changed_at, notes
                FROM profitlens.project_status_events
                WHERE project_id = %s
                ORDER BY changed_at, id
                """,
                (project_id,),
            )
            status_rows = cur.fetchall()
            cur.execute(
                """
                SELECT project_id, employee_id, assigned_at, unassigned_at
                FROM profitlens.project_employees
                WHERE project_id = %s
                """,
                (project_id,),
            )
            assignment_rows = cur.fetchall()

    snapshot = build_snapshot(project_rows, extension_rows, status_rows, assignment_rows, [], [])
    if not snapshot.projects:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Project schedule is incomplete")
    project = snapshot.projects[0]
    timeline = resolve_timeline(project)
    return ProjectFinancials(
        id=project.id,
        name=project.name,
        budget=to_cents(project.budget) / 100,
        extension_budget=extension_budget_cents(project) / 100,
        total_cost=revenue_cents(project) / 100,
        start_date=project.start_date,
        scheduled_end_date=project.end_date,
        effective_end_date=timeline.end,
        status=current_status(project),
        hold_days=timeline.hold_days(),
        assigned_employees=len(project.assigned_employee_ids),
    )


def create_extension(project_id: str, payload: ExtensionCreate) -> dict:
    with pool.connection() as conn:
        with conn.cursor(row_factory=dict_row) as cur:
            _ensure_exists(cur, "projects", project_id, "Project")
            cur.execute(
                """
                INSERT INTO profitlens.project_extensions (
                    project_id, new_end_date, extended_budget, actual_completion_date, notes
                )
                VALUES (%s, %s, %s, %s, %s)
                RETURNING *
                """,
                (
                    project_id,
                    payload.new_end_date,
                    payload.extended_budget,
                    payload.actual_completion_date,
                    payload.notes,
                ),
            )
            row = cur.fetchone()
            cur.execute("UPDATE profitlens.projects SET updated_at = NOW() WHERE id = %s", (project_id,))
        conn.commit()
    clear_report_cache()
    logger.info("Extension %s added to project %s", row["id"], project_id)
    return _serialize_row(row)


def record_status_change(project_id: str, payload: StatusChangeCreate) -> dict:
    changed_at = payload.changed_at or datetime.now(timezone.utc)
    with pool.connection() as conn:
        with conn.cursor(row_factory=dict_row) as cur:
            _ensure_exists(cur, "projects", project_id, "Project")
            cur.execute(
                """
                INSERT INTO profitlens.project_status_events (project_id, status, changed_at, notes)
                VALUES (%s, %s, %s, %s)
                RETURNING *
                """,
                (project_id, payload.status, changed_at, payload.notes),
            )
            row = cur.fetchone()
            # Keep the column in step with the newest event, even when back-dating
            cur.execute(
                """
                UPDATE profitlens.projects p
                SET status = latest.status, updated_at = NOW()
                FROM (
                    SELECT status
                    FROM profitlens.project_status_events
                    WHERE project_id = %s
                    ORDER BY changed_at DESC, id DESC
                    LIMIT 1
                ) AS latest
                WHERE p.id = %s
                """,
                (project_id, project_id),
            )
        conn.commit()
    clear_report_cache()
    return _serialize_row(row)


def assign_employee(project_id: str, payload: AssignmentCreate) -> dict:
    assigned_at = payload.assigned_at or datetime.now(timezone.utc)
    with pool.connection() as conn:
        with conn.cursor(row_factory=dict_row) as cur:
            _ensure_exists(cur, "projects", project_id, "Project")
            _ensure_exists(cur, "employees", payload.employee_id, "Employee")
            cur.execute(
                """
                SELECT id FROM profitlens.project_employees
                WHERE project_id = %s AND employee_id = %s AND unassigned_at IS NULL
                LIMIT 1
                """,
                (project_id, payload.employee_id),
            )
            if cur.fetchone():
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Employee is already assigned to this project")
            cur.execute(
                """
                INSERT INTO profitlens.project_employees (project_id, employee_id, assigned_at)
                VALUES (%s, %s, %s)
                RETURNING *
                """,
                (project_id, payload.employee_id, assigned_at),
            )
            row = cur.fetchone()
        conn.commit()
    clear_report_cache()
    return _serialize_row(row)


def unassign_employee(project_id: str, employee_id: str) -> dict:
    """Close the open assignment; history rows are kept for cost attribution."""
    with pool.connection() as conn:
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                """
                UPDATE profitlens.project_employees
                SET unassigned_at = NOW()
                WHERE project_id = %s AND employee_id = %s AND unassigned_at IS NULL
                RETURNING *
                """,
                (project_id, employee_id),
            )
            rows = cur.fetchall()
            if not rows:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No open assignment for this employee")
        conn.commit()
    clear_report_cache()
    return _serialize_row(rows[0])


def add_salary_record(employee_id: str, payload: SalaryRecordCreate) -> dict:
    start_year = int(payload.financial_year[:4])
    if int(payload.financial_year[5:]) != (start_year + 1) % 100:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="financialYear must span consecutive years, e.g. 2024-25")
    with pool.connection() as conn:
        with conn.cursor(row_factory=dict_row) as cur:
            _ensure_exists(cur, "employees", employee_id, "Employee")
            cur.execute(
                """
                INSERT INTO profitlens.employee_salaries (employee_id, financial_year, annual_salary, effective_from)
                VALUES (%s, %s, %s, %s)
                RETURNING *
                """,
                (employee_id, payload.financial_year, payload.annual_salary, payload.effective_from),
            )
            row = cur.fetchone()
        conn.commit()
    clear_report_cache()
    return _serialize_row(row)
