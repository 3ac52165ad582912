#!/usr/bin/env python3
"""
Seed a small demo portfolio for the profit/loss report.

Creates one client, three projects (one extended, one put on hold and resumed),
three employees with financial-year salary history and overlapping project
assignments. Fixed ids make the script idempotent: rerunning it leaves
existing rows alone.
"""
from __future__ import annotations

import argparse
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
BACKEND_DIR = ROOT / "profitlens-backend"

import sys

sys.path.append(str(BACKEND_DIR))

from app.db import initialize_database, open_pool, close_pool, pool  # type: ignore  # noqa: E402
from app.services.salary import financial_year_label  # type: ignore  # noqa: E402


CLIENT_ID = "demo-client"


def _at(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=timezone.utc)


def _projects(today: date):
    return [
        ("demo-web", "Storefront Rebuild", today - timedelta(days=200), today - timedelta(days=120), "180000.00", "completed"),
        ("demo-app", "Field Service App", today - timedelta(days=150), today - timedelta(days=30), "240000.00", "in-progress"),
        ("demo-erp", "ERP Integration", today - timedelta(days=90), today + timedelta(days=60), "95000.50", "in-progress"),
    ]


def _employees():
    return [
        ("demo-emp-1", "Asha Rao", "EMP-001", "Engineer", "900000.00"),
        ("demo-emp-2", "Vikram Shah", "EMP-002", "Designer", None),
        ("demo-emp-3", "Meera Iyer", "EMP-003", "QA Analyst", "540000.00"),
    ]


def seed_portfolio(today: date) -> None:
    with pool.connection() as conn:
        with conn.cursor() as cur:
            cur.execute("SET search_path TO profitlens, public")
            cur.execute(
                """
                INSERT INTO profitlens.clients (id, name, company, source)
                VALUES (%s, %s, %s, 'seed')
                ON CONFLICT (id) DO NOTHING
                """,
                (CLIENT_ID, "Demo Client", "Demo Retail Pvt Ltd"),
            )
            for project_id, name, start, end, budget, status in _projects(today):
                cur.execute(
                    """
                    INSERT INTO profitlens.projects (id, name, client_id, start_date, end_date, budget, status)
                    VALUES (%s, %s, %s, %s, %s, %s, %s)
                    ON CONFLICT (id) DO NOTHING
                    """,
                    (project_id, name, CLIENT_ID, _at(start), _at(end), budget, status),
                )

            cur.execute(
                """
                INSERT INTO profitlens.project_extensions (id, project_id, new_end_date, extended_budget, notes)
                VALUES ('demo-app-ext-1', 'demo-app', %s, '35000.00', 'Offline sync scope')
                ON CONFLICT (id) DO NOTHING
                """,
                (_at(today - timedelta(days=5)),),
            )

            cur.execute("SELECT COUNT(*) FROM profitlens.project_status_events WHERE project_id = 'demo-app'")
            (event_count,) = cur.fetchone()
            if not event_count:
                for offset, status in ((150, "in-progress"), (70, "on-hold"), (55, "in-progress")):
                    cur.execute(
                        """
                        INSERT INTO profitlens.project_status_events (project_id, status, changed_at, notes)
                        VALUES ('demo-app', %s, %s, 'seed')
                        """,
                        (status, _at(today - timedelta(days=offset))),
                    )

            for employee_id, name, code, designation, legacy_salary in _employees():
                cur.execute(
                    """
                    INSERT INTO profitlens.employees (id, name, employee_code, designation, salary)
                    VALUES (%s, %s, %s, %s, %s)
                    ON CONFLICT (id) DO NOTHING
                    """,
                    (employee_id, name, code, designation, legacy_salary),
                )

            cur.execute("SELECT COUNT(*) FROM profitlens.employee_salaries WHERE employee_id = 'demo-emp-2'")
            (salary_count,) = cur.fetchone()
            if not salary_count:
                effective = today - timedelta(days=365)
                cur.execute(
                    """
                    INSERT INTO profitlens.employee_salaries (employee_id, financial_year, annual_salary, effective_from)
                    VALUES ('demo-emp-2', %s, '720000.00', %s), ('demo-emp-2', %s, '780000.00', %s)
                    """,
                    (
                        financial_year_label(effective),
                        effective,
                        financial_year_label(today),
                        today - timedelta(days=30),
                    ),
                )

            assignments = [
                ("demo-as-1", "demo-web", "demo-emp-1", 200, None),
                ("demo-as-2", "demo-app", "demo-emp-1", 150, None),
                ("demo-as-3", "demo-app", "demo-emp-2", 140, 40),
                ("demo-as-4", "demo-erp", "demo-emp-2", 90, None),
                ("demo-as-5", "demo-erp", "demo-emp-3", 80, None),
            ]
            for assignment_id, project_id, employee_id, start_offset, end_offset in assignments:
                cur.execute(
                    """
                    INSERT INTO profitlens.project_employees (id, project_id, employee_id, assigned_at, unassigned_at)
                    VALUES (%s, %s, %s, %s, %s)
                    ON CONFLICT (id) DO NOTHING
                    """,
                    (
                        assignment_id,
                        project_id,
                        employee_id,
                        _at(today - timedelta(days=start_offset)),
                        _at(today - timedelta(days=end_offset)) if end_offset is not None else None,
                    ),
                )
        conn.commit()


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--today", type=date.fromisoformat, default=None, help="Anchor date for the demo timeline")
    args = parser.parse_args()
    open_pool()
    try:
        initialize_database()
        today = args.today or datetime.now(timezone.utc).date()
        seed_portfolio(today)
        print(f"Seeded demo portfolio anchored at {today.isoformat()}.")
    finally:
        close_pool()


if __name__ == "__main__":
    main()
