from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal

from app.repos.portfolio_repo import build_snapshot


def test_build_snapshot_groups_rows_and_tolerates_bad_dates():
    snapshot = build_snapshot(
        project_rows=[
            {
                "id": "p-1",
                "name": "Website",
                "client_id": "c-1",
                "start_date": datetime(2024, 5, 1),
                "end_date": datetime(2024, 5, 31),
                "completion_date": None,
                "budget": Decimal("100000.00"),
                "status": "in-progress",
            },
            {
                "id": "p-2",
                "name": "Broken",
                "client_id": "c-1",
                "start_date": None,
                "end_date": datetime(2024, 5, 31),
                "completion_date": None,
                "budget": Decimal("1.00"),
                "status": "planning",
            },
        ],
        extension_rows=[
            {
                "id": "x-1",
                "project_id": "p-1",
                "new_end_date": "not a date",
                "extended_budget": Decimal("2500.50"),
                "actual_completion_date": None,
                "notes": None,
                "created_at": datetime(2024, 5, 20, tzinfo=timezone.utc),
            }
        ],
        status_rows=[
            {"project_id": "p-1", "status": "on-hold", "changed_at": datetime(2024, 5, 10), "notes": None},
            {"project_id": "p-1", "status": "in-progress", "changed_at": None, "notes": None},
        ],
        assignment_rows=[
            {"project_id": "p-1", "employee_id": "e-1", "assigned_at": datetime(2024, 5, 1), "unassigned_at": None},
        ],
        employee_rows=[{"id": "e-1", "name": "Asha", "salary": None}],
        salary_rows=[
            {"employee_id": "e-1", "financial_year": " 2024-25 ", "annual_salary": Decimal("120000"), "effective_from": date(2024, 4, 1)},
            {"employee_id": "e-1", "financial_year": "2024-25", "annual_salary": None, "effective_from": date(2024, 6, 1)},
        ],
    )

    assert [p.id for p in snapshot.projects] == ["p-1"]
    record = snapshot.projects[0]
    assert record.start_date == date(2024, 5, 1)
    assert record.extensions[0].new_end_date is None
    assert record.extensions[0].extended_budget == Decimal("2500.50")
    assert [event.status for event in record.status_history] == ["on-hold"]
    assert record.status_history[0].changed_at.tzinfo is not None
    assert record.assigned_employee_ids == {"e-1"}

    staff = snapshot.employee("e-1")
    assert staff is not None
    assert len(staff.salary_history) == 1
    assert staff.salary_history[0].financial_year == "2024-25"
