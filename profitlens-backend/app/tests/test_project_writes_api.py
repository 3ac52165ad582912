from __future__ import annotations

import time
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models import PROJECT_STATUSES, StatusChangeCreate
from app.services import profit_loss as profit_loss_service
from app.services import projects as projects_service
from app.tests.fakes import FakePool

client = TestClient(app)

PROJECT_EXISTS = ("SELECT 1 FROM profitlens.projects WHERE id", [{"exists": 1}])
EMPLOYEE_EXISTS = ("SELECT 1 FROM profitlens.employees WHERE id", [{"exists": 1}])


def _at(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


@pytest.fixture
def cached_report():
    profit_loss_service._CACHE[date(2025, 1, 1)] = (time.time(), object())


def _use_pool(monkeypatch, responses=()) -> FakePool:
    fake = FakePool(responses)
    monkeypatch.setattr(projects_service, "pool", fake)
    return fake


def test_status_change_rejects_unknown_status():
    response = client.post("/api/v2/projects/p-1/status", json={"status": "paused"})
    assert response.status_code == 422


def test_status_change_accepts_every_project_status():
    for value in PROJECT_STATUSES:
        assert StatusChangeCreate(status=value).status == value


def test_extension_rejects_negative_budget():
    response = client.post("/api/v2/projects/p-1/extensions", json={"extendedBudget": "-10.00"})
    assert response.status_code == 422


def test_assignment_requires_employee():
    response = client.post("/api/v2/projects/p-1/employees", json={})
    assert response.status_code == 422


def test_salary_record_label_format():
    response = client.post(
        "/api/v2/employees/e-1/salaries",
        json={"financialYear": "2024/25", "annualSalary": "120000.00", "effectiveFrom": "2024-04-01"},
    )
    assert response.status_code == 422


def test_salary_record_must_span_consecutive_years():
    response = client.post(
        "/api/v2/employees/e-1/salaries",
        json={"financialYear": "2024-26", "annualSalary": "120000.00", "effectiveFrom": "2024-04-01"},
    )
    assert response.status_code == 400
    assert "consecutive" in response.json()["detail"]


def test_assign_conflicts_with_open_assignment(monkeypatch, cached_report):
    fake = _use_pool(
        monkeypatch,
        [
            PROJECT_EXISTS,
            EMPLOYEE_EXISTS,
            ("SELECT id FROM profitlens.project_employees", [{"id": "a-1"}]),
        ],
    )

    response = client.post("/api/v2/projects/p-1/employees", json={"employeeId": "e-1"})

    assert response.status_code == 409
    assert not fake.statements("INSERT INTO profitlens.project_employees")
    assert fake.commits == 0
    assert profit_loss_service._CACHE


def test_assign_inserts_and_clears_report_cache(monkeypatch, cached_report):
    row = {"id": "a-2", "project_id": "p-1", "employee_id": "e-1", "assigned_at": _at(2024, 5, 1), "unassigned_at": None}
    fake = _use_pool(
        monkeypatch,
        [PROJECT_EXISTS, EMPLOYEE_EXISTS, ("INSERT INTO profitlens.project_employees", [row])],
    )

    response = client.post(
        "/api/v2/projects/p-1/employees",
        json={"employeeId": "e-1", "assignedAt": "2024-05-01T00:00:00Z"},
    )

    assert response.status_code == 201
    assert response.json()["id"] == "a-2"
    (_, params), = fake.statements("INSERT INTO profitlens.project_employees")
    assert params[:2] == ("p-1", "e-1")
    assert fake.commits == 1
    assert profit_loss_service._CACHE == {}


def test_unassign_closes_interval_instead_of_deleting(monkeypatch, cached_report):
    row = {
        "id": "a-1",
        "project_id": "p-1",
        "employee_id": "e-1",
        "assigned_at": _at(2024, 5, 1),
        "unassigned_at": _at(2024, 6, 1),
    }
    fake = _use_pool(monkeypatch, [("SET unassigned_at = NOW()", [row])])

    response = client.delete("/api/v2/projects/p-1/employees/e-1")

    assert response.status_code == 200
    assert response.json()["unassigned_at"].startswith("2024-06-01")
    assert not fake.statements("DELETE")
    assert fake.statements("UPDATE profitlens.project_employees")
    assert fake.commits == 1
    assert profit_loss_service._CACHE == {}


def test_unassign_without_open_assignment_is_not_found(monkeypatch, cached_report):
    fake = _use_pool(monkeypatch)

    response = client.delete("/api/v2/projects/p-1/employees/e-1")

    assert response.status_code == 404
    assert fake.commits == 0
    assert profit_loss_service._CACHE


def test_status_change_updates_current_status(monkeypatch, cached_report):
    event = {"id": 7, "project_id": "p-1", "status": "on-hold", "changed_at": _at(2024, 5, 3), "notes": None}
    fake = _use_pool(monkeypatch, [PROJECT_EXISTS, ("INSERT INTO profitlens.project_status_events", [event])])

    response = client.post("/api/v2/projects/p-1/status", json={"status": "on-hold", "changedAt": "2024-05-03T09:00:00Z"})

    assert response.status_code == 201
    assert response.json()["status"] == "on-hold"
    assert fake.statements("UPDATE profitlens.projects p SET status = latest.status")
    assert profit_loss_service._CACHE == {}


def test_extension_write_clears_report_cache(monkeypatch, cached_report):
    extension = {"id": "x-1", "project_id": "p-1", "extended_budget": Decimal("2500.50")}
    fake = _use_pool(monkeypatch, [PROJECT_EXISTS, ("INSERT INTO profitlens.project_extensions", [extension])])

    response = client.post("/api/v2/projects/p-1/extensions", json={"extendedBudget": "2500.50"})

    assert response.status_code == 201
    assert fake.commits == 1
    assert profit_loss_service._CACHE == {}


def test_salary_record_write_clears_report_cache(monkeypatch, cached_report):
    record = {"id": 3, "employee_id": "e-1", "financial_year": "2024-25", "annual_salary": Decimal("120000.00")}
    fake = _use_pool(monkeypatch, [EMPLOYEE_EXISTS, ("INSERT INTO profitlens.employee_salaries", [record])])

    response = client.post(
        "/api/v2/employees/e-1/salaries",
        json={"financialYear": "2024-25", "annualSalary": "120000.00", "effectiveFrom": "2024-04-01"},
    )

    assert response.status_code == 201
    assert response.json()["annual_salary"] == 120000.0
    assert fake.commits == 1
    assert profit_loss_service._CACHE == {}


def test_project_financials_total_cost_is_cent_exact(monkeypatch):
    _use_pool(
        monkeypatch,
        [
            (
                "FROM profitlens.projects WHERE id",
                [
                    {
                        "id": "p-1",
                        "name": "Storefront",
                        "client_id": "c-1",
                        "start_date": _at(2024, 5, 1),
                        "end_date": _at(2024, 5, 10),
                        "completion_date": None,
                        "budget": Decimal("100000.00"),
                        "status": "in-progress",
                    }
                ],
            ),
            (
                "FROM profitlens.project_extensions",
                [
                    {"id": "x-1", "project_id": "p-1", "new_end_date": _at(2024, 6, 30), "extended_budget": Decimal("2500.50")},
                    {
                        "id": "x-2",
                        "project_id": "p-1",
                        "actual_completion_date": _at(2024, 6, 15),
                        "extended_budget": Decimal("1999.99"),
                    },
                ],
            ),
            (
                "FROM profitlens.project_status_events",
                [
                    {"project_id": "p-1", "status": "on-hold", "changed_at": _at(2024, 5, 3)},
                    {"project_id": "p-1", "status": "in-progress", "changed_at": _at(2024, 5, 5)},
                ],
            ),
            (
                "FROM profitlens.project_employees",
                [
                    {"project_id": "p-1", "employee_id": "e-1", "assigned_at": _at(2024, 5, 1), "unassigned_at": None},
                    {"project_id": "p-1", "employee_id": "e-2", "assigned_at": _at(2024, 5, 2), "unassigned_at": None},
                ],
            ),
        ],
    )

    response = client.get("/api/v2/projects/p-1/financials")

    assert response.status_code == 200
    payload = response.json()
    assert payload["budget"] == 100000.0
    assert payload["extensionBudget"] == 4500.49
    assert payload["totalCost"] == 104500.49
    assert payload["effectiveEndDate"] == "2024-06-15"
    assert payload["scheduledEndDate"] == "2024-05-10"
    assert payload["status"] == "in-progress"
    assert payload["holdDays"] == 2
    assert payload["assignedEmployees"] == 2


def test_project_financials_unknown_project(monkeypatch):
    _use_pool(monkeypatch)
    assert client.get("/api/v2/projects/missing/financials").status_code == 404


def test_project_stats_payload(monkeypatch):
    _use_pool(
        monkeypatch,
        [
            (
                "AS total_projects",
                [
                    {
                        "total_projects": 3,
                        "completed_projects": 1,
                        "in_progress_projects": 2,
                        "total_clients": 1,
                        "total_employees": 3,
                    }
                ],
            )
        ],
    )

    response = client.get("/api/v2/projects/stats")

    assert response.status_code == 200
    assert response.json() == {
        "totalProjects": 3,
        "completedProjects": 1,
        "inProgressProjects": 2,
        "totalClients": 1,
        "totalEmployees": 3,
    }
