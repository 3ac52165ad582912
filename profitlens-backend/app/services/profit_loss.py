from __future__ import annotations

import logging
import time
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional, Tuple

from fastapi import HTTPException, status
from psycopg.errors import DatabaseError

from ..config import settings
from ..models import (
    EmployeeAnalysis,
    FinancialYearBreakdown,
    PortfolioSnapshot,
    ProfitLossReport,
    ProjectAnalysis,
    ProjectRecord,
)
from ..repos.portfolio_repo import PortfolioRepo
from .cost_allocation import AllocationResult, allocate_timelines
from .dates import as_date
from .salary import SalaryResolver, financial_year_label
from .timeline import ProjectTimeline, current_status, resolve_timeline

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

_CACHE: Dict[date, Tuple[float, ProfitLossReport]] = {}


def clear_report_cache() -> None:
    _CACHE.clear()


def _cache_get(key: date) -> Optional[ProfitLossReport]:
    entry = _CACHE.get(key)
    if not entry:
        return None
    ts, payload = entry
    if time.time() - ts > settings.report_cache_ttl_seconds:
        _CACHE.pop(key, None)
        return None
    return payload


def _cache_set(key: date, payload: ProfitLossReport) -> None:
    if settings.report_cache_ttl_seconds > 0:
        _CACHE[key] = (time.time(), payload)


def _ensure_feature_enabled() -> None:
    if not settings.feature_profit_loss_report:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Profit/loss report is disabled")


def to_cents(value) -> int:
    if value is None:
        return 0
    try:
        amount = Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        return 0
    return int(amount * 100)


def extension_budget_cents(project: ProjectRecord) -> int:
    return sum(to_cents(ext.extended_budget) for ext in project.extensions)


def revenue_cents(project: ProjectRecord) -> int:
    """Budget plus every extension budget, summed in whole cents."""
    return to_cents(project.budget) + extension_budget_cents(project)


def total_cost(project: ProjectRecord) -> Decimal:
    return Decimal(revenue_cents(project)) / 100


def _money(value: float) -> float:
    return round(value, 2)


def _margin(profit: float, revenue: float) -> float:
    if not revenue:
        return 0.0
    return round(profit / revenue * 100, 2)


def _project_analysis(
    project: ProjectRecord,
    timeline: Optional[ProjectTimeline],
    allocation: AllocationResult,
) -> ProjectAnalysis:
    revenue = revenue_cents(project) / 100
    cost = allocation.project_costs.get(project.id, 0.0)
    profit = revenue - cost
    start = timeline.start if timeline else as_date(project.start_date)
    return ProjectAnalysis(
        id=project.id,
        name=project.name,
        revenue=_money(revenue),
        cost=_money(cost),
        profit=_money(profit),
        margin=_margin(profit, revenue),
        duration_days=timeline.duration_days() if timeline else 0,
        hold_days=timeline.hold_days() if timeline else 0,
        status=current_status(project),
        financial_year=financial_year_label(start) if start else "",
        effective_end_date=timeline.end if timeline else None,
    )


def _employee_analyses(snapshot: PortfolioSnapshot, allocation: AllocationResult) -> List[EmployeeAnalysis]:
    share_by_employee: Dict[str, float] = {}
    projects_by_employee: Dict[str, int] = {}
    for project in snapshot.projects:
        assigned = project.assigned_employee_ids
        if not assigned:
            continue
        share = revenue_cents(project) / 100 / len(assigned)
        for employee_id in assigned:
            share_by_employee[employee_id] = share_by_employee.get(employee_id, 0.0) + share
            projects_by_employee[employee_id] = projects_by_employee.get(employee_id, 0) + 1

    analyses: List[EmployeeAnalysis] = []
    for employee in snapshot.employees:
        activity = allocation.activity.get(employee.id)
        cost = allocation.employee_costs.get(employee.id, 0.0)
        revenue = share_by_employee.get(employee.id, 0.0)
        analyses.append(
            EmployeeAnalysis(
                id=employee.id,
                name=employee.name,
                total_salary_cost=_money(cost),
                projects_worked=projects_by_employee.get(employee.id, 0),
                revenue_generated=_money(revenue),
                profit_contribution=_money(revenue - cost),
                utilization_rate=round(activity.utilization_rate, 2) if activity else 0.0,
                active_days=activity.active_days if activity else 0,
                total_days=activity.total_days if activity else 0,
            )
        )
    return analyses


def _financial_year_breakdown(
    projects: Iterable[ProjectRecord],
    allocation: AllocationResult,
) -> List[FinancialYearBreakdown]:
    revenue_by_project = {project.id: revenue_cents(project) for project in projects}
    labels = set(allocation.financial_year_costs) | set(allocation.financial_year_projects)
    breakdown: List[FinancialYearBreakdown] = []
    for label in sorted(labels):
        project_ids = allocation.financial_year_projects.get(label, set())
        revenue = sum(revenue_by_project.get(pid, 0) for pid in project_ids) / 100
        cost = allocation.financial_year_costs.get(label, 0.0)
        profit = revenue - cost
        breakdown.append(
            FinancialYearBreakdown(
                label=label,
                revenue=_money(revenue),
                cost=_money(cost),
                profit=_money(profit),
                margin=_margin(profit, revenue),
                project_count=len(project_ids),
            )
        )
    return breakdown


def build_profit_loss_report(
    snapshot: PortfolioSnapshot,
    today: date,
    as_of: Optional[datetime] = None,
) -> ProfitLossReport:
    """Assemble the report from an in-memory snapshot; performs no I/O."""
    timelines: Dict[str, ProjectTimeline] = {}
    for project in snapshot.projects:
        timeline = resolve_timeline(project)
        if timeline is not None:
            timelines[project.id] = timeline

    allocation = allocate_timelines(
        list(timelines.values()),
        snapshot.employees,
        today,
        SalaryResolver(snapshot.employees),
    )

    project_rows = [
        _project_analysis(project, timelines.get(project.id), allocation)
        for project in snapshot.projects
    ]
    total_revenue = sum(revenue_cents(project) for project in snapshot.projects) / 100
    total_costs = allocation.total_cost
    overall_profit = total_revenue - total_costs

    return ProfitLossReport(
        overall_profit=_money(overall_profit),
        total_revenue=_money(total_revenue),
        total_costs=_money(total_costs),
        overall_margin=_margin(overall_profit, total_revenue),
        project_analysis=project_rows,
        employee_analysis=_employee_analyses(snapshot, allocation),
        financial_year_breakdown=_financial_year_breakdown(snapshot.projects, allocation),
        window_start=allocation.window_start,
        window_end=allocation.window_end,
        as_of=as_of or datetime.now(timezone.utc),
    )


def compute_profit_loss_report(
    today: Optional[date] = None,
    repo: Optional[PortfolioRepo] = None,
) -> ProfitLossReport:
    _ensure_feature_enabled()
    today = today or datetime.now(timezone.utc).date()
    cached = _cache_get(today)
    if cached:
        return cached

    repo = repo or PortfolioRepo()
    try:
        snapshot = repo.fetch_snapshot()
    except DatabaseError as exc:
        logger.exception("Portfolio snapshot fetch failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not load portfolio data",
        ) from exc

    report = build_profit_loss_report(snapshot, today)
    _cache_set(today, report)
    return report
