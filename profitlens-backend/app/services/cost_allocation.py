"""Day-by-day salary cost allocation across concurrently active projects."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, FrozenSet, List, Optional, Sequence, Set

from ..models import EmployeeRecord, ProjectRecord
from .assignments import active_employees, assignment_intervals
from .dates import iter_days
from .salary import SalaryResolver, financial_year_label
from .timeline import ProjectTimeline, resolve_timeline

logger = logging.getLogger(__name__)


@dataclass
class EmployeeActivity:
    active_days: int = 0
    total_days: int = 0

    @property
    def utilization_rate(self) -> float:
        if self.total_days <= 0:
            return 0.0
        return self.active_days / self.total_days * 100


@dataclass
class AllocationResult:
    project_costs: Dict[str, float] = field(default_factory=dict)
    employee_costs: Dict[str, float] = field(default_factory=dict)
    financial_year_costs: Dict[str, float] = field(default_factory=dict)
    activity: Dict[str, EmployeeActivity] = field(default_factory=dict)
    project_employee_costs: Dict[str, Dict[str, float]] = field(default_factory=dict)
    financial_year_projects: Dict[str, Set[str]] = field(default_factory=dict)
    window_start: Optional[date] = None
    window_end: Optional[date] = None

    @property
    def total_cost(self) -> float:
        return sum(self.project_costs.values())


class _ProjectDay:
    """Precomputed assignment intervals for one project timeline."""

    def __init__(self, timeline: ProjectTimeline):
        self.timeline = timeline
        self.project_id = timeline.project.id
        self.intervals = assignment_intervals(timeline.project.assignments, timeline.start, timeline.end)

    def employees_on(self, day: date) -> FrozenSet[str]:
        return active_employees(self.intervals, day)


def analysis_window(timelines: Sequence[ProjectTimeline], today: date):
    """First project start through the latest effective end, capped at ``today``."""
    if not timelines:
        return None, None
    start = min(t.start for t in timelines)
    end = min(max(t.end for t in timelines), today)
    return start, end


def allocate_costs(
    projects: Sequence[ProjectRecord],
    employees: Sequence[EmployeeRecord],
    today: date,
    salaries: Optional[SalaryResolver] = None,
) -> AllocationResult:
    timelines: List[ProjectTimeline] = []
    for project in projects:
        timeline = resolve_timeline(project)
        if timeline is None:
            logger.debug("Skipping project %s without a usable timeline", project.id)
            continue
        timelines.append(timeline)
    return allocate_timelines(timelines, employees, today, salaries)


def allocate_timelines(
    timelines: Sequence[ProjectTimeline],
    employees: Sequence[EmployeeRecord],
    today: date,
    salaries: Optional[SalaryResolver] = None,
) -> AllocationResult:
    result = AllocationResult()
    window_start, window_end = analysis_window(timelines, today)
    if window_start is None or window_end < window_start:
        return result
    result.window_start, result.window_end = window_start, window_end

    salaries = salaries or SalaryResolver(employees)
    project_days = [_ProjectDay(timeline) for timeline in timelines]

    project_costs: Dict[str, float] = defaultdict(float)
    employee_costs: Dict[str, float] = defaultdict(float)
    fy_costs: Dict[str, float] = defaultdict(float)
    pair_costs: Dict[str, Dict[str, float]] = defaultdict(lambda: defaultdict(float))
    fy_projects: Dict[str, Set[str]] = defaultdict(set)
    activity: Dict[str, EmployeeActivity] = {emp.id: EmployeeActivity() for emp in employees}

    for day in iter_days(window_start, window_end):
        fy_label = financial_year_label(day)

        # Collect every active pair before prorating: the split depends on the
        # employee's project count across the whole day.
        day_pairs: Dict[str, FrozenSet[str]] = {}
        load: Dict[str, int] = defaultdict(int)
        for entry in project_days:
            if not entry.timeline.is_active(day):
                continue
            fy_projects[fy_label].add(entry.project_id)
            assigned = entry.employees_on(day)
            day_pairs[entry.project_id] = assigned
            for employee_id in assigned:
                load[employee_id] += 1

        charged: Set[str] = set()
        for project_id, assigned in day_pairs.items():
            for employee_id in assigned:
                resolution = salaries.resolve(employee_id, day)
                if not resolution.has_cost:
                    continue
                share = resolution.daily_rate / load[employee_id]
                project_costs[project_id] += share
                employee_costs[employee_id] += share
                fy_costs[fy_label] += share
                pair_costs[project_id][employee_id] += share
                charged.add(employee_id)

        for employee_id, counters in activity.items():
            counters.total_days += 1
            if employee_id in charged:
                counters.active_days += 1

    result.project_costs = dict(project_costs)
    result.employee_costs = dict(employee_costs)
    result.financial_year_costs = dict(fy_costs)
    result.project_employee_costs = {pid: dict(costs) for pid, costs in pair_costs.items()}
    result.financial_year_projects = {label: set(ids) for label, ids in fy_projects.items()}
    result.activity = activity
    logger.debug(
        "Allocated costs window=%s..%s projects=%s employees=%s salary_lookups=%s total=%.2f",
        window_start,
        window_end,
        len(timelines),
        len(activity),
        salaries.lookups,
        result.total_cost,
    )
    return result
