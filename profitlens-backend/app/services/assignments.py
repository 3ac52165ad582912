from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import FrozenSet, Iterable, List, Optional, Tuple

from ..models import Assignment
from .dates import as_utc_datetime, day_start


def effective_interval(
    assignment: Assignment,
    project_start: date,
    project_end: date,
) -> Optional[Tuple[datetime, Optional[datetime]]]:
    """Half-open ``[start, end)`` interval during which the assignment counts.

    Assignments recorded after the project already ended are back-filled to
    the project's start date so their cost is still attributed.
    """
    start = as_utc_datetime(assignment.assigned_at)
    if start is None:
        return None
    if start.date() > project_end:
        start = day_start(project_start)
    end = as_utc_datetime(assignment.unassigned_at)
    return start, end


def overlaps_day(interval: Tuple[datetime, Optional[datetime]], day: date) -> bool:
    start, end = interval
    window_start = day_start(day)
    window_end = window_start + timedelta(days=1)
    return start < window_end and (end is None or end > window_start)


def assignment_intervals(
    assignments: Iterable[Assignment],
    project_start: date,
    project_end: date,
) -> List[Tuple[str, Tuple[datetime, Optional[datetime]]]]:
    """Pair each usable assignment with its effective interval."""
    intervals = []
    for assignment in assignments:
        interval = effective_interval(assignment, project_start, project_end)
        if interval is not None:
            intervals.append((assignment.employee_id, interval))
    return intervals


def active_employees(intervals: Iterable[Tuple[str, Tuple[datetime, Optional[datetime]]]], day: date) -> FrozenSet[str]:
    return frozenset(employee_id for employee_id, interval in intervals if overlaps_day(interval, day))


def employees_on_day(
    assignments: Iterable[Assignment],
    day: date,
    project_start: date,
    project_end: date,
) -> FrozenSet[str]:
    """Employees whose assignment interval overlaps the UTC day ``day``."""
    return active_employees(assignment_intervals(assignments, project_start, project_end), day)


def is_assigned_at(assignment: Assignment, instant: datetime) -> bool:
    start = as_utc_datetime(assignment.assigned_at)
    moment = as_utc_datetime(instant)
    if start is None or moment is None:
        return False
    end = as_utc_datetime(assignment.unassigned_at)
    return start <= moment and (end is None or end > moment)
