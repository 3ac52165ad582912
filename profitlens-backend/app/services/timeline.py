"""Project timelines: effective end dates and hold periods."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional, Sequence, Tuple

from ..models import ProjectExtension, ProjectRecord, StatusChange
from .dates import as_date, as_utc_datetime, iter_days

ON_HOLD = "on-hold"
RESUMING_STATUSES = frozenset({"in-progress", "completed"})


def _latest(values: Iterable[Optional[object]]) -> Optional[date]:
    dates = [d for d in (as_date(v) for v in values) if d is not None]
    return max(dates) if dates else None


def effective_end_date(
    extensions: Sequence[ProjectExtension],
    completion_date: Optional[object],
    scheduled_end_date: object,
) -> Optional[date]:
    """Resolve when a project actually ends.

    Priority: latest extension actual completion, latest extension new end
    date, the project's recorded completion date, then the scheduled end.
    A missing or unparseable date simply drops out of the chain.
    """
    actual = _latest(ext.actual_completion_date for ext in extensions)
    if actual is not None:
        return actual
    extended = _latest(ext.new_end_date for ext in extensions)
    if extended is not None:
        return extended
    completed = as_date(completion_date)
    if completed is not None:
        return completed
    return as_date(scheduled_end_date)


def sorted_status_history(history: Iterable[StatusChange]) -> Tuple[StatusChange, ...]:
    """Ascending by timestamp; events without a usable timestamp are dropped."""
    usable = [event for event in history if as_utc_datetime(event.changed_at) is not None]
    return tuple(sorted(usable, key=lambda event: as_utc_datetime(event.changed_at)))


def _on_hold_in_order(ordered: Sequence[StatusChange], day: date) -> bool:
    on_hold = False
    for event in ordered:
        if as_utc_datetime(event.changed_at).date() > day:
            break
        if event.status == ON_HOLD:
            on_hold = True
        elif event.status in RESUMING_STATUSES:
            on_hold = False
    return on_hold


def is_on_hold(history: Iterable[StatusChange], day: date) -> bool:
    """Whether the project was on hold on ``day``.

    An event takes effect on the calendar day it was recorded. Statuses other
    than on-hold, in-progress and completed leave the flag untouched.
    """
    return _on_hold_in_order(sorted_status_history(history), day)


@dataclass(frozen=True)
class ProjectTimeline:
    project: ProjectRecord
    start: date
    end: date
    history: Tuple[StatusChange, ...] = field(default=(), repr=False)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def on_hold(self, day: date) -> bool:
        return _on_hold_in_order(self.history, day)

    def is_active(self, day: date) -> bool:
        return self.contains(day) and not self.on_hold(day)

    def span_days(self) -> int:
        if self.end < self.start:
            return 0
        return (self.end - self.start).days + 1

    def hold_days(self) -> int:
        if not self.history:
            return 0
        return sum(1 for day in iter_days(self.start, self.end) if self.on_hold(day))

    def duration_days(self) -> int:
        return self.span_days() - self.hold_days()


def resolve_timeline(project: ProjectRecord) -> Optional[ProjectTimeline]:
    """Build the timeline for a project, or None when it has no usable start date."""
    start = as_date(project.start_date)
    end = effective_end_date(project.extensions, project.completion_date, project.end_date)
    if start is None or end is None:
        return None
    return ProjectTimeline(
        project=project,
        start=start,
        end=end,
        history=sorted_status_history(project.status_history),
    )


def current_status(project: ProjectRecord) -> str:
    """Status from the most recent event, falling back to the stored column."""
    history = sorted_status_history(project.status_history)
    if history:
        return history[-1].status
    return project.status
