from __future__ import annotations

from datetime import date

from app.services.timeline import current_status, effective_end_date, is_on_hold, resolve_timeline
from app.tests.factories import extension, project, status_event, utc


def test_actual_completion_wins_over_every_other_end_date():
    extensions = (
        extension("x-1", new_end_date=date(2024, 8, 31)),
        extension("x-2", actual_completion_date=date(2024, 6, 30)),
    )
    resolved = effective_end_date(extensions, date(2024, 7, 31), date(2024, 5, 31))
    assert resolved == date(2024, 6, 30)


def test_latest_new_end_date_used_without_actual_completion():
    extensions = (
        extension("x-1", new_end_date=date(2024, 8, 31)),
        extension("x-2", new_end_date=date(2024, 9, 15)),
    )
    assert effective_end_date(extensions, date(2024, 7, 31), date(2024, 5, 31)) == date(2024, 9, 15)


def test_completion_then_scheduled_end():
    assert effective_end_date((), date(2024, 7, 31), date(2024, 5, 31)) == date(2024, 7, 31)
    assert effective_end_date((), None, date(2024, 5, 31)) == date(2024, 5, 31)


def test_malformed_dates_are_skipped():
    extensions = (extension("x-1", actual_completion_date="not-a-date"),)
    assert effective_end_date(extensions, "garbage", "2024-05-31") == date(2024, 5, 31)


def test_hold_flag_follows_event_order():
    history = [
        status_event("in-progress", utc(2024, 5, 7, 9)),
        status_event("on-hold", utc(2024, 5, 4, 9)),
    ]
    assert is_on_hold(history, date(2024, 5, 3)) is False
    assert is_on_hold(history, date(2024, 5, 4)) is True
    assert is_on_hold(history, date(2024, 5, 6)) is True
    assert is_on_hold(history, date(2024, 5, 7)) is False
    # input order is left untouched
    assert [event.status for event in history] == ["in-progress", "on-hold"]


def test_no_history_means_not_on_hold():
    assert is_on_hold((), date(2024, 5, 3)) is False


def test_planning_event_does_not_clear_hold():
    history = (
        status_event("on-hold", utc(2024, 5, 1)),
        status_event("planning", utc(2024, 5, 2)),
    )
    assert is_on_hold(history, date(2024, 5, 3)) is True


def test_timeline_duration_excludes_hold_days():
    record = project(
        history=(
            status_event("on-hold", utc(2024, 5, 4, 9)),
            status_event("in-progress", utc(2024, 5, 7, 9)),
        )
    )
    timeline = resolve_timeline(record)
    assert timeline.span_days() == 10
    assert timeline.hold_days() == 3
    assert timeline.duration_days() == 7
    assert timeline.is_active(date(2024, 5, 5)) is False
    assert timeline.is_active(date(2024, 5, 8)) is True
    assert timeline.is_active(date(2024, 5, 11)) is False


def test_current_status_uses_latest_event():
    record = project(
        status="planning",
        history=(
            status_event("completed", utc(2024, 6, 1)),
            status_event("on-hold", utc(2024, 5, 4)),
        ),
    )
    assert current_status(record) == "completed"
    assert current_status(project(status="planning")) == "planning"
