"""Recurrence engine.

Decides which task occurrences fall on a given date and summarizes a date
range. Everything here is a pure function over plain entities: callers
fetch tasks, exceptions and completions, and nothing is written back.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable, Iterator
from datetime import date, timedelta

from getitdone.config import SETTINGS
from getitdone.domain.entities import (
    DaySummary,
    RecurrenceRule,
    Reminder,
    TaskCompletionEntity,
    TaskEntity,
    TaskExceptionEntity,
    TaskInstance,
)
from getitdone.domain.enums import ExceptionType, RecurrenceFrequency

logger = logging.getLogger(__name__)

DEFAULT_REMINDER_OFFSET = SETTINGS.default_reminder_offset

OccurrenceKey = tuple[int | None, date]


def matches_recurrence(rule: RecurrenceRule, anchor: date, target: date) -> bool:
    """Return True when a task anchored on ``anchor`` recurs on ``target``."""
    if target < anchor:
        return False
    if rule.end_date and target > rule.end_date:
        return False
    if target == anchor:
        return True

    try:
        frequency = RecurrenceFrequency(rule.frequency)
    except ValueError:
        logger.debug("Unknown recurrence frequency %r, treating as no match", rule.frequency)
        return False

    interval = max(int(rule.interval or 1), 1)
    return _MATCHERS[frequency](rule, anchor, target, interval)


def _match_daily(rule: RecurrenceRule, anchor: date, target: date, interval: int) -> bool:
    return (target - anchor).days % interval == 0


def _match_weekly(rule: RecurrenceRule, anchor: date, target: date, interval: int) -> bool:
    days = (target - anchor).days
    if rule.days_of_week:
        if sunday_weekday(target) not in rule.days_of_week:
            return False
        if interval == 1:
            return True
        # weeks are counted from the anchor, not per weekday
        return (days // 7) % interval == 0
    return days % (7 * interval) == 0


def _match_monthly(rule: RecurrenceRule, anchor: date, target: date, interval: int) -> bool:
    months = months_between(anchor, target)
    if months < 0 or months % interval != 0:
        return False
    effective_day = min(anchor.day, days_in_month(target.year, target.month))
    return target.day == effective_day


_MATCHERS: dict[RecurrenceFrequency, Callable[[RecurrenceRule, date, date, int], bool]] = {
    RecurrenceFrequency.DAILY: _match_daily,
    RecurrenceFrequency.WEEKLY: _match_weekly,
    RecurrenceFrequency.MONTHLY: _match_monthly,
    # custom has no fields of its own yet and strides like daily
    RecurrenceFrequency.CUSTOM: _match_daily,
}

_unmatched = set(RecurrenceFrequency) - set(_MATCHERS)
if _unmatched:
    raise RuntimeError(f"No recurrence matcher for: {sorted(_unmatched)}")


def merge_occurrence(
    task: TaskEntity,
    day: date,
    exception: TaskExceptionEntity | None = None,
    completion: TaskCompletionEntity | None = None,
    default_reminder_offset: int = DEFAULT_REMINDER_OFFSET,
) -> TaskInstance:
    """Resolve one recurring occurrence: base task, then exception, then completion."""
    title, notes, time, reminder = task.title, task.notes, task.time, task.reminder
    if exception is not None:
        if exception.title is not None:
            title = exception.title
        if exception.notes is not None:
            notes = exception.notes
        if exception.time is not None:
            # "" clears the time, moving the occurrence to anytime
            time = exception.time or None
        if exception.reminder_enabled is not None:
            offset = exception.reminder_offset_minutes
            reminder = Reminder(
                enabled=exception.reminder_enabled,
                offset_minutes=default_reminder_offset if offset is None else offset,
            )

    done = completion is not None and completion.completed
    return TaskInstance(
        task_id=task.id,
        user_slug=task.user_slug,
        instance_date=day,
        title=title,
        notes=notes,
        time=time,
        completed=done,
        completed_at=completion.completed_at if done else None,
        is_recurring=True,
        is_exception=exception is not None,
        reminder=reminder,
    )


def instances_for_date(
    one_off_tasks: Iterable[TaskEntity],
    recurring_tasks: Iterable[TaskEntity],
    exceptions: Iterable[TaskExceptionEntity],
    completions: Iterable[TaskCompletionEntity],
    day: date,
    default_reminder_offset: int = DEFAULT_REMINDER_OFFSET,
) -> list[TaskInstance]:
    instances = [_one_off_instance(task) for task in one_off_tasks if task.date == day]

    exception_map = _index_exceptions(exceptions)
    completion_map = {(c.task_id, c.date): c for c in completions}

    for task in recurring_tasks:
        if task.recurrence is None or not matches_recurrence(task.recurrence, task.date, day):
            continue
        exception = exception_map.get((task.id, day))
        if exception is not None and exception.type == ExceptionType.SKIP:
            continue
        instances.append(
            merge_occurrence(
                task,
                day,
                exception,
                completion_map.get((task.id, day)),
                default_reminder_offset,
            )
        )
    return instances


def summarize_range(
    one_off_tasks: Iterable[TaskEntity],
    recurring_tasks: Iterable[TaskEntity],
    exceptions: Iterable[TaskExceptionEntity],
    completions: Iterable[TaskCompletionEntity],
    start: date,
    end: date,
) -> dict[str, DaySummary]:
    """Count occurrences per day in ``[start, end]``.

    Only days with at least one occurrence appear in the result, keyed by
    ISO date. Occurrence detail is not built, so callers that need titles
    or times must use :func:`instances_for_date`.
    """
    one_off_by_date: dict[date, list[TaskEntity]] = defaultdict(list)
    for task in one_off_tasks:
        one_off_by_date[task.date].append(task)

    skipped = {
        key for key, exception in _index_exceptions(exceptions).items()
        if exception.type == ExceptionType.SKIP
    }
    completed_keys = {(c.task_id, c.date) for c in completions if c.completed}
    recurring = [task for task in recurring_tasks if task.recurrence is not None]

    summaries: dict[str, DaySummary] = {}
    for day in iter_days(start, end):
        total = 0
        completed = 0

        for task in one_off_by_date.get(day, ()):
            total += 1
            if task.completed:
                completed += 1

        for task in recurring:
            if not matches_recurrence(task.recurrence, task.date, day):
                continue
            key = (task.id, day)
            if key in skipped:
                continue
            total += 1
            if key in completed_keys:
                completed += 1

        if total:
            summaries[day.isoformat()] = DaySummary(total=total, completed=completed)
    return summaries


def _one_off_instance(task: TaskEntity) -> TaskInstance:
    return TaskInstance(
        task_id=task.id,
        user_slug=task.user_slug,
        instance_date=task.date,
        title=task.title,
        notes=task.notes,
        time=task.time,
        completed=task.completed,
        completed_at=task.completed_at,
        is_recurring=False,
        is_exception=False,
        reminder=task.reminder,
    )


def _index_exceptions(
    exceptions: Iterable[TaskExceptionEntity],
) -> dict[OccurrenceKey, TaskExceptionEntity]:
    return {(e.task_id, e.exception_date): e for e in exceptions}


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def sunday_weekday(value: date) -> int:
    """Weekday number with 0 = Sunday .. 6 = Saturday."""
    return (value.weekday() + 1) % 7


def months_between(start: date, end: date) -> int:
    return (end.year - start.year) * 12 + (end.month - start.month)


def days_in_month(year: int, month: int) -> int:
    if month == 12:
        next_month = date(year + 1, 1, 1)
    else:
        next_month = date(year, month + 1, 1)
    return (next_month - timedelta(days=1)).day
