from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from .enums import ExceptionType, RecurrenceFrequency


@dataclass(frozen=True)
class Reminder:
    enabled: bool
    offset_minutes: int


@dataclass(frozen=True)
class RecurrenceRule:
    # Rows read from storage may carry a tag this version does not know.
    frequency: RecurrenceFrequency | str
    interval: int = 1
    days_of_week: tuple[int, ...] | None = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class TaskEntity:
    id: int | None
    user_slug: str
    title: str
    date: date
    notes: str | None = None
    time: str | None = None
    completed: bool = False
    completed_at: Optional[datetime] = None
    recurrence: RecurrenceRule | None = None
    reminder: Reminder | None = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None


@dataclass(frozen=True)
class TaskExceptionEntity:
    task_id: int
    exception_date: date
    type: ExceptionType
    title: str | None = None
    notes: str | None = None
    time: str | None = None
    reminder_enabled: bool | None = None
    reminder_offset_minutes: int | None = None


@dataclass(frozen=True)
class TaskCompletionEntity:
    task_id: int
    date: date
    completed: bool = True
    completed_at: Optional[datetime] = None


@dataclass(frozen=True)
class TaskInstance:
    """One occurrence of a task on one date, after exceptions and completions."""

    task_id: int | None
    user_slug: str
    instance_date: date
    title: str
    notes: str | None
    time: str | None
    completed: bool
    completed_at: Optional[datetime]
    is_recurring: bool
    is_exception: bool
    reminder: Reminder | None


@dataclass(frozen=True)
class DaySummary:
    total: int
    completed: int
