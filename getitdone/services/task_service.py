from __future__ import annotations

import logging
from datetime import date, datetime

from getitdone.config import SETTINGS
from getitdone.domain.entities import (
    DaySummary,
    RecurrenceRule,
    Reminder,
    TaskEntity,
    TaskExceptionEntity,
    TaskInstance,
)
from getitdone.domain.enums import EditScope, ExceptionType, RecurrenceFrequency, TimeSlot
from getitdone.domain.errors import NotRecurringError, TaskNotFoundError, TaskValidationError
from getitdone.domain.filters import TaskWindow
from getitdone.infra.repository import TaskRepository
from getitdone.services import recurrence
from getitdone.services.time_slots import group_by_time_slot

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200
MAX_NOTES_LENGTH = 1000


class TaskService:
    def __init__(self, repo: TaskRepository, default_reminder_offset: int | None = None) -> None:
        self._repo = repo
        if default_reminder_offset is None:
            default_reminder_offset = SETTINGS.default_reminder_offset
        self._default_reminder_offset = default_reminder_offset

    def get_task(self, task_id: int) -> TaskEntity | None:
        return self._repo.get_task(task_id)

    def create_task(self, data: dict) -> TaskEntity:
        normalized = self._normalize_data(data)
        for required in ("user_slug", "title", "date"):
            if not normalized.get(required):
                raise TaskValidationError(f"{required} is required")
        normalized.setdefault("completed", False)
        task = self._repo.create_task(normalized)
        logger.info("Created task %s for %s", task.id, task.user_slug)
        return task

    def update_task(self, task_id: int, data: dict) -> TaskEntity | None:
        normalized = self._normalize_data(data)
        if "completed" in normalized and "completed_at" not in normalized:
            normalized["completed_at"] = datetime.utcnow() if normalized["completed"] else None
        return self._repo.update_task(task_id, normalized)

    def delete_task(self, task_id: int) -> None:
        self._repo.delete_task(task_id)
        logger.info("Deleted task %s", task_id)

    def instances_for_date(self, user_slug: str, day: date) -> list[TaskInstance]:
        one_off = self._repo.list_one_off_tasks(TaskWindow.for_day(user_slug, day))
        recurring = self._repo.list_recurring_tasks(user_slug)
        task_ids = [task.id for task in recurring]
        return recurrence.instances_for_date(
            one_off,
            recurring,
            self._repo.list_exceptions(task_ids, day, day),
            self._repo.list_completions(task_ids, day, day),
            day,
            default_reminder_offset=self._default_reminder_offset,
        )

    def agenda_for_date(self, user_slug: str, day: date) -> dict[TimeSlot, list[TaskInstance]]:
        return group_by_time_slot(self.instances_for_date(user_slug, day))

    def summaries_for_range(self, user_slug: str, start: date, end: date) -> dict[str, DaySummary]:
        window = TaskWindow(user_slug=user_slug, start=start, end=end)
        one_off = self._repo.list_one_off_tasks(window)
        recurring = self._repo.list_recurring_tasks(user_slug)
        task_ids = [task.id for task in recurring]
        return recurrence.summarize_range(
            one_off,
            recurring,
            self._repo.list_exceptions(task_ids, start, end),
            self._repo.list_completions(task_ids, start, end),
            start,
            end,
        )

    def summaries_for_month(self, user_slug: str, year: int, month: int) -> dict[str, DaySummary]:
        window = TaskWindow.for_month(user_slug, year, month)
        return self.summaries_for_range(user_slug, window.start, window.end)

    def set_completed(self, task_id: int, completed: bool, day: date | None = None) -> bool:
        """Mark one occurrence done or not done.

        Recurring tasks track completion per date, so ``day`` is required for
        them. One-off tasks store the flag on the task itself. Repeating the
        same call leaves the same state.
        """
        task = self._require_task(task_id)
        if task.is_recurring:
            if day is None:
                raise TaskValidationError("date is required for recurring tasks")
            if completed:
                self._repo.upsert_completion(task_id, day, datetime.utcnow())
            else:
                self._repo.delete_completion(task_id, day)
        else:
            self._repo.update_task(task_id, {
                "completed": completed,
                "completed_at": datetime.utcnow() if completed else None,
            })
        logger.info("Task %s on %s marked completed=%s", task_id, day or task.date, completed)
        return completed

    def add_exception(
        self,
        task_id: int,
        day: date,
        exception_type: ExceptionType | str,
        **overrides,
    ) -> TaskExceptionEntity:
        return self._store_exception(self._require_task(task_id), day, exception_type, overrides)

    def _store_exception(
        self,
        task: TaskEntity,
        day: date,
        exception_type: ExceptionType | str,
        overrides: dict,
    ) -> TaskExceptionEntity:
        if not task.is_recurring:
            raise NotRecurringError(task.id)
        try:
            exception_type = ExceptionType(exception_type)
        except ValueError as exc:
            raise TaskValidationError(f"Unknown exception type: {exception_type!r}") from exc

        fields = {}
        if exception_type == ExceptionType.MODIFY:
            fields = self._exception_overrides(overrides)
        exception = self._repo.upsert_exception(
            TaskExceptionEntity(task_id=task.id, exception_date=day, type=exception_type, **fields)
        )
        logger.info("Stored %s exception for task %s on %s", exception_type, task.id, day)
        return exception

    def remove_exception(self, task_id: int, day: date) -> None:
        self._repo.delete_exception(task_id, day)
        logger.info("Removed exception for task %s on %s", task_id, day)

    def edit_occurrence(
        self,
        task_id: int,
        day: date,
        data: dict,
        scope: EditScope | str = EditScope.ALL,
    ) -> TaskExceptionEntity | TaskEntity | None:
        """Edit one occurrence or the whole task.

        With scope ``this`` on a recurring task the change is stored as a
        ``modify`` exception for ``day`` and the exception is returned.
        Otherwise the base task is updated and returned.
        """
        task = self._require_task(task_id)
        if EditScope(scope) == EditScope.THIS and task.is_recurring:
            return self._store_exception(task, day, ExceptionType.MODIFY, data)
        return self.update_task(task_id, data)

    def delete_occurrence(self, task_id: int, day: date, scope: EditScope | str = EditScope.ALL) -> None:
        task = self._require_task(task_id)
        if EditScope(scope) == EditScope.THIS and task.is_recurring:
            self.add_exception(task_id, day, ExceptionType.SKIP)
            return
        self.delete_task(task_id)

    def _require_task(self, task_id: int) -> TaskEntity:
        task = self._repo.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def _normalize_data(self, data: dict) -> dict:
        normalized = dict(data)
        if "title" in normalized:
            normalized["title"] = _clean_title(normalized["title"])
        if "notes" in normalized:
            normalized["notes"] = _clean_notes(normalized["notes"])
        if "time" in normalized:
            normalized["time"] = normalized["time"] or None
        if normalized.get("recurrence") is not None:
            normalized["recurrence"] = _clean_rule(normalized["recurrence"])
        if isinstance(normalized.get("reminder"), dict):
            normalized["reminder"] = Reminder(**normalized["reminder"])
        return normalized

    def _exception_overrides(self, overrides: dict) -> dict:
        fields = {}
        if overrides.get("title"):
            fields["title"] = _clean_title(overrides["title"])
        if overrides.get("notes") is not None:
            fields["notes"] = _clean_notes(overrides["notes"])
        if overrides.get("time") is not None:
            # "" clears the time for this occurrence only
            fields["time"] = overrides["time"]
        reminder = overrides.get("reminder")
        if isinstance(reminder, dict):
            reminder = Reminder(**reminder)
        if reminder is not None:
            fields["reminder_enabled"] = reminder.enabled
            fields["reminder_offset_minutes"] = reminder.offset_minutes
        if overrides.get("reminder_enabled") is not None:
            fields["reminder_enabled"] = overrides["reminder_enabled"]
        if overrides.get("reminder_offset_minutes") is not None:
            fields["reminder_offset_minutes"] = overrides["reminder_offset_minutes"]
        return fields


def _clean_title(title: str | None) -> str:
    title = (title or "").strip()
    if not title:
        raise TaskValidationError("title is required")
    if len(title) > MAX_TITLE_LENGTH:
        raise TaskValidationError(f"Title must be {MAX_TITLE_LENGTH} characters or less")
    return title


def _clean_notes(notes: str | None) -> str | None:
    notes = (notes or "").strip()
    if len(notes) > MAX_NOTES_LENGTH:
        raise TaskValidationError(f"Notes must be {MAX_NOTES_LENGTH} characters or less")
    return notes or None


def _clean_rule(rule: RecurrenceRule | dict) -> RecurrenceRule:
    if isinstance(rule, dict):
        rule = RecurrenceRule(**rule)
    try:
        frequency = RecurrenceFrequency(rule.frequency)
    except ValueError as exc:
        raise TaskValidationError(f"Unknown recurrence frequency: {rule.frequency!r}") from exc
    if int(rule.interval) < 1:
        raise TaskValidationError("Recurrence interval must be at least 1")
    days = tuple(rule.days_of_week) if rule.days_of_week else None
    if days and any(day not in range(7) for day in days):
        raise TaskValidationError("Weekdays must be between 0 (Sunday) and 6 (Saturday)")
    return RecurrenceRule(
        frequency=frequency,
        interval=int(rule.interval),
        days_of_week=days,
        end_date=rule.end_date,
    )
