from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from getitdone.domain.entities import (
    RecurrenceRule,
    Reminder,
    TaskCompletionEntity,
    TaskEntity,
    TaskExceptionEntity,
)
from getitdone.domain.enums import ExceptionType, RecurrenceFrequency
from getitdone.domain.filters import TaskWindow

from .db import create_session_factory
from .models import TaskCompletionModel, TaskExceptionModel, TaskModel

EXCEPTION_FIELDS = ("title", "notes", "time", "reminder_enabled", "reminder_offset_minutes")


def _parse_days(value: str | None) -> tuple[int, ...] | None:
    if not value:
        return None
    return tuple(int(part) for part in value.split(",") if part.strip())


def _format_days(days: Sequence[int] | None) -> str | None:
    if not days:
        return None
    return ",".join(str(day) for day in sorted(set(days)))


def _parse_frequency(value: str) -> RecurrenceFrequency | str:
    try:
        return RecurrenceFrequency(value)
    except ValueError:
        return value


def _to_entity(model: TaskModel) -> TaskEntity:
    recurrence = None
    if model.recurrence_frequency:
        recurrence = RecurrenceRule(
            frequency=_parse_frequency(model.recurrence_frequency),
            interval=model.recurrence_interval,
            days_of_week=_parse_days(model.recurrence_days_of_week),
            end_date=model.recurrence_end_date,
        )
    return TaskEntity(
        id=model.id,
        user_slug=model.user_slug,
        title=model.title,
        date=model.date,
        notes=model.notes,
        time=model.time,
        completed=model.completed,
        completed_at=model.completed_at,
        recurrence=recurrence,
        reminder=Reminder(enabled=model.reminder_enabled, offset_minutes=model.reminder_offset_minutes),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _exception_to_entity(model: TaskExceptionModel) -> TaskExceptionEntity:
    return TaskExceptionEntity(
        task_id=model.task_id,
        exception_date=model.exception_date,
        type=ExceptionType(model.type),
        title=model.title,
        notes=model.notes,
        time=model.time,
        reminder_enabled=model.reminder_enabled,
        reminder_offset_minutes=model.reminder_offset_minutes,
    )


def _completion_to_entity(model: TaskCompletionModel) -> TaskCompletionEntity:
    return TaskCompletionEntity(
        task_id=model.task_id,
        date=model.date,
        completed=model.completed,
        completed_at=model.completed_at,
    )


def _task_columns(data: dict) -> dict:
    """Flatten ``recurrence`` and ``reminder`` values into table columns."""
    columns = dict(data)
    if "recurrence" in columns:
        rule: RecurrenceRule | None = columns.pop("recurrence")
        columns["recurrence_frequency"] = str(rule.frequency) if rule else None
        columns["recurrence_interval"] = rule.interval if rule else 1
        columns["recurrence_days_of_week"] = _format_days(rule.days_of_week) if rule else None
        columns["recurrence_end_date"] = rule.end_date if rule else None
    if "reminder" in columns:
        reminder: Reminder | None = columns.pop("reminder")
        columns["reminder_enabled"] = bool(reminder and reminder.enabled)
        if reminder:
            columns["reminder_offset_minutes"] = reminder.offset_minutes
    return columns


class TaskRepository:
    def __init__(self, session_factory: sessionmaker | None = None) -> None:
        self._session_factory = session_factory or create_session_factory()

    def list_one_off_tasks(self, window: TaskWindow) -> list[TaskEntity]:
        with self._session_factory() as session:
            stmt = (
                select(TaskModel)
                .where(
                    TaskModel.user_slug == window.user_slug,
                    TaskModel.recurrence_frequency.is_(None),
                    TaskModel.date.between(window.start, window.end),
                )
                .order_by(TaskModel.date.asc(), TaskModel.created_at.asc(), TaskModel.id.asc())
            )
            return [_to_entity(task) for task in session.scalars(stmt)]

    def list_recurring_tasks(self, user_slug: str) -> list[TaskEntity]:
        with self._session_factory() as session:
            stmt = (
                select(TaskModel)
                .where(
                    TaskModel.user_slug == user_slug,
                    TaskModel.recurrence_frequency.is_not(None),
                )
                .order_by(TaskModel.created_at.asc(), TaskModel.id.asc())
            )
            return [_to_entity(task) for task in session.scalars(stmt)]

    def list_exceptions(self, task_ids: Sequence[int], start: date, end: date) -> list[TaskExceptionEntity]:
        if not task_ids:
            return []
        with self._session_factory() as session:
            stmt = select(TaskExceptionModel).where(
                TaskExceptionModel.task_id.in_(task_ids),
                TaskExceptionModel.exception_date.between(start, end),
            )
            return [_exception_to_entity(row) for row in session.scalars(stmt)]

    def list_completions(self, task_ids: Sequence[int], start: date, end: date) -> list[TaskCompletionEntity]:
        if not task_ids:
            return []
        with self._session_factory() as session:
            stmt = select(TaskCompletionModel).where(
                TaskCompletionModel.task_id.in_(task_ids),
                TaskCompletionModel.date.between(start, end),
            )
            return [_completion_to_entity(row) for row in session.scalars(stmt)]

    def get_task(self, task_id: int) -> Optional[TaskEntity]:
        with self._session_factory() as session:
            task = session.get(TaskModel, task_id)
            return _to_entity(task) if task else None

    def create_task(self, data: dict) -> TaskEntity:
        with self._session_factory() as session:
            task = TaskModel(**_task_columns(data))
            session.add(task)
            session.commit()
            session.refresh(task)
            return _to_entity(task)

    def update_task(self, task_id: int, data: dict) -> Optional[TaskEntity]:
        with self._session_factory() as session:
            task = session.get(TaskModel, task_id)
            if not task:
                return None
            for key, value in _task_columns(data).items():
                setattr(task, key, value)
            session.commit()
            session.refresh(task)
            return _to_entity(task)

    def delete_task(self, task_id: int) -> None:
        with self._session_factory() as session:
            task = session.get(TaskModel, task_id)
            if not task:
                return
            # SQLite ignores ON DELETE CASCADE unless foreign keys are enabled
            session.execute(delete(TaskExceptionModel).where(TaskExceptionModel.task_id == task_id))
            session.execute(delete(TaskCompletionModel).where(TaskCompletionModel.task_id == task_id))
            session.delete(task)
            session.commit()

    def upsert_exception(self, exception: TaskExceptionEntity) -> TaskExceptionEntity:
        with self._session_factory() as session:
            row = self._find_exception(session, exception.task_id, exception.exception_date)
            if row is None:
                row = TaskExceptionModel(task_id=exception.task_id, exception_date=exception.exception_date)
                session.add(row)
            row.type = exception.type.value
            for field in EXCEPTION_FIELDS:
                setattr(row, field, getattr(exception, field))
            session.commit()
            session.refresh(row)
            return _exception_to_entity(row)

    def delete_exception(self, task_id: int, exception_date: date) -> None:
        with self._session_factory() as session:
            session.execute(
                delete(TaskExceptionModel).where(
                    TaskExceptionModel.task_id == task_id,
                    TaskExceptionModel.exception_date == exception_date,
                )
            )
            session.commit()

    def upsert_completion(self, task_id: int, day: date, completed_at: datetime) -> TaskCompletionEntity:
        with self._session_factory() as session:
            row = session.scalar(
                select(TaskCompletionModel).where(
                    TaskCompletionModel.task_id == task_id,
                    TaskCompletionModel.date == day,
                )
            )
            if row is None:
                row = TaskCompletionModel(task_id=task_id, date=day)
                session.add(row)
            row.completed = True
            row.completed_at = completed_at
            session.commit()
            session.refresh(row)
            return _completion_to_entity(row)

    def delete_completion(self, task_id: int, day: date) -> None:
        with self._session_factory() as session:
            session.execute(
                delete(TaskCompletionModel).where(
                    TaskCompletionModel.task_id == task_id,
                    TaskCompletionModel.date == day,
                )
            )
            session.commit()

    @staticmethod
    def _find_exception(session: Session, task_id: int, exception_date: date) -> Optional[TaskExceptionModel]:
        return session.scalar(
            select(TaskExceptionModel).where(
                TaskExceptionModel.task_id == task_id,
                TaskExceptionModel.exception_date == exception_date,
            )
        )
