from __future__ import annotations

from datetime import date, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from getitdone.domain.entities import RecurrenceRule, Reminder, TaskExceptionEntity
from getitdone.domain.enums import ExceptionType, RecurrenceFrequency
from getitdone.domain.filters import TaskWindow
from getitdone.infra.db import Base
from getitdone.infra.repository import TaskRepository


@pytest.fixture
def repo() -> TaskRepository:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return TaskRepository(sessionmaker(bind=engine, autoflush=False, autocommit=False))


def _weekly(repo: TaskRepository, user_slug: str = "sam"):
    return repo.create_task({
        "user_slug": user_slug,
        "title": "Team sync",
        "date": date(2026, 1, 5),
        "recurrence": RecurrenceRule(
            frequency=RecurrenceFrequency.WEEKLY,
            interval=2,
            days_of_week=(5, 1, 3),
            end_date=date(2026, 6, 30),
        ),
        "reminder": Reminder(enabled=True, offset_minutes=30),
    })


def test_recurrence_round_trips_through_columns(repo: TaskRepository) -> None:
    task = _weekly(repo)

    stored = repo.get_task(task.id)

    assert stored.recurrence == RecurrenceRule(
        frequency=RecurrenceFrequency.WEEKLY,
        interval=2,
        days_of_week=(1, 3, 5),
        end_date=date(2026, 6, 30),
    )
    assert stored.reminder == Reminder(enabled=True, offset_minutes=30)
    assert stored.is_recurring


def test_unknown_stored_frequency_is_kept_as_text(repo: TaskRepository) -> None:
    task = repo.create_task({
        "user_slug": "sam",
        "title": "Future rule",
        "date": date(2026, 1, 5),
        "recurrence": RecurrenceRule(frequency="yearly"),
    })

    assert repo.get_task(task.id).recurrence.frequency == "yearly"


def test_one_off_and_recurring_queries_are_separate(repo: TaskRepository) -> None:
    recurring = _weekly(repo)
    _weekly(repo, user_slug="alex")
    in_window = repo.create_task({"user_slug": "sam", "title": "Dentist", "date": date(2026, 2, 10)})
    repo.create_task({"user_slug": "sam", "title": "Later", "date": date(2026, 3, 2)})

    one_off = repo.list_one_off_tasks(TaskWindow.for_month("sam", 2026, 2))

    assert [task.id for task in one_off] == [in_window.id]
    assert [task.id for task in repo.list_recurring_tasks("sam")] == [recurring.id]


def test_upsert_exception_replaces_existing_row(repo: TaskRepository) -> None:
    task = _weekly(repo)
    day = date(2026, 1, 7)

    repo.upsert_exception(TaskExceptionEntity(task_id=task.id, exception_date=day, type=ExceptionType.MODIFY, title="Moved"))
    repo.upsert_exception(TaskExceptionEntity(task_id=task.id, exception_date=day, type=ExceptionType.SKIP))

    exceptions = repo.list_exceptions([task.id], day, day)
    assert len(exceptions) == 1
    assert exceptions[0].type == ExceptionType.SKIP
    assert exceptions[0].title is None

    repo.delete_exception(task.id, day)
    assert repo.list_exceptions([task.id], day, day) == []


def test_upsert_completion_keeps_one_row_per_date(repo: TaskRepository) -> None:
    task = _weekly(repo)
    day = date(2026, 1, 9)

    repo.upsert_completion(task.id, day, datetime(2026, 1, 9, 8, 0))
    repo.upsert_completion(task.id, day, datetime(2026, 1, 9, 9, 0))

    completions = repo.list_completions([task.id], date(2026, 1, 1), date(2026, 1, 31))
    assert len(completions) == 1
    assert completions[0].completed
    assert completions[0].completed_at == datetime(2026, 1, 9, 9, 0)

    repo.delete_completion(task.id, day)
    assert repo.list_completions([task.id], day, day) == []


def test_list_queries_without_task_ids(repo: TaskRepository) -> None:
    assert repo.list_exceptions([], date(2026, 1, 1), date(2026, 1, 31)) == []
    assert repo.list_completions([], date(2026, 1, 1), date(2026, 1, 31)) == []


def test_delete_task_removes_occurrence_rows(repo: TaskRepository) -> None:
    task = _weekly(repo)
    day = date(2026, 1, 7)
    repo.upsert_exception(TaskExceptionEntity(task_id=task.id, exception_date=day, type=ExceptionType.SKIP))
    repo.upsert_completion(task.id, day, datetime(2026, 1, 7, 8, 0))

    repo.delete_task(task.id)

    assert repo.get_task(task.id) is None
    assert repo.list_exceptions([task.id], day, day) == []
    assert repo.list_completions([task.id], day, day) == []


def test_update_task_clears_recurrence(repo: TaskRepository) -> None:
    task = _weekly(repo)

    updated = repo.update_task(task.id, {"recurrence": None, "title": "One time"})

    assert updated.recurrence is None
    assert updated.title == "One time"
    assert repo.update_task(999, {"title": "missing"}) is None
