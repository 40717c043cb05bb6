from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint

from .db import Base


def utcnow() -> datetime:
    return datetime.utcnow()


class TaskModel(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True)
    user_slug = Column(String(30), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    notes = Column(Text, nullable=True)
    date = Column(Date, nullable=False, index=True)
    time = Column(String(5), nullable=True)
    completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime, nullable=True)
    recurrence_frequency = Column(String(20), nullable=True)
    recurrence_interval = Column(Integer, nullable=False, default=1)
    recurrence_days_of_week = Column(String(20), nullable=True)
    recurrence_end_date = Column(Date, nullable=True)
    reminder_enabled = Column(Boolean, nullable=False, default=False)
    reminder_offset_minutes = Column(Integer, nullable=False, default=15)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class TaskExceptionModel(Base):
    __tablename__ = "task_exceptions"
    __table_args__ = (UniqueConstraint("task_id", "exception_date", name="uq_task_exceptions_task_date"),)

    id = Column(Integer, primary_key=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    exception_date = Column(Date, nullable=False)
    type = Column(String(10), nullable=False)
    title = Column(String(200), nullable=True)
    notes = Column(Text, nullable=True)
    time = Column(String(5), nullable=True)
    reminder_enabled = Column(Boolean, nullable=True)
    reminder_offset_minutes = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class TaskCompletionModel(Base):
    __tablename__ = "task_completions"
    __table_args__ = (UniqueConstraint("task_id", "date", name="uq_task_completions_task_date"),)

    id = Column(Integer, primary_key=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    completed = Column(Boolean, nullable=False, default=True)
    completed_at = Column(DateTime, nullable=True)
