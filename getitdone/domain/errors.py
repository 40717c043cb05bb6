from __future__ import annotations


class TaskError(Exception):
    """Base class for errors raised by the task service."""


class TaskNotFoundError(TaskError, LookupError):
    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class TaskValidationError(TaskError, ValueError):
    pass


class NotRecurringError(TaskError):
    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task {task_id} is not recurring; exceptions only apply to recurring tasks")
        self.task_id = task_id
