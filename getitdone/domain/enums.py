from __future__ import annotations

from enum import StrEnum


class RecurrenceFrequency(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class ExceptionType(StrEnum):
    SKIP = "skip"
    MODIFY = "modify"


class TimeSlot(StrEnum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    ANYTIME = "anytime"


class EditScope(StrEnum):
    THIS = "this"
    ALL = "all"
