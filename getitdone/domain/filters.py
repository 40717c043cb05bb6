from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class TaskWindow:
    user_slug: str
    start: date
    end: date

    @classmethod
    def for_day(cls, user_slug: str, day: date) -> TaskWindow:
        return cls(user_slug=user_slug, start=day, end=day)

    @classmethod
    def for_month(cls, user_slug: str, year: int, month: int) -> TaskWindow:
        return cls(
            user_slug=user_slug,
            start=date(year, month, 1),
            end=date(year, month, calendar.monthrange(year, month)[1]),
        )
