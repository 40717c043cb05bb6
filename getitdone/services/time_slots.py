from __future__ import annotations

from collections.abc import Iterable

from getitdone.domain.entities import TaskInstance
from getitdone.domain.enums import TimeSlot

AFTERNOON_START_HOUR = 12
EVENING_START_HOUR = 17

SLOT_ORDER = (TimeSlot.MORNING, TimeSlot.AFTERNOON, TimeSlot.EVENING, TimeSlot.ANYTIME)


def time_slot_for(time: str | None) -> TimeSlot:
    if not time:
        return TimeSlot.ANYTIME
    hour = int(time.split(":", 1)[0])
    if hour < AFTERNOON_START_HOUR:
        return TimeSlot.MORNING
    if hour < EVENING_START_HOUR:
        return TimeSlot.AFTERNOON
    return TimeSlot.EVENING


def group_by_time_slot(instances: Iterable[TaskInstance]) -> dict[TimeSlot, list[TaskInstance]]:
    groups: dict[TimeSlot, list[TaskInstance]] = {slot: [] for slot in SLOT_ORDER}
    for instance in instances:
        groups[time_slot_for(instance.time)].append(instance)

    for slot in (TimeSlot.MORNING, TimeSlot.AFTERNOON, TimeSlot.EVENING):
        groups[slot].sort(key=lambda instance: instance.time or "")
    return groups
