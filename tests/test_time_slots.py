from __future__ import annotations

from datetime import date

from getitdone.domain.entities import TaskInstance
from getitdone.domain.enums import TimeSlot
from getitdone.services.time_slots import group_by_time_slot, time_slot_for


def _instance(task_id: int, time: str | None) -> TaskInstance:
    return TaskInstance(
        task_id=task_id,
        user_slug="sam",
        instance_date=date(2026, 3, 10),
        title=f"Task {task_id}",
        notes=None,
        time=time,
        completed=False,
        completed_at=None,
        is_recurring=False,
        is_exception=False,
        reminder=None,
    )


def test_time_slot_boundaries() -> None:
    assert time_slot_for(None) == TimeSlot.ANYTIME
    assert time_slot_for("") == TimeSlot.ANYTIME
    assert time_slot_for("00:00") == TimeSlot.MORNING
    assert time_slot_for("11:59") == TimeSlot.MORNING
    assert time_slot_for("12:00") == TimeSlot.AFTERNOON
    assert time_slot_for("16:59") == TimeSlot.AFTERNOON
    assert time_slot_for("17:00") == TimeSlot.EVENING


def test_group_by_time_slot_sorts_timed_groups() -> None:
    instances = [
        _instance(1, "19:30"),
        _instance(2, None),
        _instance(3, "09:15"),
        _instance(4, "07:45"),
        _instance(5, None),
        _instance(6, "13:00"),
    ]

    groups = group_by_time_slot(instances)

    assert list(groups) == [TimeSlot.MORNING, TimeSlot.AFTERNOON, TimeSlot.EVENING, TimeSlot.ANYTIME]
    assert [i.task_id for i in groups[TimeSlot.MORNING]] == [4, 3]
    assert [i.task_id for i in groups[TimeSlot.AFTERNOON]] == [6]
    assert [i.task_id for i in groups[TimeSlot.EVENING]] == [1]
    assert [i.task_id for i in groups[TimeSlot.ANYTIME]] == [2, 5]


def test_group_by_time_slot_keeps_empty_groups() -> None:
    groups = group_by_time_slot([])
    assert all(group == [] for group in groups.values())
