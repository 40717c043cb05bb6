from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict

from getitdone.domain.entities import DaySummary, TaskInstance


def serialize_instance(instance: TaskInstance) -> dict:
    data = asdict(instance)
    data["instance_date"] = instance.instance_date.isoformat()
    data["completed_at"] = instance.completed_at.isoformat() if instance.completed_at else None
    return data


def serialize_instances(instances: Iterable[TaskInstance]) -> list[dict]:
    return [serialize_instance(instance) for instance in instances]


def serialize_summaries(summaries: Mapping[str, DaySummary]) -> dict[str, dict[str, int]]:
    return {day: asdict(summary) for day, summary in summaries.items()}
