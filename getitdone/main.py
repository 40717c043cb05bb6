from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date

from sqlalchemy.exc import SQLAlchemyError

from getitdone.infra.db import create_session_factory, init_db
from getitdone.infra.logging import setup_logging
from getitdone.infra.repository import TaskRepository
from getitdone.services.serializers import serialize_instances, serialize_summaries
from getitdone.services.task_service import TaskService
from getitdone.services.time_slots import SLOT_ORDER

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="getitdone", description="Show tasks due for a day or a month.")
    parser.add_argument("--user", required=True, help="user slug")
    parser.add_argument("--database-url", default=None, help="overrides DATABASE_URL")
    parser.add_argument("--verbose", action="store_true")
    commands = parser.add_subparsers(dest="command", required=True)

    day = commands.add_parser("day", help="agenda for one date")
    day.add_argument("date", type=date.fromisoformat, help="YYYY-MM-DD")
    day.add_argument("--json", action="store_true", help="print instances as JSON")

    month = commands.add_parser("month", help="per-day totals for a month")
    month.add_argument("year", type=int)
    month.add_argument("month", type=int, choices=range(1, 13), metavar="MONTH")
    return parser


def _print_agenda(service: TaskService, user_slug: str, day: date) -> None:
    groups = service.agenda_for_date(user_slug, day)
    print(day.isoformat())
    for slot in SLOT_ORDER:
        if not groups[slot]:
            continue
        print(f"  {slot.value.upper()}")
        for instance in groups[slot]:
            mark = "x" if instance.completed else " "
            time = instance.time or "--:--"
            suffix = " (edited)" if instance.is_exception else ""
            print(f"    [{mark}] {time} {instance.title}{suffix}")


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.verbose else None)
    try:
        session_factory = create_session_factory(args.database_url)
        init_db(session_factory)
    except (RuntimeError, SQLAlchemyError) as exc:
        logger.error("Database unavailable: %s", exc)
        return 1

    service = TaskService(TaskRepository(session_factory))
    if args.command == "day" and args.json:
        instances = service.instances_for_date(args.user, args.date)
        print(json.dumps({"tasks": serialize_instances(instances)}, indent=2))
    elif args.command == "day":
        _print_agenda(service, args.user, args.date)
    else:
        summaries = service.summaries_for_month(args.user, args.year, args.month)
        print(json.dumps({"summaries": serialize_summaries(summaries)}, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
