from __future__ import annotations

import json
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from getitdone import main as cli
from getitdone.domain.entities import RecurrenceRule
from getitdone.infra.db import Base
from getitdone.infra.repository import TaskRepository


@pytest.fixture
def database_url(tmp_path, monkeypatch) -> str:
    monkeypatch.setattr(cli, "setup_logging", lambda level=None: None)
    url = f"sqlite:///{tmp_path / 'tasks.db'}"
    engine = create_engine(url)
    Base.metadata.create_all(engine)
    repo = TaskRepository(sessionmaker(bind=engine))
    repo.create_task({
        "user_slug": "sam",
        "title": "Stretch",
        "date": date(2026, 3, 1),
        "time": "07:30",
        "recurrence": RecurrenceRule(frequency="daily", interval=2),
    })
    repo.create_task({"user_slug": "sam", "title": "Call mom", "date": date(2026, 3, 3)})
    engine.dispose()
    return url


def test_day_prints_agenda(database_url: str, capsys) -> None:
    assert cli.main(["--user", "sam", "--database-url", database_url, "day", "2026-03-03"]) == 0

    out = capsys.readouterr().out
    assert "MORNING" in out
    assert "[ ] 07:30 Stretch" in out
    assert "ANYTIME" in out
    assert "[ ] --:-- Call mom" in out


def test_day_json_lists_instances(database_url: str, capsys) -> None:
    assert cli.main(["--user", "sam", "--database-url", database_url, "day", "2026-03-03", "--json"]) == 0

    tasks = json.loads(capsys.readouterr().out)["tasks"]
    assert [task["title"] for task in tasks] == ["Call mom", "Stretch"]
    assert tasks[1]["instance_date"] == "2026-03-03"
    assert tasks[1]["is_recurring"] is True
    assert tasks[1]["reminder"] == {"enabled": False, "offset_minutes": 15}


def test_month_prints_summaries(database_url: str, capsys) -> None:
    assert cli.main(["--user", "sam", "--database-url", database_url, "month", "2026", "3"]) == 0

    summaries = json.loads(capsys.readouterr().out)["summaries"]
    assert summaries["2026-03-01"] == {"total": 1, "completed": 0}
    assert summaries["2026-03-03"] == {"total": 2, "completed": 0}
    assert "2026-03-02" not in summaries


def test_missing_database_url_exits_with_error(monkeypatch) -> None:
    monkeypatch.setattr(cli, "setup_logging", lambda level=None: None)
    monkeypatch.setattr(cli, "create_session_factory", _raise_missing_url)

    assert cli.main(["--user", "sam", "day", "2026-03-03"]) == 1


def _raise_missing_url(database_url=None):
    raise RuntimeError("DATABASE_URL is not set.")
