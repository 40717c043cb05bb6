from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from getitdone.config import SETTINGS, PROJECT_ROOT

LOG_FILE_NAME = "get_it_done.log"


def setup_logging(level: str | None = None) -> None:
    """Log to ``<project>/<LOG_DIR>/get_it_done.log`` and stderr.

    ``level`` overrides ``LOG_LEVEL`` for a single run, e.g. from ``--verbose``.
    """
    log_dir = PROJECT_ROOT / SETTINGS.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = RotatingFileHandler(log_dir / LOG_FILE_NAME, maxBytes=2_000_000, backupCount=3)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    logging.basicConfig(
        level=(level or SETTINGS.log_level).upper(),
        handlers=[file_handler, console_handler],
    )
    # SQL echo only when explicitly debugging queries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
