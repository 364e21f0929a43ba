"""Log file setup shared by the API server and the TUI."""
from __future__ import annotations

import logging
import os
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from .settings import Settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def log_dir_for(settings: Settings) -> Path:
    """LOCFAV_LOG_DIR, anchored at the repository root when relative."""
    p = settings.LOCFAV_LOG_DIR
    if p.is_absolute():
        return p
    return Path(__file__).resolve().parents[1] / p


def _handler(h: logging.Handler, level: int) -> logging.Handler:
    h.setLevel(level)
    h.setFormatter(logging.Formatter(LOG_FORMAT))
    return h


def setup_logging(settings: Settings, filename: str = "locfav.log", *, console: bool = True) -> Path:
    """Send root and uvicorn logs to ``<log dir>/<filename>``, rotated nightly.

    Replaces any root handlers already installed, so calling it again does
    not duplicate lines. ``console=False`` keeps log output off the terminal
    while the TUI owns it. Returns the log file path.
    """
    log_file = log_dir_for(settings) / filename
    log_file.parent.mkdir(parents=True, exist_ok=True)

    level_name = str(settings.LOCFAV_LOG_LEVEL or "INFO").upper().strip()
    level = getattr(logging, level_name, logging.INFO)

    handlers = [
        _handler(
            TimedRotatingFileHandler(
                filename=str(log_file),
                when="midnight",
                backupCount=max(0, int(settings.LOCFAV_LOG_BACKUP_COUNT or 0)),
                encoding="utf-8",
            ),
            level,
        )
    ]
    if console:
        handlers.append(_handler(logging.StreamHandler(), level))

    root = logging.getLogger()
    root.handlers = handlers
    root.setLevel(level)

    # uvicorn installs its own handlers; route its records through root instead.
    for name in _UVICORN_LOGGERS:
        lg = logging.getLogger(name)
        lg.handlers = []
        lg.setLevel(level)
        lg.propagate = True
    access = bool(settings.LOCFAV_LOG_ACCESS)
    logging.getLogger("uvicorn.access").disabled = not access

    logging.getLogger("locfav_db").info(
        "logging to %s (level=%s, access=%s, console=%s)",
        os.fspath(log_file),
        level_name,
        access,
        console,
    )
    return log_file
