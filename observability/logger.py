"""Structured event logging for the interview pipeline.

Each event is a flat dict (``kind``, ``ref`` and free-form fields). One log
record carries it; the handlers decide how it is rendered: a short human
line on stdout and in ``*-human.log``, a JSON line in ``LOG_FILE``.
"""
from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
import time
import uuid
from typing import Any

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ENABLE_FILE_LOGS = os.getenv("ENABLE_FILE_LOGS", "1") in ("1", "true", "True")
LOG_FILE = os.getenv("LOG_FILE", "logs/hiring-interview.log")
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", "5242880"))
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "5"))

HUMAN_FIELDS = ("job_id", "question_id", "count", "score", "source", "model", "ms", "outcome", "error")

_logger = logging.getLogger("interview.events")
_logger.setLevel(LOG_LEVEL)
_logger.propagate = False


class HumanEventFormatter(logging.Formatter):  # ref=... kind=... plus known fields
    def __init__(self) -> None:
        super().__init__("[%(asctime)s] %(levelname)s %(name)s :: %(message)s", datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        event = getattr(record, "event", None)
        if event is not None:
            record.msg = _format_human(event)
            record.args = ()
        return super().format(record)


class JsonEventFormatter(logging.Formatter):  # One JSON object per line
    def format(self, record: logging.LogRecord) -> str:
        event = getattr(record, "event", None)
        if event is None:
            event = {"ts": record.created, "kind": "log", "message": record.getMessage()}
        return json.dumps({**event, "level": record.levelname}, ensure_ascii=False, default=str)


def _human_file_name(path: str) -> str:
    root, ext = os.path.splitext(path)
    return f"{root}-human{ext or '.log'}"


def _rotating(path: str, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT)
    handler.setLevel(LOG_LEVEL)
    handler.setFormatter(formatter)
    return handler


def _ensure_handlers() -> None:
    if _logger.handlers:
        return

    console = logging.StreamHandler(stream=sys.stdout)
    console.setLevel(LOG_LEVEL)
    console.setFormatter(HumanEventFormatter())
    _logger.addHandler(console)

    if not ENABLE_FILE_LOGS:
        return

    log_dir = os.path.dirname(LOG_FILE)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    _logger.addHandler(_rotating(LOG_FILE, JsonEventFormatter()))
    _logger.addHandler(_rotating(_human_file_name(LOG_FILE), HumanEventFormatter()))


def _format_human(evt: dict[str, Any]) -> str:
    extras = [f"{key}={evt[key]}" for key in HUMAN_FIELDS if key in evt]
    base = f"ref={evt.get('ref')} kind={evt.get('kind')}"
    return " ".join([base, *extras])


def log_event(kind: str, ref: str, *, level: int = logging.INFO, **fields: Any) -> None:
    """Record a pipeline event.

    ``ref`` is the id of the job or application the event belongs to.
    """

    _ensure_handlers()
    event: dict[str, Any] = {"ts": time.time(), "trace": str(uuid.uuid4()), "kind": kind, "ref": ref, **fields}
    _logger.log(level, kind, extra={"event": event})


__all__ = ["HumanEventFormatter", "JsonEventFormatter", "log_event"]
