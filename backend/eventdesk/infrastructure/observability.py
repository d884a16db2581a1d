"""Structured Logging — JSON and text formatters, configured once at startup.

Invariants:
    - Every record carries timestamp (record time, UTC), level, logger, message
    - Known extras (event/workspace/user ids, error_code, path, token usage)
      are emitted only when set; ids are stringified (UUIDs)
    - setup_logging is idempotent: a second call replaces, never stacks, its handler

Design Decisions:
    - stdlib logging with a hand-written JSON formatter: services log through
      logging.getLogger(__name__) and pass ids via extra={...}
    - Chatty third-party loggers pinned to WARNING
"""

import json
import logging
from datetime import datetime, timezone


LOG_EXTRA_FIELDS = (
    "event_id", "workspace_id", "user_id", "error_code", "path",
    "attempt", "input_tokens", "output_tokens",
)
QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "anthropic")

_HANDLER_NAME = "eventdesk"


def _extras(record: logging.LogRecord) -> dict:
    found = {}
    for key in LOG_EXTRA_FIELDS:
        value = record.__dict__.get(key)
        if value is not None:
            found[key] = str(value) if key.endswith("_id") else value
    return found


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_extras(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Human-readable lines for local runs; extras appended as key=value."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)-7s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = _extras(record)
        if extras:
            line += " " + " ".join(f"{k}={v}" for k, v in extras.items())
        return line


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
