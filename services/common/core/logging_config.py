"""
Structured logging for the service processes.

CustomJsonFormatter renders one JSON object per line so container log
collectors can index fields directly; setup_logging loads a YAML dictConfig
after expanding ${VAR} placeholders from the environment.
"""

import json
import logging
import logging.config
import os
import string
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import yaml

from .request_context import get_request_id

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }


class CustomJsonFormatter(logging.Formatter):
    """
    Fields: _time (UTC, milliseconds), level, logger, message, request_id when
    a request is being served, every `extra=` key, and exception when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: Dict[str, Any] = {
            "_time": timestamp.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = getattr(record, "request_id", None) or get_request_id()
        if request_id:
            entry["request_id"] = request_id

        for key, value in _extra_fields(record).items():
            entry.setdefault(key, value)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def _render_config(path: str, level: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        raw = f.read()
    variables = dict(os.environ, LOG_LEVEL=level)
    return yaml.safe_load(string.Template(raw).safe_substitute(variables))


def setup_logging(config_path: str = "logging.yml", log_level: Optional[str] = None) -> None:
    """
    Configure logging from a YAML file.

    The effective level (argument, then $LOG_LEVEL, then INFO) is exposed to
    the file as ${LOG_LEVEL}. A missing file falls back to basicConfig.
    """
    level = (log_level or os.getenv("LOG_LEVEL") or "INFO").upper()

    if not config_path or not os.path.exists(config_path):
        logging.basicConfig(level=level)
        return

    logging.config.dictConfig(_render_config(config_path, level))
