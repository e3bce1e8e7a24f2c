"""
Log formatters for console and log-aggregator output
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

# LogRecord attributes that are not user-supplied `extra` fields
_RECORD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName",
    "relativeCreated", "thread", "threadName", "exc_info",
    "exc_text", "stack_info", "taskName", "run_id",
}


class SimpleFormatter(logging.Formatter):
    """
    One-line text formatter.
    Example: INFO:     2026-01-05 14:03:25 - flowcraft_engine.core.engine - [engine.py:123] [Run:abc123] - Run started
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        file_location = f"{record.filename}:{record.lineno}"

        run_id = ""
        if getattr(record, "run_id", None):
            run_id = f" [Run:{record.run_id}]"

        formatted = (
            f"{record.levelname}:     {timestamp} - {record.name} - "
            f"[{file_location}]{run_id} - {record.getMessage()}"
        )
        if record.exc_info:
            formatted += f"\n{self.formatException(record.exc_info)}"
        return formatted


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter; every `extra` field ends up under "extra"
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "file": f"{record.filename}:{record.lineno}",
            "function": record.funcName,
        }

        if getattr(record, "run_id", None):
            log_obj["run_id"] = record.run_id

        if record.exc_info:
            log_obj["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else "Unknown",
                "message": str(record.exc_info[1]) if record.exc_info[1] else "",
                "traceback": self.formatException(record.exc_info),
            }

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if extra_fields:
            log_obj["extra"] = extra_fields

        return json.dumps(log_obj, ensure_ascii=False, default=str)
