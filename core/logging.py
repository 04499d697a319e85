"""
Logging setup for the training core.

Records may carry structured context (mesocycle, plan day, workout,
exercise ids) under the ``extra_fields`` attribute:

    logger.info("...", extra=log_context(mesocycle_id=3, workout_id=7))

JSON output merges that context into the payload; text output appends it
as ``key=value`` pairs.
"""
import logging
import sys
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from core.config import settings

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def log_context(**fields: Any) -> Dict[str, Dict[str, Any]]:
    """Build the ``extra`` argument for a log call, dropping unset ids."""
    return {"extra_fields": {key: value for key, value in fields.items() if value is not None}}


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        # Dates in the context (scheduled_date, start_date) go out as ISO strings
        return json.dumps(log_data, default=str)


class ContextTextFormatter(logging.Formatter):
    """Human-readable lines with the record's context appended."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "extra_fields", None)
        if context:
            line += " [" + " ".join(f"{key}={value}" for key, value in context.items()) + "]"
        return line


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger once, from the entry point.

    JSON in production or when LOG_FORMAT is "json", text otherwise.
    Arguments override the settings (used by the CLIs' --verbose flag).
    """
    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    log_format = log_format or settings.LOG_FORMAT

    if log_format == "json" or settings.ENVIRONMENT == "production":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = ContextTextFormatter(TEXT_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # SQL echo is controlled by DEBUG, not by the log level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    return root_logger
