"""JSON log lines for the booking service.

Every line carries the request correlation id and, inside booking session
endpoints, the session id. Message text is redacted before it is written;
structured context belongs in `extra={"extra_fields": safe_log_context(...)}`.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from .correlation import get_correlation_id, get_session_id
from .redaction import redact_string

SERVICE_NAME = "suitebook"


def _level_from_env() -> int:
    name = os.environ.get("LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "logger": record.name,
            "message": redact_string(record.getMessage()),
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            entry["correlationId"] = correlation_id
        session_id = get_session_id()
        if session_id:
            entry["sessionId"] = session_id

        if record.exc_info:
            entry["exception"] = redact_string(self.formatException(record.exc_info))

        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            entry.update(extra_fields)

        return json.dumps(entry, default=str)


def get_logger(name: str) -> logging.Logger:
    """Logger writing JSON lines to stdout at LOG_LEVEL."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(_level_from_env())
        logger.propagate = False
    return logger
