"""JSON structured logging configuration.

Every entry is one JSON object on stdout with timestamp, level, service and
message. Context passed through ``extra=`` (ids, error type, timings) is
copied into the entry when present.
"""
import json
import logging
import os
import sys
from datetime import datetime, timezone

# Keys passed via ``extra=`` that are copied into the JSON entry.
_EXTRA_FIELDS = (
    "error_type",
    "model_id",
    "template_id",
    "request_id",
    "status",
    "duration_ms",
)


class JSONFormatter(logging.Formatter):
    """Format log records as JSON with required fields."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": getattr(record, "service", record.name),
            "message": record.getMessage(),
        }
        for key in _EXTRA_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["error_type"] = record.exc_info[0].__name__
            log_entry["error_detail"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


def setup_logging(service_name: str = "photo-style-studio") -> logging.Logger:
    """Configure and return a JSON structured logger.

    The level comes from LOG_LEVEL (default INFO). Calling this again for the
    same name reuses the existing handler.
    """
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(service_name)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)

    return logger
