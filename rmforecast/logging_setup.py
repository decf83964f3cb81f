"""JSON logging for the forecast API and CLI."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict

REQUEST_FIELDS = ("request_path", "method", "status_code", "latency_ms", "client")
FORECAST_FIELDS = ("records", "flights", "suggestions", "as_of", "bytes")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: Dict[str, Any] = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for attr in REQUEST_FIELDS + FORECAST_FIELDS:
            value = getattr(record, attr, None)
            if value is not None:
                payload[attr] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


def setup_logging(default_level: str | int = logging.INFO) -> None:
    """Configure the root logger for JSON output; safe to call more than once."""
    level = os.environ.get("LOG_LEVEL", default_level)
    if isinstance(level, str):
        level = level.strip().upper() or logging.INFO
    root = logging.getLogger()
    root.setLevel(level)

    stream_handlers = [h for h in root.handlers if isinstance(h, logging.StreamHandler)]
    if stream_handlers:
        for handler in stream_handlers:
            handler.setFormatter(JsonFormatter())
        return

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)
