"""Logging setup driven by LOG_LEVEL / LOG_FORMAT settings."""

import json
import logging
import logging.config
from typing import Any

from jetai.core.config import settings
from jetai.core.redact import redact_sensitive


class RedactingFilter(logging.Filter):
    """Masks API keys that end up in log messages (URLs, headers)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact_sensitive(record.getMessage())
        record.args = None
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = redact_sensitive(self.formatException(record.exc_info))
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Install root handlers for the application."""
    level = (level or settings.LOG_LEVEL).upper()
    fmt = fmt or settings.LOG_FORMAT

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"redact": {"()": RedactingFilter}},
            "formatters": {
                "json": {"()": JsonFormatter},
                "text": {"format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s"},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if fmt == "json" else "text",
                    "filters": ["redact"],
                },
            },
            "root": {"level": level, "handlers": ["console"]},
            "loggers": {
                # httpx logs full request URLs, which carry ?key=...
                "httpx": {"level": "WARNING"},
            },
        }
    )
