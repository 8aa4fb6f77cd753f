"""
Logging setup for the dashboard API.

JSON lines for CloudWatch when deployed, a compact human-readable line when
running locally. Both formats carry the structured ``extra={...}`` fields,
with secret-looking keys masked.

Usage:
    from app.core.logging_config import setup_logging, get_logger

    setup_logging(json_format=settings.log_json, level=settings.LOG_LEVEL)
    logger = get_logger(__name__)

    logger.info("Price snapshot refreshed", extra={'symbol_count': 10})
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .secure_logging import safe_log_config

# LogRecord attributes that are not user-supplied extras
_RECORD_FIELDS = set(vars(logging.makeLogRecord({}))) | {'message', 'asctime', 'color_message'}


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    extras = {k: v for k, v in record.__dict__.items() if k not in _RECORD_FIELDS}
    return safe_log_config(extras)


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record, e.g.

    {"timestamp": "2026-01-15T10:30:00.000+00:00", "level": "INFO",
     "logger": "app.services.price_refresher",
     "message": "Price snapshot refreshed", "symbol_count": 10}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec='milliseconds'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        for key, value in _extra_fields(record).items():
            entry.setdefault(key, value)

        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """
    2026-01-15 10:30:00 INFO  [services.price_refresher] Price snapshot refreshed (symbol_count=10)
    """

    LEVEL_COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')

        level = record.levelname.ljust(5)
        if self.use_colors:
            level = f"{self.LEVEL_COLORS.get(record.levelname, '')}{level}{self.RESET}"

        name = record.name[4:] if record.name.startswith('app.') else record.name

        output = f"{timestamp} {level} [{name}] {record.getMessage()}"

        extras = _extra_fields(record)
        if extras:
            output += " (" + ", ".join(f"{k}={v}" for k, v in extras.items()) + ")"

        if record.exc_info:
            output += f"\n{self.formatException(record.exc_info)}"

        return output


def setup_logging(
    json_format: bool = False,
    level: str = 'INFO',
    logger_name: Optional[str] = None
) -> None:
    """
    Install a single stderr handler on the given logger (root by default).

    Both arguments normally come from Settings (``log_json`` and
    ``LOG_LEVEL``). Calling this again replaces the previous handler.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(JsonFormatter() if json_format else HumanFormatter())
    logger.addHandler(handler)

    if logger_name:
        logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
