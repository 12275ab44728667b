"""Logging setup for card-ledger.

Ledger modules log through ``logging.getLogger(__name__)`` and attach the
card and operation they work on via ``extra``. ``setup_logging`` installs
a single stdout handler whose filter masks anything that looks like a full
card number, whatever the call site passed in.
"""

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

# Attributes ledger call sites pass through ``extra``
CONTEXT_FIELDS = ("card_id", "operation", "error_kind")

QUIET_LOGGERS = ("confluent_kafka", "psycopg", "faker")

STANDARD_FORMAT = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"

_CARD_NUMBER = re.compile(r"(?<!\d)\d{12}(\d{4})(?!\d)")


def mask_card_numbers(text: str) -> str:
    """Replace 16-digit runs with their masked form."""
    return _CARD_NUMBER.sub(r"****-****-****-\1", text)


class CardNumberFilter(logging.Filter):
    """Mask full card numbers in the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = mask_card_numbers(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with the ledger context fields."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_data[key] = str(value)
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def setup_logging(
    level: str = "INFO",
    format_type: str = "standard",
    stream: TextIO | None = None,
) -> None:
    """Configure logging for card-ledger.

    Parameters
    ----------
    level : str
        Log level name; unknown names fall back to INFO.
    format_type : str
        ``"standard"`` for pipe-separated text, ``"json"`` for one JSON
        object per line.
    stream : TextIO | None
        Destination, stdout by default.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(fmt=STANDARD_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)
    handler.addFilter(CardNumberFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    logging.getLogger("card_ledger").setLevel(log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name (usually ``__name__``)."""
    return logging.getLogger(name)
