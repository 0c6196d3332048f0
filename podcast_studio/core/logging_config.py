"""
Logging setup for processes embedding the scheduling core.

Modules only ever call ``logging.getLogger(__name__)``; this is the single
place that decides handlers and format.
"""

import json
import logging
from typing import Optional

from .config import settings

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes present on every LogRecord; anything else came in through ``extra``.
_RESERVED_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys() | {"message", "asctime"}
)


class StructuredFormatter(logging.Formatter):
    """Render records as one JSON object per line, merging ``extra`` context."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS and not key.startswith("_"):
                log_obj[key] = value
        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_obj, default=str)


def configure_logging(level: Optional[str] = None, structured: Optional[bool] = None) -> None:
    """Install a single stream handler on the root logger."""
    level_name = (level or settings.log_level).upper()
    use_structured = settings.structured_logs if structured is None else structured

    handler = logging.StreamHandler()
    if use_structured:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level_name)

    # Reduce noise from libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("alembic").setLevel(logging.INFO)
