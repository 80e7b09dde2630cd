"""
Custom log formatters for simplerepo.

Limitations:
- JSON logs include timestamp, level, logger name and message, plus any extra
  fields listed in JsonFormatter.EXTRA_FIELDS.
"""

import json
import logging
from datetime import datetime


class JsonFormatter(logging.Formatter):
    """
    Format log records as JSON for structured logging.

    Repository operations attach ``operation`` and ``entity`` extras to their
    debug records; those are copied into the JSON payload when present.
    """

    EXTRA_FIELDS = ("operation", "entity")

    def format(self, record: logging.LogRecord) -> str:
        """
        Format the specified record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON string containing the formatted log record
        """
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in self.EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)
        return json.dumps(log_data, default=str)
