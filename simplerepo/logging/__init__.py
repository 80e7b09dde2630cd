"""
Logging module for simplerepo.

Limitations:
- Only console logging is configured by setup_logger, and only on request;
  building a facade does not configure any logger.
- Facades log operations at DEBUG level only; database errors are raised to
  the caller, never logged here.
"""

from simplerepo.logging.formatters import JsonFormatter
from simplerepo.logging.manager import Logger, ensure_logger, get_logger, setup_logger

__all__ = [
    "Logger",
    "get_logger",
    "ensure_logger",
    "setup_logger",
    "JsonFormatter",
]
