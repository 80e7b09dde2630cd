"""
Logger configuration helpers for simplerepo.

Facades log through ``logging.getLogger(__name__)`` and leave configuration to
the host application. The helpers here are used by ``from_settings`` and by
applications that want simplerepo to attach its own console handler. Handlers
installed by the host are never touched; calling ``setup_logger`` again only
replaces the handler it installed itself.
"""

import logging
import sys
from typing import Optional, TextIO

from simplerepo.config.base import RepositorySettings
from simplerepo.logging.formatters import JsonFormatter

# Type alias for Python's standard logger
Logger = logging.Logger

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attribute marking handlers attached by setup_logger
_OWNED = "_simplerepo_handler"


def _resolve_level(level: str, debug: bool) -> int:
    if debug:
        return logging.DEBUG
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logger(
    name: str,
    level: str = "INFO",
    *,
    debug: bool = False,
    json_format: bool = False,
    stream: Optional[TextIO] = None,
) -> Logger:
    """
    Attach a simplerepo console handler to the named logger.

    Args:
        name: Logger name (usually a simplerepo module's __name__)
        level: Level name; unknown names fall back to INFO
        debug: If True, the level is DEBUG regardless of ``level``
        json_format: Emit records through JsonFormatter
        stream: Output stream, stdout by default

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(level, debug))

    for handler in [h for h in logger.handlers if getattr(h, _OWNED, False)]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonFormatter() if json_format else logging.Formatter(DEFAULT_FORMAT))
    setattr(handler, _OWNED, True)
    logger.addHandler(handler)
    return logger


def get_logger(
    name: str,
    settings: Optional[RepositorySettings] = None,
    json_format: Optional[bool] = None,
) -> Logger:
    """Configure the named logger from DEBUG and LOG_JSON_FORMAT."""
    debug = bool(settings and settings.DEBUG)
    if json_format is None:
        json_format = bool(settings and settings.LOG_JSON_FORMAT)
    return setup_logger(name, debug=debug, json_format=json_format)


def ensure_logger(
    logger: Optional[Logger] = None,
    name: Optional[str] = None,
    settings: Optional[RepositorySettings] = None,
) -> Logger:
    """Return ``logger`` if given, otherwise a logger configured from ``settings``."""
    if logger:
        return logger
    if not name:
        raise ValueError("Module name must be provided when logger is not specified")
    return get_logger(name, settings)
