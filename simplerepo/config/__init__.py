"""
Configuration module for simplerepo.

Example environment variables (in your project's .env or environment):

DATABASE_URL="postgresql://<username>:<password>@<host>:<port>/<database_name>"
DB_ECHO=false
DEBUG=false
LOG_JSON_FORMAT=false

The async facades derive their driver from the same URL, so one setting serves
both ``Repository`` and ``AsyncRepository``.
"""

from .base import RepositorySettings, get_settings

__all__ = [
    "RepositorySettings",
    "get_settings",
]
