"""
Error types for simplerepo.

Limitations:
- Database driver and SQLAlchemy errors are propagated as-is; they are not
  translated into this hierarchy.
"""

from simplerepo.errors.exceptions import (
    MappingError,
    RepositoryError,
    UnsupportedDialectError,
)

__all__ = [
    "RepositoryError",
    "MappingError",
    "UnsupportedDialectError",
]
