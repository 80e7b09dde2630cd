"""
simplerepo - single-call CRUD, query and stored procedure helpers over SQLAlchemy.

Every operation opens a connection, runs one statement and closes the
connection again. Entities are plain dataclasses, pydantic models or
SQLAlchemy models; tables and keys are found by convention.

Usage:
    from simplerepo import Repository, TypedRepository

    repo = Repository("sqlite:///pets.db")
    dogs = repo.get_list(Dog, "age > :age", {"age": 3})
"""

__version__ = "0.1.0"

# Public API exports
from simplerepo.config import RepositorySettings, get_settings
from simplerepo.db.mapping import mapped
from simplerepo.errors import MappingError, RepositoryError, UnsupportedDialectError
from simplerepo.logging import get_logger
from simplerepo.repository import (
    AsyncRepository,
    AsyncTypedRepository,
    Repository,
    TypedRepository,
)
