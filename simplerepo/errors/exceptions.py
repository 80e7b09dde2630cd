"""
Exception classes raised by simplerepo itself.

Database errors are never wrapped: SQLAlchemy exceptions (OperationalError,
IntegrityError, ProgrammingError, ...) reach the caller unchanged. The classes
here cover the failures that originate in this library, such as an entity type
that cannot be mapped to a table.
"""

from typing import Any, Dict, Optional


class RepositoryError(Exception):
    """
    Base exception for all simplerepo errors.

    Attributes:
        message: Human-readable error message
        code: Error code identifier (default: REPOSITORY_ERROR)
        details: Additional error details
    """

    def __init__(
        self,
        message: str = "Repository error",
        code: str = "REPOSITORY_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = dict(details or {})
        super().__init__(self.message)


class MappingError(RepositoryError):
    """Exception raised when an entity type cannot be mapped to a table."""

    def __init__(
        self,
        message: str = "Entity type cannot be mapped",
        entity_type: Optional[type] = None,
        code: str = "MAPPING_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        if entity_type is not None:
            details = dict(details or {})
            details["entity_type"] = getattr(entity_type, "__name__", repr(entity_type))

        super().__init__(message=message, code=code, details=details)


class UnsupportedDialectError(RepositoryError):
    """Exception raised when an operation has no implementation for a dialect."""

    def __init__(
        self,
        message: str = "Operation not supported by this database dialect",
        dialect: Optional[str] = None,
        code: str = "UNSUPPORTED_DIALECT",
        details: Optional[Dict[str, Any]] = None,
    ):
        if dialect:
            message = f"{message}: {dialect}"
            details = dict(details or {})
            details["dialect"] = dialect

        super().__init__(message=message, code=code, details=details)
