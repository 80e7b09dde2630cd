"""
Database layer for simplerepo: public API

Features:
- Entity mapping for dataclasses, pydantic models, SQLAlchemy models and
  annotated classes (mapping)
- Statement assembly on SQLAlchemy Core (statements)
- NullPool engines and one-connection-per-call scopes, sync and async (engine)

Limitations:
- No migrations, connection pool tuning, or cross-call transactions
- Stored procedures only on dialects with a registered builder
"""

from simplerepo.db.engine import (
    create_async_engine_for,
    create_sync_engine,
    make_async_url,
    make_sync_url,
    open_async_connection,
    open_connection,
)
from simplerepo.db.mapping import EntityMap, FieldMap, entity_fields, entity_map, map_row, mapped
from simplerepo.db.statements import DEFAULT_SP_LIST_TIMEOUT, PROCEDURE_BUILDERS, Command

__all__ = [
    "create_sync_engine",
    "create_async_engine_for",
    "make_sync_url",
    "make_async_url",
    "open_connection",
    "open_async_connection",
    "EntityMap",
    "FieldMap",
    "entity_fields",
    "entity_map",
    "map_row",
    "mapped",
    "Command",
    "PROCEDURE_BUILDERS",
    "DEFAULT_SP_LIST_TIMEOUT",
]
