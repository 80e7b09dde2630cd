"""
Statement assembly for repository operations.

Each builder returns a ``Command``: a SQLAlchemy statement plus the parameter
set to execute it with. The sync and async facades share these builders and
differ only in how they execute the command.

Filter fragments and raw queries are passed through as SQL text. Named
placeholders use SQLAlchemy's ``:name`` syntax; ``@name`` is accepted too and
rewritten for every name present in the parameter set.
"""

import re
from typing import Any, Callable, Dict, Mapping, NamedTuple, Optional

from sqlalchemy import delete, insert, select, text, update
from sqlalchemy.sql import Executable

from simplerepo.db.mapping import EntityMap
from simplerepo.errors.exceptions import UnsupportedDialectError

Params = Optional[Mapping[str, Any]]

# Used by execute_sp_list when the caller gives no timeout (seconds)
DEFAULT_SP_LIST_TIMEOUT = 60

# Quoted literals are matched first so placeholders inside them are left alone
_AT_PLACEHOLDER = re.compile(r"('(?:[^']|'')*')|(?<![@\w])@(\w+)")
_LEADING_WHERE = re.compile(r"^\s*where\s+", re.IGNORECASE)
_LEADING_ORDER_BY = re.compile(r"^\s*order\s+by\s+", re.IGNORECASE)


class Command(NamedTuple):
    """A statement ready to execute and its bound parameters."""

    statement: Executable
    params: Optional[Dict[str, Any]] = None


def _copy(params: Params) -> Optional[Dict[str, Any]]:
    return dict(params) if params else None


def convert_placeholders(sql: str, params: Params) -> str:
    """Rewrite ``@name`` placeholders to ``:name`` for names in ``params``."""
    if not params:
        return sql

    def replace(match):
        name = match.group(2)
        if name is None or name not in params:
            return match.group(0)
        return f":{name}"

    return _AT_PLACEHOLDER.sub(replace, sql)


def strip_where(fragment: Optional[str]) -> str:
    """Drop an optional leading WHERE keyword from a filter fragment."""
    if not fragment:
        return ""
    return _LEADING_WHERE.sub("", fragment).strip()


def strip_order_by(fragment: Optional[str]) -> str:
    if not fragment:
        return ""
    return _LEADING_ORDER_BY.sub("", fragment).strip()


def raw_query(query: str, params: Params = None) -> Command:
    """A caller-supplied statement executed as is."""
    return Command(text(convert_placeholders(query, params)), _copy(params))


def select_by_key(emap: EntityMap, key: Any) -> Command:
    return Command(select(emap.table).where(emap.key_column == key))


def select_where(emap: EntityMap, where: Optional[str] = None, params: Params = None) -> Command:
    """SELECT every mapped column, optionally filtered by a SQL fragment."""
    stmt = select(emap.table)
    condition = strip_where(where)
    if condition:
        stmt = stmt.where(text(convert_placeholders(condition, params)))
    return Command(stmt, _copy(params))


def select_page(
    emap: EntityMap,
    page_number: int,
    rows_per_page: int,
    where: Optional[str] = None,
    order_by: Optional[str] = None,
    params: Params = None,
) -> Command:
    """
    One page of rows, ordered by ``order_by`` or by the key column.

    Pages are 1-based; anything below 1 is treated as the first page.

    Raises:
        ValueError: if rows_per_page is less than 1
    """
    if rows_per_page < 1:
        raise ValueError("rows_per_page must be at least 1")
    page_number = max(page_number, 1)
    stmt, bound = select_where(emap, where, params)
    ordering = strip_order_by(order_by)
    if ordering:
        stmt = stmt.order_by(text(ordering))
    else:
        stmt = stmt.order_by(emap.key_column)
    stmt = stmt.limit(rows_per_page).offset((page_number - 1) * rows_per_page)
    return Command(stmt, bound)


def insert_entity(emap: EntityMap, entity: Any) -> Command:
    return Command(insert(emap.table).values(emap.insert_values(entity)))


def update_entity(emap: EntityMap, entity: Any) -> Command:
    stmt = (
        update(emap.table)
        .where(emap.key_column == emap.key_value(entity))
        .values(emap.update_values(entity))
    )
    return Command(stmt)


def delete_by_key(emap: EntityMap, key: Any) -> Command:
    return Command(delete(emap.table).where(emap.key_column == key))


def delete_where(emap: EntityMap, where: str, params: Params = None) -> Command:
    """
    DELETE rows matching a filter fragment.

    Raises:
        ValueError: if the filter is empty; use delete-by-key or an explicit
            always-true predicate to clear a table
    """
    condition = strip_where(where)
    if not condition:
        raise ValueError("delete_where requires a non-empty filter")
    stmt = delete(emap.table).where(text(convert_placeholders(condition, params)))
    return Command(stmt, _copy(params))


# ----------- Stored procedures ----------- #

ProcedureBuilder = Callable[[str, Params, bool], str]


def _mssql_procedure(name: str, params: Params, returns_rows: bool) -> str:
    args = ", ".join(f"@{p} = :{p}" for p in (params or {}))
    return f"EXEC {name} {args}".rstrip()


def _postgresql_procedure(name: str, params: Params, returns_rows: bool) -> str:
    args = ", ".join(f"{p} => :{p}" for p in (params or {}))
    if returns_rows:
        return f"SELECT * FROM {name}({args})"
    return f"CALL {name}({args})"


def _call_procedure(name: str, params: Params, returns_rows: bool) -> str:
    args = ", ".join(f":{p}" for p in (params or {}))
    return f"CALL {name}({args})"


# Keyed by SQLAlchemy dialect name; register additional dialects here
PROCEDURE_BUILDERS: Dict[str, ProcedureBuilder] = {
    "mssql": _mssql_procedure,
    "postgresql": _postgresql_procedure,
    "mysql": _call_procedure,
    "mariadb": _call_procedure,
    "oracle": _call_procedure,
}


def procedure_call(
    dialect_name: str, name: str, params: Params = None, returns_rows: bool = False
) -> Command:
    """
    Build the statement invoking a stored procedure on the given dialect.

    Raises:
        UnsupportedDialectError: if no builder is registered for the dialect
    """
    builder = PROCEDURE_BUILDERS.get(dialect_name)
    if builder is None:
        raise UnsupportedDialectError(
            message="Stored procedures are not supported", dialect=dialect_name
        )
    return Command(text(builder(name, params, returns_rows)), _copy(params))
