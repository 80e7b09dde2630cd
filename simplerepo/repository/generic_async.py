"""
Generic repository facade (asyncio).

Same operations and contracts as ``Repository``; every method is a coroutine
that suspends while the database works. The connection string may name a
sync driver: ``sqlite:///app.db`` is opened through aiosqlite and
``postgresql://...`` through asyncpg.
"""

import logging
from typing import Any, List, Optional, Type, TypeVar

from simplerepo.config.base import RepositorySettings, get_settings
from simplerepo.db import statements
from simplerepo.db.engine import create_async_engine_for, open_async_connection
from simplerepo.db.mapping import coerce, entity_map, map_row
from simplerepo.db.statements import DEFAULT_SP_LIST_TIMEOUT, Command, Params
from simplerepo.logging import Logger, ensure_logger

T = TypeVar("T")


class AsyncRepository:
    """
    Async single-call CRUD, query and stored procedure operations for any entity type.

    Concurrent calls on one instance are independent: each opens its own
    connection, so no ordering between them is implied.
    """

    def __init__(
        self,
        connection_string: str,
        *,
        echo: bool = False,
        logger: Optional[Logger] = None,
    ) -> None:
        self.connection_string = connection_string
        self.engine = create_async_engine_for(connection_string, echo=echo)
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_settings(
        cls, settings: Optional[RepositorySettings] = None, logger: Optional[Logger] = None
    ) -> "AsyncRepository":
        settings = settings or get_settings()
        if not settings.DATABASE_URL:
            raise ValueError("DATABASE_URL is not configured")
        return cls(
            settings.DATABASE_URL,
            echo=settings.DB_ECHO,
            logger=ensure_logger(logger, __name__, settings),
        )

    async def _rows(self, command: Command, timeout: Optional[float]) -> list:
        async with open_async_connection(self.engine, timeout) as connection:
            result = await connection.execute(command.statement, command.params)
            return result.all()

    async def _rowcount(self, command: Command, timeout: Optional[float]) -> int:
        async with open_async_connection(self.engine, timeout) as connection:
            result = await connection.execute(command.statement, command.params)
            return result.rowcount

    def _log(self, operation: str, subject: Any, message: str = "") -> None:
        if isinstance(subject, str):
            name = subject
        else:
            name = getattr(subject, "__name__", None) or type(subject).__name__
        self.logger.debug(
            f"{operation} {name} {message}".rstrip(),
            extra={"operation": operation, "entity": name},
        )

    # ----------- GET single item ----------- #

    async def get(
        self, entity_type: Type[T], key: Any, *, timeout: Optional[float] = None
    ) -> Optional[T]:
        rows = await self._rows(
            statements.select_by_key(entity_map(entity_type), key), timeout
        )
        self._log("get", entity_type, f"key={key!r} found={bool(rows)}")
        return map_row(entity_type, rows[0]) if rows else None

    async def get_where(
        self,
        entity_type: Type[T],
        where: str,
        params: Params = None,
        *,
        timeout: Optional[float] = None,
    ) -> Optional[T]:
        rows = await self._rows(
            statements.select_where(entity_map(entity_type), where, params), timeout
        )
        self._log("get_where", entity_type, f"rows={len(rows)}")
        return map_row(entity_type, rows[0]) if rows else None

    async def get_from_query(
        self,
        result_type: Type[T],
        query: str,
        params: Params = None,
        *,
        timeout: Optional[float] = None,
    ) -> Optional[T]:
        rows = await self._rows(statements.raw_query(query, params), timeout)
        self._log("get_from_query", result_type, f"rows={len(rows)}")
        return map_row(result_type, rows[0]) if rows else None

    # ----------- GET lists ----------- #

    async def get_all(
        self, entity_type: Type[T], *, timeout: Optional[float] = None
    ) -> List[T]:
        rows = await self._rows(statements.select_where(entity_map(entity_type)), timeout)
        self._log("get_all", entity_type, f"rows={len(rows)}")
        return [map_row(entity_type, row) for row in rows]

    async def get_list(
        self,
        entity_type: Type[T],
        where: str,
        params: Params = None,
        *,
        timeout: Optional[float] = None,
    ) -> List[T]:
        rows = await self._rows(
            statements.select_where(entity_map(entity_type), where, params), timeout
        )
        self._log("get_list", entity_type, f"rows={len(rows)}")
        return [map_row(entity_type, row) for row in rows]

    async def get_list_from_query(
        self,
        result_type: Type[T],
        query: str,
        params: Params = None,
        *,
        timeout: Optional[float] = None,
    ) -> List[T]:
        rows = await self._rows(statements.raw_query(query, params), timeout)
        self._log("get_list_from_query", result_type, f"rows={len(rows)}")
        return [map_row(result_type, row) for row in rows]

    async def get_list_paged(
        self,
        entity_type: Type[T],
        page_number: int,
        rows_per_page: int,
        where: Optional[str] = None,
        order_by: Optional[str] = None,
        params: Params = None,
        *,
        timeout: Optional[float] = None,
    ) -> List[T]:
        command = statements.select_page(
            entity_map(entity_type), page_number, rows_per_page, where, order_by, params
        )
        rows = await self._rows(command, timeout)
        self._log("get_list_paged", entity_type, f"page={page_number} rows={len(rows)}")
        return [map_row(entity_type, row) for row in rows]

    # ----------- UPDATE ----------- #

    async def update(self, entity: Any, *, timeout: Optional[float] = None) -> int:
        count = await self._rowcount(
            statements.update_entity(entity_map(type(entity)), entity), timeout
        )
        self._log("update", entity, f"rows={count}")
        return count

    # ----------- INSERT ----------- #

    async def insert(
        self,
        entity: Any,
        key_type: Optional[type] = None,
        *,
        timeout: Optional[float] = None,
    ) -> Any:
        command = statements.insert_entity(entity_map(type(entity)), entity)
        async with open_async_connection(self.engine, timeout) as connection:
            result = await connection.execute(command.statement, command.params)
            inserted = result.inserted_primary_key
        key = inserted[0] if inserted else None
        self._log("insert", entity, f"key={key!r}")
        return coerce(key_type, key)

    # ----------- DELETE ----------- #

    async def delete(
        self, entity_type: type, key: Any, *, timeout: Optional[float] = None
    ) -> int:
        count = await self._rowcount(
            statements.delete_by_key(entity_map(entity_type), key), timeout
        )
        self._log("delete", entity_type, f"key={key!r} rows={count}")
        return count

    async def delete_where(
        self,
        entity_type: type,
        where: str,
        params: Params = None,
        *,
        timeout: Optional[float] = None,
    ) -> int:
        count = await self._rowcount(
            statements.delete_where(entity_map(entity_type), where, params), timeout
        )
        self._log("delete_where", entity_type, f"rows={count}")
        return count

    # ----------- EXECUTE ----------- #

    async def execute_query(
        self, query: str, params: Params = None, *, timeout: Optional[float] = None
    ) -> None:
        await self._rowcount(statements.raw_query(query, params), timeout)
        self._log("execute_query", "query")

    async def execute_scalar(
        self,
        result_type: Type[T],
        query: str,
        params: Params = None,
        *,
        timeout: Optional[float] = None,
    ) -> Optional[T]:
        command = statements.raw_query(query, params)
        async with open_async_connection(self.engine, timeout) as connection:
            result = await connection.execute(command.statement, command.params)
            value = result.scalar()
        self._log("execute_scalar", result_type)
        return coerce(result_type, value)

    # ----------- STORED PROCEDURES ----------- #

    def _procedure(self, name: str, params: Params, returns_rows: bool) -> Command:
        return statements.procedure_call(self.engine.dialect.name, name, params, returns_rows)

    async def execute_sp(
        self, procedure_name: str, params: Params = None, *, timeout: Optional[float] = None
    ) -> None:
        await self._rowcount(self._procedure(procedure_name, params, False), timeout)
        self._log("execute_sp", procedure_name)

    async def execute_sp_single(
        self,
        result_type: Type[T],
        procedure_name: str,
        params: Params = None,
        *,
        timeout: Optional[float] = None,
    ) -> Optional[T]:
        rows = await self._rows(self._procedure(procedure_name, params, True), timeout)
        self._log("execute_sp_single", result_type, f"{procedure_name} rows={len(rows)}")
        return map_row(result_type, rows[0]) if rows else None

    async def execute_sp_list(
        self,
        result_type: Type[T],
        procedure_name: str,
        params: Params = None,
        *,
        timeout: Optional[float] = DEFAULT_SP_LIST_TIMEOUT,
    ) -> List[T]:
        if timeout is None:
            timeout = DEFAULT_SP_LIST_TIMEOUT
        rows = await self._rows(self._procedure(procedure_name, params, True), timeout)
        self._log("execute_sp_list", result_type, f"{procedure_name} rows={len(rows)}")
        return [map_row(result_type, row) for row in rows]
