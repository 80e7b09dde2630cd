"""
Engine construction and per-call connection scopes.

Every facade operation runs inside ``open_connection`` (or its async twin):
a fresh DB-API connection is opened, a transaction is begun, the statement
runs, and the transaction is committed (or rolled back on error) before the
connection is closed. Engines use ``NullPool`` so no connection outlives the
call that opened it.
"""

import logging
import math
from contextlib import asynccontextmanager, contextmanager
from typing import AsyncIterator, Iterator, Optional

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.engine import Connection
from sqlalchemy.engine.url import URL, make_url
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool
from sqlalchemy.sql.elements import TextClause

logger = logging.getLogger(__name__)

# Default async driver for each backend when the URL names a sync driver
ASYNC_DRIVERS = {
    "sqlite": "aiosqlite",
    "postgresql": "asyncpg",
    "mysql": "aiomysql",
    "mariadb": "aiomysql",
    "mssql": "aioodbc",
}

# Sync driver substituted for an async-only one; other backends use their default
SYNC_DRIVERS = {
    "mysql": "pymysql",
    "mariadb": "pymysql",
    "mssql": "pyodbc",
}

# Drivers that can only be used from an AsyncEngine
ASYNC_ONLY_DRIVERS = {"aiosqlite", "asyncpg", "aiomysql", "asyncmy", "aioodbc"}

# Drivers usable from both engines
DUAL_DRIVERS = {"psycopg"}


def _split_driver(url: URL):
    backend, _, driver = url.drivername.partition("+")
    return backend, driver


def make_sync_url(connection_string: str) -> URL:
    """
    Return the URL to use with a synchronous engine.

    An async-only driver is replaced by a sync driver for the same backend, so the
    same connection string can be shared by ``Repository`` and ``AsyncRepository``.
    """
    url = make_url(connection_string)
    backend, driver = _split_driver(url)
    if driver in ASYNC_ONLY_DRIVERS:
        sync_driver = SYNC_DRIVERS.get(backend)
        return url.set(drivername=f"{backend}+{sync_driver}" if sync_driver else backend)
    return url


def make_async_url(connection_string: str) -> URL:
    """
    Return the URL to use with an async engine.

    A URL naming a sync driver (or none) gets the backend's default async
    driver, e.g. ``sqlite:///app.db`` becomes ``sqlite+aiosqlite:///app.db``.
    """
    url = make_url(connection_string)
    backend, driver = _split_driver(url)
    if driver in ASYNC_ONLY_DRIVERS or driver in DUAL_DRIVERS:
        return url
    async_driver = ASYNC_DRIVERS.get(backend)
    if async_driver is None:
        # Unknown backend: let SQLAlchemy report whether it can run async
        return url
    return url.set(drivername=f"{backend}+{async_driver}")


def create_sync_engine(connection_string: str, echo: bool = False) -> Engine:
    """Create a synchronous engine that opens one connection per checkout."""
    return create_engine(make_sync_url(connection_string), echo=echo, poolclass=NullPool)


def create_async_engine_for(connection_string: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine that opens one connection per checkout."""
    return create_async_engine(
        make_async_url(connection_string), echo=echo, poolclass=NullPool
    )


def timeout_statement(dialect_name: str, timeout: float) -> Optional[TextClause]:
    """
    Statement that limits execution time for the rest of this connection.

    Returns None for dialects without a session-level statement timeout.
    """
    millis = int(timeout * 1000)
    if dialect_name == "postgresql":
        return text(f"SET statement_timeout = {millis}")
    if dialect_name in ("mysql", "mariadb"):
        return text(f"SET SESSION max_execution_time = {millis}")
    return None


def _set_driver_timeout(connection: Connection, timeout: float) -> bool:
    # pyodbc takes whole seconds; 0 would mean no timeout
    if connection.dialect.name != "mssql":
        return False
    driver_connection = connection.connection.driver_connection
    if hasattr(driver_connection, "timeout"):
        driver_connection.timeout = max(1, math.ceil(timeout))
        return True
    return False


def apply_timeout(connection: Connection, timeout: Optional[float]) -> None:
    """Forward a command timeout (seconds) to the connection's dialect."""
    if timeout is None:
        return
    dialect_name = connection.dialect.name
    statement = timeout_statement(dialect_name, timeout)
    if statement is not None:
        connection.execute(statement)
    elif not _set_driver_timeout(connection, timeout):
        logger.debug(f"Command timeout not supported by dialect {dialect_name}")


async def apply_timeout_async(
    connection: AsyncConnection, timeout: Optional[float]
) -> None:
    """Async counterpart of ``apply_timeout``."""
    if timeout is None:
        return
    dialect_name = connection.dialect.name
    statement = timeout_statement(dialect_name, timeout)
    if statement is not None:
        await connection.execute(statement)
    elif not await connection.run_sync(_set_driver_timeout, timeout):
        logger.debug(f"Command timeout not supported by dialect {dialect_name}")


@contextmanager
def open_connection(engine: Engine, timeout: Optional[float] = None) -> Iterator[Connection]:
    """
    Open a connection for exactly one operation.

    The transaction commits when the block exits normally and rolls back when
    it raises; the connection is closed either way. Errors are not caught.
    """
    with engine.begin() as connection:
        if timeout is not None:
            connection = connection.execution_options(timeout=timeout)
        apply_timeout(connection, timeout)
        yield connection


@asynccontextmanager
async def open_async_connection(
    engine: AsyncEngine, timeout: Optional[float] = None
) -> AsyncIterator[AsyncConnection]:
    """Async counterpart of ``open_connection``."""
    async with engine.begin() as connection:
        if timeout is not None:
            await connection.execution_options(timeout=timeout)
        await apply_timeout_async(connection, timeout)
        yield connection
