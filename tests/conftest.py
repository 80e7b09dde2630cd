import pytest
from sqlalchemy import create_engine, text

from simplerepo.config import get_settings
from simplerepo.db.statements import PROCEDURE_BUILDERS
from tests.entities import SCHEMA, Base, sqlite_procedure


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    # Settings are read from the environment; keep tests isolated from it
    for name in ("DATABASE_URL", "DB_ECHO", "DEBUG", "LOG_JSON_FORMAT"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def database_url(tmp_path):
    """
    File-backed SQLite database with the test schema.

    Each repository call opens a new connection, so an in-memory database
    would be empty on every call.
    """
    url = f"sqlite:///{tmp_path / 'test.db'}"
    engine = create_engine(url)
    with engine.begin() as connection:
        for statement in SCHEMA:
            connection.execute(text(statement))
    Base.metadata.create_all(engine)
    engine.dispose()
    return url


@pytest.fixture
def sqlite_procedures(monkeypatch):
    """Register the SQLite stand-in for stored procedure calls."""
    monkeypatch.setitem(PROCEDURE_BUILDERS, "sqlite", sqlite_procedure)
