"""
Unit tests for the logging module.

Covers:
- Logger creation and retrieval (get_logger, ensure_logger)
- Logger configuration (setup_logger)
- JSON formatter output (JsonFormatter)
- Debug records emitted by repository operations
"""
import io
import json
import logging

import pytest

from simplerepo import AsyncRepository, Repository
from simplerepo.config import RepositorySettings
from simplerepo.logging import JsonFormatter, ensure_logger, get_logger, setup_logger
from tests.entities import Dog


@pytest.fixture
def debug_settings():
    return RepositorySettings(DEBUG=True, LOG_JSON_FORMAT=True)


def test_get_logger_returns_logger():
    logger = get_logger("test.module")
    assert isinstance(logger, logging.Logger)
    assert logger.name == "test.module"
    assert logger.level == logging.INFO


def test_get_logger_uses_settings(debug_settings):
    logger = get_logger("test.settings", debug_settings)
    assert logger.level == logging.DEBUG
    assert isinstance(logger.handlers[0].formatter, JsonFormatter)


def test_get_logger_json_override(debug_settings):
    logger = get_logger("test.override", debug_settings, json_format=False)
    assert not isinstance(logger.handlers[0].formatter, JsonFormatter)


def test_ensure_logger_returns_existing_logger():
    logger = get_logger("test.ensure")
    assert ensure_logger(logger, "test.ensure") is logger


def test_ensure_logger_creates_new_logger():
    ensured = ensure_logger(None, "test.ensure2")
    assert isinstance(ensured, logging.Logger)
    assert ensured.name == "test.ensure2"


def test_ensure_logger_raises_without_name():
    with pytest.raises(ValueError):
        ensure_logger()


def test_setup_logger_keeps_host_handlers():
    logger = logging.getLogger("test.handler")
    logger.handlers.clear()
    host = logging.StreamHandler()
    logger.addHandler(host)
    setup_logger("test.handler")
    setup_logger("test.handler", json_format=True)
    assert len(logger.handlers) == 2
    assert logger.handlers[0] is host
    assert isinstance(logger.handlers[1].formatter, JsonFormatter)


def test_setup_logger_writes_to_stream():
    stream = io.StringIO()
    logger = setup_logger("test.stream", debug=True, json_format=True, stream=stream)
    logger.debug("get Dog key=1", extra={"operation": "get", "entity": "Dog"})
    data = json.loads(stream.getvalue())
    assert data["operation"] == "get"
    assert data["message"] == "get Dog key=1"


def test_setup_logger_invalid_level():
    logger = setup_logger("test.invalid", level="NOTALEVEL")
    assert logger.level == logging.INFO


def test_setup_logger_debug_flag_wins():
    logger = setup_logger("test.debugflag", level="ERROR", debug=True)
    assert logger.level == logging.DEBUG


def test_json_formatter_output():
    formatter = JsonFormatter()
    record = logging.LogRecord(
        name="simplerepo",
        level=logging.DEBUG,
        pathname=__file__,
        lineno=1,
        msg="get_list %s rows=%d",
        args=("Dog", 3),
        exc_info=None,
    )
    record.operation = "get_list"
    record.entity = "Dog"
    data = json.loads(formatter.format(record))
    assert data["level"] == "DEBUG"
    assert data["logger"] == "simplerepo"
    assert data["message"] == "get_list Dog rows=3"
    assert data["operation"] == "get_list"
    assert data["entity"] == "Dog"
    assert "timestamp" in data


def test_json_formatter_without_extras():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "plain", None, None)
    data = json.loads(JsonFormatter().format(record))
    assert "operation" not in data


def test_repository_logs_operations_at_debug(database_url, caplog):
    logger = setup_logger("test.repository", debug=True)
    repo = Repository(database_url, logger=logger)
    with caplog.at_level(logging.DEBUG, logger="test.repository"):
        repo.insert(Dog(name="Rex"))
        repo.get_all(Dog)
    operations = [getattr(r, "operation", None) for r in caplog.records]
    assert operations == ["insert", "get_all"]
    assert caplog.records[1].getMessage() == "get_all Dog rows=1"


@pytest.mark.parametrize(
    "facade,name",
    [
        (Repository, "simplerepo.repository.generic"),
        (AsyncRepository, "simplerepo.repository.generic_async"),
    ],
)
def test_building_repository_leaves_logger_configuration_alone(database_url, facade, name):
    logger = logging.getLogger(name)
    previous_level, previous_handlers = logger.level, list(logger.handlers)
    logger.setLevel(logging.DEBUG)
    try:
        repo = facade(database_url)
        assert repo.logger is logger
        assert logger.level == logging.DEBUG
        assert logger.handlers == previous_handlers
    finally:
        logger.setLevel(previous_level)


def test_from_settings_configures_module_logger(database_url):
    repo = Repository.from_settings(RepositorySettings(DATABASE_URL=database_url, DEBUG=True))
    assert repo.logger.name == "simplerepo.repository.generic"
    assert repo.logger.level == logging.DEBUG
