# pylint: disable=protected-access, missing-module-docstring
"""
Tests for the GEET log handler and JSON formatter.
"""

import json
import logging
import pytest

from geet.core.logger import HANDLER_NAME, Logger


def _geet_handlers():
    return [h for h in logging.getLogger().handlers if h.get_name() == HANDLER_NAME]


@pytest.fixture(autouse=True)
def reset_logger(monkeypatch):
    """
    Reset Logger configuration and environment variables before each test.
    """
    Logger._configured = False
    monkeypatch.delenv("GEET_LOG_FMT", raising=False)
    monkeypatch.delenv("GEET_LOG_LEVEL", raising=False)
    root = logging.getLogger()
    saved = list(root.handlers)
    for h in saved:
        root.removeHandler(h)
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
    for h in saved:
        root.addHandler(h)
    Logger._configured = False


def test_default_format_is_tagged_geet(capsys):
    logger = Logger.get_logger("geet.analytics.mad")
    logger.info("iMAD converged after %d iterations", 4)
    err = capsys.readouterr().err
    assert " geet [INFO] geet.analytics.mad: iMAD converged after 4 iterations" in err


def test_custom_format_string():
    Logger.setup(fmt="%(levelname)s|%(message)s")
    (handler,) = _geet_handlers()
    record = logging.LogRecord("geet", logging.INFO, __file__, 1, "scene", (), None)
    assert handler.format(record) == "INFO|scene"


def test_json_logging_env(capsys, monkeypatch):
    """
    When GEET_LOG_FMT=json and GEET_LOG_LEVEL=DEBUG, output must be JSON.
    """
    monkeypatch.setenv("GEET_LOG_FMT", "json")
    monkeypatch.setenv("GEET_LOG_LEVEL", "DEBUG")

    logger = Logger.get_logger("geet.export")
    logger.debug("started task %s", "TASK123")
    record = json.loads(capsys.readouterr().err.strip())
    assert record["level"] == "DEBUG"
    assert record["name"] == "geet.export"
    assert record["message"] == "started task TASK123"
    assert "timestamp" in record
    assert "exception" not in record


def test_json_logging_includes_exception(capsys):
    Logger.setup(fmt="json")
    logger = Logger.get_logger("geet.cli")
    try:
        raise RuntimeError("EE unavailable")
    except RuntimeError:
        logger.error("normalize failed", exc_info=True)
    record = json.loads(capsys.readouterr().err.strip())
    assert record["message"] == "normalize failed"
    assert "RuntimeError: EE unavailable" in record["exception"]


def test_level_from_env(monkeypatch):
    monkeypatch.setenv("GEET_LOG_LEVEL", "warning")
    Logger.setup()
    assert logging.getLogger().level == logging.WARNING


def test_client_libraries_are_quieted():
    Logger.setup(level=logging.DEBUG)
    assert logging.getLogger("googleapiclient.discovery_cache").level == logging.WARNING


def test_single_geet_handler_and_foreign_handlers_kept():
    foreign = logging.NullHandler()
    logging.getLogger().addHandler(foreign)
    Logger.setup()
    Logger._configured = False
    Logger.setup()
    assert len(_geet_handlers()) == 1
    assert foreign in logging.getLogger().handlers
