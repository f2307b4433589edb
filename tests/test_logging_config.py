import json
import logging

import pytest
import structlog

from logging_config import CHATTY_LOGGERS, get_logger, setup_logging
from settings import Settings


def make_settings(**overrides):
    values = {
        "supabase_url": "https://test.supabase.co",
        "supabase_anon_key": "anon-test-key",
        "service_name": "portfolio-test",
        "log_format": "json",
        "log_level": "INFO",
    }
    values.update(overrides)
    return Settings(**values)


def json_lines(capsys):
    return [json.loads(line) for line in capsys.readouterr().out.strip().splitlines()]


@pytest.fixture(autouse=True)
def reset_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


def test_json_lines_carry_service_and_level(capsys):
    setup_logging(make_settings())

    get_logger("tests").info("project_created", project_id="42")

    lines = json_lines(capsys)
    event = lines[-1]
    assert event["event"] == "project_created"
    assert event["project_id"] == "42"
    assert event["service"] == "portfolio-test"
    assert event["level"] == "info"
    assert event["logger"] == "tests"
    assert lines[0]["event"] == "logging_initialized"


def test_stdlib_records_render_as_json_too(capsys):
    setup_logging(make_settings())
    capsys.readouterr()

    logging.getLogger("uvicorn.error").warning("Application startup failed")

    event = json_lines(capsys)[-1]
    assert event["event"] == "Application startup failed"
    assert event["logger"] == "uvicorn.error"
    assert event["service"] == "portfolio-test"


def test_level_filters_debug(capsys):
    setup_logging(make_settings(log_level="WARNING"))

    get_logger("tests").debug("projects_feed_result_dropped")

    assert "projects_feed_result_dropped" not in capsys.readouterr().out


def test_chatty_loggers_only_warn(capsys):
    setup_logging(make_settings(log_level="DEBUG"))
    capsys.readouterr()

    logging.getLogger("httpx").info("HTTP Request: GET https://test.supabase.co/rest/v1/projects")

    assert capsys.readouterr().out == ""
    assert all(logging.getLogger(name).level == logging.WARNING for name in CHATTY_LOGGERS)


def test_repeated_setup_keeps_one_handler():
    setup_logging(make_settings(log_format="console"))
    setup_logging(make_settings(log_format="console", log_level="ERROR"))

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert root.level == logging.ERROR
    assert logging.getLogger("httpx").level == logging.ERROR
