"""Tests for structlog configuration and request context binding."""

import json
import logging

import pytest
import structlog

from bikeshop.core.logging import bind_work_context, configure_structlog, logger_levels

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def clean_context():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


def test_app_loggers_follow_level_and_libraries_stay_quiet():
    levels = logger_levels("debug")

    assert levels["bikeshop"] == {"level": "DEBUG"}
    assert levels["redis"] == {"level": "WARNING"}
    assert levels["uvicorn.access"] == {"level": "WARNING"}


def test_configure_applies_logger_levels():
    configure_structlog(log_level="DEBUG", json_logs=True)

    assert logging.getLogger("bikeshop").level == logging.DEBUG
    assert logging.getLogger("redis").level == logging.WARNING


def test_bind_work_context_replaces_previous_ids():
    bind_work_context(workshop_id="shop-1", item_id="order-1")
    assert structlog.contextvars.get_contextvars() == {"workshop_id": "shop-1", "item_id": "order-1"}

    bind_work_context(workshop_id="shop-2")
    assert structlog.contextvars.get_contextvars() == {"workshop_id": "shop-2"}

    bind_work_context()
    assert structlog.contextvars.get_contextvars() == {}


def test_json_lines_carry_bound_ids(capsys):
    configure_structlog(log_level="INFO", json_logs=True)
    bind_work_context(workshop_id="shop-1", item_id="order-1")

    structlog.get_logger("bikeshop.tests").info("item_touched", status="received")

    line = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert line["event"] == "item_touched"
    assert line["level"] == "info"
    assert line["logger"] == "bikeshop.tests"
    assert line["workshop_id"] == "shop-1"
    assert line["item_id"] == "order-1"
    assert "timestamp" in line


def test_json_exceptions_are_a_single_field(capsys):
    configure_structlog(log_level="INFO", json_logs=True)

    try:
        raise ValueError("bad wheel")
    except ValueError:
        structlog.get_logger("bikeshop.tests").exception("sweep_failed")

    line = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert "ValueError: bad wheel" in line["exception"]
