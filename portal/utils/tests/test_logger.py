"""Tests for the structured logger."""

import importlib.util
import inspect
import logging

import pytest

from portal.utils.logger import PortalLogger, logger


class _Capture(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def captured():
    handler = _Capture()
    base = logger.logger
    previous = base.level
    base.addHandler(handler)
    base.setLevel(logging.DEBUG)
    yield handler.records
    base.removeHandler(handler)
    base.setLevel(previous)


def test_kwargs_become_fields(captured):
    logger.info("Sent project update", project_id="p-1", recipient="a@example.com")

    (record,) = captured
    assert record.getMessage() == "Sent project update"
    assert record.project_id == "p-1"
    assert record.recipient == "a@example.com"


def test_reserved_names_are_prefixed(captured):
    logger.warning("Upload rejected", filename="notes.txt", name="x")

    (record,) = captured
    assert record.field_filename == "notes.txt"
    assert record.field_name == "x"
    assert record.name == "portal"


def test_bind_merges_fields(captured):
    scoped = logger.bind(project_id="p-2")

    scoped.info("Task edited", task_id="t-9")

    assert isinstance(scoped, PortalLogger)
    (record,) = captured
    assert record.project_id == "p-2"
    assert record.task_id == "t-9"


def test_error_records_caller_location(captured):
    line = inspect.currentframe().f_lineno + 1
    logger.error("Mail send failed")

    (record,) = captured
    assert record.levelno == logging.ERROR
    assert record.file.endswith(f"test_logger.py:{line}")


def test_exception_attaches_traceback(captured):
    try:
        raise ValueError("boom")
    except ValueError:
        logger.exception("Webhook handling failed", event="email.opened")

    (record,) = captured
    assert record.exc_info[0] is ValueError
    assert record.event == "email.opened"


def test_log_method_parameter_names_are_prefixed(captured):
    logger.debug("Logger level changed", level="DEBUG", msg="from env")

    (record,) = captured
    assert record.getMessage() == "Logger level changed"
    assert record.levelno == logging.DEBUG
    assert record.field_level == "DEBUG"
    assert record.field_msg == "from env"


def test_error_accepts_level_field(captured):
    logger.error("Store error", level="critical")

    (record,) = captured
    assert record.levelno == logging.ERROR
    assert record.field_level == "critical"


def test_module_executes_in_a_fresh_namespace():
    module_spec = importlib.util.find_spec("portal.utils.logger")
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)

    assert isinstance(module.logger, module.PortalLogger)
    assert len(module.logger.logger.handlers) == 1
