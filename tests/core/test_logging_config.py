"""Tests for structured logging."""

import json
import logging

import pytest

from tailscale_rotation.logging_config import (StructuredFormatter,
                                               correlation_id_var,
                                               sanitize_log_input,
                                               setup_structured_logging)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def make_record(message: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("tailscale_rotation.test", logging.INFO, __file__, 1, message, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_json_with_correlation_id():
    token = correlation_id_var.set("version-123")
    try:
        output = StructuredFormatter().format(make_record("hello", secret_id="s1"))
    finally:
        correlation_id_var.reset(token)

    data = json.loads(output)
    assert data["message"] == "hello"
    assert data["level"] == "INFO"
    assert data["logger"] == "tailscale_rotation.test"
    assert data["correlation_id"] == "version-123"
    assert data["secret_id"] == "s1"


def test_formatter_without_correlation_id():
    token = correlation_id_var.set(None)
    try:
        data = json.loads(StructuredFormatter().format(make_record("hello")))
    finally:
        correlation_id_var.reset(token)

    assert data["correlation_id"] is None


def test_setup_structured_logging_replaces_handlers(restore_root_logger):
    setup_structured_logging("debug")

    assert restore_root_logger.level == logging.DEBUG
    assert len(restore_root_logger.handlers) == 1
    assert isinstance(restore_root_logger.handlers[0].formatter, StructuredFormatter)
    assert logging.getLogger("botocore").level == logging.WARNING


@pytest.mark.parametrize(
    "value,expected",
    [
        (None, "None"),
        ("plain", "plain"),
        ("a\nb\rc\td", "a\\nb\\rc\\td"),
    ],
)
def test_sanitize_log_input(value, expected):
    assert sanitize_log_input(value) == expected
