from __future__ import annotations

import json
import logging
import sys

import pytest

from community_service.core.logging import (
    _ContainerFormatter,
    _JsonFormatter,
    setup_logging,
)


def _record(level: int = logging.INFO, msg: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="community_service.services.membership_service",
        level=level,
        pathname="membership_service.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_sets_root_level() -> None:
    setup_logging("debug")
    assert logging.getLogger().level == logging.DEBUG
    setup_logging("warning")
    assert logging.getLogger().level == logging.WARNING


def test_unknown_level_means_info() -> None:
    setup_logging("nonexistent")
    assert logging.getLogger().level == logging.INFO


def test_noisy_libraries_stay_at_warning() -> None:
    setup_logging("debug")
    assert logging.getLogger("uvicorn").level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    setup_logging("error")
    assert logging.getLogger("sqlalchemy.engine").level == logging.ERROR


def test_json_format_selects_json_formatter() -> None:
    setup_logging("info", json_format=True)
    (handler,) = logging.getLogger().handlers
    assert isinstance(handler.formatter, _JsonFormatter)


def test_container_formatter_location_only_for_warnings() -> None:
    fmt = _ContainerFormatter()
    assert "[membership_service.py:" not in fmt.format(_record(logging.INFO))
    assert "[membership_service.py:42]" in fmt.format(_record(logging.WARNING))


def test_json_formatter_promotes_membership_fields() -> None:
    output = _JsonFormatter().format(
        _record(
            logging.WARNING,
            "refused",
            request_id="req-1",
            community_id=7,
            actor_id=3,
            code="membership_full",
            unrelated="dropped",
        )
    )
    parsed = json.loads(output)
    assert parsed["level"] == "WARNING"
    assert parsed["message"] == "refused"
    assert parsed["request_id"] == "req-1"
    assert parsed["community_id"] == 7
    assert parsed["actor_id"] == 3
    assert parsed["code"] == "membership_full"
    assert "unrelated" not in parsed


def test_json_formatter_includes_exception() -> None:
    try:
        raise ValueError("boom")
    except ValueError:
        record = _record(logging.ERROR)
        record.exc_info = sys.exc_info()
    parsed = json.loads(_JsonFormatter().format(record))
    assert "ValueError: boom" in parsed["exception"]
