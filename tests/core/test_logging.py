from __future__ import annotations

import json
import logging
import sys

import pytest

from progress_service.core.logging import (
    _ContainerFormatter,
    _JsonFormatter,
    request_id_var,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    setup_logging("info")


def _record(level: int = logging.INFO, msg: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="progress_service.test",
        level=level,
        pathname="engine.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


# ---- setup_logging ----


def test_setup_logging_sets_root_level() -> None:
    setup_logging("debug")
    assert logging.getLogger().level == logging.DEBUG

    setup_logging("warning")
    assert logging.getLogger().level == logging.WARNING


def test_setup_logging_defaults_to_info_for_unknown_level() -> None:
    setup_logging("nonexistent")
    assert logging.getLogger().level == logging.INFO


def test_setup_logging_quiets_sqlalchemy_and_uvicorn_at_debug() -> None:
    setup_logging("debug")
    assert logging.getLogger("uvicorn").level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_setup_logging_allows_uvicorn_at_error() -> None:
    setup_logging("error")
    assert logging.getLogger("uvicorn").level == logging.ERROR


def test_setup_logging_picks_json_formatter() -> None:
    setup_logging("info", json_format=True)
    (handler,) = logging.getLogger().handlers
    assert isinstance(handler.formatter, _JsonFormatter)

    setup_logging("info")
    (handler,) = logging.getLogger().handlers
    assert isinstance(handler.formatter, _ContainerFormatter)


# ---- container format ----


def test_container_formatter_excludes_location_for_info() -> None:
    output = _ContainerFormatter().format(_record())
    assert "hello" in output
    assert "[engine.py:" not in output


def test_container_formatter_includes_location_for_warning() -> None:
    output = _ContainerFormatter().format(_record(logging.WARNING, "bad thing"))
    assert "bad thing" in output
    assert "[engine.py:42]" in output


def test_container_formatter_is_not_json() -> None:
    output = _ContainerFormatter().format(_record())
    assert "INFO" in output
    assert "progress_service.test" in output
    with pytest.raises(json.JSONDecodeError):
        json.loads(output)


# ---- JSON format ----


def test_json_formatter_produces_valid_json() -> None:
    parsed = json.loads(_JsonFormatter().format(_record(msg="lesson updated")))
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "progress_service.test"
    assert parsed["message"] == "lesson updated"
    assert "timestamp" in parsed


def test_json_formatter_lifts_progress_context() -> None:
    record = _record(
        request_id="req-1", user_id="learner-1", item_type="lesson", item_id="l-1"
    )
    parsed = json.loads(_JsonFormatter().format(record))
    assert parsed["request_id"] == "req-1"
    assert parsed["user_id"] == "learner-1"
    assert parsed["item_type"] == "lesson"
    assert parsed["item_id"] == "l-1"


def test_json_formatter_omits_absent_context() -> None:
    parsed = json.loads(_JsonFormatter().format(_record()))
    assert "user_id" not in parsed
    assert "duration_ms" not in parsed


def test_json_formatter_includes_exception_info() -> None:
    try:
        raise ValueError("upsert failed")
    except ValueError:
        record = _record(logging.ERROR, "cascade aborted")
        record.exc_info = sys.exc_info()
        output = _JsonFormatter().format(record)

    parsed = json.loads(output)
    assert "ValueError: upsert failed" in parsed["exception"]


# ---- request id stamping ----


def test_handler_stamps_request_id_from_context() -> None:
    setup_logging("info", json_format=True)
    (handler,) = logging.getLogger().handlers
    record = _record()

    token = request_id_var.set("req-7")
    try:
        handler.filter(record)
    finally:
        request_id_var.reset(token)

    assert json.loads(handler.format(record))["request_id"] == "req-7"


def test_handler_leaves_explicit_request_id_alone() -> None:
    setup_logging("info")
    (handler,) = logging.getLogger().handlers
    record = _record(request_id="from-extra")

    token = request_id_var.set("from-context")
    try:
        handler.filter(record)
    finally:
        request_id_var.reset(token)

    assert record.request_id == "from-extra"  # type: ignore[attr-defined]


def test_no_request_id_outside_a_request() -> None:
    setup_logging("info", json_format=True)
    (handler,) = logging.getLogger().handlers
    record = _record()
    handler.filter(record)
    assert "request_id" not in json.loads(handler.format(record))
