"""
Tests for logging setup and the per-scan trace.
"""

import json
import logging

import pytest

from jobflow.logging_config import (
    ColorConsoleFormatter,
    JsonLineFormatter,
    ScanTrace,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def make_record(message="hello", **attrs):
    record = logging.LogRecord("jobflow.test", logging.INFO, __file__, 10, message, None, None)
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


def test_json_formatter_carries_scan_context():
    line = JsonLineFormatter().format(make_record(scan={"batch": 2}))
    entry = json.loads(line)

    assert entry["msg"] == "hello"
    assert entry["level"] == "INFO"
    assert entry["scan"] == {"batch": 2}


def test_console_formatter_truncates_long_messages():
    text = ColorConsoleFormatter().format(make_record("x" * 800))
    assert text.endswith("x" * 500 + "...")


def test_level_from_settings(restore_root_logger):
    root = setup_logging({"level": "error"}, env="development")

    assert root.level == logging.ERROR
    assert len(root.handlers) == 1


def test_env_default_level_and_json(restore_root_logger):
    root = setup_logging({"json": True}, env="testing")

    assert root.level == logging.WARNING
    assert isinstance(root.handlers[0].formatter, JsonLineFormatter)


def test_unknown_level_falls_back_to_env(restore_root_logger):
    assert setup_logging({"level": "chatty"}, env="testing").level == logging.WARNING


def test_log_file_handler(tmp_path, restore_root_logger):
    log_file = tmp_path / "logs" / "app.log"

    root = setup_logging({"file": str(log_file)}, env="development")
    logging.getLogger("jobflow.test").info("written")
    for handler in root.handlers:
        handler.flush()

    assert json.loads(log_file.read_text().splitlines()[-1])["msg"] == "written"


def test_scan_trace_summary():
    trace = ScanTrace()
    trace.event("Scan started", messages=3)
    trace.warning("Message failed", message_id="m1")

    summary = trace.summary()

    assert summary["events"] == 2
    assert summary["warnings"] == 1
    assert summary["logFile"] is None
    assert summary["scanId"] == trace.scan_id


def test_scan_trace_writes_json_lines(tmp_path):
    trace = ScanTrace(tmp_path / "scans")
    trace.event("Batch complete", batch=1, processed=5)

    lines = trace.path.read_text().splitlines()

    assert len(lines) == 1
    assert json.loads(lines[0])["processed"] == 5
    assert trace.summary()["logFile"] == str(trace.path)
