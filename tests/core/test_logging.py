from __future__ import annotations

import io
import json
import sys

import pytest
import structlog

from connectflow.logging import bind_command, configure_logging


@pytest.fixture
def stderr(monkeypatch) -> io.StringIO:
    stream = io.StringIO()
    monkeypatch.setattr(sys, "stderr", stream)
    yield stream
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


def test_json_lines_carry_bound_command(stderr: io.StringIO) -> None:
    configure_logging("INFO")
    bind_command("directory")

    structlog.get_logger("connectflow.tests").info("results.ranked", count=2)

    record = json.loads(stderr.getvalue().splitlines()[-1])
    assert record["event"] == "results.ranked"
    assert record["command"] == "directory"
    assert record["level"] == "info"
    assert record["count"] == 2
    assert "timestamp" in record


def test_console_format_is_plain_text(stderr: io.StringIO) -> None:
    configure_logging("INFO", fmt="console")
    bind_command("approval")

    structlog.get_logger("connectflow.tests").warning("approval.check_failed", error="offline")

    line = stderr.getvalue().splitlines()[-1]
    assert "approval.check_failed" in line
    assert "command=approval" in line
    assert "error=offline" in line


def test_level_filters_lower_events(stderr: io.StringIO) -> None:
    configure_logging("WARNING")

    structlog.get_logger("connectflow.tests").info("interview.started")

    assert stderr.getvalue() == ""


def test_bind_command_replaces_previous_context(stderr: io.StringIO) -> None:
    configure_logging("INFO")
    bind_command("interview", run="a")
    bind_command("approval")

    structlog.get_logger("connectflow.tests").info("approval.pending")

    record = json.loads(stderr.getvalue().splitlines()[-1])
    assert record["command"] == "approval"
    assert "run" not in record


def test_unknown_format_is_rejected() -> None:
    with pytest.raises(ValueError):
        configure_logging("INFO", fmt="xml")
