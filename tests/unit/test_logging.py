"""Tests for mrxs2ometiff.utils.logging module."""

from __future__ import annotations

import json
import logging

import pytest

from mrxs2ometiff.utils.logging import configure_logging, get_logger


def _read_last_json_log_line(capsys: pytest.CaptureFixture[str]) -> dict[str, object]:
    captured = capsys.readouterr()
    lines = [line for line in captured.out.splitlines() if line.strip()]
    assert lines, "Expected at least one log line on stdout"
    return json.loads(lines[-1])


def test_configure_logging_sets_root_level() -> None:
    configure_logging(level="WARNING", log_format="console")
    assert logging.getLogger().level == logging.WARNING


def test_configure_logging_default_settings_do_not_error() -> None:
    configure_logging()
    assert logging.getLogger().level == logging.INFO


def test_get_logger_returns_logger_proxy() -> None:
    configure_logging(level="DEBUG", log_format="console")
    logger = get_logger("test.module")
    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")
    assert hasattr(logger, "warning")


def test_json_log_is_valid_and_carries_fields(
    capsys: pytest.CaptureFixture[str],
) -> None:
    configure_logging(level="INFO", log_format="json")

    logger = get_logger("test.json")
    logger.info("writing resolution", series=0, resolution=2)
    payload = _read_last_json_log_line(capsys)

    assert payload["event"] == "writing resolution"
    assert payload["series"] == 0
    assert payload["resolution"] == 2
    assert payload["level"] == "info"
    assert payload["logger"] == "test.json"
    assert "timestamp" in payload


def test_debug_events_suppressed_at_info(
    capsys: pytest.CaptureFixture[str],
) -> None:
    configure_logging(level="INFO", log_format="json")

    get_logger("test.debug").debug("downsampling region")
    captured = capsys.readouterr()
    assert "downsampling region" not in captured.out
