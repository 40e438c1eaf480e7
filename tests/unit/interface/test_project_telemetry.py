"""Unit tests for ProjectTelemetry."""
import logging
from unittest.mock import MagicMock

from rich.console import Console

from transmute.interface.telemetry import ProjectTelemetry


def test_handshake_prints_banner():
    tel = ProjectTelemetry("Test", "blue", "Hello")
    tel.console = MagicMock()
    tel.logger = MagicMock()
    tel.handshake()
    tel.console.print.assert_called()
    tel.logger.info.assert_called_once_with("Test Hello")


def test_step_prints_and_logs():
    tel = ProjectTelemetry("Test", "blue", "Hello")
    tel.console = MagicMock()
    tel.logger = MagicMock()
    tel.step("Done")
    tel.console.print.assert_called_once()
    tel.logger.info.assert_called_once_with("Done")


def test_error_prints_and_logs():
    tel = ProjectTelemetry("Test", "blue", "Hello")
    tel.console = MagicMock()
    tel.logger = MagicMock()
    tel.error("Failed")
    tel.logger.error.assert_called_once_with("Failed")


def test_warning_prints_and_logs():
    tel = ProjectTelemetry("Test", "blue", "Hello")
    tel.console = MagicMock()
    tel.logger = MagicMock()
    tel.warning("Careful")
    tel.logger.warning.assert_called_once_with("Careful")


def test_debug_logs_without_printing():
    tel = ProjectTelemetry("Test", "blue", "Hello")
    tel.console = MagicMock()
    tel.logger = MagicMock()
    tel.debug("Detail")
    tel.logger.debug.assert_called_once_with("Detail")
    tel.console.print.assert_not_called()


def test_logger_is_named_after_project(caplog):
    console = Console(record=True, width=80)
    tel = ProjectTelemetry("Transmute", console=console)
    with caplog.at_level(logging.WARNING, logger="transmute.telemetry"):
        tel.warning("stale stubs")
    assert "stale stubs" in caplog.text
    assert "warning: stale stubs" in console.export_text()
