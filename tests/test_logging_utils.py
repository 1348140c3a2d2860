"""Tests for structured event logging."""

import json
import logging
from pathlib import Path

from cmdlayers.logging_utils import StructuredTextFormatter, log_event, logger, setup_logging
from cmdlayers.models import Domain


def _record(message, level=logging.INFO):
    return logging.LogRecord("cmdlayers", level, __file__, 1, message, None, None)


class TestLogEvent:
    """Test JSON event payloads."""

    def test_payload_is_json(self, caplog):
        with caplog.at_level(logging.INFO, logger="cmdlayers"):
            log_event("domain_selected", domain=Domain.SET_MAX, inline=True, path=Path("/tmp/x"))

        payload = json.loads(caplog.records[-1].getMessage())
        assert payload["event"] == "domain_selected"
        assert payload["domain"] == "setmax"
        assert payload["inline"] is True
        assert payload["path"] == "/tmp/x"
        assert "ts" in payload

    def test_level_is_respected(self, caplog):
        with caplog.at_level(logging.INFO, logger="cmdlayers"):
            log_event("command_dispatched", level=logging.DEBUG, command="x")

        assert caplog.records == []


class TestStructuredTextFormatter:
    """Test human-readable log blocks."""

    def test_event_block_key_order(self):
        """Test that preferred keys come first and None values are dropped."""
        formatter = StructuredTextFormatter()
        message = json.dumps(
            {
                "ts": "2026-03-01T12:00:00+00:00",
                "event": "layer_transfer",
                "zeta": 1,
                "depth": 1,
                "to_layer": "report",
                "from_layer": "Main menu",
                "unused": None,
            }
        )

        lines = formatter.format(_record(message)).splitlines()

        assert lines[0] == "=== layer_transfer ==="
        keys = [line.split(":", 1)[0] for line in lines[1:]]
        assert keys[:3] == ["ts", "level", "logger"]
        assert keys[3:6] == ["from_layer", "to_layer", "depth"]
        assert "unused" not in keys
        assert keys[-1] == "zeta"

    def test_plain_message(self):
        formatter = StructuredTextFormatter()
        text = formatter.format(_record("plain text\nsecond line"))

        assert text.startswith("=== cmdlayers ===")
        assert "message: plain text\\nsecond line" in text

    def test_entries_are_separated(self):
        formatter = StructuredTextFormatter()
        first = formatter.format(_record('{"event":"app_start"}'))
        second = formatter.format(_record('{"event":"app_stop"}'))

        assert first.startswith("=== app_start ===")
        assert second.startswith("\n=== app_stop ===")


class TestSetupLogging:
    """Test logging bootstrap."""

    def test_file_logging(self, tmp_path):
        log_path = tmp_path / "nested" / "app.log"

        setup_logging(str(log_path))
        log_event("app_start", transport="console")

        assert "=== app_start ===" in log_path.read_text(encoding="utf-8")

    def test_debug_level(self, tmp_path):
        log_path = tmp_path / "app.log"

        setup_logging(str(log_path), debug=True)
        log_event("report_rendered", level=logging.DEBUG, period_ms=1000)

        assert "period_ms: 1000" in log_path.read_text(encoding="utf-8")

    def test_no_log_file_disables_logging(self):
        setup_logging(None)
        assert not logger.isEnabledFor(logging.CRITICAL)
