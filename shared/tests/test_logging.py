"""
Unit tests for structured logging configuration.
"""

import json

import pytest
import structlog

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.logging import clear_context, configure_logging, set_relay_context


class TestConfigureLogging:
    """Test cases for the configured processor chain."""

    @pytest.fixture(autouse=True)
    def reset_structlog(self):
        yield
        clear_context()
        structlog.reset_defaults()

    def render(self, event_dict):
        processors = structlog.get_config()["processors"]
        start = next(
            i for i, p in enumerate(processors) if isinstance(p, structlog.processors.TimeStamper)
        )
        for processor in processors[start:]:
            event_dict = processor(None, "info", event_dict)
        return json.loads(event_dict)

    def test_timestamp_stays_iso(self):
        configure_logging("relay", "info")

        rendered = self.render({"event": "Relay succeeded", "logger": "relay.transport"})

        assert isinstance(rendered["timestamp"], str)
        assert "T" in rendered["timestamp"]
        assert rendered["service"] == "relay"

    def test_correlation_context_is_attached(self):
        configure_logging("relay", "info")
        relay_id = set_relay_context(chain_id="0040")

        rendered = self.render({"event": "Dispatching relay", "logger": "relay.provider"})

        assert rendered["relay_id"] == relay_id
        assert rendered["chain_id"] == "0040"
