"""
Unit Tests for Settings and Logging Setup
"""

import logging

import pytest
from pydantic import ValidationError

from grounding_engine.core.config import GroundingSettings
from grounding_engine.core.logging_config import configure_logging


class TestGroundingSettings:

    def test_defaults(self):
        config = GroundingSettings(_env_file=None)
        assert config.TICKET_PREFIX == "MM"
        assert config.THRESHOLD_PRESET == "default"
        assert config.CHECK_URL_ACCESSIBILITY is True

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("GROUNDING_TICKET_PREFIX", "OPS")
        monkeypatch.setenv("GROUNDING_THRESHOLD_PRESET", "Strict")
        config = GroundingSettings(_env_file=None)
        assert config.TICKET_PREFIX == "OPS"
        assert config.THRESHOLD_PRESET == "strict"

    def test_log_level_is_normalized(self):
        assert GroundingSettings(_env_file=None, LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"

    def test_unknown_log_level(self):
        with pytest.raises(ValidationError):
            GroundingSettings(_env_file=None, LOG_LEVEL="chatty")

    def test_unknown_preset(self):
        with pytest.raises(ValidationError):
            GroundingSettings(_env_file=None, THRESHOLD_PRESET="relaxed")


def test_configure_logging_quiets_httpx():
    configure_logging("debug")
    assert logging.getLogger("httpx").level == logging.WARNING
