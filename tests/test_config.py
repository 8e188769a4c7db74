"""
Tests for settings validation and logging setup.
"""
import logging
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from shipment_manager.core.config import Settings, settings
from shipment_manager.core.logging_config import MASK, configure_logging, mask_secrets


class TestSettings:
    def test_log_level_is_normalized(self):
        assert Settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            Settings(LOG_LEVEL="chatty")

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(HTTP_TIMEOUT_SECONDS=0)

    def test_defaults(self):
        defaults = Settings()

        assert defaults.INOUT_TEST_COMPANY_ID == 333
        assert defaults.OFFICE_CACHE_KEY_PREFIX == "shipping:offices"
        assert not defaults.is_production


class TestMaskSecrets:
    def test_masks_credentials_recursively(self):
        data = {"username": "u", "Password": "p", "nested": [{"token": "t"}]}

        masked = mask_secrets(data)

        assert masked == {"username": "u", "Password": MASK, "nested": [{"token": MASK}]}
        assert data["Password"] == "p"

    def test_empty_secret_left_as_is(self):
        assert mask_secrets({"token": None}) == {"token": None}


class TestConfigureLogging:
    def test_uses_configured_level(self, monkeypatch):
        basic_config = MagicMock()
        monkeypatch.setattr(logging, "basicConfig", basic_config)

        configure_logging()

        assert basic_config.call_args.kwargs["level"] == settings.LOG_LEVEL

    def test_explicit_level(self, monkeypatch):
        basic_config = MagicMock()
        monkeypatch.setattr(logging, "basicConfig", basic_config)

        configure_logging("ERROR")

        assert basic_config.call_args.kwargs["level"] == "ERROR"
