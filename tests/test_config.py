"""
Tests for environment-driven settings.
"""

import pytest

from indisense.config import DEFAULT_GATEWAY_URL, ConfigurationError, Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in (
            "LOVABLE_API_KEY",
            "INDISENSE_GATEWAY_URL",
            "INDISENSE_GATEWAY_TIMEOUT",
            "INDISENSE_MAX_MEDIA_MB",
            "INDISENSE_LOG_LEVEL",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = Settings.from_env()

        assert settings.api_key is None
        assert settings.gateway_url == DEFAULT_GATEWAY_URL
        assert settings.gateway_timeout == 60.0
        assert settings.max_media_bytes == 20 * 1024 * 1024
        assert settings.log_level == "INFO"

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("LOVABLE_API_KEY", "secret")
        monkeypatch.setenv("INDISENSE_MODEL", "some/other-model")
        monkeypatch.setenv("INDISENSE_GATEWAY_TIMEOUT", "0")
        monkeypatch.setenv("INDISENSE_MAX_MEDIA_MB", "1.5")
        monkeypatch.setenv("INDISENSE_LOG_LEVEL", "debug")
        monkeypatch.setenv("INDISENSE_PORT", "9000")

        settings = Settings.from_env()

        assert settings.api_key == "secret"
        assert settings.model == "some/other-model"
        assert settings.gateway_timeout is None
        assert settings.max_media_bytes == int(1.5 * 1024 * 1024)
        assert settings.log_level == "DEBUG"
        assert settings.port == 9000

    def test_empty_key_counts_as_missing(self, monkeypatch):
        monkeypatch.setenv("LOVABLE_API_KEY", "")
        assert Settings.from_env().api_key is None

    @pytest.mark.parametrize(
        "name", ["INDISENSE_GATEWAY_TIMEOUT", "INDISENSE_MAX_MEDIA_MB", "INDISENSE_PORT"]
    )
    def test_malformed_number_names_the_variable(self, monkeypatch, name):
        monkeypatch.setenv(name, "soon")

        with pytest.raises(ConfigurationError) as exc_info:
            Settings.from_env()

        assert name in str(exc_info.value)
        assert "'soon'" in str(exc_info.value)
