# tests/test_config.py
"""Tests for settings validation"""
import pytest

from weatherbot.config import Settings, validate_or_raise, warn_on_risky_config


def _settings(**overrides) -> Settings:
    base = {
        "telegram_bot_token": "123:abc",
        "google_api_key": "key",
    }
    base.update(overrides)
    return Settings(_env_file=None, **base)


class TestValidateRequired:
    def test_all_present(self):
        assert _settings().validate_required() == []

    def test_missing_credentials(self):
        s = _settings(telegram_bot_token=None, google_api_key="")
        assert s.validate_required() == ["telegram_bot_token", "google_api_key"]

    def test_webhook_mode_needs_url(self):
        s = _settings(telegram_mode="webhook")
        assert s.is_webhook_mode
        assert s.validate_required() == ["telegram_webhook_url"]

    def test_validate_or_raise(self):
        with pytest.raises(RuntimeError, match="google_api_key"):
            validate_or_raise(_settings(google_api_key=None))

    def test_validate_or_raise_ok(self):
        validate_or_raise(_settings())


class TestRiskyConfig:
    def test_defaults_are_quiet(self):
        assert warn_on_risky_config(_settings()) == []

    def test_webhook_without_secret(self):
        s = _settings(telegram_mode="webhook", telegram_webhook_url="https://bot.example/webhooks/telegram")
        warnings = warn_on_risky_config(s)
        assert any("telegram_webhook_secret" in w for w in warnings)

    def test_prod_metrics(self):
        s = _settings(app_env="prod")
        assert s.is_production
        assert any("/metrics" in w for w in warn_on_risky_config(s))

    def test_long_timeout(self):
        s = _settings(external_timeout_seconds=30)
        assert any("external_timeout_seconds" in w for w in warn_on_risky_config(s))
