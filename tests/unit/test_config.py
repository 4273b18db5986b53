"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from gitscope.config import DEFAULT_KEYWORDS, Settings, get_settings
from gitscope.monitor.classifier import ThresholdConfig
from gitscope.monitor.config import DEFAULT_MAX_MESSAGE_LENGTH, DispatchMode


def _settings(**overrides) -> Settings:
    values = {
        "github_token": "gh-token",
        "telegram_bot_token": "tg-token",
        "telegram_chat_id": "-100",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestSettingsDefaults:
    """Tests for default values."""

    def test_defaults(self):
        """Optional settings fall back to their defaults."""
        settings = _settings()
        assert settings.state_file_path == "./state.json"
        assert settings.monitor_cron == "0 * * * *"
        assert settings.cooldown_days == 7
        assert settings.batch_threshold == 5
        assert settings.dispatch_mode == "batched"
        assert settings.max_stars is None
        assert settings.log_level == "INFO"

    def test_default_keywords(self):
        """Default keywords parse into a list."""
        settings = _settings(MONITOR_KEYWORDS=DEFAULT_KEYWORDS)
        assert "openclaw" in settings.monitor_keywords
        assert "openclaw skills" in settings.monitor_keywords

    def test_secrets_are_masked(self):
        """Tokens do not appear in the settings repr."""
        settings = _settings()
        assert "gh-token" not in repr(settings)
        assert settings.github_token.get_secret_value() == "gh-token"

    def test_get_settings_is_cached(self):
        """get_settings returns one shared instance."""
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()


class TestSettingsFromEnvironment:
    """Tests for environment variable loading."""

    def test_env_values(self, monkeypatch):
        """Settings are read from environment variables."""
        monkeypatch.setenv("COOLDOWN_DAYS", "3")
        monkeypatch.setenv("MONITOR_KEYWORDS", "ai, llm ,,rust")
        monkeypatch.setenv("DISPATCH_MODE", "COMBINED")
        monkeypatch.setenv("MAX_STARS", "1000")

        settings = _settings()

        assert settings.cooldown_days == 3
        assert settings.monitor_keywords == ["ai", "llm", "rust"]
        assert settings.dispatch_mode == "combined"
        assert settings.max_stars == 1000

    def test_empty_max_stars_means_unlimited(self, monkeypatch):
        """An empty MAX_STARS disables the filter."""
        monkeypatch.setenv("MAX_STARS", "")
        assert _settings().max_stars is None

    def test_missing_required(self, monkeypatch):
        """Missing credentials fail validation."""
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with pytest.raises(ValidationError):
            Settings(_env_file=None, telegram_bot_token="t", telegram_chat_id="1")


class TestSettingsValidation:
    """Tests for field validators."""

    @pytest.mark.parametrize("days", [0, 91])
    def test_cooldown_range(self, days):
        """Cooldown must be between 1 and 90 days."""
        with pytest.raises(ValidationError):
            _settings(cooldown_days=days)

    def test_log_level_uppercased(self):
        """Log level is normalized."""
        assert _settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        """Unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            _settings(log_level="LOUD")

    def test_invalid_dispatch_mode(self):
        """Unknown dispatch modes are rejected."""
        with pytest.raises(ValidationError):
            _settings(dispatch_mode="sometimes")

    def test_blank_keywords_rejected(self):
        """At least one keyword is required."""
        with pytest.raises(ValidationError):
            _settings(MONITOR_KEYWORDS=" , ,")

    def test_cron_field_count(self):
        """Schedules must have five fields."""
        with pytest.raises(ValidationError):
            _settings(monitor_cron="0 * * *")


class TestDerivedConfig:
    """Tests for the config objects built from settings."""

    def test_threshold_config(self):
        """Threshold settings map onto ThresholdConfig."""
        thresholds = _settings(hot_multiplier=4, new_repo_min_stars=50).threshold_config()
        assert isinstance(thresholds, ThresholdConfig)
        assert thresholds.hot_multiplier == 4
        assert thresholds.new_repo_min_stars == 50
        assert thresholds.young_repo_min_velocity == 5

    def test_monitor_config(self):
        """Monitoring settings map onto MonitorConfig."""
        config = _settings(
            MONITOR_KEYWORDS="ai,llm",
            cooldown_days=3,
            batch_threshold=10,
            dispatch_mode="combined",
            max_stars=500,
        ).monitor_config()
        assert config.keywords == ["ai", "llm"]
        assert config.cooldown_days == 3
        assert config.batch_threshold == 10
        assert config.dispatch_mode is DispatchMode.COMBINED
        assert config.max_stars == 500
        assert config.max_message_length == DEFAULT_MAX_MESSAGE_LENGTH

    def test_settings_module_has_no_cycle_dependency(self):
        """Settings build MonitorConfig from the light config module."""
        import gitscope.config as settings_module

        assert settings_module.MonitorConfig.__module__ == "gitscope.monitor.config"
        assert not hasattr(settings_module, "MonitorCycle")
