"""
Unit tests for startup configuration.
"""
import pytest

import config
from app.core.exceptions import ConfigurationError

PREFIX = f"{config.APP_ENV.upper()}_"

VALID = {
    "BOT_TOKEN": "123456:TEST",
    "CHANNEL_ID": "@wallswipe",
    "ADMIN_TELEGRAM_ID": "999",
    "INVITES_PER_REWARD": "5",
    "DATABASE_URL": "postgresql://localhost/test",
}


@pytest.fixture
def environment(monkeypatch):
    for key in list(VALID) + ["LEADERBOARD_SIZE", "MAX_CONCURRENT_UPDATES", "REDIS_URL", "LOG_LEVEL"]:
        monkeypatch.delenv(PREFIX + key, raising=False)
    for key, value in VALID.items():
        monkeypatch.setenv(PREFIX + key, value)
    return monkeypatch


class TestLoadSettings:
    """Tests for load_settings function"""

    def test_valid_environment(self, environment):
        settings = config.load_settings()

        assert settings.admin_telegram_id == 999
        assert settings.invites_per_reward == 5
        assert settings.leaderboard_size == 10
        assert settings.redis_url == ""

    def test_missing_key_is_named(self, environment):
        environment.delenv(PREFIX + "BOT_TOKEN")

        with pytest.raises(ConfigurationError) as exc_info:
            config.load_settings()

        assert f"{PREFIX}BOT_TOKEN" in str(exc_info.value)

    def test_all_problems_reported_together(self, environment):
        environment.delenv(PREFIX + "DATABASE_URL")
        environment.setenv(PREFIX + "INVITES_PER_REWARD", "0")

        with pytest.raises(ConfigurationError) as exc_info:
            config.load_settings()

        message = str(exc_info.value)
        assert "DATABASE_URL" in message
        assert "INVITES_PER_REWARD" in message

    def test_non_integer_admin_id(self, environment):
        environment.setenv(PREFIX + "ADMIN_TELEGRAM_ID", "admin")

        with pytest.raises(ConfigurationError):
            config.load_settings()
