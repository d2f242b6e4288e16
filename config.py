import os
from dataclasses import dataclass
from typing import Optional

from app.core.exceptions import ConfigurationError

# ====================================================================================
# ENVIRONMENT CONFIGURATION: PROD / STAGE / LOCAL isolation through prefixes
# ====================================================================================
# All variables are read with the environment prefix:
#   - PROD: PROD_BOT_TOKEN, PROD_DATABASE_URL, PROD_CHANNEL_ID, ...
#   - STAGE: STAGE_BOT_TOKEN, STAGE_DATABASE_URL, ...
#   - LOCAL: LOCAL_BOT_TOKEN, LOCAL_DATABASE_URL, ...
# A STAGE bot can never pick up PROD_BOT_TOKEN by accident.
# ====================================================================================

APP_ENV = os.getenv("APP_ENV", "prod").lower()

DEFAULT_LEADERBOARD_SIZE = 10
DEFAULT_MAX_CONCURRENT_UPDATES = 20


def env(key: str, default: str = "") -> str:
    """
    Read an environment variable with the environment prefix.

    Example:
        env("BOT_TOKEN") -> value of STAGE_BOT_TOKEN when APP_ENV=stage
    """
    env_key = f"{APP_ENV.upper()}_{key}"
    return os.getenv(env_key, default)


@dataclass(frozen=True)
class Settings:
    """Validated startup configuration"""
    app_env: str
    bot_token: str
    channel_id: str
    admin_telegram_id: int
    invites_per_reward: int
    database_url: str
    leaderboard_size: int = DEFAULT_LEADERBOARD_SIZE
    redis_url: str = ""
    log_level: str = "INFO"
    max_concurrent_updates: int = DEFAULT_MAX_CONCURRENT_UPDATES


def _parse_int(key: str, raw: str, errors: list, minimum: Optional[int] = None) -> Optional[int]:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        errors.append(f"{APP_ENV.upper()}_{key} must be an integer, got: {raw!r}")
        return None
    if minimum is not None and value < minimum:
        errors.append(f"{APP_ENV.upper()}_{key} must be >= {minimum}, got: {value}")
        return None
    return value


def load_settings() -> Settings:
    """
    Read and validate configuration from the environment.

    Secrets are validated here and never logged.

    Raises:
        ConfigurationError: if APP_ENV is invalid or any required key is
            missing or malformed. The message lists every problem found.
    """
    if APP_ENV not in ("prod", "stage", "local"):
        raise ConfigurationError(f"Invalid APP_ENV={APP_ENV}. Must be one of: prod, stage, local")

    errors = []
    required = {}
    for key in ("BOT_TOKEN", "CHANNEL_ID", "ADMIN_TELEGRAM_ID", "INVITES_PER_REWARD", "DATABASE_URL"):
        value = env(key).strip()
        if not value:
            errors.append(f"{APP_ENV.upper()}_{key} environment variable is not set")
        required[key] = value

    admin_id = None
    if required["ADMIN_TELEGRAM_ID"]:
        admin_id = _parse_int("ADMIN_TELEGRAM_ID", required["ADMIN_TELEGRAM_ID"], errors)

    step = None
    if required["INVITES_PER_REWARD"]:
        step = _parse_int("INVITES_PER_REWARD", required["INVITES_PER_REWARD"], errors, minimum=1)

    leaderboard_size = _parse_int(
        "LEADERBOARD_SIZE", env("LEADERBOARD_SIZE", default=str(DEFAULT_LEADERBOARD_SIZE)), errors, minimum=1
    )
    max_concurrent = _parse_int(
        "MAX_CONCURRENT_UPDATES",
        env("MAX_CONCURRENT_UPDATES", default=str(DEFAULT_MAX_CONCURRENT_UPDATES)),
        errors,
        minimum=1,
    )

    if errors:
        raise ConfigurationError("; ".join(errors))

    return Settings(
        app_env=APP_ENV,
        bot_token=required["BOT_TOKEN"],
        channel_id=required["CHANNEL_ID"],
        admin_telegram_id=admin_id,
        invites_per_reward=step,
        database_url=required["DATABASE_URL"],
        leaderboard_size=leaderboard_size,
        redis_url=env("REDIS_URL", default="").strip(),
        log_level=env("LOG_LEVEL", default="INFO").upper(),
        max_concurrent_updates=max_concurrent,
    )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Cached settings; the first call validates the environment."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def set_settings(settings: Optional[Settings]) -> None:
    """Replace cached settings (startup wiring and tests)."""
    global _settings
    _settings = settings
