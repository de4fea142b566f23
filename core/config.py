"""Application configuration.

All tunables are read from environment variables once, at import time, and
exposed through the module-level `settings` singleton. Invalid values raise
`ConfigurationError` at import.
"""

import os
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core.exceptions import ConfigurationError

_BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


def _env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}", config_key=key)


def _env_float(key: str, default: float) -> float:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}", config_key=key)


class Settings:
    """Environment-backed settings for the Ethra service.

    Attributes:
        write_database_url: SQLAlchemy URL used for writes.
        read_database_url: SQLAlchemy URL used for reads (defaults to the write URL).
        timezone_name: IANA timezone used for every local-day grouping.
        default_calorie_goal: Daily kcal target used when a user has none.
        default_water_goal_ml: Daily water target used when a user has none.
        insight_limit: Maximum number of insights returned to the dashboard.
        dashboard_timeout: Seconds allowed for the dashboard summary.
        retry_attempts: Attempts made by the default retry policy.
        retry_base_delay: Base delay in seconds for exponential backoff.
        openai_api_key: Enables narrative report insights when present.
        openai_base_url: Base URL of the chat-completions API.
        openai_model: Model used for narrative insights.
        insights_timeout: Seconds allowed per text-generation request.
        log_dir: Directory for the rotating log file.
        log_level: Name of the logging level.
    """

    def __init__(self):
        self.write_database_url = os.getenv("WRITE_DATABASE_URL", "sqlite:///ethra.db")
        self.read_database_url = os.getenv("READ_DATABASE_URL", self.write_database_url)

        self.timezone_name = os.getenv("ETHRA_TIMEZONE", "America/Sao_Paulo")
        self.default_calorie_goal = _env_int("ETHRA_DEFAULT_CALORIE_GOAL", 2000)
        self.default_water_goal_ml = _env_int("ETHRA_DEFAULT_WATER_GOAL_ML", 2000)
        self.insight_limit = _env_int("ETHRA_INSIGHT_LIMIT", 3)
        self.dashboard_timeout = _env_float("ETHRA_DASHBOARD_TIMEOUT", 10.0)

        self.retry_attempts = _env_int("ETHRA_RETRY_ATTEMPTS", 3)
        self.retry_base_delay = _env_float("ETHRA_RETRY_BASE_DELAY", 1.0)

        self.openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY") or None
        self.openai_base_url = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/")
        self.openai_model = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
        self.insights_timeout = _env_float("ETHRA_INSIGHTS_TIMEOUT", 30.0)

        self.log_dir = os.getenv("ETHRA_LOG_DIR", os.path.join(_BASE_DIR, "logs"))
        self.log_level = os.getenv("ETHRA_LOG_LEVEL", "INFO").upper()

        if self.insight_limit < 1:
            raise ConfigurationError("ETHRA_INSIGHT_LIMIT must be at least 1", config_key="ETHRA_INSIGHT_LIMIT")
        if self.retry_attempts < 1:
            raise ConfigurationError("ETHRA_RETRY_ATTEMPTS must be at least 1", config_key="ETHRA_RETRY_ATTEMPTS")
        self.timezone = self._load_timezone(self.timezone_name)

    @staticmethod
    def _load_timezone(name: str) -> ZoneInfo:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            raise ConfigurationError(f"Unknown timezone {name!r}", config_key="ETHRA_TIMEZONE")


settings = Settings()
__all__ = ["Settings", "settings"]
