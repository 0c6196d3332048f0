# podcast_studio/core/config.py
import logging
import os
from pathlib import Path
from typing import Dict

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import pytz


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).resolve().parents[2] / ".env"
    logger.debug(f"[CONFIG] Looking for .env at: {env_path} (exists={env_path.exists()})")
    load_dotenv(env_path)


WEEKDAY_NAMES: tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

# Studio hours used until an administrator stores an availability config.
# Sunday is closed (start == end).
DEFAULT_OPENING_HOURS: Dict[str, Dict[str, str]] = {
    "monday": {"start": "09:00", "end": "18:00"},
    "tuesday": {"start": "09:00", "end": "18:00"},
    "wednesday": {"start": "09:00", "end": "18:00"},
    "thursday": {"start": "09:00", "end": "18:00"},
    "friday": {"start": "09:00", "end": "18:00"},
    "saturday": {"start": "10:00", "end": "16:00"},
    "sunday": {"start": "00:00", "end": "00:00"},
}


class Settings(BaseSettings):
    """Process settings for the scheduling core."""

    environment: str = Field(default="development", alias="ENVIRONMENT")
    is_testing: bool = Field(
        default=False,
        validation_alias=AliasChoices("IS_TESTING", "is_testing"),
        description="Use the test database URL instead of the main one",
    )

    # Database
    database_url_raw: str = Field(
        default="sqlite:///./podcast_studio.db",
        validation_alias=AliasChoices("DATABASE_URL", "database_url"),
    )
    test_database_url: str = Field(
        default="sqlite://",
        validation_alias=AliasChoices("TEST_DATABASE_URL", "test_database_url"),
    )
    statement_timeout_ms: int = Field(
        default=15000,
        alias="STATEMENT_TIMEOUT_MS",
        ge=0,
        description="PostgreSQL statement_timeout applied to every connection",
    )

    # Scheduling
    business_timezone: str = Field(
        default="Europe/Paris",
        alias="BUSINESS_TIMEZONE",
        description="IANA zone the studio's opening hours are expressed in",
    )
    default_slot_duration_min: int = Field(
        default=60,
        alias="DEFAULT_SLOT_DURATION_MIN",
        description="Slot granularity used until an availability config is stored",
    )
    default_opening_hours: Dict[str, Dict[str, str]] = Field(
        default_factory=lambda: {day: dict(hours) for day, hours in DEFAULT_OPENING_HOURS.items()},
        alias="DEFAULT_OPENING_HOURS",
    )
    confirmation_code_prefix: str = Field(default="CONF", alias="CONFIRMATION_CODE_PREFIX")

    # Logging / monitoring
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    structured_logs: bool = Field(default=False, alias="STRUCTURED_LOGS")
    slow_operation_threshold_s: float = Field(
        default=1.0,
        alias="SLOW_OPERATION_THRESHOLD_S",
        gt=0,
        description="Operations slower than this are logged as warnings",
    )

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("business_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        if value not in pytz.all_timezones_set:
            raise ValueError(f"Unknown timezone: {value}")
        return value

    @field_validator("default_slot_duration_min")
    @classmethod
    def _validate_slot_duration(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("default_slot_duration_min must be positive")
        return value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value}")
        return normalized

    @property
    def database_url(self) -> str:
        """Database URL for the current mode (test URL while testing)."""
        if self.is_testing or is_running_tests():
            return self.test_database_url
        return self.database_url_raw


settings = Settings()
