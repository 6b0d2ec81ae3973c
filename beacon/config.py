from datetime import timedelta
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging
import os
import tomllib

from pydantic import ValidationError, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsError,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from beacon.services.slideshow_types import EngineConfig


logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = "digital-sign"
CONFIG_FILE_NAME = "config.toml"


def config_file_path() -> Path:
    """Location of the optional TOML configuration file.

    ``BEACON_CONFIG_FILE`` wins; otherwise ``$XDG_CONFIG_HOME/digital-sign/config.toml``
    (falling back to ``~/.config``).
    """
    explicit = os.environ.get("BEACON_CONFIG_FILE")
    if explicit:
        return Path(explicit).expanduser()

    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / CONFIG_DIR_NAME / CONFIG_FILE_NAME


class BeaconSettings(BaseSettings):
    """Display client settings.

    Read from init kwargs, ``BEACON_*`` environment variables, ``.env`` and the
    TOML config file, in that order of priority.
    """

    api_url: str = "https://api.rockvilletollandsda.church"
    window_width: int = 1920
    window_height: int = 1080
    slide_interval_seconds: int = 10
    refresh_interval_minutes: int = 5
    tick_interval_ms: int = 100
    display_timezone: str = "UTC"
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8080

    model_config = SettingsConfigDict(
        env_prefix="BEACON_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls, toml_file=config_file_path()),
        )

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, value: str) -> str:
        """API base URL must be HTTP/HTTPS; trailing slashes are dropped."""
        value = value.strip()
        if not value.lower().startswith(("http://", "https://")):
            raise ValueError(f"api_url must be HTTP/HTTPS: {value}")
        return value.rstrip("/")

    @field_validator(
        "slide_interval_seconds",
        "refresh_interval_minutes",
        "tick_interval_ms",
        "window_width",
        "window_height",
    )
    @classmethod
    def validate_positive_ints(cls, value: int, info) -> int:
        if value <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return value

    @field_validator("display_timezone")
    @classmethod
    def validate_display_timezone(cls, value: str) -> str:
        """Validate timezone string"""
        if value == "UTC":
            return value
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(
                f"Invalid display_timezone: {value}. Must be a valid IANA timezone or 'UTC'"
            ) from exc
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        normalized = value.upper()
        allowed = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        if normalized not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}")
        return normalized

    @model_validator(mode="after")
    def validate_tick_granularity(self):
        """The tick must be shorter than a slide or scheduling visibly degrades."""
        if self.tick_interval_ms >= self.slide_interval_seconds * 1000:
            raise ValueError(
                "tick_interval_ms must be shorter than slide_interval_seconds"
            )
        return self

    def log_configuration(self, log: logging.Logger = logger) -> None:
        """Log the effective configuration (call once logging is set up)."""
        log.info("Configuration loaded:")
        log.info("  API URL: %s", self.api_url)
        log.info("  Window: %sx%s", self.window_width, self.window_height)
        log.info("  Slide Interval: %ss", self.slide_interval_seconds)
        log.info("  Refresh Interval: %s min", self.refresh_interval_minutes)
        log.info("  Tick Interval: %sms", self.tick_interval_ms)
        log.info("  Display Timezone: %s", self.display_timezone)

    @property
    def slide_interval(self) -> timedelta:
        return timedelta(seconds=self.slide_interval_seconds)

    @property
    def refresh_interval(self) -> timedelta:
        return timedelta(minutes=self.refresh_interval_minutes)

    @property
    def tick_interval(self) -> timedelta:
        return timedelta(milliseconds=self.tick_interval_ms)

    def engine_config(self) -> EngineConfig:
        """Immutable view of the values the slideshow engine needs."""
        return EngineConfig(
            slide_interval=self.slide_interval,
            refresh_interval=self.refresh_interval,
        )


def load_settings(**overrides) -> BeaconSettings:
    """
    Load settings, falling back to defaults when configuration is invalid.

    A kiosk must come up even with a broken config file, so validation, TOML
    syntax and file access errors are logged rather than raised. The fallback
    is built with model_construct, which reads no source at all.
    """
    try:
        return BeaconSettings(**overrides)
    except (ValidationError, SettingsError, tomllib.TOMLDecodeError, OSError) as exc:
        logger.error("Failed to load config, using defaults: %s", exc)
        return BeaconSettings.model_construct()


settings = load_settings()


def setup_logging(level: str | None = None) -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # The tick job runs every few hundred milliseconds
    logging.getLogger("apscheduler.executors").setLevel(logging.WARNING)
    logging.getLogger("apscheduler.scheduler").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
