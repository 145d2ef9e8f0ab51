"""Process-wide configuration.

Settings are read once from the environment (and an optional ``.env`` file)
into an immutable :class:`Settings` value. Nothing below the CLI looks at the
environment: the driver, store and scraper receive the settings explicitly.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import NonNegativeInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from formulary.data_types import ResolvedRunOptions, RunOptions


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


_LOG_LEVEL_ALIASES = {"TRACE": "DEBUG", "WARN": "WARNING", "FATAL": "CRITICAL"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    log_level: LogLevel = LogLevel.INFO
    base_url: str = "https://www.nhs.uk"

    # Browser
    parallel_tabs: NonNegativeInt = 4
    headless: bool = True
    navigation_timeout_ms: NonNegativeInt = 30000

    # Retries are per medicine; attempts is the total, not the retry count
    retry_attempts: NonNegativeInt = 3
    retry_delay_ms: NonNegativeInt = 750

    # 0 means no limit
    scrape_limit: NonNegativeInt = 0
    output_dir: Path = Path("./data")

    @property
    def retry_delay_seconds(self) -> float:
        return self.retry_delay_ms / 1000.0

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        value = value.upper()
        return _LOG_LEVEL_ALIASES.get(value, value)


def resolve_run_options(
    options: RunOptions, settings: Settings
) -> ResolvedRunOptions:
    """Merge per-invocation overrides with the configured defaults.

    Args:
        options: Overrides from the CLI or a caller.
        settings: The process settings.

    Returns:
        Fully resolved options. Parallel tabs is never below 1.
    """
    parallel_tabs = (
        options.parallel_tabs
        if options.parallel_tabs is not None
        else settings.parallel_tabs
    )
    return ResolvedRunOptions(
        target_limit=options.limit
        if options.limit is not None
        else settings.scrape_limit,
        target_slug=options.slug,
        parallel_tabs=max(1, parallel_tabs),
        headless=options.headless
        if options.headless is not None
        else settings.headless,
        hard_refresh=bool(options.hard_refresh),
    )
