"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from environment variables (12-factor app)
  - Fall back to .env file
  - Validate types and constraints at startup

Only AppSettings is a BaseSettings instance. Sub-settings are plain BaseModel
classes populated via env_nested_delimiter="__", so LOG_LIST__PATH maps to
log_list.path, POLICY__MAX_LOG_LIST_AGE_DAYS to policy.max_log_list_age_days,
and so on. Configuration errors surface at startup, not on the first query.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the .env file relative to the project root (two levels above this file),
# so settings load correctly regardless of the working directory at runtime.
_ENV_FILE = Path(__file__).parent.parent.parent / ".env"


class LogListSettings(BaseModel):
    """Where the log list lives and how often it may be re-read."""

    path: Path = Field(description="Path of the published log-list JSON file")
    reload_interval_seconds: int = Field(
        default=600,
        ge=1,
        description="Minimum time between two reads of the log list",
    )

    @property
    def reload_interval_millis(self) -> int:
        return self.reload_interval_seconds * 1000


class PolicySettings(BaseModel):
    """
    Parameters of the Chrome-style compliance policy.

    Embedded SCT requirements depend on the leaf's lifetime: certificates
    living at most `short_lived_max_days` need `short_lived_min_scts`,
    longer-lived ones need `long_lived_min_scts`.
    """

    max_log_list_age_days: int = Field(default=70, ge=1)
    min_distinct_operators: int = Field(default=2, ge=1)
    short_lived_max_days: int = Field(default=180, ge=1)
    short_lived_min_scts: int = Field(default=2, ge=1)
    long_lived_min_scts: int = Field(default=3, ge=1)

    @model_validator(mode="after")
    def check_sct_counts(self) -> PolicySettings:
        """Longer-lived certificates never need fewer SCTs than short-lived ones."""
        if self.long_lived_min_scts < self.short_lived_min_scts:
            raise ValueError(
                "long_lived_min_scts must be >= short_lived_min_scts "
                f"({self.long_lived_min_scts} < {self.short_lived_min_scts})"
            )
        return self


class SchedulerSettings(BaseModel):
    """
    Background refresh schedule as a standard 5-field cron expression.

    Format: minute hour day-of-month month day-of-week
    Examples:
      "*/10 * * * *" — every 10 minutes (default, matches the reload interval)
      "*/5 * * * *"  — every 5 minutes
      "0 * * * *"    — hourly
    """

    cron: str = Field(
        default="*/10 * * * *",
        description="Cron expression (5 fields: minute hour dom month dow)",
    )

    @field_validator("cron")
    @classmethod
    def validate_cron(cls, value: str) -> str:
        """Reject expressions that don't have exactly 5 space-separated fields."""
        fields = value.strip().split()
        if len(fields) != 5:
            raise ValueError(
                f"Cron expression must have exactly 5 fields "
                f"(minute hour dom month dow), got {len(fields)}: {value!r}"
            )
        return value.strip()


class AppSettings(BaseSettings):
    """
    Root application settings — aggregates all sub-settings.

    Load order (highest priority first):
      1. Environment variables
      2. .env file
      3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_list: LogListSettings
    policy: PolicySettings = Field(default_factory=lambda: PolicySettings())
    scheduler: SchedulerSettings = Field(default_factory=lambda: SchedulerSettings())

    run_on_startup: bool = Field(default=True)
    log_level: str = Field(default="INFO")
