"""Configuration management for GitScope."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gitscope.monitor.classifier import ThresholdConfig
from gitscope.monitor.config import DispatchMode, MonitorConfig

DEFAULT_KEYWORDS = "openclaw,claude-code,clawdbot,moltbot,clawhub,openclaw skills"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        # MAX_STARS= (empty) means "no upper limit"
        env_parse_none_str="",
    )

    # GitHub
    github_token: SecretStr = Field(description="GitHub personal access token for search")
    github_api_timeout: float = Field(
        default=30.0, description="Timeout in seconds for GitHub API requests"
    )
    github_search_pages: int = Field(
        default=1, ge=1, le=10, description="Search result pages (100 repos each) per cycle"
    )
    github_rate_limit_max_wait: int = Field(
        default=60, ge=0, description="Longest rate-limit reset (seconds) worth waiting for"
    )

    # Telegram
    telegram_bot_token: SecretStr = Field(description="Telegram bot token")
    telegram_chat_id: str = Field(min_length=1, description="Destination chat or channel ID")
    telegram_api_timeout: float = Field(
        default=10.0, description="Timeout in seconds for Telegram API requests"
    )
    telegram_max_retries: int = Field(
        default=2, ge=0, le=10, description="Retries on rate limit or network errors"
    )

    # Application
    environment: str = Field(default="production", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")
    log_to_file: bool = Field(default=False, description="Enable file-based logging")
    log_directory: str = Field(default="logs", description="Directory for log files")
    log_file_max_bytes: int = Field(
        default=10485760,  # 10MB
        description="Max size per log file before rotation",
    )
    log_file_backup_count: int = Field(
        default=5, description="Number of rotated log files to keep"
    )

    # State
    state_file_path: str = Field(default="./state.json", description="Path of the state file")

    # Monitoring
    monitor_keywords_str: str = Field(
        default=DEFAULT_KEYWORDS,
        alias="MONITOR_KEYWORDS",
        description="Search keywords (comma-separated)",
    )
    monitor_cron: str = Field(default="0 * * * *", description="Crontab schedule for cycles")
    monitor_run_on_start: bool = Field(
        default=True, description="Run one cycle immediately at startup"
    )
    cooldown_days: int = Field(
        default=7, ge=1, le=90, description="Days before the same repo may alert again"
    )
    batch_threshold: int = Field(
        default=5, ge=0, description="Pending alerts above this are sent as one digest"
    )
    dispatch_mode: str = Field(
        default="batched", description="Dispatch mode: 'batched' or 'combined'"
    )
    max_stars: int | None = Field(
        default=None, ge=0, description="Never alert repositories above this star count"
    )

    # Severity thresholds
    young_repo_max_age_days: float = Field(default=30, gt=0)
    young_repo_min_velocity: float = Field(default=5, gt=0)
    old_repo_min_velocity: float = Field(default=10, gt=0)
    new_repo_min_stars: int = Field(default=20, ge=0)
    hot_multiplier: float = Field(default=3, ge=1)
    viral_multiplier: float = Field(default=10, ge=1)

    @property
    def monitor_keywords(self) -> list[str]:
        """Parse and return the keyword list."""
        return [k.strip() for k in self.monitor_keywords_str.split(",") if k.strip()]

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"

    @property
    def log_file_path(self) -> str:
        """Get the full log file path."""
        return f"{self.log_directory}/gitscope.log"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate the logging level name."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}, got: {v}")
        return v.upper()

    @field_validator("dispatch_mode")
    @classmethod
    def validate_dispatch_mode(cls, v: str) -> str:
        """Validate dispatch mode choice."""
        valid_modes = [mode.value for mode in DispatchMode]
        if v.lower() not in valid_modes:
            raise ValueError(f"dispatch_mode must be one of {valid_modes}, got: {v}")
        return v.lower()

    @field_validator("monitor_keywords_str")
    @classmethod
    def validate_keywords(cls, v: str) -> str:
        """Require at least one keyword."""
        if not any(k.strip() for k in v.split(",")):
            raise ValueError("MONITOR_KEYWORDS must contain at least one keyword")
        return v

    @field_validator("monitor_cron")
    @classmethod
    def validate_cron(cls, v: str) -> str:
        """Require a five-field crontab expression."""
        if len(v.split()) != 5:
            raise ValueError(f"monitor_cron must have 5 fields, got: {v!r}")
        return v

    def threshold_config(self) -> ThresholdConfig:
        """Build the severity thresholds from settings."""
        return ThresholdConfig(
            young_repo_max_age_days=self.young_repo_max_age_days,
            young_repo_min_velocity=self.young_repo_min_velocity,
            old_repo_min_velocity=self.old_repo_min_velocity,
            new_repo_min_stars=self.new_repo_min_stars,
            hot_multiplier=self.hot_multiplier,
            viral_multiplier=self.viral_multiplier,
        )

    def monitor_config(self) -> MonitorConfig:
        """Build the monitoring cycle configuration from settings."""
        return MonitorConfig(
            keywords=self.monitor_keywords,
            cooldown_days=self.cooldown_days,
            batch_threshold=self.batch_threshold,
            dispatch_mode=DispatchMode(self.dispatch_mode),
            max_stars=self.max_stars,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]  # Pydantic loads from env vars
