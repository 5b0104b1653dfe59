"""Configuration management for tablerewind.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded once when
recording is installed and is immutable afterwards.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DIALECT_ENTRY_POINTS = ["do_execute", "do_executemany", "do_execute_no_params"]


class Settings(BaseSettings):
    """Recording configuration settings.

    Settings are loaded from environment variables (prefixed with
    ``TABLEREWIND_``) and .env files. All values are validated on load.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TABLEREWIND_",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "production", "testing"] = "testing"
    enabled: bool = Field(
        default=True,
        description="When disabled, install() wires no interception at all",
    )

    # Recording Settings
    record_schema: bool = Field(
        default=False,
        description="Record schema-qualified names (schema.table) instead of bare table names",
    )
    split_statements: bool = Field(
        default=True,
        description="Classify every statement of ';'-separated SQL text, not just the first",
    )
    backslash_escapes: bool = Field(
        default=False,
        description="Treat backslash as an escape inside string literals (MySQL default sql_mode)",
    )

    # Interception Settings
    dialect_entry_points: list[str] = Field(
        default_factory=lambda: list(DEFAULT_DIALECT_ENTRY_POINTS)
    )
    statement_param: str = "statement"
    listen_for_new_engines: bool = True

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "console"
    configure_logging: bool = Field(
        default=False,
        description="Let install() configure structlog and stdlib logging",
    )

    @field_validator("dialect_entry_points", mode="before")
    @classmethod
    def parse_entry_points(cls, v: str | list[str]) -> list[str]:
        """Parse entry points from comma-separated string or list."""
        if isinstance(v, str):
            return [name.strip() for name in v.split(",") if name.strip()]
        return v

    @field_validator("dialect_entry_points")
    @classmethod
    def validate_entry_points(cls, v: list[str]) -> list[str]:
        """Entry points must be a non-empty list of method names."""
        if not v:
            raise ValueError("At least one dialect entry point is required")
        for name in v:
            if not name.isidentifier():
                raise ValueError(f"Invalid entry point name: {name!r}")
        return v

    @field_validator("statement_param")
    @classmethod
    def validate_statement_param(cls, v: str) -> str:
        """Statement parameter must be a valid parameter name."""
        if not v.isidentifier():
            raise ValueError(f"Invalid statement parameter name: {v!r}")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Cached settings instance.
    """
    return Settings()
