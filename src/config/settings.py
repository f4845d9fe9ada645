"""
Configuration Management for Finance Projects

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what external dependencies exist and
ensures all required configuration is validated at startup.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MongoSettings(BaseSettings):
    """MongoDB document store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MONGO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection string"
    )
    database: str = Field(
        default="finance",
        description="Database holding all collections"
    )
    server_selection_timeout_ms: int = Field(
        default=5000,
        ge=100,
        description="How long the driver waits for a reachable server"
    )

    # Collection names
    users_collection: str = Field(default="users")
    projects_collection: str = Field(default="projects")
    currencies_collection: str = Field(default="currencies")
    categories_collection: str = Field(default="categories")
    audit_collection: str = Field(default="audit_log")

    @field_validator("uri")
    @classmethod
    def validate_uri(cls, v: str) -> str:
        if not v.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError("MONGO_URI must start with mongodb:// or mongodb+srv://")
        return v


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        description="Standard library log level for structured logs"
    )

    # Backends
    storage_backend: Literal["mongo", "memory"] = Field(
        default="mongo",
        description="Which storage implementation to wire at startup"
    )
    audit_enabled: bool = Field(
        default=True,
        description="Persist audit events next to the domain data"
    )

    # Limits
    max_project_name_length: int = Field(
        default=100,
        ge=1,
        le=500,
        description="Longest accepted project name"
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def mongo(self) -> MongoSettings:
        return MongoSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus "<name>_error"
    entries describing each failure. Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.mongo
        results["mongo"] = True
    except Exception as e:
        results["mongo"] = False
        results["mongo_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
