# Copyright (c) 2025-2026 OptimNow. All Rights Reserved.
# Licensed under the Apache License, Version 2.0.
# See LICENSE file in the project root for full license information.

"""Configuration management for the cost attribution dashboard engine.

This module handles loading and validating configuration from environment
variables with sensible defaults.
"""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models.enums import StorageBackend


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for local development.
    In production, these should be set via environment variables
    or a .env file.
    """

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        validation_alias="LOG_LEVEL",
    )
    environment: str = Field(
        default="development",
        description="Environment name (development, staging, production)",
        validation_alias=AliasChoices("ENVIRONMENT", "ENV"),
    )

    # Filter persistence
    storage_backend: StorageBackend = Field(
        default=StorageBackend.FILE,
        description="Key-value store used for filter persistence (memory, file, redis)",
        validation_alias="FILTER_STORAGE_BACKEND",
    )
    storage_file_path: str = Field(
        default="dashboard_filters.json",
        description="Path of the JSON file used by the file storage backend",
        validation_alias="FILTER_STORAGE_FILE",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for the redis storage backend",
        validation_alias="REDIS_URL",
    )
    filter_storage_key: str = Field(
        default="tracer-ec2-dashboard-filters",
        description="Key under which the filter document is stored",
        validation_alias="FILTER_STORAGE_KEY",
    )
    filter_storage_version: str = Field(
        default="1.0",
        description="Version token written with the filter document",
        validation_alias="FILTER_STORAGE_VERSION",
    )

    # Attribution
    default_resource_cost: float = Field(
        default=50.0,
        ge=0.0,
        description="Flat cost estimate applied to resources without cost data",
        validation_alias="DEFAULT_RESOURCE_COST",
    )

    # AWS / CloudWatch
    aws_region: str = Field(
        default="us-east-1",
        description="Default AWS region",
        validation_alias=AliasChoices("AWS_REGION", "AWS_DEFAULT_REGION"),
    )
    cloudwatch_enabled: bool = Field(
        default=False,
        description="Enable CloudWatch logging",
        validation_alias="CLOUDWATCH_ENABLED",
    )
    cloudwatch_log_group: str = Field(
        default="/finops/cost-dashboard",
        description="CloudWatch log group name",
        validation_alias="CLOUDWATCH_LOG_GROUP",
    )
    cloudwatch_log_stream: Optional[str] = Field(
        default=None,
        description="CloudWatch log stream name (defaults to the environment name)",
        validation_alias="CLOUDWATCH_LOG_STREAM",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )


def get_settings() -> Settings:
    """
    Get application settings.

    Loads settings from environment variables and .env file.

    Returns:
        Settings instance with all configuration values
    """
    return Settings()


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def settings() -> Settings:
    """
    Get the global settings instance.

    Creates the settings instance on first call and caches it.

    Returns:
        Global Settings instance
    """
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings
