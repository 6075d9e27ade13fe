"""Configuration management for the contact ingestion pipeline."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, validate_config_file
from .models import (
    AppConfig,
    ConnectorConfig,
    ConnectorPlatform,
    IngestConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    MergeConfig,
)

__all__ = [
    # Main loader functions
    "load_config",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "IngestConfig",
    "MergeConfig",
    "ConnectorConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "ConnectorPlatform",
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
