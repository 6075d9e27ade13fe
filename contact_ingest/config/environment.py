"""Environment variable loading and validation."""

import os
from typing import Optional

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///./data/contacts.db"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        connector_api_key: Optional[str] = None,
        connector_endpoint: Optional[str] = None,
        database_url: Optional[str] = None,
        log_level: Optional[str] = None,
    ):
        self.connector_api_key = connector_api_key
        self.connector_endpoint = connector_endpoint
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.log_level = log_level


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    All variables are optional:
    - CONNECTOR_API_KEY: bearer token sent to the connector endpoint
    - CONNECTOR_ENDPOINT: overrides connector.endpoint from the YAML file
    - DATABASE_URL: contacts database (default: sqlite:///./data/contacts.db)
    - LOG_LEVEL: overrides logging.level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If a variable is set to an invalid value
    """
    errors = []

    connector_api_key = (os.getenv("CONNECTOR_API_KEY") or "").strip() or None
    connector_endpoint = (os.getenv("CONNECTOR_ENDPOINT") or "").strip() or None
    database_url = (os.getenv("DATABASE_URL") or "").strip() or None
    log_level = (os.getenv("LOG_LEVEL") or "").strip() or None

    if connector_endpoint and not connector_endpoint.startswith(("http://", "https://")):
        errors.append(
            f"Invalid CONNECTOR_ENDPOINT: '{connector_endpoint}'. Must be an http(s) URL."
        )

    if log_level:
        if log_level.upper() not in VALID_LOG_LEVELS:
            errors.append(
                f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
            )
        else:
            log_level = log_level.upper()

    if database_url and "://" not in database_url:
        errors.append(
            f"Invalid DATABASE_URL: '{database_url}'. Expected a SQLAlchemy URL such as {DEFAULT_DATABASE_URL}"
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fix the values listed above",
                "Unset variables you do not need; all of them are optional",
            ],
        )

    return EnvironmentConfig(
        connector_api_key=connector_api_key,
        connector_endpoint=connector_endpoint,
        database_url=database_url,
        log_level=log_level,
    )
