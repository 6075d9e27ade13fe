"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from contact_ingest.merge.engine import MergePolicy


class ConnectorPlatform(str, Enum):
    """External systems the connector can be pointed at."""

    SALESFORCE = "salesforce"
    SAP = "sap"
    HUBSPOT = "hubspot"
    ZAPIER = "zapier"
    API = "api"
    WEBHOOK = "webhook"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class IngestConfig(BaseModel):
    """Limits and parsing options for uploaded payloads."""

    max_rows: int = Field(
        10000, ge=0, description="Maximum data rows per payload (0 = unlimited)"
    )
    max_payload_bytes: int = Field(
        5 * 1024 * 1024, ge=0, description="Maximum payload size in bytes (0 = unlimited)"
    )
    delimiter: str = Field(",", min_length=1, max_length=1, description="Delimited-text field separator")

    @field_validator("delimiter")
    @classmethod
    def reject_quote_delimiter(cls, v: str) -> str:
        """The quote character and line breaks cannot act as separators."""
        if v in {'"', "\r", "\n"}:
            raise ValueError(f"delimiter cannot be {v!r}")
        return v


class MergeConfig(BaseModel):
    """Duplicate handling settings."""

    scalar_policy: MergePolicy = Field(
        MergePolicy.LAST_WINS, description="Which duplicate supplies name/email/phone"
    )


class ConnectorConfig(BaseModel):
    """External connector endpoint settings. Credentials come from the environment."""

    platform: ConnectorPlatform = Field(ConnectorPlatform.API, description="Connector platform")
    endpoint: Optional[str] = Field(None, description="URL returning the contact batch")
    timeout: int = Field(30, ge=5, le=300, description="Request timeout (seconds)")
    user_agent: str = Field(
        "ContactIngest/1.0", min_length=1, description="User-Agent string for HTTP requests"
    )

    @field_validator("endpoint")
    @classmethod
    def check_endpoint(cls, v: Optional[str]) -> Optional[str]:
        """Strip the endpoint and require an http(s) URL."""
        if v is None:
            return None
        stripped = v.strip()
        if not stripped:
            return None
        if not stripped.startswith(("http://", "https://")):
            raise ValueError(f"endpoint must be an http(s) URL, got: {stripped}")
        return stripped

    @field_validator("user_agent")
    @classmethod
    def strip_user_agent(cls, v: str) -> str:
        """Strip whitespace from user agent."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("user_agent cannot be empty")
        return stripped


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object. Every section is optional."""

    ingest: IngestConfig = Field(default_factory=IngestConfig, description="Payload limits")
    merge: MergeConfig = Field(default_factory=MergeConfig, description="Duplicate handling")
    connector: ConnectorConfig = Field(
        default_factory=ConnectorConfig, description="External connector settings"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    @model_validator(mode="after")
    def check_webhook_connector(self):
        """A webhook connector receives pushes and cannot be polled for a batch."""
        if self.connector.platform == ConnectorPlatform.WEBHOOK and self.connector.endpoint:
            raise ValueError(
                "connector.endpoint must not be set for the webhook platform; "
                "webhook batches are pushed to the application"
            )
        return self
