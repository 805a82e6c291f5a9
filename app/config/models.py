"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range


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


def _validate_duration(value: str, min_seconds: int, max_seconds: int) -> str:
    try:
        seconds = parse_duration(value)
        validate_duration_range(seconds, min_seconds=min_seconds, max_seconds=max_seconds)
        return value
    except DurationParseError as e:
        raise ValueError(str(e)) from e


class BrokerConfig(BaseModel):
    """Broker connection and consumption policy."""

    max_connect_attempts: int = Field(
        20, ge=1, le=100, description="Connection attempts before giving up"
    )
    connect_retry_delay: str = Field(
        "3s", description="Fixed delay between connection attempts"
    )
    recovery_interval: str = Field(
        "10s", description="Wait before reconnecting after a broker-initiated closure"
    )
    heartbeat: str = Field("60s", description="AMQP heartbeat timeout")
    poll_interval: str = Field(
        "1s", description="Idle wait between event polls; bounds shutdown latency"
    )
    prefetch_count: int = Field(
        1, ge=1, le=1000, description="Unacknowledged messages the broker may push at once"
    )
    requeue_on_delivery_failure: bool = Field(
        False, description="Requeue messages whose delivery attempt failed"
    )

    # Computed fields
    connect_retry_delay_seconds: Optional[int] = None
    recovery_interval_seconds: Optional[int] = None
    heartbeat_seconds: Optional[int] = None
    poll_interval_seconds: Optional[int] = None

    @field_validator("connect_retry_delay", "recovery_interval", "poll_interval")
    @classmethod
    def validate_short_duration(cls, v: str) -> str:
        """Validate delays that must stay within a few minutes."""
        return _validate_duration(v, min_seconds=1, max_seconds=600)

    @field_validator("heartbeat")
    @classmethod
    def validate_heartbeat(cls, v: str) -> str:
        """Validate heartbeat timeout."""
        return _validate_duration(v, min_seconds=5, max_seconds=3600)

    @model_validator(mode="after")
    def compute_durations(self):
        """Compute derived duration fields in seconds."""
        self.connect_retry_delay_seconds = parse_duration(self.connect_retry_delay)
        self.recovery_interval_seconds = parse_duration(self.recovery_interval)
        self.heartbeat_seconds = parse_duration(self.heartbeat)
        self.poll_interval_seconds = parse_duration(self.poll_interval)
        return self


class EmailConfig(BaseModel):
    """Email transport settings."""

    use_tls: bool = Field(False, description="Use STARTTLS (ignored on port 465)")
    timeout: int = Field(30, ge=1, le=300, description="SMTP socket timeout in seconds")


class BrandingConfig(BaseModel):
    """Values rendered into notification content."""

    name: str = Field("App", min_length=1, description="Product name shown in emails")
    backend_url: str = Field(
        "http://localhost:8080", description="Base URL for links in emails"
    )
    support_email: str = Field(
        "support@app.com", min_length=3, description="Support contact shown in emails"
    )

    @field_validator("name", "support_email")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip whitespace from string fields."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped

    @field_validator("backend_url")
    @classmethod
    def normalize_backend_url(cls, v: str) -> str:
        """Require an http(s) URL and drop the trailing slash."""
        stripped = v.strip().rstrip("/")
        if not stripped.startswith(("http://", "https://")):
            raise ValueError("backend_url must start with http:// or https://")
        return stripped


class NotificationsConfig(BaseModel):
    """Defaults applied to incoming notification requests."""

    default_recipient_name: str = Field(
        "User", min_length=1, description="Name used when a message carries no userName"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the notification delivery worker."""

    broker: BrokerConfig = Field(default_factory=BrokerConfig, description="Broker policy")
    email: EmailConfig = Field(default_factory=EmailConfig, description="Email settings")
    branding: BrandingConfig = Field(
        default_factory=BrandingConfig, description="Content branding"
    )
    notifications: NotificationsConfig = Field(
        default_factory=NotificationsConfig, description="Request defaults"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
