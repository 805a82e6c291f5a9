"""Environment variable loading and validation."""

import os
import re
from typing import Optional

from .exceptions import ConfigurationError


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        rabbitmq_host: str = "localhost",
        rabbitmq_port: int = 5672,
        rabbitmq_username: str = "guest",
        rabbitmq_password: str = "guest",
        rabbitmq_vhost: str = "/",
        rabbitmq_queue: str = "notifications.delivery",
        smtp_host: str = "localhost",
        smtp_port: int = 1025,
        smtp_user: Optional[str] = None,
        smtp_pass: Optional[str] = None,
        smtp_from: Optional[str] = None,
        smtp_from_name: Optional[str] = None,
        log_level: Optional[str] = None,
    ):
        """Initialize environment configuration."""
        self.rabbitmq_host = rabbitmq_host
        self.rabbitmq_port = rabbitmq_port
        self.rabbitmq_username = rabbitmq_username
        self.rabbitmq_password = rabbitmq_password
        self.rabbitmq_vhost = rabbitmq_vhost
        self.rabbitmq_queue = rabbitmq_queue
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_pass = smtp_pass
        self.smtp_from = smtp_from or "noreply@app.com"
        self.smtp_from_name = smtp_from_name or "App"
        self.log_level = log_level

    @property
    def broker_address(self) -> str:
        """Host:port of the broker, used in log lines."""
        return f"{self.rabbitmq_host}:{self.rabbitmq_port}"


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    Every variable has a default suited to a local docker-compose setup
    (RabbitMQ on localhost:5672, MailDev on localhost:1025).

    Broker variables:
    - RABBITMQ_HOST, RABBITMQ_PORT, RABBITMQ_USERNAME, RABBITMQ_PASSWORD
    - RABBITMQ_VHOST: Virtual host (default: /)
    - RABBITMQ_QUEUE: Queue to consume (default: notifications.delivery)

    SMTP variables:
    - SMTP_HOST, SMTP_PORT
    - SMTP_USER / SMTP_PASS: Authentication (both or neither)
    - SMTP_FROM: Sender address (default: noreply@app.com)
    - SMTP_FROM_NAME: Sender display name (default: App)

    Other:
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If any variable is invalid
    """
    errors = []

    rabbitmq_host = os.getenv("RABBITMQ_HOST", "localhost").strip()
    rabbitmq_username = os.getenv("RABBITMQ_USERNAME", "guest")
    rabbitmq_password = os.getenv("RABBITMQ_PASSWORD", "guest")
    rabbitmq_vhost = os.getenv("RABBITMQ_VHOST", "/")
    rabbitmq_queue = os.getenv("RABBITMQ_QUEUE", "notifications.delivery").strip()

    smtp_host = os.getenv("SMTP_HOST", "localhost").strip()
    smtp_user = os.getenv("SMTP_USER")
    smtp_pass = os.getenv("SMTP_PASS")
    smtp_from = os.getenv("SMTP_FROM")
    smtp_from_name = os.getenv("SMTP_FROM_NAME")
    log_level = os.getenv("LOG_LEVEL")

    if not rabbitmq_host:
        errors.append("RABBITMQ_HOST cannot be empty")

    if not rabbitmq_queue:
        errors.append("RABBITMQ_QUEUE cannot be empty")

    if not smtp_host:
        errors.append("SMTP_HOST cannot be empty")

    rabbitmq_port = _parse_port("RABBITMQ_PORT", os.getenv("RABBITMQ_PORT", "5672"), errors)
    smtp_port = _parse_port("SMTP_PORT", os.getenv("SMTP_PORT", "1025"), errors)

    if smtp_from and not _is_valid_email(smtp_from.strip()):
        errors.append(f"Invalid email address format in SMTP_FROM: '{smtp_from}'")

    # Validate log level if provided
    if log_level:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if log_level.upper() not in valid_levels:
            errors.append(
                f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(valid_levels)}"
            )

    # Validate SMTP authentication consistency
    if smtp_user and not smtp_pass:
        errors.append(
            "SMTP_USER is set but SMTP_PASS is not. Both must be set for authentication."
        )
    elif smtp_pass and not smtp_user:
        errors.append(
            "SMTP_PASS is set but SMTP_USER is not. Both must be set for authentication."
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and adjust the values",
                "Verify RABBITMQ_PORT and SMTP_PORT are numbers between 1 and 65535",
                "Check that email addresses are valid",
            ],
        )

    return EnvironmentConfig(
        rabbitmq_host=rabbitmq_host,
        rabbitmq_port=rabbitmq_port,
        rabbitmq_username=rabbitmq_username,
        rabbitmq_password=rabbitmq_password,
        rabbitmq_vhost=rabbitmq_vhost,
        rabbitmq_queue=rabbitmq_queue,
        smtp_host=smtp_host,
        smtp_port=smtp_port,
        smtp_user=smtp_user,
        smtp_pass=smtp_pass,
        smtp_from=smtp_from.strip() if smtp_from else None,
        smtp_from_name=smtp_from_name,
        log_level=log_level.upper() if log_level else None,
    )


def _parse_port(name: str, raw_value: str, errors: list) -> Optional[int]:
    """Parse a port number, appending a message to errors on failure."""
    try:
        port = int(raw_value)
    except ValueError:
        errors.append(f"Invalid {name}: '{raw_value}'. Must be a valid integer.")
        return None

    if port < 1 or port > 65535:
        errors.append(f"Invalid {name}: {port}. Must be between 1 and 65535.")
        return None

    return port


def _is_valid_email(email: str) -> bool:
    """
    Validate email address format.

    Args:
        email: Email address to validate

    Returns:
        True if valid, False otherwise
    """
    # Recipient addresses go through email-validator in the notifier
    pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+(\.[a-zA-Z]{2,})?$"
    return bool(re.match(pattern, email))
