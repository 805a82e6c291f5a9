"""Shared fixtures for the test suite."""

import pytest

from app.config.environment import EnvironmentConfig
from app.config.models import AppConfig
from app.logging.context import clear_log_context

ENV_VARS = [
    "RABBITMQ_HOST",
    "RABBITMQ_PORT",
    "RABBITMQ_USERNAME",
    "RABBITMQ_PASSWORD",
    "RABBITMQ_VHOST",
    "RABBITMQ_QUEUE",
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USER",
    "SMTP_PASS",
    "SMTP_FROM",
    "SMTP_FROM_NAME",
    "LOG_LEVEL",
    "ENVIRONMENT",
]


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep a developer's shell or .env from leaking into tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Environment for a worker talking to a remote broker and relay."""
    monkeypatch.setenv("RABBITMQ_HOST", "rabbitmq.internal")
    monkeypatch.setenv("RABBITMQ_PORT", "5673")
    monkeypatch.setenv("RABBITMQ_USERNAME", "notifier")
    monkeypatch.setenv("RABBITMQ_PASSWORD", "s3cret")
    monkeypatch.setenv("RABBITMQ_QUEUE", "notifications.delivery")
    monkeypatch.setenv("SMTP_HOST", "smtp.example.com")
    monkeypatch.setenv("SMTP_PORT", "587")
    monkeypatch.setenv("SMTP_USER", "mailer@example.com")
    monkeypatch.setenv("SMTP_PASS", "testpass123")
    monkeypatch.setenv("SMTP_FROM", "noreply@example.com")
    monkeypatch.setenv("SMTP_FROM_NAME", "Example")


@pytest.fixture
def app_config():
    """Application config with every section at its defaults except branding."""
    return AppConfig.model_validate(
        {
            "branding": {
                "name": "Example",
                "backend_url": "https://api.example.com/",
                "support_email": "help@example.com",
            }
        }
    )


@pytest.fixture
def env_config():
    return EnvironmentConfig(
        rabbitmq_host="rabbitmq.internal",
        rabbitmq_port=5672,
        smtp_host="smtp.example.com",
        smtp_port=1025,
        smtp_from="noreply@example.com",
        smtp_from_name="Example",
    )
