"""Outbound delivery of notifications.

This package provides:
- Notifier: the capability the dispatch router calls, one operation per kind
- EmailNotifier: Notifier implementation rendering and sending emails
- TemplateRenderer: Jinja2-based email template rendering
- SMTPClient: SMTP wrapper with TLS/SSL support
- Payload utilities: template context builders per kind
"""

from .base import Notifier
from .models import (
    DeliveryError,
    InvalidArgumentError,
    NotificationError,
    NotificationTemplateError,
    SMTPDeliveryError,
)
from .service import EmailNotifier
from .smtp_client import SMTPClient, build_sender_address, validate_recipient
from .templates import TemplateRenderer

__all__ = [
    # Capability and implementation
    "Notifier",
    "EmailNotifier",
    # Exceptions
    "NotificationError",
    "NotificationTemplateError",
    "DeliveryError",
    "InvalidArgumentError",
    "SMTPDeliveryError",
    # Components
    "TemplateRenderer",
    "SMTPClient",
    # Utilities
    "build_sender_address",
    "validate_recipient",
]
