"""Core domain models for notification requests.

This module defines:
- NotificationKind: the fixed set of notifications the worker can deliver
- NotificationRequest: a decoded, validated unit of work taken off the queue
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


class NotificationKind(str, Enum):
    """Notification kinds, valued by their wire name in the ``type`` field."""

    WELCOME = "user_welcome"
    LOGIN_NOTIFICATION = "login_notification"
    PASSWORD_RESET = "password_reset"
    PASSWORD_UPDATED = "password_updated"
    UNKNOWN = "unknown"

    @classmethod
    def from_type(cls, raw_type: str) -> "NotificationKind":
        """Match a wire ``type`` case-insensitively; unmatched values are UNKNOWN."""
        try:
            return cls(raw_type.lower())
        except ValueError:
            return cls.UNKNOWN


class NotificationRequest(BaseModel):
    """A notification request decoded from one queue message.

    Attributes:
        kind: Which notification to send
        raw_type: The ``type`` string exactly as the producer sent it
        recipient_address: Destination email address (never empty)
        recipient_name: Greeting name, already defaulted by the decoder
        timestamp: When the producer emitted the event (informational)
        extra: Kind-specific parameters from ``additionalData``
    """

    kind: NotificationKind
    raw_type: str = Field(..., min_length=1)
    recipient_address: str = Field(..., min_length=1)
    recipient_name: str = Field(..., min_length=1)
    timestamp: Optional[datetime] = None
    extra: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @field_validator("raw_type", "recipient_address", "recipient_name")
    @classmethod
    def reject_blank(cls, v: str) -> str:
        """Reject whitespace-only strings."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped

    @property
    def is_known(self) -> bool:
        return self.kind is not NotificationKind.UNKNOWN


# additionalData keys carried by login notifications, and the value used for
# any of them the producer left out
LOGIN_DETAIL_KEYS = ("ipAddress", "deviceInfo", "userAgent", "location")
UNKNOWN_LOGIN_DETAIL = "Unknown"
