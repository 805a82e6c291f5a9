"""Domain models for the notification delivery worker."""

from .models import (
    LOGIN_DETAIL_KEYS,
    UNKNOWN_LOGIN_DETAIL,
    NotificationKind,
    NotificationRequest,
)

__all__ = [
    "NotificationKind",
    "NotificationRequest",
    "LOGIN_DETAIL_KEYS",
    "UNKNOWN_LOGIN_DETAIL",
]
