"""Dispatch routing: one decoded request to exactly one Notifier operation.

| kind               | additionalData keys used                        |
|--------------------|-------------------------------------------------|
| user_welcome       | activationToken (optional)                      |
| login_notification | ipAddress, deviceInfo, userAgent, location      |
| password_reset     | resetToken ("" when absent; the notifier rejects it) |
| password_updated   | none                                            |

Keys a kind does not use are ignored.
"""

import json
from typing import Any, Callable, Dict, Mapping, Optional

from app.domain.models import (
    LOGIN_DETAIL_KEYS,
    UNKNOWN_LOGIN_DETAIL,
    NotificationKind,
    NotificationRequest,
)
from app.logging import get_logger
from app.notifications.base import Notifier

from .exceptions import UnknownNotificationKindError

logger = get_logger(__name__, component="dispatch")


def extra_text(extra: Mapping[str, Any], key: str) -> Optional[str]:
    """Read one additionalData value as a string.

    Strings pass through unchanged; other JSON values are serialized
    (``true``, ``42``, ``{"a": 1}``). Missing keys and null give None.
    """
    value = extra.get(key)
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def build_login_details(extra: Mapping[str, Any]) -> Dict[str, str]:
    """Extract the sign-in details, defaulting each absent one."""
    return {
        key: extra_text(extra, key) or UNKNOWN_LOGIN_DETAIL for key in LOGIN_DETAIL_KEYS
    }


def _send_welcome(notifier: Notifier, request: NotificationRequest) -> None:
    notifier.send_welcome(
        request.recipient_address,
        request.recipient_name,
        extra_text(request.extra, "activationToken"),
    )


def _send_login_notice(notifier: Notifier, request: NotificationRequest) -> None:
    notifier.send_login_notice(
        request.recipient_address,
        request.recipient_name,
        build_login_details(request.extra),
    )


def _send_password_reset(notifier: Notifier, request: NotificationRequest) -> None:
    notifier.send_password_reset(
        request.recipient_address,
        request.recipient_name,
        extra_text(request.extra, "resetToken") or "",
    )


def _send_password_updated(notifier: Notifier, request: NotificationRequest) -> None:
    notifier.send_password_updated_confirmation(
        request.recipient_address,
        request.recipient_name,
    )


class DispatchRouter:
    """Maps notification kinds to Notifier operations."""

    def __init__(self) -> None:
        self._routes: Dict[NotificationKind, Callable[[Notifier, NotificationRequest], None]] = {
            NotificationKind.WELCOME: _send_welcome,
            NotificationKind.LOGIN_NOTIFICATION: _send_login_notice,
            NotificationKind.PASSWORD_RESET: _send_password_reset,
            NotificationKind.PASSWORD_UPDATED: _send_password_updated,
        }

    def route(self, request: NotificationRequest, notifier: Notifier) -> None:
        """Invoke the notifier operation for the request's kind.

        Args:
            request: Decoded notification request
            notifier: Notifier to deliver through

        Raises:
            UnknownNotificationKindError: If the kind has no route; the
                notifier is not called
            NotificationError: Propagated unchanged from the notifier
        """
        send = self._routes.get(request.kind)
        if send is None:
            raise UnknownNotificationKindError(request.raw_type)

        logger.info(
            f"Dispatching {request.kind.value} notification to {request.recipient_address}",
            extra={"event": "dispatch.routed", "operation": send.__name__.lstrip("_")},
        )
        send(notifier, request)
