"""Payload decoding: raw queue bytes to a NotificationRequest.

Inbound message shape (UTF-8 JSON)::

    {
        "type": "password_reset",
        "email": "ana@example.com",
        "userName": "Ana",
        "timestamp": "2025-11-04T12:00:00Z",
        "additionalData": {"resetToken": "abc"}
    }

Only ``type`` and ``email`` are mandatory. Unrecognized ``type`` values
decode successfully to NotificationKind.UNKNOWN; rejecting them is the
router's job.
"""

import json
from typing import Any

from pydantic import ValidationError

from app.domain.models import NotificationKind, NotificationRequest
from app.utils.timestamps import parse_iso_datetime

from .exceptions import PayloadDecodeError, PayloadValidationError


def _as_text(value: Any) -> str:
    """Stringify a scalar JSON value; objects, arrays and null become ""."""
    if value is None or isinstance(value, (dict, list)):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


class PayloadDecoder:
    """Decodes message bodies into NotificationRequest objects.

    Stateless apart from the configured placeholder name, so one instance
    may serve every message.
    """

    def __init__(self, default_recipient_name: str = "User"):
        """Initialize decoder.

        Args:
            default_recipient_name: Name used when a message has no ``userName``
        """
        self.default_recipient_name = default_recipient_name

    def decode(self, body: bytes) -> NotificationRequest:
        """Decode and validate a message body.

        Args:
            body: Raw message body as delivered by the broker

        Returns:
            Validated NotificationRequest

        Raises:
            PayloadDecodeError: If the body is not UTF-8 or not a JSON object
            PayloadValidationError: If ``type`` or ``email`` is missing or empty,
                or ``additionalData`` is not an object
        """
        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise PayloadDecodeError(f"Message body is not valid UTF-8: {e}") from e

        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise PayloadDecodeError(f"Message body is not valid JSON: {e}") from e
        except RecursionError as e:
            raise PayloadDecodeError("Message body is nested too deeply to decode") from e

        if not isinstance(document, dict):
            raise PayloadDecodeError(
                f"Message body must be a JSON object, got {type(document).__name__}"
            )

        raw_type = _as_text(document.get("type"))
        email = _as_text(document.get("email"))

        missing = [name for name, value in (("type", raw_type), ("email", email)) if not value]
        if missing:
            raise PayloadValidationError(
                f"Message is missing required field(s): {', '.join(missing)}",
                missing_fields=missing,
            )

        extra = document.get("additionalData")
        if extra is None:
            extra = {}
        elif not isinstance(extra, dict):
            raise PayloadValidationError(
                f"additionalData must be a JSON object, got {type(extra).__name__}"
            )

        recipient_name = _as_text(document.get("userName")) or self.default_recipient_name

        try:
            return NotificationRequest(
                kind=NotificationKind.from_type(raw_type),
                raw_type=raw_type,
                recipient_address=email,
                recipient_name=recipient_name,
                timestamp=parse_iso_datetime(document.get("timestamp")),
                extra=extra,
            )
        except ValidationError as e:
            raise PayloadValidationError(f"Invalid notification request: {e}") from e
